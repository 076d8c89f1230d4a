# app/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
import firebase_admin
from firebase_admin import credentials, firestore, messaging

# - 설정 및 오류
from app.core.config import config_by_name
from app.core.exceptions import CallableError

# - API 블루프린트
from app.api.payments.routes import payments_bp

# - 서비스 모듈
from app.services.token_service import TokenResolver
from app.services.notification_service import NotificationDispatcher
from app.api.payments.services import PaymentService

# - 이벤트 핸들러 및 백그라운드 작업
from app.events.orders import OrderEventHandler
from app.events.chat import ChatEventHandler
from app.events.notification_queue import NotificationQueueHandler
from app.events.maintenance import MaintenanceJobs
from app.events.listeners import build_watchers
from app.scheduler import build_scheduler

def init_firebase(app: Flask) -> None:
    """firebase_admin 기본 앱을 한 번만 초기화합니다."""
    if firebase_admin._apps:
        return
    cred_path = app.config.get('FIREBASE_CREDENTIALS_PATH')
    if cred_path:
        if not os.path.exists(cred_path):
            raise FileNotFoundError(f"Firebase credentials file not found: {cred_path}")
        firebase_admin.initialize_app(credentials.Certificate(cred_path))
    else:
        # Cloud Run 등에서는 애플리케이션 기본 자격 증명을 사용
        firebase_admin.initialize_app()

def build_services(app: Flask) -> dict:
    """
    모든 클라이언트와 서비스를 명시적으로 생성하여 주입합니다.
    전역 싱글턴 대신 여기서 만든 인스턴스만 사용합니다.
    """
    db = firestore.client()
    services = {}

    # 다른 서비스의 기반이 되는 공용 서비스
    services['tokens'] = TokenResolver(db=db)
    services['dispatcher'] = NotificationDispatcher(messaging_client=messaging)
    services['payments'] = PaymentService.from_config(app.config, db=db)

    # 이벤트 핸들러
    services['order_events'] = OrderEventHandler(services['tokens'], services['dispatcher'])
    services['chat_events'] = ChatEventHandler(services['tokens'], services['dispatcher'], db=db)
    services['notification_queue'] = NotificationQueueHandler(services['dispatcher'], db=db)
    services['maintenance'] = MaintenanceJobs(db=db, retention_days=app.config['NOTIFICATION_RETENTION_DAYS'])
    services['db'] = db
    return services

def start_background_workers(app: Flask) -> None:
    """설정에 따라 Firestore 리스너와 정리 작업 스케줄러를 시작합니다."""
    services = app.services
    app.watchers = []
    app.scheduler = None

    if app.config.get('ENABLE_LISTENERS'):
        app.watchers = build_watchers(
            services['db'], services['order_events'], services['chat_events'], services['notification_queue']
        )
        for watcher in app.watchers:
            watcher.start()

    if app.config.get('ENABLE_SCHEDULER'):
        app.scheduler = build_scheduler(services['maintenance'], app.config['CLEANUP_INTERVAL_HOURS'])
        app.scheduler.start()

def create_app(config_name: str = None, services: dict = None):
    """
    Flask 애플리케이션 팩토리 함수.

    :param config_name: 'development' | 'testing' | 'production' (기본값: FLASK_ENV)
    :param services: 미리 만든 서비스 딕셔너리. 주어지면 Firebase 초기화와 백그라운드 작업을 건너뜁니다.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 외부 서비스 초기화 및 서비스 인스턴스 주입
    # =====================================================================================
    if services is None:
        init_firebase(app)
        app.services = build_services(app)
        start_background_workers(app)
    else:
        app.services = services
        app.watchers = []
        app.scheduler = None

    # =====================================================================================
    # 5. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(payments_bp, url_prefix='/api/payments')

    # =====================================================================================
    # 6. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(CallableError)
    def handle_callable_error(err):
        return jsonify(err.to_dict()), err.http_status

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        error = CallableError('invalid-argument', "Datos inválidos", details=err.messages)
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        if isinstance(err, HTTPException):
            return err
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "Error interno del servidor."}
        return jsonify(response), 500

    # =====================================================================================
    # 7. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
