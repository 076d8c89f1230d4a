# app/core/config.py

import os # 환경 변수를 읽기 위해 사용합니다.

def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')

class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # Mercado Pago 액세스 토큰. 테스트 환경에서는 'TEST-'로 시작하는 토큰을 사용합니다.
    MP_ACCESS_TOKEN = os.getenv('MP_ACCESS_TOKEN')
    # 웹훅 서명 검증용 비밀 키. 비어 있으면 서명 검증을 건너뜁니다.
    MP_WEBHOOK_SECRET = os.getenv('MP_WEBHOOK_SECRET')
    # Mercado Pago가 결제 알림을 보낼 웹훅 URL (이 서버의 /api/payments/webhook)
    MP_NOTIFICATION_URL = os.getenv('MP_NOTIFICATION_URL')

    # 결제 완료/실패/보류 후 돌아갈 URL
    PAYMENT_SUCCESS_URL = os.getenv('PAYMENT_SUCCESS_URL', 'https://tu-app.com/payment-success')
    PAYMENT_FAILURE_URL = os.getenv('PAYMENT_FAILURE_URL', 'https://tu-app.com/payment-failure')
    PAYMENT_PENDING_URL = os.getenv('PAYMENT_PENDING_URL', 'https://tu-app.com/payment-pending')
    PAYMENT_CURRENCY = os.getenv('PAYMENT_CURRENCY', 'ARS') # 아르헨티나 페소

    # 처리된 큐 알림 보관 기간(일)과 정리 작업 주기(시간)
    NOTIFICATION_RETENTION_DAYS = int(os.getenv('NOTIFICATION_RETENTION_DAYS', '7'))
    CLEANUP_INTERVAL_HOURS = int(os.getenv('CLEANUP_INTERVAL_HOURS', '24'))

    # Firestore 리스너와 스케줄러는 한 프로세스에서만 켜야 합니다.
    ENABLE_LISTENERS = _env_flag('ENABLE_LISTENERS', 'true')
    ENABLE_SCHEDULER = _env_flag('ENABLE_SCHEDULER', 'true')

class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    # 개발용 Firebase 프로젝트의 서비스 계정 키 파일 경로
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH')

class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다."""
    TESTING = True
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    # 테스트에서는 백그라운드 스레드를 띄우지 않습니다.
    ENABLE_LISTENERS = False
    ENABLE_SCHEDULER = False
    MP_WEBHOOK_SECRET = None

class ProductionConfig(Config):
    """운영 환경을 위한 설정 클래스입니다."""
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')

# FLASK_ENV 값에 따라 create_app에서 적절한 설정을 선택하는 데 사용됩니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
