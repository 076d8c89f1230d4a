# app/api/payments/routes.py
import logging
from flask import Blueprint, request, jsonify, Response, current_app
from marshmallow import ValidationError

from app.api.payments.schemas import (
    MISSING_FIELDS_MESSAGE, REQUIRED_FIELDS,
    PaymentPreferenceRequestSchema, PaymentPreferenceResponseSchema,
)
from app.core.exceptions import CallableError, InvalidSignatureError, PaymentProviderError
from app.core.security import firebase_auth_required, verify_webhook_signature

payments_bp = Blueprint('payments_bp', __name__)

def _callable_data() -> dict:
    """callable 규약의 {"data": {...}} 봉투와 평범한 JSON 본문을 모두 받습니다."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return {}
    data = payload.get('data', payload)
    return data if isinstance(data, dict) else {}

@payments_bp.route('/preferences', methods=['POST'])
@firebase_auth_required
def create_payment_preference():
    """
    인증된 사용자의 주문에 대해 Mercado Pago 체크아웃 링크를 생성합니다.
    - 성공 시 {"result": {"success": true, "preferenceId", "initPoint"}}를 반환합니다.
    """
    payment_service = current_app.services['payments']
    data = _callable_data()

    if any(not data.get(key) for key in REQUIRED_FIELDS):
        raise CallableError('invalid-argument', MISSING_FIELDS_MESSAGE)

    try:
        params = PaymentPreferenceRequestSchema().load(data)
    except ValidationError as err:
        raise CallableError('invalid-argument', "Datos de pago inválidos", details=err.messages)

    try:
        preference = payment_service.create_preference(params['orderId'], params['amount'], params['description'])
    except PaymentProviderError as e:
        logging.error(f"결제 선호 생성 실패 (order_id: {params['orderId']}): {e.message}")
        raise CallableError('internal', "Error al crear la preferencia de pago", details=e.message)

    result = PaymentPreferenceResponseSchema().dump({'success': True, **preference})
    return jsonify({"result": result}), 200

@payments_bp.route('/webhook', methods=['POST'])
def mercado_pago_webhook():
    """
    Mercado Pago 결제 알림 수신 엔드포인트 (인증 없음, 서명으로 검증).
    - 처리 대상이 아니어도 200을 반환하고, 내부 오류일 때만 500을 반환하여 재전송을 유도합니다.
    """
    payment_service = current_app.services['payments']
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}
    if not body.get('type') and request.args.get('type'):
        # 쿼리 문자열로만 전달된 알림 (?type=payment&data.id=...)
        body = {'type': request.args.get('type'), 'data': {'id': request.args.get('data.id')}}
    logging.info(f"Mercado Pago 웹훅 수신 (type: {body.get('type')})")

    secret = current_app.config.get('MP_WEBHOOK_SECRET')
    if secret:
        data = body.get('data') if isinstance(body.get('data'), dict) else {}
        data_id = request.args.get('data.id') or data.get('id')
        try:
            verify_webhook_signature(
                secret,
                request.headers.get('x-signature'),
                request.headers.get('x-request-id'),
                data_id,
            )
        except InvalidSignatureError as e:
            logging.warning(f"웹훅 서명 검증 실패: {e}")
            return Response("Invalid signature", status=401)

    try:
        payment_service.handle_notification(body)
    except Exception as e:
        logging.error(f"웹훅 처리 중 오류 발생: {e}", exc_info=True)
        return Response("Error", status=500)

    return Response("OK", status=200)
