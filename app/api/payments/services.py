# app/api/payments/services.py

import logging
import mercadopago
from firebase_admin import firestore
from typing import Optional, Dict, Any

from app.core.exceptions import PaymentProviderError
from app.utils.datetime_utils import DateTimeUtils

PAYMENT_EVENT_TYPE = "payment"

class PaymentService:
    """
    Mercado Pago 결제 관련 비즈니스 로직을 담당하는 서비스 클래스.
    - 결제 선호(preference) 생성, 결제 조회, 웹훅 결과를 주문 문서에 반영합니다.
    """
    def __init__(self, sdk, settings: Dict[str, Any], db=None):
        """
        :param sdk: mercadopago.SDK 인스턴스
        :param settings: 결제 관련 설정 (app.config에서 추출)
        :param db: Firestore 클라이언트
        """
        self.sdk = sdk
        self.settings = settings
        self.db = db or firestore.client()
        self.orders_ref = self.db.collection('orders')

    @classmethod
    def from_config(cls, config, db=None) -> "PaymentService":
        """Flask 설정 객체로부터 SDK와 설정을 구성합니다."""
        settings = {
            'currency_id': config.get('PAYMENT_CURRENCY', 'ARS'),
            'notification_url': config.get('MP_NOTIFICATION_URL'),
            'back_urls': {
                'success': config.get('PAYMENT_SUCCESS_URL'),
                'failure': config.get('PAYMENT_FAILURE_URL'),
                'pending': config.get('PAYMENT_PENDING_URL'),
            },
        }
        return cls(mercadopago.SDK(config.get('MP_ACCESS_TOKEN') or ""), settings, db=db)

    def build_preference(self, order_id: str, amount: float, description: str) -> Dict[str, Any]:
        """단일 품목(수량 1) 체크아웃 preference 요청 본문을 만듭니다."""
        preference = {
            'items': [
                {
                    'title': description,
                    'quantity': 1,
                    'unit_price': amount,
                    'currency_id': self.settings['currency_id'],
                }
            ],
            'back_urls': dict(self.settings['back_urls']),
            'auto_return': 'approved',
            'external_reference': order_id,
        }
        if self.settings.get('notification_url'):
            preference['notification_url'] = self.settings['notification_url']
        return preference

    def create_preference(self, order_id: str, amount: float, description: str) -> Dict[str, Any]:
        """
        결제 선호를 생성하고 체크아웃 링크를 반환합니다.

        :return: {"preferenceId": ..., "initPoint": ...}
        :raises PaymentProviderError: 제공자 호출 실패 시
        """
        logging.info(f"결제 선호 생성 요청 (order_id: {order_id})")
        result = self._call(self.sdk.preference().create, self.build_preference(order_id, amount, description))
        logging.info(f"결제 선호 생성 완료 (order_id: {order_id}, preference_id: {result.get('id')})")
        return {
            'preferenceId': result.get('id'),
            'initPoint': result.get('init_point'),
        }

    def get_payment(self, payment_id: str) -> Dict[str, Any]:
        """제공자에서 결제의 최종 상태를 조회합니다."""
        return self._call(self.sdk.payment().get, payment_id)

    def handle_notification(self, body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        웹훅 알림을 처리합니다.
        - 'payment' 유형만 처리하고 나머지는 무시합니다.
        - 결제의 external_reference로 주문을 찾아 결제 상태를 기록합니다.

        :param body: 웹훅 요청 본문
        :return: 주문에 기록한 결제 정보, 처리하지 않았으면 None
        :raises PaymentProviderError: 결제 조회 실패 시
        """
        event_type = (body or {}).get('type')
        if event_type != PAYMENT_EVENT_TYPE:
            logging.info(f"처리 대상이 아닌 웹훅 유형: {event_type}")
            return None

        data = body.get('data')
        payment_id = str((data.get('id') if isinstance(data, dict) else None) or "")
        if not payment_id:
            logging.warning("웹훅에 결제 ID가 없음")
            return None

        logging.info(f"결제 웹훅 수신 (payment_id: {payment_id})")
        payment = self.get_payment(payment_id)

        order_id = payment.get('external_reference')
        if not order_id:
            logging.warning(f"결제에 external_reference가 없음 (payment_id: {payment_id})")
            return None

        payment_update = {
            'paymentId': payment_id,
            'paymentStatus': payment.get('status'),
            'paymentStatusDetail': payment.get('status_detail'),
        }
        if payment.get('date_approved'):
            payment_update['paymentApprovedAt'] = DateTimeUtils.parse_iso_datetime(payment['date_approved'])
        if not self.record_payment(order_id, payment_update):
            return None
        return payment_update

    def record_payment(self, order_id: str, payment_update: Dict[str, Any]) -> bool:
        """
        주문 문서에 결제 상태를 트랜잭션으로 기록합니다.

        :return: 주문이 존재하여 기록했으면 True
        """
        transaction = self.db.transaction()

        @firestore.transactional
        def _update_in_transaction(transaction, order_ref, payment_update):
            order_snapshot = order_ref.get(transaction=transaction)
            if not order_snapshot.exists:
                return False
            transaction.update(order_ref, {
                **payment_update,
                'paymentUpdatedAt': firestore.SERVER_TIMESTAMP,
            })
            return True

        updated = _update_in_transaction(transaction, self.orders_ref.document(order_id), payment_update)
        if updated:
            logging.info(f"주문 결제 상태 갱신 (order_id: {order_id}, status: {payment_update.get('paymentStatus')})")
        else:
            logging.warning(f"결제에 해당하는 주문을 찾을 수 없음 (order_id: {order_id})")
        return updated

    def _call(self, method, payload) -> Dict[str, Any]:
        """SDK 호출 결과({"status", "response"})를 검사하여 response만 반환합니다."""
        try:
            result = method(payload)
        except Exception as e:
            raise PaymentProviderError(str(e)) from e

        status = result.get('status')
        response = result.get('response') or {}
        if status is None or status >= 400:
            message = response.get('message') if isinstance(response, dict) else None
            raise PaymentProviderError(message or f"Mercado Pago 응답 오류 (status: {status})", status=status)
        return response
