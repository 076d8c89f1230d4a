# app/events/orders.py
import logging
from typing import Optional, Dict, Any

from app.core.exceptions import DispatchError
from app.models.notification import (
    CLICK_ACTION, DEFAULT_APNS, NEW_ORDER_CHANNEL, ORDER_CHANNEL, NotificationType
)
from app.models.order import Order, OrderStatus
from app.services.notification_service import NotificationDispatcher
from app.services.status_messages import get_notification_content
from app.services.token_service import TokenResolver

NEW_ORDER_TITLE = "🎉 ¡Pedido recibido!"
NEW_ORDER_BODY = "Tu pedido en {business_name} ha sido recibido. Te avisaremos cuando sea confirmado."

class OrderEventHandler:
    """
    'orders' 컬렉션의 생성/수정 이벤트에 반응하여 주문자에게 푸시 알림을 보냅니다.
    모든 메서드는 전송 영수증을 반환하거나, 알림을 보내지 않은 경우 None을 반환합니다.
    """
    def __init__(self, token_resolver: TokenResolver, dispatcher: NotificationDispatcher):
        self.token_resolver = token_resolver
        self.dispatcher = dispatcher

    def on_order_updated(self, before: Dict[str, Any], after: Dict[str, Any], order_id: str) -> Optional[str]:
        """
        주문 상태가 바뀐 경우에만 상태별 알림을 보냅니다.

        :param before: 변경 전 주문 문서
        :param after: 변경 후 주문 문서
        :param order_id: 주문 ID
        """
        previous_status = (before or {}).get('status')
        order = Order.from_dict(order_id, after or {})
        if previous_status == order.status:
            logging.info(f"주문 상태 변화 없음, 알림 생략 (order_id: {order_id})")
            return None

        logging.info(f"주문 상태 변경 {previous_status} -> {order.status} (order_id: {order_id})")

        token = self.token_resolver.get_token(order.user_id)
        if not token:
            return None

        title, body = get_notification_content(order.status, order.business_name, order_id)
        data = {
            'orderId': order_id,
            'status': order.status,
            'type': NotificationType.ORDER_UPDATE.value,
            'click_action': CLICK_ACTION,
        }
        return self._send(order.user_id, token, title, body, data, ORDER_CHANNEL, DEFAULT_APNS)

    def on_order_created(self, order_doc: Dict[str, Any], order_id: str) -> Optional[str]:
        """
        새 주문 접수 알림을 보냅니다.
        - 저장된 status와 관계없이 data.status는 항상 'pending'입니다.
        """
        order = Order.from_dict(order_id, order_doc or {})
        logging.info(f"새 주문 생성됨 (order_id: {order_id})")

        token = self.token_resolver.get_token(order.user_id)
        if not token:
            return None

        data = {
            'orderId': order_id,
            'status': OrderStatus.PENDING.value,
            'type': NotificationType.ORDER_CREATED.value,
        }
        body = NEW_ORDER_BODY.format(business_name=order.business_name)
        return self._send(order.user_id, token, NEW_ORDER_TITLE, body, data, NEW_ORDER_CHANNEL, None)

    def _send(self, user_id, token, title, body, data, android, apns) -> Optional[str]:
        try:
            return self.dispatcher.dispatch(token, title, body, data, android=android, apns=apns)
        except DispatchError as e:
            logging.error(f"주문 알림 전송 실패 (order_id: {data.get('orderId')}): {e.message}")
            if e.token_invalid:
                invalidate_token(self.token_resolver, user_id, token)
            return None

def invalidate_token(token_resolver: TokenResolver, user_id: Optional[str], token: str) -> None:
    """등록 해제된 토큰을 표시합니다. 실패해도 이벤트 처리는 계속됩니다."""
    if not user_id:
        return
    try:
        token_resolver.mark_token_invalid(user_id, token)
    except Exception as e:
        logging.error(f"토큰 무효 표시 실패 (user_id: {user_id}): {e}", exc_info=True)
