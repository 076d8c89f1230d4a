# app/services/status_messages.py
"""
주문 상태 → 알림 문구 변환표.
외부 의존성이 없는 순수 함수이며, 알 수 없는 상태도 절대 예외를 던지지 않습니다.
"""
from typing import Optional, Tuple

ORDER_NUMBER_LENGTH = 8

FALLBACK_TITLE = "Actualización de pedido"

# (title, body 템플릿) - body는 business_name, order_number로 포맷됩니다.
STATUS_TEMPLATES = {
    "confirmed": ("✅ Pedido confirmado", "{business_name} confirmó tu pedido #{order_number}"),
    "preparing": ("👨‍🍳 Preparando tu pedido", "{business_name} está preparando tu pedido #{order_number}"),
    "ready_for_pickup": ("📦 Pedido listo", "Tu pedido #{order_number} está listo y esperando al repartidor"),
    "on_way": ("🚴 En camino", "Tu pedido #{order_number} viene en camino. ¡Llegará pronto!"),
    "delivered": ("🎊 ¡Pedido entregado!", "Tu pedido #{order_number} fue entregado. ¡Disfrutalo!"),
    "cancelled": ("❌ Pedido cancelado", "Tu pedido #{order_number} en {business_name} fue cancelado"),
}

FALLBACK_TEMPLATE = (FALLBACK_TITLE, "Tu pedido #{order_number} fue actualizado")

def order_number(order_id: Optional[str]) -> str:
    """화면 표시용 주문 번호 (주문 ID 앞 8자리)"""
    return str(order_id or "")[:ORDER_NUMBER_LENGTH]

def get_notification_content(status: Optional[str], business_name: Optional[str], order_id: Optional[str]) -> Tuple[str, str]:
    """
    주문 상태에 맞는 알림 제목과 본문을 반환합니다.

    :param status: 주문 상태 문자열 (알 수 없는 값이면 일반 안내 문구)
    :param business_name: 가게 이름
    :param order_id: 주문 ID
    :return: (title, body)
    """
    key = status if isinstance(status, str) else ""
    title, body_template = STATUS_TEMPLATES.get(key, FALLBACK_TEMPLATE)
    body = body_template.format(
        business_name=business_name or "",
        order_number=order_number(order_id),
    )
    return title, body
