# app/models/order.py
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any

class OrderStatus(Enum):
    """주문 상태. 외부에서 검증되며, 여기 없는 값도 들어올 수 있습니다."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY_FOR_PICKUP = "ready_for_pickup"
    ON_WAY = "on_way"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

@dataclass
class Order:
    """
    Firestore 'orders' 컬렉션 문서 중 알림에 필요한 부분.
    status는 알 수 없는 값도 그대로 보존하기 위해 문자열로 둡니다.
    """
    order_id: str
    user_id: Optional[str]
    status: Optional[str]
    business_name: str = ""

    @classmethod
    def from_dict(cls, order_id: str, doc: Dict[str, Any]) -> "Order":
        return cls(
            order_id=order_id,
            user_id=doc.get('userId'),
            status=doc.get('status'),
            business_name=doc.get('businessName') or "",
        )
