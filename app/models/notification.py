# app/models/notification.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional

class NotificationType(Enum):
    """클라이언트 라우팅에 사용되는 알림 유형 (data.type 값)"""
    ORDER_UPDATE = "order_update"
    ORDER_CREATED = "order_created"
    CHAT_MESSAGE = "chat_message"

CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"

@dataclass(frozen=True)
class AndroidHints:
    """Android 전용 전달 옵션"""
    channel_id: str
    priority: str = "high"
    sound: str = "default"
    color: Optional[str] = None
    icon: Optional[str] = None

@dataclass(frozen=True)
class ApnsHints:
    """APNs 전용 전달 옵션"""
    sound: str = "default"
    badge: Optional[int] = 1

ORDER_CHANNEL = AndroidHints(
    channel_id="delivery_orders_channel", color="#FF0000", icon="@mipmap/ic_launcher"
)
NEW_ORDER_CHANNEL = AndroidHints(channel_id="delivery_orders_channel", color="#FF0000")
CHAT_CHANNEL = AndroidHints(
    channel_id="chat_channel", color="#4CAF50", icon="@mipmap/ic_launcher"
)
DEFAULT_CHANNEL_ID = "default_channel"
DEFAULT_APNS = ApnsHints()

@dataclass
class NotificationMessage:
    """
    단일 수신자에게 보낼 푸시 메시지.
    저장되지 않으며 전송할 때마다 새로 만들어집니다.
    """
    token: str
    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)
    android: Optional[AndroidHints] = None
    apns: Optional[ApnsHints] = None

@dataclass
class QueuedNotification:
    """
    Firestore 'notifications_queue' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    외부 생산자가 만들고, 큐 핸들러가 한 번 처리한 뒤 정리 작업이 삭제합니다.
    """
    notification_id: str
    fcm_token: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    channel_id: Optional[str] = None
    processed: bool = False
    processed_at: Optional[datetime] = None
    claimed: bool = False

    @classmethod
    def from_dict(cls, notification_id: str, doc: Dict[str, Any]) -> "QueuedNotification":
        return cls(
            notification_id=notification_id,
            fcm_token=doc.get('fcmToken'),
            title=doc.get('title'),
            body=doc.get('body'),
            data=doc.get('data') or {},
            channel_id=doc.get('channelId'),
            processed=bool(doc.get('processed', False)),
            processed_at=doc.get('processedAt'),
            claimed=bool(doc.get('claimed', False)),
        )
