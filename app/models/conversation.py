# app/models/conversation.py
from dataclasses import dataclass
from typing import Optional, Dict, Any

SUPPORT_SENDER = "support"

@dataclass
class Conversation:
    """Firestore 'support_conversations' 문서. 메시지의 소유 사용자를 찾는 데만 사용됩니다."""
    conversation_id: str
    user_id: Optional[str]

    @classmethod
    def from_dict(cls, conversation_id: str, doc: Dict[str, Any]) -> "Conversation":
        return cls(conversation_id=conversation_id, user_id=doc.get('userId'))

@dataclass
class ChatMessage:
    """'support_conversations/{id}/messages' 하위 컬렉션 문서"""
    message_id: str
    sender_type: Optional[str]
    message: Optional[str] = None

    @property
    def is_from_support(self) -> bool:
        return self.sender_type == SUPPORT_SENDER

    @classmethod
    def from_dict(cls, message_id: str, doc: Dict[str, Any]) -> "ChatMessage":
        return cls(
            message_id=message_id,
            sender_type=doc.get('senderType'),
            message=doc.get('message'),
        )
