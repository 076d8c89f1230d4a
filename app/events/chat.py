# app/events/chat.py
import logging
from firebase_admin import firestore
from typing import Optional, Dict, Any

from app.core.exceptions import DispatchError
from app.events.orders import invalidate_token
from app.models.conversation import ChatMessage, Conversation
from app.models.notification import CHAT_CHANNEL, CLICK_ACTION, DEFAULT_APNS, NotificationType
from app.services.notification_service import NotificationDispatcher
from app.services.token_service import TokenResolver

SUPPORT_TITLE = "💬 Equipo de Soporte"
FALLBACK_BODY = "Te han enviado un mensaje"

class ChatEventHandler:
    """
    고객 지원 대화에 새 메시지가 생기면 고객에게 알림을 보냅니다.
    - 지원팀(support)이 보낸 메시지만 알림 대상입니다.
    """
    def __init__(self, token_resolver: TokenResolver, dispatcher: NotificationDispatcher, db=None):
        self.db = db or firestore.client()
        self.conversations_ref = self.db.collection('support_conversations')
        self.token_resolver = token_resolver
        self.dispatcher = dispatcher

    def on_message_created(self, message_doc: Dict[str, Any], conversation_id: str, message_id: str) -> Optional[str]:
        """
        :param message_doc: 생성된 메시지 문서
        :param conversation_id: 상위 대화 ID
        :param message_id: 메시지 ID
        :return: 전송 영수증, 보내지 않았으면 None
        """
        message = ChatMessage.from_dict(message_id, message_doc or {})
        logging.info(f"새 채팅 메시지 (conversation_id: {conversation_id}, message_id: {message_id})")

        if not message.is_from_support:
            logging.info(f"고객 메시지이므로 알림 생략 (conversation_id: {conversation_id})")
            return None

        conversation_doc = self.conversations_ref.document(conversation_id).get()
        if not conversation_doc.exists:
            logging.info(f"대화를 찾을 수 없음 (conversation_id: {conversation_id})")
            return None
        conversation = Conversation.from_dict(conversation_id, conversation_doc.to_dict() or {})

        token = self.token_resolver.get_token(conversation.user_id)
        if not token:
            return None

        data = {
            'type': NotificationType.CHAT_MESSAGE.value,
            'conversationId': conversation_id,
            'messageId': message_id,
            'click_action': CLICK_ACTION,
        }
        try:
            return self.dispatcher.dispatch(
                token, SUPPORT_TITLE, message.message or FALLBACK_BODY, data,
                android=CHAT_CHANNEL, apns=DEFAULT_APNS,
            )
        except DispatchError as e:
            logging.error(f"채팅 알림 전송 실패 (conversation_id: {conversation_id}): {e.message}")
            if e.token_invalid:
                invalidate_token(self.token_resolver, conversation.user_id, token)
            return None
