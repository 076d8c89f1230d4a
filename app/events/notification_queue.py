# app/events/notification_queue.py
import logging
from firebase_admin import firestore
from typing import Optional, Dict, Any

from app.core.exceptions import DispatchError
from app.models.notification import AndroidHints, DEFAULT_CHANNEL_ID, QueuedNotification
from app.services.notification_service import NotificationDispatcher
from app.services.token_service import mask_token

DEFAULT_TITLE = "Notificación"
MISSING_TOKEN_ERROR = "missing_fcm_token"

class NotificationQueueHandler:
    """
    'notifications_queue' 컬렉션에 쌓인 알림을 한 번만 전송하고 결과를 문서에 기록합니다.
    - 전송 전에 트랜잭션으로 문서를 선점(claimed)하여 중복 트리거에 의한 중복 전송을 막습니다.
    - 전송 성공 시 response, 실패 시 error가 기록되며 둘 다 기록되는 경우는 없습니다.
    """
    def __init__(self, dispatcher: NotificationDispatcher, db=None):
        self.db = db or firestore.client()
        self.queue_ref = self.db.collection('notifications_queue')
        self.dispatcher = dispatcher

    def on_notification_created(self, notification_doc: Dict[str, Any], notification_id: str, ref=None) -> Optional[str]:
        """
        :param notification_doc: 생성된 큐 문서
        :param notification_id: 문서 ID
        :param ref: 결과를 기록할 문서 참조 (없으면 ID로 찾음)
        :return: 전송 영수증, 보내지 않았거나 실패했으면 None
        """
        notification = QueuedNotification.from_dict(notification_id, notification_doc or {})
        logging.info(f"큐 알림 처리 시작 (notification_id: {notification_id})")

        if notification.processed:
            logging.info(f"이미 처리된 큐 알림, 건너뜀 (notification_id: {notification_id})")
            return None

        if ref is None:
            ref = self.queue_ref.document(notification_id)

        if not notification.fcm_token:
            logging.warning(f"큐 알림에 FCM 토큰이 없음 (notification_id: {notification_id})")
            self._mark_processed(ref, notification_id, error=MISSING_TOKEN_ERROR)
            return None

        if not self.claim(ref):
            logging.info(f"다른 실행이 이미 선점한 큐 알림 (notification_id: {notification_id})")
            return None

        android = AndroidHints(channel_id=notification.channel_id or DEFAULT_CHANNEL_ID)
        try:
            response = self.dispatcher.dispatch(
                notification.fcm_token,
                notification.title or DEFAULT_TITLE,
                notification.body or "",
                notification.data,
                android=android,
            )
        except DispatchError as e:
            logging.error(f"큐 알림 전송 실패 (notification_id: {notification_id}, token: {mask_token(notification.fcm_token)}): {e.message}")
            self._mark_processed(ref, notification_id, error=e.message)
            return None
        except Exception as e:
            # 선점 이후의 실패는 종류와 관계없이 error로 기록합니다.
            logging.error(f"큐 알림 처리 중 예외 발생 (notification_id: {notification_id}): {e}", exc_info=True)
            self._mark_processed(ref, notification_id, error=str(e) or type(e).__name__)
            return None

        self._mark_processed(ref, notification_id, response=response)
        return response

    def claim(self, ref) -> bool:
        """
        아직 처리되지 않았고 선점되지 않은 문서만 트랜잭션으로 선점합니다.

        :return: 이번 실행이 선점에 성공했으면 True
        """
        transaction = self.db.transaction()

        @firestore.transactional
        def _claim_in_transaction(transaction, ref):
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                return False
            current = snapshot.to_dict() or {}
            if current.get('processed') or current.get('claimed'):
                return False
            transaction.update(ref, {'claimed': True, 'claimedAt': firestore.SERVER_TIMESTAMP})
            return True

        return _claim_in_transaction(transaction, ref)

    def _mark_processed(self, ref, notification_id: str, response: Optional[str] = None, error: Optional[str] = None) -> None:
        update = {
            'processed': True,
            'processedAt': firestore.SERVER_TIMESTAMP,
        }
        if error is not None:
            update['error'] = error
        else:
            update['response'] = response
        try:
            ref.update(update)
            logging.info(f"큐 알림 처리 완료 기록 (notification_id: {notification_id})")
        except Exception as e:
            logging.error(f"큐 알림 결과 기록 실패 (notification_id: {notification_id}): {e}", exc_info=True)
