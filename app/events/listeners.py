# app/events/listeners.py
"""
Firestore 실시간 리스너(on_snapshot)를 이벤트 핸들러 호출로 바꿔 주는 어댑터.

- 생성(ADDED) 이벤트는 on_created(document, doc_id, reference)로,
  수정(MODIFIED) 이벤트는 on_updated(before, after, doc_id)로 전달됩니다.
- 리스너 시작 직후 받는 첫 스냅샷은 기존 문서 전체이므로, skip_initial이면 알림 없이 기억만 합니다.
- 핸들러에서 발생한 예외는 기록만 하고 전파하지 않습니다 (재전달 없음).
"""
import logging
import threading
from typing import Callable, Dict, Any, List, Optional

ADDED = "ADDED"
MODIFIED = "MODIFIED"
REMOVED = "REMOVED"

class DocumentWatcher:
    def __init__(self, name: str, query, on_created: Optional[Callable] = None,
                 on_updated: Optional[Callable] = None, skip_initial: bool = True):
        self.name = name
        self.query = query
        self.on_created = on_created
        self.on_updated = on_updated
        self.skip_initial = skip_initial
        self._snapshots: Dict[str, Dict[str, Any]] = {}
        self._primed = False
        self._lock = threading.Lock()
        self._watch = None

    def start(self) -> None:
        self._watch = self.query.on_snapshot(self.handle_snapshot)
        logging.info(f"Firestore listener started: {self.name}")

    def stop(self) -> None:
        if self._watch is not None:
            self._watch.unsubscribe()
            self._watch = None
            logging.info(f"Firestore listener stopped: {self.name}")

    def handle_snapshot(self, docs, changes, read_time) -> None:
        """on_snapshot 콜백. Firestore watch 스레드에서 호출됩니다."""
        with self._lock:
            initial = not self._primed
            self._primed = True
            for change in changes:
                self._handle_change(change, initial)

    def _handle_change(self, change, initial: bool) -> None:
        document = change.document
        key = document.reference.path
        change_type = change.type.name

        if change_type == REMOVED:
            self._snapshots.pop(key, None)
            return

        after = document.to_dict() or {}
        before = self._snapshots.get(key)
        if self.on_updated is not None:
            # 수정 이벤트의 이전 상태를 알기 위해 마지막 스냅샷을 기억합니다.
            self._snapshots[key] = after

        if initial and self.skip_initial:
            return

        if change_type == ADDED and self.on_created is not None:
            self._invoke(self.on_created, after, document.id, document.reference)
        elif change_type == MODIFIED and self.on_updated is not None and before is not None:
            self._invoke(self.on_updated, before, after, document.id)

    def _invoke(self, handler: Callable, *args) -> None:
        try:
            handler(*args)
        except Exception as e:
            logging.error(f"[{self.name}] 이벤트 처리 중 오류 발생: {e}", exc_info=True)


def is_support_message(reference) -> bool:
    """collection_group('messages') 결과 중 고객 지원 대화의 메시지인지 확인합니다."""
    conversation_ref = reference.parent.parent
    return conversation_ref is not None and conversation_ref.parent.id == 'support_conversations'

def build_watchers(db, order_handler, chat_handler, queue_handler) -> List[DocumentWatcher]:
    """
    각 이벤트 핸들러를 해당 컬렉션 리스너에 연결합니다.

    :param db: Firestore 클라이언트
    :return: 아직 시작되지 않은 DocumentWatcher 목록
    """
    def on_order_created(order, order_id, reference):
        order_handler.on_order_created(order, order_id)

    def on_message_created(message, message_id, reference):
        if not is_support_message(reference):
            return
        chat_handler.on_message_created(message, reference.parent.parent.id, message_id)

    def on_notification_created(notification, notification_id, reference):
        queue_handler.on_notification_created(notification, notification_id, ref=reference)

    return [
        DocumentWatcher(
            'orders', db.collection('orders'),
            on_created=on_order_created, on_updated=order_handler.on_order_updated,
        ),
        DocumentWatcher(
            'support_messages', db.collection_group('messages'),
            on_created=on_message_created,
        ),
        # processed 필드가 없는 문서도 미처리로 취급하므로 컬렉션 전체를 구독합니다.
        # 첫 스냅샷도 처리합니다. 중복은 핸들러의 processed 검사와 선점이 거릅니다.
        DocumentWatcher(
            'notifications_queue', db.collection('notifications_queue'),
            on_created=on_notification_created, skip_initial=False,
        ),
    ]
