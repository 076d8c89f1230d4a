# app/events/test_listeners.py
from types import SimpleNamespace
from unittest.mock import MagicMock

from app.events.listeners import DocumentWatcher, build_watchers, is_support_message

def _change(kind, doc_id, data, path=None):
    document = MagicMock()
    document.id = doc_id
    document.reference.path = path or f"orders/{doc_id}"
    document.to_dict.return_value = data
    return SimpleNamespace(type=SimpleNamespace(name=kind), document=document)

def test_initial_snapshot_is_remembered_but_not_dispatched():
    on_created, on_updated = MagicMock(), MagicMock()
    watcher = DocumentWatcher('orders', MagicMock(), on_created=on_created, on_updated=on_updated)

    watcher.handle_snapshot([], [_change('ADDED', 'o1', {'status': 'pending'})], None)
    on_created.assert_not_called()

    watcher.handle_snapshot([], [_change('MODIFIED', 'o1', {'status': 'confirmed'})], None)
    on_updated.assert_called_once_with({'status': 'pending'}, {'status': 'confirmed'}, 'o1')

def test_created_after_start_is_dispatched():
    on_created = MagicMock()
    watcher = DocumentWatcher('orders', MagicMock(), on_created=on_created)
    watcher.handle_snapshot([], [], None)

    change = _change('ADDED', 'o2', {'status': 'pending'})
    watcher.handle_snapshot([], [change], None)
    on_created.assert_called_once_with({'status': 'pending'}, 'o2', change.document.reference)

def test_initial_snapshot_processed_when_not_skipped():
    on_created = MagicMock()
    watcher = DocumentWatcher('queue', MagicMock(), on_created=on_created, skip_initial=False)
    watcher.handle_snapshot([], [_change('ADDED', 'n1', {'processed': False})], None)
    on_created.assert_called_once()

def test_handler_errors_do_not_propagate():
    on_created = MagicMock(side_effect=RuntimeError("boom"))
    watcher = DocumentWatcher('queue', MagicMock(), on_created=on_created, skip_initial=False)
    watcher.handle_snapshot([], [_change('ADDED', 'n1', {}), _change('ADDED', 'n2', {})], None)
    assert on_created.call_count == 2

def test_removed_documents_are_forgotten():
    on_updated = MagicMock()
    watcher = DocumentWatcher('orders', MagicMock(), on_updated=on_updated)
    watcher.handle_snapshot([], [_change('ADDED', 'o1', {'status': 'a'})], None)
    watcher.handle_snapshot([], [_change('REMOVED', 'o1', {'status': 'a'})], None)
    watcher.handle_snapshot([], [_change('MODIFIED', 'o1', {'status': 'b'})], None)
    on_updated.assert_not_called()

def test_start_and_stop_manage_watch():
    query = MagicMock()
    watcher = DocumentWatcher('orders', query)
    watcher.start()
    query.on_snapshot.assert_called_once_with(watcher.handle_snapshot)
    watcher.stop()
    query.on_snapshot.return_value.unsubscribe.assert_called_once()

def _message_reference(root_collection):
    reference = MagicMock()
    reference.parent.parent.id = 'c1'
    reference.parent.parent.parent.id = root_collection
    return reference

def test_is_support_message():
    assert is_support_message(_message_reference('support_conversations')) is True
    assert is_support_message(_message_reference('group_chats')) is False

def test_build_watchers_wires_handlers():
    db = MagicMock()
    order_handler, chat_handler, queue_handler = MagicMock(), MagicMock(), MagicMock()
    orders, messages, queue = build_watchers(db, order_handler, chat_handler, queue_handler)

    db.collection_group.assert_called_once_with('messages')
    assert queue.skip_initial is False

    reference = _message_reference('support_conversations')
    messages.on_created({'senderType': 'support'}, 'm1', reference)
    chat_handler.on_message_created.assert_called_once_with({'senderType': 'support'}, 'c1', 'm1')

    queue.on_created({'fcmToken': 'T'}, 'n1', reference)
    queue_handler.on_notification_created.assert_called_once_with({'fcmToken': 'T'}, 'n1', ref=reference)

    orders.on_created({'userId': 'u1'}, 'o1', reference)
    order_handler.on_order_created.assert_called_once_with({'userId': 'u1'}, 'o1')

def test_queue_watcher_subscribes_to_whole_collection():
    db = MagicMock()
    _, _, queue = build_watchers(db, MagicMock(), MagicMock(), MagicMock())

    db.collection.assert_any_call('notifications_queue')
    assert queue.query is db.collection.return_value
    db.collection.return_value.where.assert_not_called()

def test_queue_record_without_processed_field_is_handled():
    queue_handler = MagicMock()
    _, _, queue = build_watchers(MagicMock(), MagicMock(), MagicMock(), queue_handler)

    change = _change('ADDED', 'n1', {'fcmToken': 'T'}, path='notifications_queue/n1')
    queue.handle_snapshot([], [change], None)

    queue_handler.on_notification_created.assert_called_once_with(
        {'fcmToken': 'T'}, 'n1', ref=change.document.reference
    )
