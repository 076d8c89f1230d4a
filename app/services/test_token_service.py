# app/services/test_token_service.py
from unittest.mock import MagicMock

from app.conftest import make_snapshot
from app.services.token_service import TokenResolver, mask_token

def _resolver(user_doc):
    db = MagicMock()
    db.collection.return_value.document.return_value.get.return_value = user_doc
    return TokenResolver(db=db), db

def test_returns_token_verbatim():
    resolver, db = _resolver(make_snapshot({'fcmToken': 'token-123'}, doc_id='u1'))
    assert resolver.get_token('u1') == 'token-123'
    db.collection.assert_called_with('users')

def test_missing_user_is_not_an_error():
    resolver, _ = _resolver(make_snapshot(exists=False))
    assert resolver.get_token('u1') is None

def test_user_without_token():
    resolver, _ = _resolver(make_snapshot({'fcmToken': ''}))
    assert resolver.get_token('u1') is None

def test_empty_user_id_skips_lookup():
    resolver, db = _resolver(make_snapshot({'fcmToken': 'x'}))
    assert resolver.get_token(None) is None
    db.collection.return_value.document.assert_not_called()

def test_mark_token_invalid_only_when_token_still_current():
    resolver, db = _resolver(make_snapshot({'fcmToken': 'old'}))
    user_ref = db.collection.return_value.document.return_value

    assert resolver.mark_token_invalid('u1', 'other') is False
    user_ref.update.assert_not_called()

    assert resolver.mark_token_invalid('u1', 'old') is True
    update = user_ref.update.call_args[0][0]
    assert update['invalidFcmToken'] == 'old'
    assert 'fcmTokenInvalidAt' in update

def test_mask_token_keeps_prefix_only():
    token = "a" * 20 + "SECRET"
    assert mask_token(token) == "a" * 20 + "..."
    assert "SECRET" not in mask_token(token)
    assert mask_token(None) == "<none>"
