# app/conftest.py
"""
공용 pytest 픽스처.
Firestore, FCM, Mercado Pago는 모두 MagicMock으로 대체합니다.
"""
import pytest
from unittest.mock import MagicMock

from app import create_app

def make_snapshot(data=None, doc_id="doc", exists=True):
    """Firestore DocumentSnapshot 대역"""
    snapshot = MagicMock()
    snapshot.exists = exists
    snapshot.id = doc_id
    snapshot.reference = MagicMock(name=f"ref:{doc_id}")
    snapshot.to_dict.return_value = dict(data) if data is not None else None
    return snapshot

@pytest.fixture
def passthrough_transactional(monkeypatch):
    """@firestore.transactional을 그대로 함수 호출로 바꿉니다."""
    from firebase_admin import firestore
    monkeypatch.setattr(firestore, 'transactional', lambda fn: fn)

@pytest.fixture
def token_resolver():
    resolver = MagicMock()
    resolver.get_token.return_value = "T"
    return resolver

@pytest.fixture
def dispatcher():
    dispatcher = MagicMock()
    dispatcher.dispatch.return_value = "projects/demo/messages/1"
    return dispatcher

@pytest.fixture
def payment_service():
    return MagicMock()

@pytest.fixture
def app(payment_service):
    return create_app('testing', services={'payments': payment_service})

@pytest.fixture
def client(app):
    return app.test_client()
