# app/api/payments/test_payment_services.py
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from app.api.payments.services import PaymentService
from app.conftest import make_snapshot
from app.core.exceptions import PaymentProviderError

SETTINGS = {
    'currency_id': 'ARS',
    'notification_url': 'https://example.com/api/payments/webhook',
    'back_urls': {
        'success': 'https://example.com/ok',
        'failure': 'https://example.com/fail',
        'pending': 'https://example.com/pending',
    },
}

@pytest.fixture
def sdk():
    sdk = MagicMock()
    sdk.preference.return_value.create.return_value = {
        'status': 201,
        'response': {'id': 'pref-1', 'init_point': 'https://mp.com/checkout/pref-1'},
    }
    sdk.payment.return_value.get.return_value = {
        'status': 200,
        'response': {'id': 99, 'status': 'approved', 'status_detail': 'accredited', 'external_reference': 'order-1'},
    }
    return sdk

@pytest.fixture
def db():
    db = MagicMock()
    order_ref = db.collection.return_value.document.return_value
    order_ref.get.return_value = make_snapshot({'status': 'pending'}, doc_id='order-1')
    return db

@pytest.fixture
def service(sdk, db, passthrough_transactional):
    return PaymentService(sdk, SETTINGS, db=db)

def test_preference_payload(service, sdk):
    result = service.create_preference('order-1', 1500.5, 'Pedido en Acme')

    assert result == {'preferenceId': 'pref-1', 'initPoint': 'https://mp.com/checkout/pref-1'}
    body = sdk.preference.return_value.create.call_args[0][0]
    assert body['items'] == [{'title': 'Pedido en Acme', 'quantity': 1, 'unit_price': 1500.5, 'currency_id': 'ARS'}]
    assert body['external_reference'] == 'order-1'
    assert body['auto_return'] == 'approved'
    assert body['back_urls'] == SETTINGS['back_urls']
    assert body['notification_url'] == SETTINGS['notification_url']

def test_provider_error_status_raises(service, sdk):
    sdk.preference.return_value.create.return_value = {'status': 400, 'response': {'message': 'invalid unit_price'}}
    with pytest.raises(PaymentProviderError) as exc_info:
        service.create_preference('order-1', 10, 'x')
    assert exc_info.value.message == 'invalid unit_price'
    assert exc_info.value.status == 400

def test_provider_exception_raises(service, sdk):
    sdk.preference.return_value.create.side_effect = ConnectionError("timeout")
    with pytest.raises(PaymentProviderError):
        service.create_preference('order-1', 10, 'x')

def test_non_payment_event_is_ignored(service, sdk, db):
    assert service.handle_notification({'type': 'merchant_order', 'data': {'id': '1'}}) is None
    sdk.payment.return_value.get.assert_not_called()
    db.transaction.assert_not_called()

def test_payment_event_updates_correlated_order(service, sdk, db):
    result = service.handle_notification({'type': 'payment', 'data': {'id': '99'}})

    sdk.payment.return_value.get.assert_called_once_with('99')
    assert result == {'paymentId': '99', 'paymentStatus': 'approved', 'paymentStatusDetail': 'accredited'}

    db.collection.return_value.document.assert_called_with('order-1')
    transaction = db.transaction.return_value
    order_ref, update = transaction.update.call_args[0]
    assert order_ref is db.collection.return_value.document.return_value
    assert update['paymentStatus'] == 'approved'
    assert update['paymentId'] == '99'
    assert 'paymentUpdatedAt' in update

def test_payment_for_unknown_order_is_not_written(service, db):
    db.collection.return_value.document.return_value.get.return_value = make_snapshot(exists=False)
    assert service.handle_notification({'type': 'payment', 'data': {'id': '99'}}) is None
    db.transaction.return_value.update.assert_not_called()

def test_payment_without_reference_is_skipped(service, sdk, db):
    sdk.payment.return_value.get.return_value = {'status': 200, 'response': {'id': 99, 'status': 'approved'}}
    assert service.handle_notification({'type': 'payment', 'data': {'id': '99'}}) is None
    db.transaction.assert_not_called()

def test_payment_lookup_failure_propagates(service, sdk):
    sdk.payment.return_value.get.return_value = {'status': 404, 'response': {'message': 'Payment not found'}}
    with pytest.raises(PaymentProviderError):
        service.handle_notification({'type': 'payment', 'data': {'id': '99'}})

def test_approval_date_is_recorded_as_utc(service, sdk, db):
    sdk.payment.return_value.get.return_value = {
        'status': 200,
        'response': {
            'id': 99, 'status': 'approved', 'external_reference': 'order-1',
            'date_approved': '2026-10-18T10:00:00.000-03:00',
        },
    }
    result = service.handle_notification({'type': 'payment', 'data': {'id': 99}})

    assert result['paymentId'] == '99'
    assert result['paymentApprovedAt'] == datetime(2026, 10, 18, 13, 0, tzinfo=timezone.utc)
