# app/core/test_security.py
import hashlib
import hmac
import pytest

from app.core.exceptions import CallableError, InvalidSignatureError
from app.core.security import (
    build_signature_manifest, parse_signature_header, verify_webhook_signature
)

SECRET = "webhook-secret"

def _sign(manifest):
    return hmac.new(SECRET.encode(), manifest.encode(), hashlib.sha256).hexdigest()

def test_parse_signature_header():
    assert parse_signature_header("ts=1704908010,v1=abc123") == {'ts': '1704908010', 'v1': 'abc123'}
    assert parse_signature_header(None) == {}

def test_manifest_omits_missing_parts():
    assert build_signature_manifest("ABC", "req", "1") == "id:abc;request-id:req;ts:1;"
    assert build_signature_manifest(None, None, "1") == "ts:1;"

def test_valid_signature_passes():
    v1 = _sign("id:123;request-id:req-9;ts:1704908010;")
    verify_webhook_signature(SECRET, f"ts=1704908010,v1={v1}", "req-9", "123")

@pytest.mark.parametrize("header", [None, "", "ts=1704908010", "v1=deadbeef"])
def test_malformed_header_rejected(header):
    with pytest.raises(InvalidSignatureError):
        verify_webhook_signature(SECRET, header, "req-9", "123")

def test_tampered_payment_id_rejected():
    v1 = _sign("id:123;request-id:req-9;ts:1704908010;")
    with pytest.raises(InvalidSignatureError):
        verify_webhook_signature(SECRET, f"ts=1704908010,v1={v1}", "req-9", "456")

def test_callable_error_serialization():
    err = CallableError('invalid-argument', "Faltan datos", details={'amount': ['x']})
    assert err.http_status == 400
    assert err.to_dict() == {
        'error': {'code': 'invalid-argument', 'status': 'INVALID_ARGUMENT',
                  'message': "Faltan datos", 'details': {'amount': ['x']}}
    }
    assert 'details' not in CallableError('internal', "boom").to_dict()['error']

def test_unknown_error_code_rejected():
    with pytest.raises(ValueError):
        CallableError('not-a-code', "x")
