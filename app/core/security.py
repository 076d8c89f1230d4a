# app/core/security.py
import hashlib
import hmac
import logging
from functools import wraps
from typing import Optional
from flask import request, g
from firebase_admin import auth

from app.core.exceptions import CallableError, InvalidSignatureError

UNAUTHENTICATED_MESSAGE = "El usuario debe estar autenticado"

def firebase_auth_required(f):
    """
    Authorization: Bearer <Firebase ID 토큰> 헤더를 검증하는 데코레이터.
    - 성공 시 g.user(디코딩된 토큰)와 g.uid를 설정합니다.
    - 실패 시 'unauthenticated' CallableError를 발생시킵니다.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            raise CallableError('unauthenticated', UNAUTHENTICATED_MESSAGE)

        id_token = auth_header.split(" ", 1)[1].strip()
        try:
            decoded = auth.verify_id_token(id_token)
        except (ValueError, auth.InvalidIdTokenError, auth.ExpiredIdTokenError,
                auth.RevokedIdTokenError, auth.CertificateFetchError) as e:
            logging.warning(f"ID 토큰 검증 실패: {e}")
            raise CallableError('unauthenticated', UNAUTHENTICATED_MESSAGE)

        g.user = decoded
        g.uid = decoded.get('uid')
        return f(*args, **kwargs)

    return decorated_function

def parse_signature_header(header: Optional[str]) -> dict:
    """'ts=...,v1=...' 형식의 x-signature 헤더를 dict로 변환합니다."""
    parts = {}
    for item in (header or "").split(","):
        key, sep, value = item.partition("=")
        if sep:
            parts[key.strip()] = value.strip()
    return parts

def build_signature_manifest(data_id: Optional[str], request_id: Optional[str], ts: str) -> str:
    """서명 대상 문자열. 값이 없는 항목은 템플릿에서 제외됩니다."""
    manifest = ""
    if data_id:
        # 영숫자 ID는 소문자로 서명됩니다.
        manifest += f"id:{str(data_id).lower()};"
    if request_id:
        manifest += f"request-id:{request_id};"
    manifest += f"ts:{ts};"
    return manifest

def verify_webhook_signature(secret: str, signature_header: Optional[str],
                             request_id: Optional[str], data_id: Optional[str]) -> None:
    """
    Mercado Pago 웹훅의 x-signature(HMAC-SHA256)를 검증합니다.

    :raises InvalidSignatureError: 헤더가 없거나 서명이 일치하지 않는 경우
    """
    parts = parse_signature_header(signature_header)
    ts, received = parts.get("ts"), parts.get("v1")
    if not ts or not received:
        raise InvalidSignatureError("x-signature 헤더가 없거나 형식이 잘못되었습니다")

    manifest = build_signature_manifest(data_id, request_id, ts)
    expected = hmac.new(secret.encode("utf-8"), manifest.encode("utf-8"), hashlib.sha256).hexdigest()
    if not hmac.compare_digest(expected, received):
        raise InvalidSignatureError("웹훅 서명이 일치하지 않습니다")
