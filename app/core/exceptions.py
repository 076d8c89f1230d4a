# app/core/exceptions.py
from typing import Any, Optional

class CallableError(Exception):
    """
    호출 가능(callable) 엔드포인트가 클라이언트에게 돌려주는 구조화된 오류.
    code는 Firebase callable 규약의 기계 판독용 값입니다 (unauthenticated, invalid-argument, internal).
    """
    STATUS_BY_CODE = {
        'unauthenticated': ('UNAUTHENTICATED', 401),
        'invalid-argument': ('INVALID_ARGUMENT', 400),
        'internal': ('INTERNAL', 500),
    }

    def __init__(self, code: str, message: str, details: Optional[Any] = None):
        super().__init__(message)
        if code not in self.STATUS_BY_CODE:
            raise ValueError(f"알 수 없는 오류 코드입니다: {code}")
        self.code = code
        self.message = message
        self.details = details

    @property
    def http_status(self) -> int:
        return self.STATUS_BY_CODE[self.code][1]

    def to_dict(self) -> dict:
        error = {
            "code": self.code,
            "status": self.STATUS_BY_CODE[self.code][0],
            "message": self.message,
        }
        if self.details is not None:
            error["details"] = self.details
        return {"error": error}

class DispatchError(Exception):
    """푸시 전송 실패. token_invalid는 FCM이 토큰을 더 이상 유효하지 않다고 보고한 경우입니다."""
    def __init__(self, message: str, token_invalid: bool = False):
        super().__init__(message)
        self.message = message
        self.token_invalid = token_invalid

class PaymentProviderError(Exception):
    """결제 제공자(Mercado Pago) API 호출 실패"""
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status

class InvalidSignatureError(Exception):
    """웹훅 서명 검증 실패"""
