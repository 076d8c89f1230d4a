# app/models/user.py
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any

@dataclass
class User:
    """
    Firestore 'users' 컬렉션에서 이 서비스가 읽는 필드만 정의한 데이터클래스.
    """
    user_id: str
    fcm_token: Optional[str] = None # 푸시 전달 주소. 없으면 알림을 보내지 않음
    invalid_fcm_token: Optional[str] = None # FCM이 등록 해제로 보고한 토큰
    fcm_token_invalid_at: Optional[datetime] = None

    @property
    def has_stale_token(self) -> bool:
        """표시된 무효 토큰이 아직 현재 토큰으로 남아 있는지 여부"""
        return bool(self.invalid_fcm_token) and self.invalid_fcm_token == self.fcm_token

    @classmethod
    def from_dict(cls, user_id: str, doc: Dict[str, Any]) -> "User":
        return cls(
            user_id=user_id,
            fcm_token=doc.get('fcmToken') or None,
            invalid_fcm_token=doc.get('invalidFcmToken') or None,
            fcm_token_invalid_at=doc.get('fcmTokenInvalidAt'),
        )
