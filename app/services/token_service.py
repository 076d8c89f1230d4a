# app/services/token_service.py
import logging
from firebase_admin import firestore
from typing import Optional

from app.models.user import User

TOKEN_LOG_PREFIX = 20

def mask_token(token: Optional[str]) -> str:
    """FCM 토큰은 자격 증명이므로 로그에는 앞부분만 남깁니다."""
    if not token:
        return "<none>"
    return f"{token[:TOKEN_LOG_PREFIX]}..."

class TokenResolver:
    """
    사용자 ID로 현재 푸시 전달 주소(FCM 토큰)를 조회하는 서비스.
    - 사용자 문서가 없거나 토큰이 비어 있으면 오류가 아니라 None을 반환합니다.
    """
    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.users_ref = self.db.collection('users')

    def get_user(self, user_id: Optional[str]) -> Optional[User]:
        if not user_id:
            return None
        user_doc = self.users_ref.document(user_id).get()
        if not user_doc.exists:
            return None
        return User.from_dict(user_id, user_doc.to_dict() or {})

    def get_token(self, user_id: Optional[str]) -> Optional[str]:
        """
        :param user_id: 토큰을 조회할 사용자 ID
        :return: FCM 토큰 문자열, 없으면 None
        """
        user = self.get_user(user_id)
        if user is None:
            logging.info(f"사용자를 찾을 수 없음 (user_id: {user_id})")
            return None
        if not user.fcm_token:
            logging.info(f"사용자에게 FCM 토큰이 없음 (user_id: {user_id})")
            return None
        logging.info(f"FCM 토큰 조회 완료 (user_id: {user_id}, token: {mask_token(user.fcm_token)})")
        return user.fcm_token

    def mark_token_invalid(self, user_id: str, token: str) -> bool:
        """
        FCM이 등록 해제된 토큰이라고 보고한 경우 사용자 문서에 표시해 둡니다.
        실제 삭제는 정기 토큰 정리 작업이 수행합니다.
        - 그 사이 클라이언트가 새 토큰을 등록했다면 아무것도 하지 않습니다.

        :return: 표시했으면 True
        """
        user = self.get_user(user_id)
        if user is None or user.fcm_token != token:
            return False
        self.users_ref.document(user_id).update({
            'invalidFcmToken': token,
            'fcmTokenInvalidAt': firestore.SERVER_TIMESTAMP,
        })
        logging.warning(f"유효하지 않은 FCM 토큰 표시 (user_id: {user_id}, token: {mask_token(token)})")
        return True
