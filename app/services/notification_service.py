# app/services/notification_service.py
import logging
from firebase_admin import messaging
from firebase_admin import exceptions as firebase_exceptions
from typing import Optional, Dict, Any

from app.core.exceptions import DispatchError
from app.models.notification import AndroidHints, ApnsHints, NotificationMessage
from app.services.token_service import mask_token

# FCM이 토큰 자체가 더 이상 유효하지 않다고 알려주는 오류들
INVALID_TOKEN_ERRORS = (messaging.UnregisteredError, messaging.SenderIdMismatchError)

def stringify_data(data: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """FCM data 페이로드는 문자열 키/값만 허용합니다. None 값은 제외합니다."""
    if not data:
        return {}
    return {str(k): str(v) for k, v in data.items() if v is not None}

class NotificationDispatcher:
    """
    단일 수신자 푸시 메시지를 만들어 FCM으로 전송하는 공용 서비스.
    - 전송 실패는 DispatchError로 변환되어 호출한 이벤트 핸들러가 처리합니다.
    """
    def __init__(self, messaging_client=None):
        self.messaging = messaging_client or messaging

    def build_message(self, notification: NotificationMessage) -> messaging.Message:
        android = None
        if notification.android is not None:
            hints = notification.android
            android = messaging.AndroidConfig(
                priority=hints.priority,
                notification=messaging.AndroidNotification(
                    channel_id=hints.channel_id,
                    sound=hints.sound,
                    color=hints.color,
                    icon=hints.icon,
                ),
            )

        apns = None
        if notification.apns is not None:
            apns = messaging.APNSConfig(
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(sound=notification.apns.sound, badge=notification.apns.badge)
                )
            )

        return messaging.Message(
            token=notification.token,
            notification=messaging.Notification(title=notification.title, body=notification.body),
            data=stringify_data(notification.data),
            android=android,
            apns=apns,
        )

    def dispatch(self, token: str, title: str, body: str, data: Optional[Dict[str, Any]] = None,
                 android: Optional[AndroidHints] = None, apns: Optional[ApnsHints] = None) -> str:
        """
        푸시 알림을 전송하고 FCM 메시지 ID(전달 영수증)를 반환합니다.

        :param token: 수신자 FCM 토큰
        :param title: 알림 제목
        :param body: 알림 본문
        :param data: 클라이언트 라우팅용 데이터 (문자열로 변환됨)
        :param android: Android 전달 옵션
        :param apns: APNs 전달 옵션
        :raises DispatchError: 전송 실패 시
        """
        notification = NotificationMessage(
            token=token, title=title, body=body,
            data=stringify_data(data), android=android, apns=apns,
        )
        message = self.build_message(notification)
        try:
            response = self.messaging.send(message)
        except INVALID_TOKEN_ERRORS as e:
            logging.warning(f"FCM 토큰이 유효하지 않음 (token: {mask_token(token)}): {e}")
            raise DispatchError(str(e), token_invalid=True) from e
        except firebase_exceptions.FirebaseError as e:
            logging.error(f"FCM 전송 실패 (token: {mask_token(token)}): {e}")
            raise DispatchError(str(e)) from e
        except ValueError as e:
            # 잘못된 메시지 형식 (SDK 측 검증)
            logging.error(f"FCM 메시지 형식 오류 (token: {mask_token(token)}): {e}")
            raise DispatchError(str(e)) from e

        logging.info(f"푸시 알림 전송 완료 (token: {mask_token(token)}, response: {response})")
        return response
