# app/events/maintenance.py
import logging
from datetime import datetime
from firebase_admin import firestore
from typing import Optional

from app.models.user import User
from app.utils.datetime_utils import DateTimeUtils

DEFAULT_RETENTION_DAYS = 7

class MaintenanceJobs:
    """
    하루 주기로 실행되는 정리 작업 모음.
    - 무효 FCM 토큰 제거
    - 처리된 지 오래된 큐 알림 삭제
    각 작업은 조회 결과를 하나의 원자적 배치로 커밋합니다.
    """
    def __init__(self, db=None, retention_days: int = DEFAULT_RETENTION_DAYS):
        self.db = db or firestore.client()
        self.users_ref = self.db.collection('users')
        self.queue_ref = self.db.collection('notifications_queue')
        self.retention_days = retention_days

    def cleanup_invalid_tokens(self, now: Optional[datetime] = None) -> int:
        """
        FCM 전송 시 등록 해제로 보고된 토큰을 사용자 문서에서 제거합니다.
        - 표시 이후 새 토큰이 등록된 사용자는 표시만 지우고 토큰은 유지합니다.

        :return: 정리한 사용자 수
        """
        now = now or DateTimeUtils.now()
        logging.info("무효 FCM 토큰 정리 시작")

        docs = self.users_ref.where('fcmTokenInvalidAt', '<=', now).get()
        if not docs:
            logging.info("정리할 무효 토큰 없음")
            return 0

        batch = self.db.batch()
        for doc in docs:
            user = User.from_dict(doc.id, doc.to_dict() or {})
            update = {
                'invalidFcmToken': firestore.DELETE_FIELD,
                'fcmTokenInvalidAt': firestore.DELETE_FIELD,
            }
            if user.has_stale_token:
                update['fcmToken'] = firestore.DELETE_FIELD
            batch.update(doc.reference, update)
        batch.commit()

        logging.info(f"무효 FCM 토큰 정리 완료 ({len(docs)}명)")
        return len(docs)

    def clean_old_notifications(self, now: Optional[datetime] = None) -> int:
        """
        처리 완료 후 보관 기간이 지난 큐 알림을 삭제합니다.

        :param now: 기준 시각 (기본값: 현재 UTC)
        :return: 삭제한 문서 수
        """
        now = now or DateTimeUtils.now()
        cutoff = DateTimeUtils.days_ago(self.retention_days, now)
        logging.info(f"오래된 큐 알림 정리 시작 (기준: {DateTimeUtils.to_iso_string(cutoff)})")

        docs = (
            self.queue_ref
            .where('processed', '==', True)
            .where('processedAt', '<', cutoff)
            .get()
        )
        if not docs:
            logging.info("정리할 큐 알림 없음")
            return 0

        batch = self.db.batch()
        for doc in docs:
            batch.delete(doc.reference)
        batch.commit()

        logging.info(f"오래된 큐 알림 {len(docs)}건 삭제 완료")
        return len(docs)
