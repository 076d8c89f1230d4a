# app/scheduler.py
"""
정기 정리 작업 스케줄러.
  - cleanup_invalid_tokens: 등록 해제된 FCM 토큰 제거
  - clean_old_notifications: 보관 기간이 지난 큐 알림 삭제

Config:
  CLEANUP_INTERVAL_HOURS (default 24)
"""
import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.events.maintenance import MaintenanceJobs

TOKEN_CLEANUP_JOB_ID = "cleanup_invalid_tokens_v1"
NOTIFICATION_CLEANUP_JOB_ID = "clean_old_notifications_v1"

def run_job(name: str, job) -> None:
    """작업 하나를 실행합니다. 실패는 기록만 하고 다음 주기에 다시 실행됩니다."""
    try:
        job()
    except Exception as e:
        logging.error(f"정기 작업 실패 ({name}): {e}", exc_info=True)

def build_scheduler(maintenance: MaintenanceJobs, interval_hours: int = 24) -> BackgroundScheduler:
    """
    두 정리 작업을 등록한 (아직 시작되지 않은) 스케줄러를 반환합니다.

    :param maintenance: 정리 작업 서비스
    :param interval_hours: 실행 주기 (시간)
    """
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        func=run_job,
        args=("cleanup_invalid_tokens", maintenance.cleanup_invalid_tokens),
        trigger=IntervalTrigger(hours=interval_hours),
        id=TOKEN_CLEANUP_JOB_ID,
        name="remove FCM tokens reported as unregistered",
        replace_existing=True,
        max_instances=1,
    )

    scheduler.add_job(
        func=run_job,
        args=("clean_old_notifications", maintenance.clean_old_notifications),
        trigger=IntervalTrigger(hours=interval_hours),
        id=NOTIFICATION_CLEANUP_JOB_ID,
        name="delete processed queue notifications past retention",
        replace_existing=True,
        max_instances=1,
    )

    logging.info(f"Scheduler configured: cleanup jobs every {interval_hours}h")
    return scheduler
