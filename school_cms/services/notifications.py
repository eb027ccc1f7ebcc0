"""
services/notifications.py

지원자 알림 훅.

접수 상태가 바뀌면 호출된다. 메일 발송은 구현하지 않으며
현재는 로그만 남긴다 (메일/메신저 연동 시 이 함수만 교체).

"""

import logging

from school_cms.models.ppdb import PPDBRegistration, RegistrationStatus

logger = logging.getLogger(__name__)


def notify_status_change(
    registration: PPDBRegistration,
    before: RegistrationStatus,
    after: RegistrationStatus,
) -> None:
    logger.info(
        "registration %s status changed %s -> %s (notification not sent)",
        registration.registration_no,
        before.value,
        after.value,
    )
