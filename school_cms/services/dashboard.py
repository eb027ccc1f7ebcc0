"""
services/dashboard.py

관리자 대시보드 통계.

- 전체 건수 (접수, 모집 기간, 사용자, 문의, 읽지 않은 문의)
- 상태별 접수 건수 (건수가 0인 상태도 포함)
- 현재 활성 기간
- 최근 접수 5건 / 최근 문의 5건

캐시 없이 조회 시점의 DB 상태를 그대로 집계한다.

"""

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from school_cms.core.permissions import SessionUser, ensure_role
from school_cms.models.contact import ContactMessage
from school_cms.models.ppdb import PPDBPeriod, PPDBRegistration, RegistrationStatus
from school_cms.models.user import Role, User
from school_cms.services.ppdb import as_utc, parse_id, period_to_dict

RECENT_LIMIT = 5


def _count(db: Session, stmt) -> int:
    return db.scalar(stmt) or 0


def get_dashboard_stats(db: Session, session: SessionUser | None, period_id=None) -> dict:
    ensure_role(session, Role.EDITOR)

    registration_filter = []
    if period_id is not None:
        registration_filter.append(PPDBRegistration.period_id == parse_id(period_id, "Period"))

    by_status = {status.value: 0 for status in RegistrationStatus}
    rows = db.execute(
        select(PPDBRegistration.status, func.count())
        .where(*registration_filter)
        .group_by(PPDBRegistration.status)
    ).all()
    for status, count in rows:
        by_status[status.value] = count

    active = db.scalar(select(PPDBPeriod).where(PPDBPeriod.is_active.is_(True)))
    active_count = 0
    if active:
        active_count = _count(
            db,
            select(func.count()).select_from(PPDBRegistration).where(PPDBRegistration.period_id == active.id),
        )

    recent_registrations = db.scalars(
        select(PPDBRegistration)
        .where(*registration_filter)
        .order_by(desc(PPDBRegistration.created_at))
        .limit(RECENT_LIMIT)
    ).all()
    recent_messages = db.scalars(
        select(ContactMessage).order_by(desc(ContactMessage.created_at)).limit(RECENT_LIMIT)
    ).all()

    return {
        "counts": {
            "registrations": sum(by_status.values()),
            "periods": _count(db, select(func.count()).select_from(PPDBPeriod)),
            "users": _count(db, select(func.count()).select_from(User)),
            "messages": _count(db, select(func.count()).select_from(ContactMessage)),
            "unread_messages": _count(
                db,
                select(func.count()).select_from(ContactMessage).where(ContactMessage.is_read.is_(False)),
            ),
        },
        "registrations_by_status": by_status,
        "active_period": period_to_dict(active, active_count) if active else None,
        "recent_registrations": [
            {
                "id": str(r.id),
                "registration_no": r.registration_no,
                "student_name": r.student_name,
                "status": r.status.value,
                "created_at": as_utc(r.created_at).isoformat(),
            }
            for r in recent_registrations
        ],
        "recent_messages": [
            {
                "id": str(m.id),
                "name": m.name,
                "subject": m.subject,
                "is_read": m.is_read,
                "created_at": as_utc(m.created_at).isoformat(),
            }
            for m in recent_messages
        ],
    }
