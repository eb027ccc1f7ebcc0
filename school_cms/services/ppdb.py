"""
services/ppdb.py

PPDB(신입생 모집) 도메인의 비즈니스 로직 모음.

이 파일은 모집 기간 관리, 공개 접수, 접수 상태 전이 등
PPDB 흐름의 핵심 규칙을 담당한다.
라우터는 이 파일의 함수를 호출하여 결과를 받아 응답만 처리한다.

주요 기능:
- 모집 기간 CRUD / 활성 토글 (활성 기간은 동시에 최대 1개)
- 공개 접수 (기간 활성 + 접수 기간 내에서만 허용, 접수번호 충돌 시 재발급)
- 접수 목록 / 상세 조회, 상태 변경, 상태 변경 이력 조회

설계 원칙:
- HTTP / FastAPI 의존성 없음
- 변경 작업은 mutation 데코레이터로 감싸 ActionResult 를 반환
- 권한이 필요한 조회는 UnauthorizedError 를 그대로 올려 보냄
- 쓰기가 성공하면 ppdb 캐시 태그를 무효화

관련 파일:
- school_cms.models.ppdb           : PPDBPeriod / PPDBRegistration 모델
- school_cms.services.registration_no : 접수번호 발급
- school_cms.routers.ppdb          : 공개 API
- school_cms.routers.admin_ppdb    : 관리자 API

"""

import functools
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import desc, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from school_cms.core.cache import PPDB_TAG, cache
from school_cms.core.config import settings
from school_cms.core.exceptions import ConflictError, NotFoundError, ValidationError
from school_cms.core.permissions import SessionUser, ensure_role
from school_cms.core.results import ActionResult, mutation, ok, validate_payload
from school_cms.models.admin_log import AdminAction, AdminActionLog
from school_cms.models.ppdb import PPDBPeriod, PPDBRegistration, RegistrationStatus
from school_cms.models.user import Role
from school_cms.schemas.ppdb import (
    PeriodCreateRequest,
    PeriodResponse,
    PeriodUpdateRequest,
    RegistrationCreateRequest,
    RegistrationResponse,
    StatusHistoryEntry,
    StatusUpdateRequest,
)
from school_cms.services.admin_log import write_admin_log
from school_cms.services.notifications import notify_status_change
from school_cms.services.pagination import paginate
from school_cms.services.registration_no import generate_registration_no

logger = logging.getLogger(__name__)

ACTIVE_PERIOD_CACHE_KEY = "ppdb:active"

TARGET_PERIOD = "period"
TARGET_REGISTRATION = "registration"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite 는 tz 정보 없이 돌려주므로 UTC 로 맞춘 뒤 비교
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_id(value, resource: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise NotFoundError(resource)


# ---------------------------------------------------------------------------
# 상태 전이 테이블
# ---------------------------------------------------------------------------

S = RegistrationStatus

# 관리자 화면과 동일한 허용형: PENDING 으로 되돌리는 것만 막는다
PERMISSIVE_TRANSITIONS: dict[RegistrationStatus, frozenset] = {
    state: frozenset(s for s in RegistrationStatus if s != S.PENDING)
    for state in RegistrationStatus
}

# 엄격형: PENDING → REVIEWING → ACCEPTED → ENROLLED
STRICT_TRANSITIONS: dict[RegistrationStatus, frozenset] = {
    S.PENDING: frozenset({S.REVIEWING, S.REJECTED, S.WITHDRAWN}),
    S.REVIEWING: frozenset({S.ACCEPTED, S.REJECTED, S.WITHDRAWN}),
    S.ACCEPTED: frozenset({S.ENROLLED, S.WITHDRAWN}),
    S.REJECTED: frozenset(),
    S.ENROLLED: frozenset(),
    S.WITHDRAWN: frozenset(),
}


def transition_table(strict: bool | None = None) -> dict[RegistrationStatus, frozenset]:
    if strict is None:
        strict = settings.PPDB_STRICT_TRANSITIONS
    return STRICT_TRANSITIONS if strict else PERMISSIVE_TRANSITIONS


def can_transition(current: RegistrationStatus, target: RegistrationStatus, strict: bool | None = None) -> bool:
    """같은 상태로의 변경(메모만 수정)은 항상 허용."""
    if current == target:
        return True
    return target in transition_table(strict)[current]


# ---------------------------------------------------------------------------
# 직렬화
# ---------------------------------------------------------------------------

def _registration_counts(db: Session, period_ids) -> dict[uuid.UUID, int]:
    if not period_ids:
        return {}
    rows = db.execute(
        select(PPDBRegistration.period_id, func.count())
        .where(PPDBRegistration.period_id.in_(period_ids))
        .group_by(PPDBRegistration.period_id)
    ).all()
    return {period_id: count for period_id, count in rows}


def period_to_dict(period: PPDBPeriod, registration_count: int = 0) -> dict:
    data = PeriodResponse.model_validate(period)
    data.start_date = as_utc(data.start_date)
    data.end_date = as_utc(data.end_date)
    data.registration_count = registration_count
    if period.quota is not None:
        data.remaining_quota = max(period.quota - registration_count, 0)
    return data.model_dump(mode="json")


def registration_to_dict(registration: PPDBRegistration) -> dict:
    return RegistrationResponse.model_validate(registration).model_dump(mode="json")


def _period_result(db: Session, period: PPDBPeriod) -> dict:
    count = _registration_counts(db, [period.id]).get(period.id, 0)
    return period_to_dict(period, count)


# ---------------------------------------------------------------------------
# 모집 기간 조회
# ---------------------------------------------------------------------------

def list_periods(
    db: Session,
    session: SessionUser | None,
    *,
    page: int = 1,
    limit: int = 10,
    is_active: bool | None = None,
) -> dict:
    ensure_role(session, Role.EDITOR)

    stmt = select(PPDBPeriod).order_by(desc(PPDBPeriod.created_at))
    if is_active is not None:
        stmt = stmt.where(PPDBPeriod.is_active.is_(is_active))

    periods, pagination = paginate(db, stmt, page=page, limit=limit)
    counts = _registration_counts(db, [p.id for p in periods])
    return {
        "data": [period_to_dict(p, counts.get(p.id, 0)) for p in periods],
        "pagination": pagination,
    }


def get_period(db: Session, session: SessionUser | None, period_id) -> dict:
    ensure_role(session, Role.EDITOR)

    period = db.get(PPDBPeriod, parse_id(period_id, "Period"))
    if not period:
        raise NotFoundError("Period")
    return _period_result(db, period)


def is_period_open(period: PPDBPeriod, now: datetime | None = None) -> bool:
    """활성 상태이고 start_date <= now <= end_date (양 끝 포함)."""
    now = as_utc(now or _utcnow())
    return period.is_active and as_utc(period.start_date) <= now <= as_utc(period.end_date)


def get_active_period(db: Session, now: datetime | None = None) -> dict:
    """공개 페이지용 활성 기간 조회 (ppdb 태그로 캐시)."""

    def load():
        period = db.scalar(select(PPDBPeriod).where(PPDBPeriod.is_active.is_(True)))
        if not period:
            return None
        return {
            "period": _period_result(db, period),
            "start": as_utc(period.start_date),
            "end": as_utc(period.end_date),
        }

    cached = cache.get_or_set(ACTIVE_PERIOD_CACHE_KEY, load, tags=[PPDB_TAG])
    if cached is None:
        return {"period": None, "is_open": False}

    # 접수 가능 여부는 캐시하지 않고 매번 현재 시각으로 판단
    now = as_utc(now or _utcnow())
    return {"period": cached["period"], "is_open": cached["start"] <= now <= cached["end"]}


# ---------------------------------------------------------------------------
# 모집 기간 변경
# ---------------------------------------------------------------------------

"""
활성 기간 단일화 (같은 트랜잭션 안에서 수행)

1. 모든 기간 행을 id 순서로 잠금 (FOR UPDATE, 지원하는 DB에서만)
2. 대상 외 활성 기간을 한 번의 UPDATE 로 비활성화
3. 대상 기간 활성화 후 flush

동시에 두 요청이 들어와도 partial unique index(uq_ppdb_periods_single_active)가
남은 경합을 IntegrityError 로 막는다. commit 은 호출 측에서 수행.

"""

def _activate_exclusive(db: Session, period: PPDBPeriod) -> None:
    db.scalars(select(PPDBPeriod.id).order_by(PPDBPeriod.id).with_for_update()).all()

    db.execute(
        update(PPDBPeriod)
        .where(PPDBPeriod.id != period.id, PPDBPeriod.is_active.is_(True))
        .values(is_active=False, updated_at=_utcnow())
    )
    period.is_active = True
    db.flush()


@mutation("create_period")
def create_period(db: Session, session: SessionUser | None, data, *, ip=None, user_agent=None) -> ActionResult:
    actor = ensure_role(session, Role.ADMIN)
    body = validate_payload(PeriodCreateRequest, data)

    period = PPDBPeriod(
        name=body.name,
        academic_year=body.academic_year,
        description=body.description,
        start_date=body.start_date,
        end_date=body.end_date,
        quota=body.quota,
        requirements=body.requirements,
        is_active=False,
    )
    db.add(period)
    db.flush()

    if body.is_active:
        _activate_exclusive(db, period)

    write_admin_log(
        db,
        actor_id=actor.user_id,
        action=AdminAction.CREATE_PERIOD,
        target_type=TARGET_PERIOD,
        target_id=period.id,
        after_value="active" if period.is_active else "inactive",
        note=period.name,
        ip=ip,
        user_agent=user_agent,
    )
    db.commit()
    db.refresh(period)
    cache.invalidate(PPDB_TAG)

    return ok(period_to_dict(period), "PPDB period created")


# None 으로 비울 수 없는 컬럼
_REQUIRED_PERIOD_FIELDS = ("name", "academic_year", "start_date", "end_date")


@mutation("update_period")
def update_period(db: Session, session: SessionUser | None, period_id, data, *, ip=None, user_agent=None) -> ActionResult:
    actor = ensure_role(session, Role.ADMIN)
    body = validate_payload(PeriodUpdateRequest, data)

    period = db.get(PPDBPeriod, parse_id(period_id, "Period"))
    if not period:
        raise NotFoundError("Period")

    changes = body.model_dump(exclude_unset=True)
    for key in _REQUIRED_PERIOD_FIELDS:
        if key in changes and changes[key] is None:
            changes.pop(key)
    activate = changes.pop("is_active", None)

    start = as_utc(changes.get("start_date", period.start_date))
    end = as_utc(changes.get("end_date", period.end_date))
    if end < start:
        raise ValidationError(
            "Invalid data",
            errors={"end_date": ["end_date must not be before start_date"]},
        )

    before = "active" if period.is_active else "inactive"
    for key, value in changes.items():
        setattr(period, key, value)

    if activate is True and not period.is_active:
        _activate_exclusive(db, period)
    elif activate is False:
        period.is_active = False

    write_admin_log(
        db,
        actor_id=actor.user_id,
        action=AdminAction.UPDATE_PERIOD,
        target_type=TARGET_PERIOD,
        target_id=period.id,
        before_value=before,
        after_value="active" if period.is_active else "inactive",
        ip=ip,
        user_agent=user_agent,
    )
    db.commit()
    db.refresh(period)
    cache.invalidate(PPDB_TAG)

    return ok(_period_result(db, period), "PPDB period updated")


@mutation("delete_period")
def delete_period(db: Session, session: SessionUser | None, period_id, *, ip=None, user_agent=None) -> ActionResult:
    actor = ensure_role(session, Role.ADMIN)

    period = db.get(PPDBPeriod, parse_id(period_id, "Period"))
    if not period:
        raise NotFoundError("Period")

    # 접수 내역은 감사/내보내기 용도로 보존하므로 접수가 있으면 삭제 불가
    registrations = _registration_counts(db, [period.id]).get(period.id, 0)
    if registrations > 0:
        raise ConflictError(
            "period",
            message=f"Period has {registrations} registrations. Delete the registrations first.",
        )

    write_admin_log(
        db,
        actor_id=actor.user_id,
        action=AdminAction.DELETE_PERIOD,
        target_type=TARGET_PERIOD,
        target_id=period.id,
        before_value="active" if period.is_active else "inactive",
        note=period.name,
        ip=ip,
        user_agent=user_agent,
    )
    db.delete(period)
    db.commit()
    cache.invalidate(PPDB_TAG)

    return ok(message="PPDB period deleted")


@mutation("set_active_period")
def set_active_period(db: Session, session: SessionUser | None, period_id, *, ip=None, user_agent=None) -> ActionResult:
    """대상 기간을 활성화하고 나머지는 모두 비활성화."""
    actor = ensure_role(session, Role.ADMIN)

    period = db.get(PPDBPeriod, parse_id(period_id, "Period"))
    if not period:
        raise NotFoundError("Period")

    _activate_exclusive(db, period)
    write_admin_log(
        db,
        actor_id=actor.user_id,
        action=AdminAction.ACTIVATE_PERIOD,
        target_type=TARGET_PERIOD,
        target_id=period.id,
        after_value="active",
        ip=ip,
        user_agent=user_agent,
    )
    db.commit()
    db.refresh(period)
    cache.invalidate(PPDB_TAG)

    return ok(_period_result(db, period), "PPDB period activated")


@mutation("toggle_period_active")
def toggle_period_active(db: Session, session: SessionUser | None, period_id, *, ip=None, user_agent=None) -> ActionResult:
    actor = ensure_role(session, Role.ADMIN)

    period = db.get(PPDBPeriod, parse_id(period_id, "Period"))
    if not period:
        raise NotFoundError("Period")

    was_active = period.is_active
    if was_active:
        period.is_active = False
    else:
        _activate_exclusive(db, period)

    write_admin_log(
        db,
        actor_id=actor.user_id,
        action=AdminAction.DEACTIVATE_PERIOD if was_active else AdminAction.ACTIVATE_PERIOD,
        target_type=TARGET_PERIOD,
        target_id=period.id,
        before_value="active" if was_active else "inactive",
        after_value="inactive" if was_active else "active",
        ip=ip,
        user_agent=user_agent,
    )
    db.commit()
    db.refresh(period)
    cache.invalidate(PPDB_TAG)

    message = "PPDB period deactivated" if was_active else "PPDB period activated"
    return ok(_period_result(db, period), message)


# ---------------------------------------------------------------------------
# 공개 접수
# ---------------------------------------------------------------------------

def _is_registration_no_conflict(error: IntegrityError) -> bool:
    return "registration_no" in str(error.orig)


"""
공개 접수 함수

- 기간이 없으면 NOT_FOUND
- 기간이 비활성이거나 now 가 [start_date, end_date] 밖이면 VALIDATION_ERROR (행 생성 없음)
- 입력 검증 실패 시 필드 단위 오류
- 접수번호 unique 충돌 시 새 번호로 재시도 (최대 REGISTRATION_NO_MAX_ATTEMPTS 회)
- 재시도까지 모두 충돌하면 DUPLICATE

"""

@mutation("submit_registration")
def submit_registration(
    db: Session,
    period_id,
    applicant_data,
    *,
    now: datetime | None = None,
    generate_no: Callable[[], str] | None = None,
) -> ActionResult:
    now = as_utc(now or _utcnow())

    period_uuid = parse_id(period_id, "Period")
    period = db.get(PPDBPeriod, period_uuid)
    if not period:
        raise NotFoundError("Period")

    if not is_period_open(period, now):
        raise ValidationError("Registration is closed", errors={"period_id": ["Registration is closed"]})

    body = validate_payload(RegistrationCreateRequest, applicant_data)
    fields = body.model_dump(include=set(RegistrationCreateRequest.model_fields))

    if generate_no is None:
        generate_no = functools.partial(generate_registration_no, now=now)

    attempts = max(settings.REGISTRATION_NO_MAX_ATTEMPTS, 1)
    for attempt in range(1, attempts + 1):
        registration = PPDBRegistration(
            registration_no=generate_no(),
            period_id=period_uuid,
            status=RegistrationStatus.PENDING,
            **fields,
        )
        db.add(registration)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if not _is_registration_no_conflict(e):
                raise
            logger.warning("registration_no collision (attempt %s/%s)", attempt, attempts)
            continue

        db.refresh(registration)
        cache.invalidate(PPDB_TAG)
        logger.info("registration %s submitted for period %s", registration.registration_no, period_uuid)
        return ok(registration_to_dict(registration), "Registration submitted")

    raise ConflictError("registration_no", message="Could not submit the registration. Please try again.")


# ---------------------------------------------------------------------------
# 접수 관리
# ---------------------------------------------------------------------------

def _parse_status(value) -> RegistrationStatus:
    try:
        return RegistrationStatus(value)
    except ValueError:
        raise ValidationError("Invalid data", errors={"status": [f"Unknown status: {value}"]})


def list_registrations(
    db: Session,
    session: SessionUser | None,
    *,
    page: int = 1,
    limit: int = 10,
    period_id=None,
    status=None,
    search: str | None = None,
) -> dict:
    ensure_role(session, Role.EDITOR)

    stmt = (
        select(PPDBRegistration)
        .options(selectinload(PPDBRegistration.period))
        .order_by(desc(PPDBRegistration.created_at))
    )
    if period_id:
        stmt = stmt.where(PPDBRegistration.period_id == parse_id(period_id, "Period"))
    if status:
        stmt = stmt.where(PPDBRegistration.status == _parse_status(status))
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                PPDBRegistration.student_name.ilike(pattern),
                PPDBRegistration.guardian_email.ilike(pattern),
                PPDBRegistration.registration_no.ilike(pattern),
            )
        )

    registrations, pagination = paginate(db, stmt, page=page, limit=limit)
    return {
        "data": [registration_to_dict(r) for r in registrations],
        "pagination": pagination,
    }


def get_registration(db: Session, session: SessionUser | None, registration_id) -> dict:
    ensure_role(session, Role.EDITOR)

    registration = db.get(PPDBRegistration, parse_id(registration_id, "Registration"))
    if not registration:
        raise NotFoundError("Registration")
    return registration_to_dict(registration)


"""
접수 상태 변경 함수

- EDITOR 이상만 가능
- 전이 테이블(허용형 / 엄격형)에 없는 변경은 VALIDATION_ERROR (status 필드 오류)
- notes 가 None 이면 기존 메모 유지
- 상태 + 메모 + updated_at 저장, 관리자 로그 기록, 캐시 무효화, 알림 훅 호출

"""

@mutation("update_registration_status")
def update_registration_status(
    db: Session,
    session: SessionUser | None,
    registration_id,
    status,
    notes: str | None = None,
    *,
    ip=None,
    user_agent=None,
) -> ActionResult:
    actor = ensure_role(session, Role.EDITOR)
    body = validate_payload(StatusUpdateRequest, {"status": status, "notes": notes})

    registration = db.get(PPDBRegistration, parse_id(registration_id, "Registration"))
    if not registration:
        raise NotFoundError("Registration")

    before = registration.status
    if not can_transition(before, body.status):
        raise ValidationError(
            "Invalid status transition",
            errors={"status": [f"Cannot change status from {before.value} to {body.status.value}"]},
        )

    registration.status = body.status
    if body.notes is not None:
        registration.notes = body.notes
    registration.updated_at = _utcnow()

    write_admin_log(
        db,
        actor_id=actor.user_id,
        action=AdminAction.SET_REGISTRATION_STATUS,
        target_type=TARGET_REGISTRATION,
        target_id=registration.id,
        before_value=before.value,
        after_value=body.status.value,
        note=body.notes,
        ip=ip,
        user_agent=user_agent,
    )
    db.commit()
    db.refresh(registration)
    cache.invalidate(PPDB_TAG)

    if before != registration.status:
        notify_status_change(registration, before, registration.status)

    return ok(registration_to_dict(registration), "Registration status updated")


def get_registration_history(db: Session, session: SessionUser | None, registration_id) -> list[dict]:
    """접수 시점(PENDING)부터 상태 변경 이력을 오래된 순으로 반환."""
    ensure_role(session, Role.EDITOR)

    registration = db.get(PPDBRegistration, parse_id(registration_id, "Registration"))
    if not registration:
        raise NotFoundError("Registration")

    logs = db.scalars(
        select(AdminActionLog)
        .where(
            AdminActionLog.target_type == TARGET_REGISTRATION,
            AdminActionLog.target_id == str(registration.id),
            AdminActionLog.action == AdminAction.SET_REGISTRATION_STATUS,
        )
        .order_by(AdminActionLog.created_at, AdminActionLog.id)
    ).all()

    history = [
        StatusHistoryEntry(
            from_status=None,
            to_status=RegistrationStatus.PENDING.value,
            notes=None,
            actor_id=None,
            changed_at=as_utc(registration.created_at),
        )
    ]
    history.extend(
        StatusHistoryEntry(
            from_status=log.before_value,
            to_status=log.after_value,
            notes=log.note,
            actor_id=log.actor_id,
            changed_at=as_utc(log.created_at),
        )
        for log in logs
    )
    return [entry.model_dump(mode="json") for entry in history]
