"""
services/users.py

관리자 패널 스태프 계정 관리 비즈니스 로직.

주요 기능:
- 사용자 목록 / 상세 조회 (ADMIN 이상, 권한 없으면 예외)
- 사용자 생성 / 수정 / 활성 토글 (ADMIN 이상)
- 사용자 삭제 (SUPERADMIN 전용)

관리자 정책(안전장치):
- 자신보다 높은 역할은 부여할 수 없음
- 자신보다 높은 역할의 계정은 수정 / 토글할 수 없음
- 자기 자신의 역할 변경 / 비활성화 / 삭제 금지
- 마지막 활성 SUPERADMIN 은 비활성화 / 강등 / 삭제 금지

설계 원칙:
- HTTP / FastAPI 의존성 없음
- 모든 변경은 AdminActionLog 와 같은 트랜잭션에서 기록

"""

import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from school_cms.core.exceptions import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from school_cms.core.permissions import SessionUser, ensure_role, role_rank
from school_cms.core.results import ActionResult, mutation, ok, validate_payload
from school_cms.core.security import get_password_hash
from school_cms.models.admin_log import AdminAction
from school_cms.models.user import Role, User
from school_cms.schemas.user import UserCreateRequest, UserResponse, UserUpdateRequest
from school_cms.services.admin_log import write_admin_log
from school_cms.services.pagination import paginate

TARGET_USER = "user"


def user_to_dict(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump(mode="json")


"""
현재 활성 SUPERADMIN 계정 수를 반환

- 마지막 SUPERADMIN 보호 로직에서 사용

"""

def count_active_superadmins(db: Session) -> int:
    return db.scalar(
        select(func.count())
        .select_from(User)
        .where(User.role == Role.SUPERADMIN, User.is_active.is_(True))
    ) or 0


def _is_last_superadmin(db: Session, user: User) -> bool:
    return user.role == Role.SUPERADMIN and user.is_active and count_active_superadmins(db) <= 1


def _get_user(db: Session, user_id) -> User:
    try:
        user_uuid = user_id if isinstance(user_id, uuid.UUID) else uuid.UUID(str(user_id))
    except ValueError:
        raise NotFoundError("User")

    user = db.get(User, user_uuid)
    if not user:
        raise NotFoundError("User")
    return user


def _email_taken(db: Session, email: str, exclude_id: uuid.UUID | None = None) -> bool:
    stmt = select(User.id).where(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    return db.scalar(stmt) is not None


def list_users(
    db: Session,
    session: SessionUser | None,
    *,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
) -> dict:
    ensure_role(session, Role.ADMIN)

    stmt = select(User).order_by(User.created_at.desc())
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

    users, pagination = paginate(db, stmt, page=page, limit=limit)
    return {
        "data": [user_to_dict(u) for u in users],
        "pagination": pagination,
    }


def get_user(db: Session, session: SessionUser | None, user_id) -> dict:
    ensure_role(session, Role.ADMIN)
    return user_to_dict(_get_user(db, user_id))


@mutation("create_user")
def create_user(db: Session, session: SessionUser | None, data, *, ip=None, user_agent=None) -> ActionResult:
    actor = ensure_role(session, Role.ADMIN)
    body = validate_payload(UserCreateRequest, data)

    # 자신보다 높은 역할 부여 금지
    if role_rank(body.role) > role_rank(actor.role):
        raise UnauthorizedError()

    if _email_taken(db, body.email):
        raise ConflictError("Email")

    user = User(
        email=body.email,
        password_hash=get_password_hash(body.password),
        name=body.name,
        role=body.role,
        is_active=body.is_active,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        raise ConflictError("Email")

    write_admin_log(
        db,
        actor_id=actor.user_id,
        action=AdminAction.CREATE_USER,
        target_type=TARGET_USER,
        target_id=user.id,
        after_value=user.role.value,
        note=user.email,
        ip=ip,
        user_agent=user_agent,
    )
    db.commit()
    db.refresh(user)

    return ok(user_to_dict(user), "User created")


@mutation("update_user")
def update_user(db: Session, session: SessionUser | None, user_id, data, *, ip=None, user_agent=None) -> ActionResult:
    actor = ensure_role(session, Role.ADMIN)
    body = validate_payload(UserUpdateRequest, data)

    user = _get_user(db, user_id)

    # 자신보다 높은 역할의 계정은 수정 불가
    if role_rank(user.role) > role_rank(actor.role):
        raise UnauthorizedError()

    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    is_self = user.id == actor.user_id

    if "role" in changes and changes["role"] != user.role:
        if is_self:
            raise ValidationError("Invalid data", errors={"role": ["Cannot change your own role"]})
        if role_rank(changes["role"]) > role_rank(actor.role):
            raise UnauthorizedError()
        if _is_last_superadmin(db, user):
            raise ValidationError("Invalid data", errors={"role": ["Cannot demote the last SUPERADMIN"]})

    if changes.get("is_active") is False and user.is_active:
        if is_self:
            raise ValidationError("Invalid data", errors={"is_active": ["Cannot deactivate your own account"]})
        if _is_last_superadmin(db, user):
            raise ValidationError("Invalid data", errors={"is_active": ["Cannot deactivate the last SUPERADMIN"]})

    if "email" in changes and _email_taken(db, changes["email"], exclude_id=user.id):
        raise ConflictError("Email")

    before = user.role
    password = changes.pop("password", None)
    for key, value in changes.items():
        setattr(user, key, value)
    if password:
        user.password_hash = get_password_hash(password)

    write_admin_log(
        db,
        actor_id=actor.user_id,
        action=AdminAction.UPDATE_USER,
        target_type=TARGET_USER,
        target_id=user.id,
        before_value=before.value,
        after_value=user.role.value,
        ip=ip,
        user_agent=user_agent,
    )
    db.commit()
    db.refresh(user)

    return ok(user_to_dict(user), "User updated")


@mutation("toggle_user_status")
def toggle_user_status(db: Session, session: SessionUser | None, user_id, *, ip=None, user_agent=None) -> ActionResult:
    actor = ensure_role(session, Role.ADMIN)

    user = _get_user(db, user_id)

    # 자기 자신 비활성화 금지
    if user.id == actor.user_id:
        raise ValidationError("Cannot deactivate your own account")

    if role_rank(user.role) > role_rank(actor.role):
        raise UnauthorizedError()

    if _is_last_superadmin(db, user):
        raise ValidationError("Cannot deactivate the last SUPERADMIN")

    was_active = user.is_active
    user.is_active = not was_active

    write_admin_log(
        db,
        actor_id=actor.user_id,
        action=AdminAction.TOGGLE_USER,
        target_type=TARGET_USER,
        target_id=user.id,
        before_value="active" if was_active else "inactive",
        after_value="active" if user.is_active else "inactive",
        ip=ip,
        user_agent=user_agent,
    )
    db.commit()
    db.refresh(user)

    return ok(user_to_dict(user), "User deactivated" if was_active else "User activated")


@mutation("delete_user")
def delete_user(db: Session, session: SessionUser | None, user_id, *, ip=None, user_agent=None) -> ActionResult:
    actor = ensure_role(session, Role.SUPERADMIN)

    user = _get_user(db, user_id)

    # 자기 자신 삭제 금지
    if user.id == actor.user_id:
        raise ValidationError("Cannot delete yourself")

    # 마지막 SUPERADMIN 삭제 금지
    if _is_last_superadmin(db, user):
        raise ValidationError("Cannot delete the last SUPERADMIN")

    user_snapshot = user_to_dict(user)

    write_admin_log(
        db,
        actor_id=actor.user_id,
        action=AdminAction.DELETE_USER,
        target_type=TARGET_USER,
        target_id=user.id,
        before_value=user.role.value,
        note=user.email,
        ip=ip,
        user_agent=user_agent,
    )
    db.delete(user)
    db.commit()

    return ok(user_snapshot, "User deleted")
