"""
services/admin_log.py

관리자 행위 로그 기록 / 조회 서비스.

관리자(Admin)가 수행한 주요 행위를 AdminActionLog 테이블에 기록한다.
접수 상태 변경 이력도 이 테이블에서 읽어 온다.

설계 원칙:
- 실제 변경과 같은 트랜잭션에서 기록 (commit 은 호출 측에서 수행)
- 로그 데이터는 수정/삭제하지 않는 것을 전제로 설계

"""

import math

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session, aliased

from school_cms.core.permissions import SessionUser, ensure_role
from school_cms.models.admin_log import AdminAction, AdminActionLog
from school_cms.models.user import Role, User
from school_cms.services.pagination import check_page


"""
관리자 행위 로그 기록 함수

- actor_id     : 행위를 수행한 관리자 ID
- action       : 수행된 관리자 행위 유형
- target_type  : period / registration / user
- target_id    : 대상 엔티티 ID
- before_value : 변경 전 값 (선택)
- after_value  : 변경 후 값 (선택)
- note         : 메모 (선택)
- ip / user_agent : 요청 정보 (선택)

NOTE:
- db.commit()은 호출 측(서비스)에서 수행

"""
def write_admin_log(
    db: Session,
    *,
    actor_id,
    action: AdminAction,
    target_type: str,
    target_id,
    before_value=None,
    after_value=None,
    note=None,
    ip=None,
    user_agent=None,
) -> AdminActionLog:
    log = AdminActionLog(
        actor_id=actor_id,
        action=action,
        target_type=target_type,
        target_id=str(target_id),
        before_value=before_value,
        after_value=after_value,
        note=note,
        ip=ip,
        user_agent=user_agent,
    )
    db.add(log)
    return log


def list_admin_logs(
    db: Session,
    session: SessionUser | None,
    *,
    page: int = 1,
    limit: int = 20,
    action: AdminAction | None = None,
    target_type: str | None = None,
):
    ensure_role(session, Role.ADMIN)
    check_page(page, limit)

    Actor = aliased(User)

    stmt = select(AdminActionLog)
    if action is not None:
        stmt = stmt.where(AdminActionLog.action == action)
    if target_type:
        stmt = stmt.where(AdminActionLog.target_type == target_type)

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

    rows = db.execute(
        stmt.add_columns(Actor)
        .outerjoin(Actor, Actor.id == AdminActionLog.actor_id)
        .order_by(desc(AdminActionLog.created_at))
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    result = []
    for log, actor in rows:
        result.append(
            {
                "id": str(log.id),
                "created_at": log.created_at.isoformat(),
                "action": log.action.value,
                "target_type": log.target_type,
                "target_id": log.target_id,
                "before_value": log.before_value,
                "after_value": log.after_value,
                "note": log.note,
                "ip": log.ip,
                "user_agent": log.user_agent,
                # 삭제된 관리자의 로그는 actor 가 None
                "actor": (
                    {
                        "id": str(actor.id),
                        "email": actor.email,
                        "name": actor.name,
                        "role": actor.role.value,
                    }
                    if actor
                    else None
                ),
            }
        )
    return {
        "data": result,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    }
