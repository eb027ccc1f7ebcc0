"""
permissions.py

역할(Role) 계층 기반 권한 게이트.

관리자 패널의 모든 변경 작업은 이 파일의 can_access()를 통과해야 한다.
역할 비교는 항상 숫자 rank로만 수행하며 문자열 비교는 사용하지 않는다.
새 역할이 추가되면 ROLE_LEVEL에 순서를 명시적으로 넣어야 한다.

- SUPERADMIN : 3
- ADMIN      : 2
- EDITOR     : 1

"""

import uuid
from dataclasses import dataclass

from school_cms.core.exceptions import UnauthorizedError
from school_cms.models.user import Role


ROLE_LEVEL = {
    Role.EDITOR: 1,
    Role.ADMIN: 2,
    Role.SUPERADMIN: 3,
}


# 인증 협력자(get_current_session)가 돌려주는 현재 사용자 정보
@dataclass(frozen=True)
class SessionUser:
    user_id: uuid.UUID
    role: Role


def role_rank(role) -> int:
    try:
        return ROLE_LEVEL[Role(role)]
    except (ValueError, KeyError):
        return 0


def can_access(user_role, minimum_role) -> bool:
    """user_role 의 rank 가 minimum_role 이상이면 True. 예외를 던지지 않는다."""
    user_rank = role_rank(user_role)
    if user_rank == 0:
        return False
    return user_rank >= role_rank(minimum_role)


def ensure_role(session: SessionUser | None, minimum_role: Role) -> SessionUser:
    # 필요한 역할은 응답에 노출하지 않는다
    if session is None or not can_access(session.role, minimum_role):
        raise UnauthorizedError()
    return session
