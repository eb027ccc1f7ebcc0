"""
user.py

관리자 패널 사용자(User) 및 권한(Role) 모델 정의 파일.

학교 CMS 관리자 패널에 로그인하는 스태프 계정을 관리한다.
공개 사이트 방문자(지원자)는 계정이 없으며 이 테이블과 무관하다.

"""

import uuid
import datetime
from enum import Enum

from sqlalchemy import String, Boolean, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column


from school_cms.db.base import Base


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


"""
사용자 권한(Role) 정의

- EDITOR      : 콘텐츠 편집, 접수 상태 처리
- ADMIN       : PPDB 기간 관리, 사용자 관리
- SUPERADMIN  : 최고 관리자 (사용자 삭제 가능)

순서는 core.permissions.ROLE_LEVEL 에서 관리

"""

class Role(str, Enum):
    EDITOR = "EDITOR"
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"


"""
사용자(User) 모델

- email 은 고유 식별자
- role을 통해 접근 권한 제어
- is_active=False 이면 로그인 / 세션 모두 거부

"""

class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    role: Mapped[Role] = mapped_column(default=Role.EDITOR)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )
