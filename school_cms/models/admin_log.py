"""

admin_log.py

관리자(Admin) 행위 기록(Audit Log) 모델 정의 파일.

관리자 패널에서 수행된 주요 변경 행위
(PPDB 기간 생성/활성화, 접수 상태 변경, 사용자 생성/삭제 등)를
DB에 영구적으로 기록하기 위한 로그 테이블을 정의한다.

접수 상태 변경 이력(PENDING → REVIEWING → ...)도 이 테이블에서 조회한다.

설계 원칙:
- 실제 데이터 변경과 같은 트랜잭션에서 기록
- 로그 데이터는 수정/삭제하지 않는 것을 전제로 설계
- actor(행위자)와 target(대상 엔티티)을 명확히 구분

"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from school_cms.db.base import Base



#  관리자 행위 유형 Enum

class AdminAction(str, Enum):
    CREATE_PERIOD = "CREATE_PERIOD"
    UPDATE_PERIOD = "UPDATE_PERIOD"
    DELETE_PERIOD = "DELETE_PERIOD"
    ACTIVATE_PERIOD = "ACTIVATE_PERIOD"
    DEACTIVATE_PERIOD = "DEACTIVATE_PERIOD"
    SET_REGISTRATION_STATUS = "SET_REGISTRATION_STATUS"
    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"
    TOGGLE_USER = "TOGGLE_USER"
    DELETE_USER = "DELETE_USER"


"""
관리자 행위 로그 모델

- actor_id     : 행위를 수행한 관리자 ID (사용자 삭제 시 NULL)
- action       : 수행된 관리자 행위 유형
- target_type  : 대상 엔티티 종류 (period / registration / user)
- target_id    : 대상 엔티티 ID
- before_value : 변경 전 값 (상태, 역할 등)
- after_value  : 변경 후 값
- note         : 부가 메모 (접수 상태 변경 시 관리자 메모)
- ip           : 요청 IP 주소
- user_agent   : 요청 User-Agent
- created_at   : 행위 발생 시각 (UTC)

"""

class AdminActionLog(Base):
    __tablename__ = "admin_action_logs"
    __table_args__ = (
        Index("ix_admin_action_logs_target", "target_type", "target_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    actor_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    action: Mapped[AdminAction] = mapped_column(SAEnum(AdminAction, name="admin_action"), nullable=False)

    target_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_id: Mapped[str] = mapped_column(String(36), nullable=False)

    before_value: Mapped[str | None] = mapped_column(String(50), nullable=True)
    after_value: Mapped[str | None] = mapped_column(String(50), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
