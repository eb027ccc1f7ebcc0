"""
ppdb.py

PPDB(신입생 모집) 도메인 모델 정의 파일.

- PPDBPeriod        : 모집 기간 (날짜 범위, 정원, 제출 요건, 활성 여부)
- PPDBRegistration  : 지원자 1명의 접수 내역 (기간에 소속, 상태 보유)

설계 원칙:
- 활성 기간(is_active=True)은 동시에 최대 1개
  → 서비스에서 트랜잭션으로 보장하고, partial unique index로 한 번 더 막는다
- registration_no 는 전역 unique + 발급 후 변경하지 않음
- 접수 내역은 일반 흐름에서 삭제하지 않음 (감사/내보내기 용도로 보존)

"""

import uuid
from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    UniqueConstraint,
    Boolean,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_cms.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RegistrationStatus(str, Enum):
    PENDING = "PENDING"
    REVIEWING = "REVIEWING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    ENROLLED = "ENROLLED"
    WITHDRAWN = "WITHDRAWN"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


class PPDBPeriod(Base):
    """모집 기간.

    quota 가 None 이면 정원 제한 없음 (정원은 표시용이며 상태 전이에서 강제하지 않음)
    """

    __tablename__ = "ppdb_periods"
    __table_args__ = (
        Index(
            "uq_ppdb_periods_single_active",
            "is_active",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(9), nullable=False)  # 2025/2026
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    quota: Mapped[int | None] = mapped_column(Integer, nullable=True)
    requirements: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    registrations: Mapped[list["PPDBRegistration"]] = relationship(back_populates="period")


class PPDBRegistration(Base):
    """지원자 접수 내역."""

    __tablename__ = "ppdb_registrations"
    __table_args__ = (
        UniqueConstraint("registration_no", name="uq_ppdb_registrations_registration_no"),
        Index("ix_ppdb_registrations_period_id", "period_id"),
        Index("ix_ppdb_registrations_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    registration_no: Mapped[str] = mapped_column(String(32), nullable=False)

    period_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("ppdb_periods.id"), nullable=False)

    # 학생 정보
    student_name: Mapped[str] = mapped_column(String(100), nullable=False)
    nisn: Mapped[str | None] = mapped_column(String(20), nullable=True)
    gender: Mapped[Gender] = mapped_column(nullable=False)
    birth_place: Mapped[str] = mapped_column(String(100), nullable=False)
    birth_date: Mapped[date] = mapped_column(Date, nullable=False)
    religion: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    previous_school: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # 부모 / 보호자 정보
    father_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    father_job: Mapped[str | None] = mapped_column(String(100), nullable=True)
    father_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    mother_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    mother_job: Mapped[str | None] = mapped_column(String(100), nullable=True)
    mother_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    guardian_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    guardian_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    guardian_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    status: Mapped[RegistrationStatus] = mapped_column(default=RegistrationStatus.PENDING, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    period: Mapped[PPDBPeriod] = relationship(back_populates="registrations")
