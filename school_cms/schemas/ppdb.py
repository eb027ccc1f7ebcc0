import uuid
from datetime import date, datetime, timezone
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from school_cms.models.ppdb import Gender, RegistrationStatus


ACADEMIC_YEAR_PATTERN = r"^\d{4}/\d{4}$"


def to_utc(value: datetime) -> datetime:
    # tz 정보가 없는 값은 UTC 로 간주
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# 모집 기간
# ---------------------------------------------------------------------------

class PeriodCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["PPDB 2025/2026"])
    academic_year: str = Field(..., pattern=ACADEMIC_YEAR_PATTERN, examples=["2025/2026"])
    description: Optional[str] = Field(default=None, max_length=2000)
    start_date: datetime
    end_date: datetime
    quota: Optional[int] = Field(default=None, ge=0)
    requirements: Optional[List[str]] = None
    is_active: bool = False

    @field_validator("start_date", "end_date")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return to_utc(v)

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class PeriodUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    academic_year: Optional[str] = Field(default=None, pattern=ACADEMIC_YEAR_PATTERN)
    description: Optional[str] = Field(default=None, max_length=2000)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    quota: Optional[int] = Field(default=None, ge=0)
    requirements: Optional[List[str]] = None
    is_active: Optional[bool] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def _utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc(v) if v is not None else v


class PeriodResponse(BaseModel):
    id: uuid.UUID
    name: str
    academic_year: str
    description: Optional[str]
    start_date: datetime
    end_date: datetime
    quota: Optional[int]
    requirements: Optional[List[str]]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    # 정원은 표시용 (상태 전이에서 강제하지 않음)
    registration_count: int = 0
    remaining_quota: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# 접수
# ---------------------------------------------------------------------------

_OPTIONAL_TEXT_FIELDS = (
    "nisn",
    "religion",
    "previous_school",
    "father_name",
    "father_job",
    "father_phone",
    "mother_name",
    "mother_job",
    "mother_phone",
    "guardian_name",
    "guardian_phone",
    "guardian_email",
)


class RegistrationCreateRequest(BaseModel):
    student_name: str = Field(..., min_length=1, max_length=100)
    nisn: Optional[str] = Field(default=None, max_length=20)
    gender: Gender
    birth_place: str = Field(..., min_length=1, max_length=100)
    birth_date: date
    religion: Optional[str] = Field(default=None, max_length=50)
    address: str = Field(..., min_length=1, max_length=500)
    previous_school: Optional[str] = Field(default=None, max_length=200)

    father_name: Optional[str] = Field(default=None, max_length=100)
    father_job: Optional[str] = Field(default=None, max_length=100)
    father_phone: Optional[str] = Field(default=None, max_length=20)
    mother_name: Optional[str] = Field(default=None, max_length=100)
    mother_job: Optional[str] = Field(default=None, max_length=100)
    mother_phone: Optional[str] = Field(default=None, max_length=20)
    guardian_name: Optional[str] = Field(default=None, max_length=100)
    guardian_phone: Optional[str] = Field(default=None, max_length=20)
    guardian_email: Optional[EmailStr] = None

    # 폼에서 비워 둔 선택 항목("")은 None 으로 저장
    @field_validator(*_OPTIONAL_TEXT_FIELDS, mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class RegistrationSubmitRequest(RegistrationCreateRequest):
    period_id: uuid.UUID


class PeriodSummary(BaseModel):
    id: uuid.UUID
    name: str
    academic_year: str

    model_config = ConfigDict(from_attributes=True)


class RegistrationResponse(BaseModel):
    id: uuid.UUID
    registration_no: str
    period_id: uuid.UUID
    student_name: str
    nisn: Optional[str]
    gender: Gender
    birth_place: str
    birth_date: date
    religion: Optional[str]
    address: str
    previous_school: Optional[str]
    father_name: Optional[str]
    father_job: Optional[str]
    father_phone: Optional[str]
    mother_name: Optional[str]
    mother_job: Optional[str]
    mother_phone: Optional[str]
    guardian_name: Optional[str]
    guardian_phone: Optional[str]
    guardian_email: Optional[str]
    status: RegistrationStatus
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime
    period: Optional[PeriodSummary] = None

    model_config = ConfigDict(from_attributes=True)


class StatusUpdateRequest(BaseModel):
    status: RegistrationStatus
    notes: Optional[str] = Field(default=None, max_length=2000)


class StatusHistoryEntry(BaseModel):
    from_status: Optional[str]
    to_status: Optional[str]
    notes: Optional[str]
    actor_id: Optional[uuid.UUID]
    changed_at: datetime
