# tests/helpers.py
import uuid
from datetime import date, datetime, timedelta, timezone

from sqlalchemy.orm import Session

from school_cms.core.permissions import SessionUser
from school_cms.core.security import get_password_hash
from school_cms.models.ppdb import Gender, PPDBPeriod, PPDBRegistration, RegistrationStatus
from school_cms.models.user import Role, User
from school_cms.services.registration_no import generate_registration_no

DEFAULT_PASSWORD = "Passw0rd!"


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_user_in_db(
    db: Session,
    *,
    role: Role = Role.EDITOR,
    email: str | None = None,
    password: str = DEFAULT_PASSWORD,
    is_active: bool = True,
) -> User:
    user = User(
        email=email or f"{role.value.lower()}_{uuid.uuid4().hex[:6]}@school.example.com",
        password_hash=get_password_hash(password),
        name=f"{role.value.title()} User",
        role=role,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def login(client, email: str, password: str = DEFAULT_PASSWORD) -> str:
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["data"]["access_token"]


def staff(client, db: Session, role: Role) -> dict:
    """역할별 스태프 계정 생성 + 로그인 → {"user", "token", "headers"}"""
    user = create_user_in_db(db, role=role)
    token = login(client, user.email)
    return {"user": user, "token": token, "headers": auth_header(token)}


def session_for(user: User) -> SessionUser:
    return SessionUser(user_id=user.id, role=user.role)


def create_period_in_db(
    db: Session,
    *,
    name: str = "PPDB 2025/2026",
    academic_year: str = "2025/2026",
    start: datetime | None = None,
    end: datetime | None = None,
    quota: int | None = None,
    is_active: bool = False,
) -> PPDBPeriod:
    start = start or utcnow() - timedelta(days=1)
    end = end or start + timedelta(days=30)
    period = PPDBPeriod(
        name=name,
        academic_year=academic_year,
        start_date=start,
        end_date=end,
        quota=quota,
        requirements=["Akta kelahiran", "Kartu keluarga"],
        is_active=is_active,
    )
    db.add(period)
    db.commit()
    db.refresh(period)
    return period


def applicant_payload(**overrides) -> dict:
    data = {
        "student_name": "Budi Santoso",
        "nisn": "0012345678",
        "gender": "MALE",
        "birth_place": "Bandung",
        "birth_date": "2012-05-17",
        "religion": "Islam",
        "address": "Jl. Merdeka No. 10, Bandung",
        "previous_school": "SD Negeri 1 Bandung",
        "father_name": "Slamet",
        "father_job": "Wiraswasta",
        "father_phone": "081234567890",
        "mother_name": "Siti",
        "mother_job": "Guru",
        "mother_phone": "081298765432",
        "guardian_email": "slamet@example.com",
    }
    data.update(overrides)
    return data


def create_registration_in_db(
    db: Session,
    period: PPDBPeriod,
    *,
    status: RegistrationStatus = RegistrationStatus.PENDING,
    created_at: datetime | None = None,
    **overrides,
) -> PPDBRegistration:
    fields = {
        "student_name": "Budi Santoso",
        "gender": Gender.MALE,
        "birth_place": "Bandung",
        "birth_date": date(2012, 5, 17),
        "address": "Jl. Merdeka No. 10, Bandung",
    }
    fields.update(overrides)
    registration = PPDBRegistration(
        registration_no=generate_registration_no(),
        period_id=period.id,
        status=status,
        created_at=created_at or utcnow(),
        **fields,
    )
    db.add(registration)
    db.commit()
    db.refresh(registration)
    return registration
