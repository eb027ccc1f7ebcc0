"""
ppdb.py

공개 사이트용 PPDB(신입생 모집) API.

- 현재 활성 모집 기간 조회 (짧은 TTL 캐시)
- 지원서 접수 (IP 기준 요청 한도 적용)

지원자는 계정이 없으므로 인증을 요구하지 않는다.
접수 규칙(기간 활성 여부, 접수 기간, 접수번호 발급)은 services.ppdb 에서 처리한다.

"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from school_cms.core.deps import enforce_rate_limit, get_db
from school_cms.core.results import to_response
from school_cms.schemas.ppdb import RegistrationSubmitRequest
from school_cms.services.ppdb import get_active_period, submit_registration

router = APIRouter(prefix="/ppdb", tags=["ppdb"])


# 현재 활성 기간 + 접수 가능 여부
@router.get("/active")
def active_period(db: Session = Depends(get_db)):
    return {"data": get_active_period(db)}


"""
지원서 접수 API

- 요청 한도 검사가 본문 검증보다 먼저 수행됨 (초과 시 429 + Retry-After)
- 성공 시 201 + 발급된 접수번호
- 접수 기간이 아니면 400 (행 생성 없음)

"""

@router.post(
    "/registrations",
    dependencies=[Depends(enforce_rate_limit("ppdb_registration"))],
)
def create_registration(body: RegistrationSubmitRequest, db: Session = Depends(get_db)):
    result = submit_registration(db, body.period_id, body)
    return to_response(result, success_status=201)
