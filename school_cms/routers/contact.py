"""
contact.py

공개 사이트 '문의하기' 폼 API.

- IP 기준 요청 한도 적용 (PPDB 접수와 같은 정책, 키는 분리)
- 관리자 알림 메일은 보내지 않음

"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from school_cms.core.deps import enforce_rate_limit, get_db
from school_cms.core.results import to_response
from school_cms.schemas.contact import ContactMessageCreateRequest
from school_cms.services.contact import submit_contact_message

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("", dependencies=[Depends(enforce_rate_limit("contact"))])
def create_contact_message(body: ContactMessageCreateRequest, db: Session = Depends(get_db)):
    return to_response(submit_contact_message(db, body), success_status=201)
