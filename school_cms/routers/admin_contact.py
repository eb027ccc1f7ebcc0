"""
admin_contact.py

관리자용 문의 메시지 관리 API.

- 목록 조회 (읽음 여부 필터)
- 읽음 처리
- 삭제

모든 엔드포인트는 EDITOR 이상 권한이 필요하다.

"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from school_cms.core.deps import get_current_editor, get_current_session, get_db
from school_cms.core.permissions import SessionUser
from school_cms.core.results import to_response
from school_cms.services.contact import (
    delete_contact_message,
    list_contact_messages,
    mark_message_as_read,
)

router = APIRouter(prefix="/admin/contact-messages", tags=["admin-contact"])


@router.get("")
def list_messages(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    is_read: Optional[bool] = None,
    db: Session = Depends(get_db),
    session: SessionUser = Depends(get_current_editor),
):
    return list_contact_messages(db, session, page=page, limit=limit, is_read=is_read)


@router.post("/{message_id}/read")
def mark_read(
    message_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: SessionUser | None = Depends(get_current_session),
):
    return to_response(mark_message_as_read(db, session, message_id))


@router.delete("/{message_id}")
def delete_message(
    message_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: SessionUser | None = Depends(get_current_session),
):
    return to_response(delete_contact_message(db, session, message_id))
