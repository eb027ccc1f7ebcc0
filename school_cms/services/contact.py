"""
services/contact.py

공개 사이트 '문의하기' 메시지 처리.

- submit_contact_message  : 공개 폼 제출 (요청 한도는 라우터 의존성에서 검사)
- list_contact_messages   : EDITOR 이상 조회 (권한 없으면 예외)
- mark_message_as_read    : 읽음 처리
- delete_contact_message  : 삭제

관리자 알림 메일은 보내지 않는다.

"""

import logging
import uuid

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from school_cms.core.exceptions import NotFoundError
from school_cms.core.permissions import SessionUser, ensure_role
from school_cms.core.results import ActionResult, mutation, ok, validate_payload
from school_cms.models.contact import ContactMessage
from school_cms.models.user import Role
from school_cms.schemas.contact import ContactMessageCreateRequest, ContactMessageResponse
from school_cms.services.pagination import paginate

logger = logging.getLogger(__name__)


def _message_to_dict(message: ContactMessage) -> dict:
    return ContactMessageResponse.model_validate(message).model_dump(mode="json")


def _get_message(db: Session, message_id) -> ContactMessage:
    try:
        message_uuid = message_id if isinstance(message_id, uuid.UUID) else uuid.UUID(str(message_id))
    except ValueError:
        raise NotFoundError("Message")

    message = db.get(ContactMessage, message_uuid)
    if not message:
        raise NotFoundError("Message")
    return message


@mutation("submit_contact_message")
def submit_contact_message(db: Session, data) -> ActionResult:
    body = validate_payload(ContactMessageCreateRequest, data)

    message = ContactMessage(
        name=body.name,
        email=body.email,
        phone=body.phone,
        subject=body.subject,
        message=body.message,
    )
    db.add(message)
    db.commit()

    logger.info("contact message received from %s", body.email)
    return ok(message="Message sent")


def list_contact_messages(
    db: Session,
    session: SessionUser | None,
    *,
    page: int = 1,
    limit: int = 10,
    is_read: bool | None = None,
) -> dict:
    ensure_role(session, Role.EDITOR)

    stmt = select(ContactMessage).order_by(desc(ContactMessage.created_at))
    if is_read is not None:
        stmt = stmt.where(ContactMessage.is_read.is_(is_read))

    messages, pagination = paginate(db, stmt, page=page, limit=limit)
    return {
        "data": [_message_to_dict(m) for m in messages],
        "pagination": pagination,
    }


@mutation("mark_message_as_read")
def mark_message_as_read(db: Session, session: SessionUser | None, message_id) -> ActionResult:
    ensure_role(session, Role.EDITOR)

    message = _get_message(db, message_id)
    message.is_read = True
    db.commit()
    db.refresh(message)

    return ok(_message_to_dict(message), "Message marked as read")


@mutation("delete_contact_message")
def delete_contact_message(db: Session, session: SessionUser | None, message_id) -> ActionResult:
    ensure_role(session, Role.EDITOR)

    message = _get_message(db, message_id)
    db.delete(message)
    db.commit()

    return ok(message="Message deleted")
