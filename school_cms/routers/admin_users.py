"""
admin_users.py

관리자 전용 스태프 계정 관리 API 모음.

주요 기능:
- 사용자 목록 / 상세 조회, 생성, 수정, 활성 토글 (ADMIN 이상)
- 사용자 삭제 (SUPERADMIN 전용)
- 관리자 행위 로그 조회 (ADMIN 이상)

관리자 정책(자기 자신 보호, 마지막 SUPERADMIN 보호, 상위 역할 부여 금지)은
services.users 에서 중앙 관리한다.

"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from school_cms.core.deps import audit_meta, get_current_admin, get_current_session, get_db
from school_cms.core.permissions import SessionUser
from school_cms.core.results import to_response
from school_cms.models.admin_log import AdminAction
from school_cms.schemas.user import UserCreateRequest, UserUpdateRequest
from school_cms.services import users
from school_cms.services.admin_log import list_admin_logs

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db),
    session: SessionUser = Depends(get_current_admin),
):
    return users.list_users(db, session, page=page, limit=limit, search=search)


@router.post("/users")
def create_user(
    body: UserCreateRequest,
    db: Session = Depends(get_db),
    session: SessionUser | None = Depends(get_current_session),
    meta: dict = Depends(audit_meta),
):
    return to_response(users.create_user(db, session, body, **meta), success_status=201)


@router.get("/users/{user_id}")
def get_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: SessionUser = Depends(get_current_admin),
):
    return {"data": users.get_user(db, session, user_id)}


@router.patch("/users/{user_id}")
def update_user(
    user_id: uuid.UUID,
    body: UserUpdateRequest,
    db: Session = Depends(get_db),
    session: SessionUser | None = Depends(get_current_session),
    meta: dict = Depends(audit_meta),
):
    return to_response(users.update_user(db, session, user_id, body, **meta))


@router.post("/users/{user_id}/toggle-active")
def toggle_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: SessionUser | None = Depends(get_current_session),
    meta: dict = Depends(audit_meta),
):
    return to_response(users.toggle_user_status(db, session, user_id, **meta))


# 회원 삭제 엔드포인트 (SUPERADMIN 전용)
@router.delete("/users/{user_id}")
def delete_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: SessionUser | None = Depends(get_current_session),
    meta: dict = Depends(audit_meta),
):
    return to_response(users.delete_user(db, session, user_id, **meta))


# 관리자 활동 로그 조회 엔드포인트
@router.get("/logs")
def admin_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    action: Optional[AdminAction] = None,
    target_type: Optional[str] = Query(None, max_length=20),
    db: Session = Depends(get_db),
    session: SessionUser = Depends(get_current_admin),
):
    return list_admin_logs(db, session, page=page, limit=limit, action=action, target_type=target_type)
