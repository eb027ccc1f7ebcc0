"""
auth.py

인증(Authentication) API 모음.

관리자 패널 스태프 계정의 로그인과 본인 정보 조회를 담당한다.
JWT Access Token(HS256, sub=user_id, type=access)을 Authorization 헤더로 전달한다.

설계 원칙:
- 비활성화된 계정은 로그인 불가
- 로그인 실패 시 이메일 존재 여부를 구분하지 않음
- 공개 사이트 방문자(지원자)는 계정이 없음

관련 파일:
- school_cms.core.security   : 비밀번호 해시 / JWT 생성·검증
- school_cms.core.deps       : 인증 의존성(get_current_session, require_session)

"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from school_cms.core.config import settings
from school_cms.core.deps import get_db, require_session
from school_cms.core.exceptions import NotFoundError, UnauthorizedError
from school_cms.core.permissions import SessionUser
from school_cms.core.results import ok, to_response
from school_cms.core.security import create_access_token, verify_password
from school_cms.models.user import User
from school_cms.schemas.auth import LoginRequest, TokenResponse
from school_cms.services.users import user_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


"""
로그인 API

- 이메일 / 비밀번호 인증
- 비활성화된 계정은 로그인 불가
- Access Token은 응답 바디로 반환

"""

@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = db.scalar(select(User).where(func.lower(User.email) == data.email.lower()))

    if not user or not verify_password(data.password, user.password_hash):
        logger.info("login failed for %s", data.email)
        raise UnauthorizedError("Invalid credentials")

    if not user.is_active:
        raise UnauthorizedError("Account is inactive")

    token = TokenResponse(
        access_token=create_access_token(subject=str(user.id)),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return to_response(ok(token.model_dump(), "Logged in"))


"""
내 정보 조회 API

- 로그인한 스태프 본인의 계정 정보 반환

"""

@router.get("/me")
def me(
    db: Session = Depends(get_db),
    session: SessionUser = Depends(require_session),
):
    user = db.get(User, session.user_id)
    if not user:
        raise NotFoundError("User")
    return {"data": user_to_dict(user)}
