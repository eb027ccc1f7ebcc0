"""
deps.py

FastAPI 의존성(Dependency) 모음.

- get_db               : 요청 단위 DB 세션
- get_current_session  : Bearer 토큰 → SessionUser (없거나 무효하면 None)
- require_session      : 세션이 없으면 UnauthorizedError
- require_min_role     : 역할 rank 부족 시 UnauthorizedError (get_current_editor / get_current_admin)
- get_rate_limiter     : 공개 폼 RateLimiter (테스트에서 override)
- enforce_rate_limit   : 공개 폼 요청 한도 검사 (본문 검증보다 먼저 실행)

변경(mutation) 엔드포인트는 get_current_session 결과를 그대로 서비스에 넘기고,
서비스가 권한 부족을 결과(ActionResult)로 돌려준다.
조회 엔드포인트는 get_current_editor / get_current_admin 으로 예외를 던져 바로 거절한다.

"""

import logging
import uuid
from typing import Generator

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.orm import Session

from school_cms.core.config import settings
from school_cms.core.exceptions import RateLimitedError, UnauthorizedError
from school_cms.core.permissions import SessionUser, ensure_role
from school_cms.core.rate_limit import RateLimiter, rate_limiter
from school_cms.core.security import decode_access_token
from school_cms.db.session import SessionLocal
from school_cms.models.user import Role, User

logger = logging.getLogger(__name__)

# Swagger Authorize에서 "Bearer 토큰" 입력받는 스키마
bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_session(
    cred: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> SessionUser | None:
    if cred is None:
        return None

    try:
        user_id = uuid.UUID(decode_access_token(cred.credentials))
    except (JWTError, ValueError):
        return None

    user = db.scalar(select(User).where(User.id == user_id))
    # 삭제되었거나 비활성화된 계정은 세션 없음으로 취급
    if not user or not user.is_active:
        return None

    return SessionUser(user_id=user.id, role=user.role)


def require_session(session: SessionUser | None = Depends(get_current_session)) -> SessionUser:
    if session is None:
        raise UnauthorizedError()
    return session


def require_min_role(min_role: Role):
    def _checker(session: SessionUser | None = Depends(get_current_session)) -> SessionUser:
        return ensure_role(session, min_role)
    return _checker


get_current_editor = require_min_role(Role.EDITOR)
get_current_admin = require_min_role(Role.ADMIN)


def client_ip(request: Request) -> str:
    peer = request.client.host if request.client and request.client.host else "unknown"

    # 전달 헤더는 TRUSTED_PROXIES 에서 온 요청일 때만 사용
    if peer not in settings.TRUSTED_PROXIES:
        return peer

    # 프록시 뒤에서는 X-Forwarded-For 의 첫 번째 값이 실제 클라이언트
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return peer


def get_rate_limiter() -> RateLimiter:
    return rate_limiter


"""
공개 폼 요청 한도 검사 의존성

- 키: "{action}:{client_ip}"
- 한도 초과 시 RateLimitedError (main.py 핸들러가 429 + Retry-After 로 응답)
- 라우터의 의존성 목록에 넣으면 본문 검증 전에 실행된다

"""

def enforce_rate_limit(action: str):
    def _checker(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> None:
        ip = client_ip(request)
        decision = limiter.check(f"{action}:{ip}")
        if not decision.allowed:
            logger.warning("rate limit exceeded: action=%s ip=%s retry_after=%s", action, ip, decision.retry_after_seconds)
            raise RateLimitedError(retry_after=decision.retry_after_seconds)
    return _checker


# 관리자 행위 로그에 함께 남길 요청 정보
def audit_meta(request: Request) -> dict:
    return {
        "ip": client_ip(request),
        "user_agent": (request.headers.get("user-agent") or "")[:255] or None,
    }
