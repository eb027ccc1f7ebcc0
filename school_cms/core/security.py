"""
security.py

비밀번호 해싱 및 JWT Access Token 생성/검증을 담당하는 보안 유틸리티 모음.

라우터나 비즈니스 로직은 포함하지 않고
인증(auth) 흐름에서 사용하는 저수준 기능만 제공한다.

주요 기능:
- 비밀번호 해싱 및 검증 (bcrypt)
- JWT Access Token 생성
- Access Token 디코딩 및 subject(user_id) 추출

설계 원칙:
- 토큰에는 type=access 를 넣어 다른 용도의 토큰과 구분
- 시간 기반(exp) 만료는 UTC 기준으로 처리

관련 파일:
- school_cms.core.config   : JWT 시크릿 키 및 만료 설정
- school_cms.core.deps     : 토큰을 실제로 검증하는 인증 의존성
- school_cms.routers.auth  : 로그인 API

"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from school_cms.core.config import settings


# bcrypt 기반 비밀번호 해싱 컨텍스트
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


"""
Access Token 생성 함수

- subject(sub): 사용자 식별자(user_id)
- type: access
- exp: 만료 시각 (UTC timestamp)

"""

def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {
        "sub": subject,
        "type": "access",
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


"""
Access Token 디코딩 함수

- 서명 / 만료 / 토큰 타입 검증
- 유효하지 않으면 JWTError 발생

"""

def decode_access_token(token: str) -> str:
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    if payload.get("type") != "access":
        raise JWTError("Not an access token")
    sub = payload.get("sub")
    if not sub:
        raise JWTError("Missing subject")
    return sub
