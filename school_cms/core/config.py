"""
config.py

애플리케이션 전역 설정(Configuration) 관리 파일.

.env 환경 변수들을 Pydantic BaseSettings로 로드하여
학교 CMS 백엔드 전반에서 공통으로 사용하는 설정 값을 제공한다.

주요 설정 항목:
- 데이터베이스 연결 정보
- JWT 인증 관련 시크릿 및 만료 정책
- CORS 허용 도메인 목록
- PPDB(신입생 모집) 접수번호 / 상태 전이 정책
- 공개 폼(접수, 문의) Rate Limit 정책
- 읽기 캐시 TTL

설계 원칙:
- 모든 환경 변수는 이 파일을 통해서만 접근
- 로컬 / 테스트 / 운영 환경을 .env로 분리하여 관리
- 설정 값은 런타임 중 변경되지 않는 불변 객체로 취급

관련 파일:
- school_cms.main             : CORS 및 로깅 초기화
- school_cms.core.security    : JWT 시크릿 / 만료 설정 사용
- school_cms.core.rate_limit  : Rate Limit 정책 사용
- school_cms.db.session       : DATABASE_URL 사용

"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


# .env 파일에 정의된 환경 변수를 로드하는 설정 클래스
# extra="ignore" 옵션으로 정의되지 않은 환경 변수는 무시
class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DATABASE_URL: str
    TEST_DATABASE_URL: str | None = None

    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    LOG_LEVEL: str = "INFO"

    # CORS 허용 도메인 (공개 사이트 + 관리자 패널)
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # 접수번호: {prefix}{연도}{epoch millis 끝 6자리}{랜덤 4자}
    REGISTRATION_NO_PREFIX: str = "PPDB"
    # 접수번호 unique 충돌 시 재발급 시도 횟수
    REGISTRATION_NO_MAX_ATTEMPTS: int = 3

    # 상태 전이 정책
    # - False : 관리자 화면과 동일하게 PENDING 복귀만 막는 허용형 테이블
    # - True  : PENDING → REVIEWING → ACCEPTED → ENROLLED 순서를 강제하는 엄격형 테이블
    PPDB_STRICT_TRANSITIONS: bool = False

    # 공개 폼 Rate Limit (고정 윈도우, IP 기준)
    # - 운영 환경에서 다중 인스턴스면 redis://host:6379 사용
    RATE_LIMIT_MAX_REQUESTS: int = 5
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # X-Forwarded-For / X-Real-IP 를 신뢰할 프록시(리버스 프록시) 주소
    # - 비어 있으면 헤더를 무시하고 소켓 peer 주소만 사용
    TRUSTED_PROXIES: List[str] = []

    # 공개 페이지 읽기 캐시 TTL(초)
    CACHE_TTL_SECONDS: int = 60


# 애플리케이션 전역에서 import하여 사용하는 Settings 인스턴스
settings = Settings()
