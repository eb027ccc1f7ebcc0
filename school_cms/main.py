"""
main.py

FastAPI 애플리케이션 진입점(Entry Point).

이 파일은 서버 실행 시 가장 먼저 로드되며,
애플리케이션 전반의 설정과 라우터 등록을 담당한다.

주요 역할:
- 로깅 초기화
- FastAPI 앱 인스턴스 생성 및 CORS 미들웨어 설정
- 공개 / 관리자 라우터 등록
- 오류를 통일된 결과 형태({success, error, code, ...})로 변환하는 예외 핸들러
- 헬스 체크 및 DB 연결 상태 확인용 엔드포인트 제공

설계 원칙:
- 비즈니스 로직은 포함하지 않고 설정/조립 역할만 수행
- 실제 기능은 routers / services 계층에 위임

관련 파일:
- school_cms.core.config       : 환경 변수 및 설정 로드
- school_cms.core.exceptions   : 오류 분류 / HTTP 상태코드
- school_cms.routers.*         : 기능별 API 라우터

"""

import logging

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from sqlalchemy import text

from school_cms.core.config import settings
from school_cms.core.deps import get_db
from school_cms.core.exceptions import AppError, ErrorCode, INTERNAL_ERROR_MESSAGE
from school_cms.core.logging_config import setup_logging
from school_cms.core.results import fail, field_errors, to_response
from school_cms.routers import (
    admin_contact,
    admin_ppdb,
    admin_users,
    auth,
    contact,
    dashboard,
    ppdb,
)

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="School CMS Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Retry-After", "Content-Disposition"],
)

app.include_router(auth.router)
app.include_router(ppdb.router)
app.include_router(contact.router)
app.include_router(admin_ppdb.router)
app.include_router(admin_contact.router)
app.include_router(admin_users.router)
app.include_router(dashboard.router)


"""
예외 핸들러

- AppError                : 권한이 필요한 조회의 UnauthorizedError, 요청 한도 초과 등
- RequestValidationError  : 요청 본문/쿼리 검증 실패 → 400 VALIDATION_ERROR + 필드 오류
- 그 외 예외               : traceback 로깅 후 내부 정보 없는 500 응답

"""

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return to_response(exc.to_result())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return to_response(fail(ErrorCode.VALIDATION_ERROR, "Invalid data", errors=field_errors(exc)))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return to_response(fail(ErrorCode.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE))


"""
서버 헬스 체크 엔드포인트

- 애플리케이션 프로세스가 정상 동작 중인지 확인
- 로드밸런서 / 배포 환경에서 서버 상태 확인 용도

"""
@app.get("/health")
def health():
    return {"status": "ok"}

"""
데이터베이스 연결 상태 확인 엔드포인트

- 간단한 SELECT 1 쿼리를 통해 DB 연결 여부 확인
- 서버는 살아 있으나 DB가 죽은 상황을 분리해서 감지 가능

"""
@app.get("/db-ping")
def db_ping(db: Session = Depends(get_db)):
    value = db.execute(text("SELECT 1")).scalar_one()
    return {"db": "ok", "value": value}
