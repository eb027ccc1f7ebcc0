"""
results.py

변경(mutation) 작업의 통일된 결과 형태.

관리자 화면과 공개 폼은 예외 대신 아래 형태의 결과를 받아
success 값으로 분기하고 message / error 를 그대로 표시한다.

    {"success": bool, "data"?: ..., "message"?: str, "error"?: str,
     "code"?: str, "errors"?: {field: [msg, ...]}, "retry_after"?: int}

주요 기능:
- ok() / fail() 결과 생성
- mutation 데코레이터: 서비스 함수의 예외를 결과로 변환 + 롤백 + 로깅
- to_response(): 결과를 HTTP 상태코드가 맞춰진 JSONResponse 로 변환
- validate_payload(): dict 입력을 pydantic 스키마로 검증 (필드 단위 오류)

"""

import functools
import logging
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from school_cms.core.exceptions import (
    AppError,
    ErrorCode,
    HTTP_STATUS_BY_CODE,
    INTERNAL_ERROR_MESSAGE,
    ValidationError,
)

logger = logging.getLogger(__name__)


class ActionResult(BaseModel):
    success: bool
    data: Any = None
    message: str | None = None
    error: str | None = None
    code: ErrorCode | None = None
    errors: dict[str, list[str]] | None = None
    retry_after: int | None = None


def ok(data: Any = None, message: str | None = None) -> ActionResult:
    return ActionResult(success=True, data=data, message=message)


def fail(
    code: ErrorCode,
    error: str,
    *,
    errors: dict[str, list[str]] | None = None,
    retry_after: int | None = None,
) -> ActionResult:
    return ActionResult(success=False, error=error, code=code, errors=errors, retry_after=retry_after)


"""
서비스 계층 변경 작업 래퍼

- 첫 번째 인자는 항상 DB Session
- AppError     : 롤백 후 해당 오류 결과 반환
- 그 외 예외    : 롤백 + traceback 로깅 후 내부 정보 없는 일반 실패 반환

"""

def mutation(action: str):
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(db, *args, **kwargs) -> ActionResult:
            try:
                return fn(db, *args, **kwargs)
            except AppError as e:
                db.rollback()
                logger.info("%s rejected: %s (%s)", action, e.code.value, e.message)
                return e.to_result()
            except Exception:
                db.rollback()
                logger.exception("%s failed", action)
                return fail(ErrorCode.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE)

        return wrapper

    return decorator


# FastAPI RequestValidationError 의 loc 앞에 붙는 위치 구분자
_REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}


def field_errors(exc) -> dict[str, list[str]]:
    """pydantic / FastAPI 검증 오류를 {필드: [메시지, ...]} 로 변환."""
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = list(err["loc"])
        if loc and loc[0] in _REQUEST_LOCATIONS:
            loc = loc[1:]
        path = ".".join(str(p) for p in loc) or "__root__"
        errors.setdefault(path, []).append(err["msg"])
    return errors


def validate_payload(schema: type[BaseModel], data):
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("Invalid data", errors=field_errors(e))


def to_response(result: ActionResult, success_status: int = 200) -> JSONResponse:
    if result.success:
        status_code = success_status
    else:
        status_code = HTTP_STATUS_BY_CODE.get(result.code, 500)

    headers = {}
    if result.retry_after is not None:
        headers["Retry-After"] = str(result.retry_after)

    # None 제거는 최상위 키에만 적용 (data 내부의 null 필드는 유지)
    body = {k: v for k, v in result.model_dump(mode="json").items() if v is not None}
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=headers or None,
    )
