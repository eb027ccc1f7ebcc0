"""
exceptions.py

애플리케이션 오류 분류(Error Taxonomy).

서비스 계층은 규칙 위반을 아래 예외로 표현하고,
변경(mutation) 작업에서는 results.mutation 데코레이터가
이를 통일된 결과 형태(ActionResult)로 바꿔 반환한다.
권한이 필요한 조회 작업에서는 예외가 그대로 올라가
main.py 의 예외 핸들러가 같은 형태의 JSON으로 응답한다.

- UnauthorizedError  : 세션 없음 / rank 부족 (필요 역할은 노출하지 않음)
- ValidationError    : 필드 단위 검증 실패
- NotFoundError      : 대상 엔티티 없음
- ConflictError      : unique 충돌 (충돌 필드명을 메시지에 포함)
- RateLimitedError   : 공개 폼 요청 한도 초과 (retry_after 초 포함)

"""

from enum import Enum


class ErrorCode(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    DUPLICATE = "DUPLICATE"
    RATE_LIMIT = "RATE_LIMIT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


HTTP_STATUS_BY_CODE = {
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.DUPLICATE: 409,
    ErrorCode.RATE_LIMIT: 429,
    ErrorCode.INTERNAL_ERROR: 500,
}

INTERNAL_ERROR_MESSAGE = "Something went wrong. Please try again later."


class AppError(Exception):
    code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str = INTERNAL_ERROR_MESSAGE):
        self.message = message
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_CODE[self.code]

    def to_result(self):
        from school_cms.core.results import fail

        return fail(self.code, self.message)


class UnauthorizedError(AppError):
    code = ErrorCode.UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(AppError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class ValidationError(AppError):
    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str = "Invalid data", errors: dict[str, list[str]] | None = None):
        super().__init__(message)
        self.errors = errors or {}

    def to_result(self):
        from school_cms.core.results import fail

        return fail(self.code, self.message, errors=self.errors or None)


class ConflictError(AppError):
    code = ErrorCode.DUPLICATE

    def __init__(self, field: str = "Data", message: str | None = None):
        super().__init__(message or f"{field} already in use")
        self.field = field


class RateLimitedError(AppError):
    code = ErrorCode.RATE_LIMIT

    def __init__(self, retry_after: int = 60):
        super().__init__(f"Too many requests. Try again in {retry_after} seconds.")
        self.retry_after = retry_after

    def to_result(self):
        from school_cms.core.results import fail

        return fail(self.code, self.message, retry_after=self.retry_after)
