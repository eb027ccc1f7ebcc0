"""
rate_limit.py

공개 폼(PPDB 접수, 문의하기) 요청 제한.

고정 윈도우(fixed window) 카운터를 클라이언트 IP 기준 키로 관리한다.
기본값은 60초 동안 5회이며, 초과 시 남은 대기 시간(초)을 함께 돌려준다.

설계 원칙:
- 카운터 저장소는 limits 라이브러리의 storage URI로 교체 가능
  (memory:// 단일 프로세스, redis:// 다중 인스턴스)
- 라우터는 RateLimiter 를 의존성으로 주입받으므로
  테스트에서 윈도우가 짧은 인스턴스로 바꿔 끼울 수 있다

관련 파일:
- school_cms.core.deps    : get_rate_limiter / enforce_rate_limit 의존성
- school_cms.core.config  : RATE_LIMIT_* 설정

"""

import math
import time
from dataclasses import dataclass

from limits import RateLimitItemPerSecond
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter

from school_cms.core.config import settings


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after_seconds: int
    remaining: int


class RateLimiter:
    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: int = 60,
        storage_uri: str = "memory://",
    ):
        self.item = RateLimitItemPerSecond(max_requests, window_seconds)
        self.storage = storage_from_string(storage_uri)
        self.strategy = FixedWindowRateLimiter(self.storage)

    def check(self, key: str) -> RateLimitDecision:
        allowed = self.strategy.hit(self.item, key)
        stats = self.strategy.get_window_stats(self.item, key)

        if allowed:
            return RateLimitDecision(allowed=True, retry_after_seconds=0, remaining=stats.remaining)

        retry_after = max(1, math.ceil(stats.reset_time - time.time()))
        return RateLimitDecision(allowed=False, retry_after_seconds=retry_after, remaining=0)

    def reset(self) -> None:
        self.storage.reset()


# 애플리케이션 기본 인스턴스 (deps.get_rate_limiter 가 반환)
rate_limiter = RateLimiter(
    max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
)
