"""
cache.py

공개 페이지용 짧은 TTL 읽기 캐시 + 태그 기반 무효화.

- get_or_set(key, loader, tags) : 캐시에 없거나 만료되었으면 loader() 결과를 저장
- invalidate(tag)               : 해당 태그가 붙은 항목을 모두 제거

쓰기 작업이 성공하면 서비스 계층에서 관련 태그를 invalidate 하여
공개 페이지가 최신 데이터를 보도록 한다.

NOTE:
- 프로세스 내부 캐시이므로 다중 인스턴스 환경에서는 TTL 만큼의 지연이 생길 수 있음

"""

import threading
import time
from typing import Any, Callable, Iterable

from school_cms.core.config import settings

# 캐시 태그
PPDB_TAG = "ppdb"


class TaggedCache:
    def __init__(self, ttl_seconds: int = 60):
        self.ttl_seconds = ttl_seconds
        self._entries: dict[str, tuple[float, Any]] = {}
        self._tags: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            expires_at, value = entry
            if expires_at <= time.monotonic():
                self._entries.pop(key, None)
                return default
            return value

    def set(self, key: str, value: Any, tags: Iterable[str] = ()) -> None:
        with self._lock:
            self._entries[key] = (time.monotonic() + self.ttl_seconds, value)
            for tag in tags:
                self._tags.setdefault(tag, set()).add(key)

    def get_or_set(self, key: str, loader: Callable[[], Any], tags: Iterable[str] = ()) -> Any:
        missing = object()
        value = self.get(key, missing)
        if value is missing:
            value = loader()
            self.set(key, value, tags)
        return value

    def invalidate(self, tag: str) -> None:
        with self._lock:
            for key in self._tags.pop(tag, set()):
                self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._tags.clear()


cache = TaggedCache(ttl_seconds=settings.CACHE_TTL_SECONDS)
