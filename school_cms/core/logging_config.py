"""
logging_config.py

애플리케이션 로깅 초기화.

- 표준 logging 모듈만 사용
- 서버 시작 시 setup_logging()을 한 번 호출
- 각 모듈은 logging.getLogger(__name__) 으로 로거를 얻어 사용

"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

_configured = False


def setup_logging(level: str = "INFO") -> None:
    global _configured

    root = logging.getLogger("school_cms")
    root.setLevel(level.upper())

    # 재호출(테스트, reload) 시 핸들러 중복 등록 방지
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.propagate = False
    _configured = True
