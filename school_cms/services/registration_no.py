"""
services/registration_no.py

PPDB 접수번호 발급.

형식: {prefix}{연도 4자리}{epoch millis 끝 6자리}{A-Z0-9 랜덤 4자}
예)   PPDB2025482913K7QX

전역 unique 는 DB 제약(uq_ppdb_registrations_registration_no)이 최종 보장하고,
충돌 시 재발급은 services.ppdb.submit_registration 에서 처리한다.

"""

import re
import secrets
import string
from datetime import datetime, timezone

from school_cms.core.config import settings

SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
SUFFIX_LENGTH = 4


def generate_registration_no(prefix: str | None = None, now: datetime | None = None) -> str:
    prefix = settings.REGISTRATION_NO_PREFIX if prefix is None else prefix
    now = now or datetime.now(timezone.utc)

    millis = str(int(now.timestamp() * 1000))[-6:].rjust(6, "0")
    suffix = "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{prefix}{now.year:04d}{millis}{suffix}"


def registration_no_pattern(prefix: str | None = None) -> re.Pattern:
    prefix = settings.REGISTRATION_NO_PREFIX if prefix is None else prefix
    return re.compile(rf"^{re.escape(prefix)}\d{{4}}\d{{6}}[A-Z0-9]{{{SUFFIX_LENGTH}}}$")
