"""

SUPERADMIN 초기 계정 생성 스크립트.

- 서버 최초 세팅 시 단 한 번 실행하는 용도
- .env에 정의된 SUPERADMIN_* 환경 변수를 읽어
  SUPERADMIN 계정을 생성한다.
- 이미 활성 SUPERADMIN 계정이 존재하면 생성하지 않고 종료한다.

사용 목적:
- 관리자 패널 사용자 관리 API(/admin/users)에 접근할 수 있는
  최상위 관리자 계정을 안전하게 초기화하기 위함

사용 방법
- 가상환경 접속
- (.venv) ~\backend~$ python -m scripts.create_superadmin

"""

import logging
import os
from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import func, select
from school_cms.core.logging_config import setup_logging
from school_cms.core.security import get_password_hash
from school_cms.db.session import SessionLocal
from school_cms.models.user import User, Role

logger = logging.getLogger("school_cms.scripts.create_superadmin")


def main():
    setup_logging(os.environ.get("LOG_LEVEL", "INFO"))

    db = SessionLocal()
    try:
        exists = db.scalar(
            select(User).where(User.role == Role.SUPERADMIN, User.is_active.is_(True))
        )
        if exists:
            logger.info("SUPERADMIN already exists. Skip creation.")
            return

        email = os.environ["SUPERADMIN_EMAIL"]
        password = os.environ["SUPERADMIN_PASSWORD"]
        name = os.environ.get("SUPERADMIN_NAME", "Super Admin")

        if len(password) < 6:
            raise RuntimeError("SUPERADMIN_PASSWORD must be at least 6 characters")

        email_exists = db.scalar(
            select(User).where(func.lower(User.email) == email.lower())
        )
        if email_exists:
            raise RuntimeError("Email already exists but is not an active SUPERADMIN")

        user = User(
            email=email,
            password_hash=get_password_hash(password),
            name=name,
            role=Role.SUPERADMIN,
            is_active=True,
        )

        db.add(user)
        db.commit()

        logger.info("SUPERADMIN created: %s", email)

    finally:
        db.close()


if __name__ == "__main__":
    main()
