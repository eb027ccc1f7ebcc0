"""
session.py

데이터베이스 엔진 및 세션(Session) 관리 파일.

SQLAlchemy Engine과 SessionLocal을 생성하여
요청 단위로 세션을 생성/종료하는 구조(get_db)를 지원한다.

설계 원칙:
- DB 연결 설정은 한 곳에서만 정의
- pool_pre_ping=True로 유휴 연결 오류 방지
- 로컬/테스트용 SQLite URL도 그대로 사용할 수 있도록 connect_args 처리

"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from school_cms.core.config import settings


def make_engine(url: str):
    connect_args = {}
    # SQLite 커넥션은 스레드 간 공유를 기본으로 막으므로 해제
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(url, pool_pre_ping=True, connect_args=connect_args)

    if url.startswith("sqlite"):
        # SQLite 는 연결마다 FK 제약(ON DELETE SET NULL 등)을 켜야 동작
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = make_engine(settings.DATABASE_URL)

# 요청 단위로 사용할 세션 팩토리
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)
