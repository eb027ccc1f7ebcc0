import os

# settings 로드 전에 테스트 기본값 주입 (.env / 환경 변수가 있으면 그 값을 사용)
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_school_cms.db")
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./test_school_cms.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from school_cms.main import app as fastapi_app
from school_cms.core.cache import cache
from school_cms.core.config import settings
from school_cms.core.deps import get_db
from school_cms.core.rate_limit import rate_limiter
from school_cms.db.base import Base
from school_cms.db.session import make_engine

# ✅ 모델 import (Base.metadata에 테이블 등록)
import school_cms.models  # noqa: F401


TEST_DB_URL = settings.TEST_DATABASE_URL or os.getenv("TEST_DATABASE_URL")
if not TEST_DB_URL:
    raise RuntimeError("TEST_DATABASE_URL is not set. Add it to .env or env var for tests.")

engine = make_engine(TEST_DB_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """테스트 전체 시작/종료 때만 스키마 생성/삭제"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_state():
    """각 테스트마다 row / 요청 한도 카운터 / 캐시 초기화 (테이블은 유지)"""
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    rate_limiter.reset()
    cache.clear()
    yield


@pytest.fixture()
def db_session():
    """테스트에서 직접 DB 조작 / 서비스 호출할 때 쓰는 세션"""
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def session_factory():
    return TestingSessionLocal


@pytest.fixture()
def client():
    fastapi_app.dependency_overrides[get_db] = override_get_db
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()
