# tests/conftest.py
import pytest

from authz.database import models  # noqa: F401  (모든 테이블을 Base.metadata에 등록)
from authz.database.database import Base, build_engine, build_session_factory
from authz.database.db_init import initialize_db


@pytest.fixture
def engine(tmp_path):
    """테스트마다 임시 SQLite 파일 DB를 생성합니다. (세션/스레드마다 별도 연결)"""
    engine = build_engine(f"sqlite:///{tmp_path / 'authz_test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded_db(engine, session_factory):
    """카탈로그 역할과 초기 관리자(admin/admin)가 들어 있는 DB."""
    initialize_db(engine=engine, session_factory=session_factory)
    return session_factory
