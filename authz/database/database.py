from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from authz.config import get_settings


def build_engine(url: str = None):
    """
    SQLAlchemy 엔진을 생성합니다.
    connect_args는 SQLite에서만 필요합니다. (thread-safe 설정)
    SQLite는 연결마다 외래 키 검사를 켜야 ON DELETE 규칙이 동작합니다.
    """
    url = url or get_settings().database_url
    is_sqlite = url.startswith("sqlite")
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    engine = create_engine(url, connect_args=connect_args)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def build_session_factory(engine):
    # autocommit=False, autoflush=False: 명시적으로 commit을 호출해야 DB에 반영됩니다.
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


engine = build_engine()
SessionLocal = build_session_factory(engine)

# 모든 모델 클래스가 상속받을 Base 클래스
Base = declarative_base()
