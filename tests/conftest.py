import os

# 설정 객체가 import 시점에 생성되므로 앱 import 전에 테스트용 환경 변수 지정
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-access-secret")
os.environ.setdefault("REFRESH_SECRET_KEY", "test-refresh-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("EMAIL_BACKEND", "console")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from authcore.main import app as fastapi_app
from authcore.core.config import settings
from authcore.core.deps import get_db, get_notifier
from authcore.core.security import CredentialHasher, TokenSigner
from authcore.db.base import Base
from authcore.repositories.accounts import AccountRepository
from authcore.services.auth import AuthService

# ✅ 모델 import (Base.metadata에 테이블 등록)
import authcore.models.account  # noqa: F401

from tests.helpers import FakeNotifier, FrozenClock


TEST_DB_URL = settings.TEST_DATABASE_URL or "sqlite+pysqlite:///:memory:"

if TEST_DB_URL.startswith("sqlite"):
    # in-memory DB를 스레드풀(동기 라우트)과 테스트 코드가 같은 커넥션으로 공유
    engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool)
else:
    engine = create_engine(TEST_DB_URL, pool_pre_ping=True)
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
def clean_tables():
    """각 테스트마다 데이터 초기화 (테이블은 유지, row만 삭제)"""
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def db():
    """테스트에서 직접 DB 조작할 때 쓰는 세션"""
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def notifier():
    return FakeNotifier()


@pytest.fixture()
def clock():
    return FrozenClock()


@pytest.fixture()
def repo(db):
    return AccountRepository(db)


@pytest.fixture()
def signer():
    return TokenSigner(settings)


@pytest.fixture()
def service(repo, signer, notifier, clock):
    return AuthService(
        accounts=repo,
        hasher=CredentialHasher(rounds=4),
        signer=signer,
        notifier=notifier,
        clock=clock,
    )


@pytest.fixture()
def client(notifier):
    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()
