"""
Shared fixtures: an isolated in-memory database and an AuthService wired to it.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from fitness_platform.fitness_platform.auth_service.config import Settings
from fitness_platform.fitness_platform.auth_service.db import Base, create_db_engine, init_db
from fitness_platform.fitness_platform.auth_service.dependencies import get_auth_service
from fitness_platform.fitness_platform.auth_service.main import app
from fitness_platform.fitness_platform.auth_service.service import AuthService

TEST_SECRET = "test-secret-key-0123456789abcdef-0123456789"
VALID_PASSWORD = "Valid1Pass!"


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        JWT_SECRET=TEST_SECRET,
        DATABASE_URL="sqlite://",
        PASSWORD_HASH_ROUNDS=1000,
        COOKIE_SECURE=False,
    )


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def auth_service(test_settings, session_factory):
    return AuthService(config=test_settings, session_factory=session_factory)


@pytest.fixture
def client(auth_service):
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    c = TestClient(app, raise_server_exceptions=False)
    yield c
    app.dependency_overrides.clear()
