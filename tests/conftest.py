import os

os.environ["ENV"] = "test"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.auth_token import static_token_provider  # noqa: E402
from app.db import Base, SessionLocal, engine, get_db  # noqa: E402
from app.main import create_app  # noqa: E402
from app.routers.utils.dependencies import (  # noqa: E402
    get_mail_gateway,
    get_token_provider,
)
from tests.fixtures.gateway_fixtures import *  # noqa: E402,F401,F403
from tests.fixtures.outreach_fixtures import *  # noqa: E402,F401,F403


@pytest.fixture(scope="function")
def db():
    """Fresh schema and session per test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db, fake_gateway):
    """Client with db and gateway overrides."""
    app = create_app(testing=True)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mail_gateway] = lambda: fake_gateway
    app.dependency_overrides[get_token_provider] = lambda: static_token_provider(
        "test-token"
    )
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
