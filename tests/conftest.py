"""Pytest configuration shared across the suite."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from api import create_app
from models.db_storage import DBStorage
from services import build_session_services
from utils.timeutils import utcnow

TEST_CONFIG = {
    "JWT_ISSUER": "test-issuer",
    "JWT_AUDIENCE": "test-audience",
    "JWT_SECRET": "test-access-secret-0123456789abcdef",
    "JWT_REFRESH_SECRET": "test-refresh-secret-0123456789abcdef",
    "JWT_ALGORITHM": "HS256",
    "JWT_EXPIRATION_MINUTES": 15,
    "REFRESH_TOKEN_EXPIRATION_DAYS": 7,
    "ALLOWED_ROLES": ("Admin", "Manager", "User"),
    "DEFAULT_ROLE": "User",
}

USER_EMAIL = "alice@example.com"
USER_PASSWORD = "wonderland-42"


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or utcnow()

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'auth-sessions.db'}"


@pytest.fixture
def storage(db_url):
    storage = DBStorage(db_url)
    storage.reload()
    yield storage
    storage.dispose()


@pytest.fixture
def services(storage, clock):
    return build_session_services(TEST_CONFIG, storage, clock=clock)


@pytest.fixture
def user(services):
    return services.directory.create_account(USER_EMAIL, USER_PASSWORD, "Alice", "Liddell")


@pytest.fixture
def app(tmp_path, clock):
    app = create_app(
        "testing",
        overrides={
            "DATABASE_URL": f"sqlite:///{tmp_path / 'api.db'}",
            "JWT_EXPIRATION_MINUTES": TEST_CONFIG["JWT_EXPIRATION_MINUTES"],
            "REFRESH_TOKEN_EXPIRATION_DAYS": TEST_CONFIG["REFRESH_TOKEN_EXPIRATION_DAYS"],
        },
        clock=clock,
    )
    yield app
    app.extensions["auth_sessions"].storage.dispose()


@pytest.fixture
def client(app):
    return app.test_client()
