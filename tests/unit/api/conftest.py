"""Fixtures for API unit tests: token helpers, app database, AsyncClient."""

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt

from app.config.settings import get_settings
from app.infrastructure.database.session import create_schema, get_engine, get_session_factory
from app.main import app
from app.security.authentication import create_access_token


def make_token(
    role: str = "Driver",
    tenant_id: str = "1",
    user_id: str = "42",
    email: str = "user@example.com",
) -> str:
    settings = get_settings()
    return create_access_token(
        user_id=user_id,
        email=email,
        role=role,
        tenant_id=tenant_id,
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def make_raw_token(claims: dict) -> str:
    """Token with exactly the given claims, e.g. one missing the tenant claim."""
    settings = get_settings()
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def app_db():
    """Schema on the application's own engine; disposed so the next test starts empty."""
    engine = get_engine()
    await create_schema(engine)
    yield get_session_factory()
    await engine.dispose()


@pytest.fixture
async def async_client(app_db):
    """Async HTTP client for the application."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers():
    """Factory: Authorization header for a token with the given claims."""

    def _headers(**claims) -> dict:
        return bearer(make_token(**claims))

    return _headers


@pytest.fixture
def raw_auth_headers():
    """Factory: Authorization header for a token carrying exactly the given claims."""

    def _headers(claims: dict) -> dict:
        return bearer(make_raw_token(claims))

    return _headers
