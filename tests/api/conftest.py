"""API test fixtures - TestClient wired to real in-memory auth services."""

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from authkit.api.errors import register_error_handlers
from authkit.api.middleware import AuthMiddleware
from authkit.api.routes import create_auth_router
from authkit.types import AccountUpdate, LoginRequest

API_PASSWORD = "correct-horse-battery"


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(service, guard, config):
    """FastAPI app with auth middleware, error handlers, and auth routes."""
    app = FastAPI()
    app.add_middleware(AuthMiddleware, guard=guard)
    register_error_handlers(app)
    app.include_router(create_auth_router(service, admin_role=config.admin_role))

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


@pytest.fixture
def client(app):
    """Unauthenticated test client."""
    return TestClient(app, raise_server_exceptions=False)


# =============================================================================
# AUTH FIXTURES
# =============================================================================


@pytest.fixture
def login(service):
    """Log in and return the bearer header for the session."""

    def _login(email: str, password: str = API_PASSWORD) -> dict[str, str]:
        result = service.login(LoginRequest(email=email, password=password))
        return {"Authorization": f"Bearer {result.access_token}"}

    return _login


@pytest.fixture
def user_headers(register_account, login):
    account = register_account(email="user@example.com", password=API_PASSWORD)
    return login(account.email)


@pytest.fixture
def admin_headers(register_account, store, login):
    account = register_account(email="admin@example.com", password=API_PASSWORD)
    store.update_account(account.id, AccountUpdate(role="admin"))
    return login(account.email)
