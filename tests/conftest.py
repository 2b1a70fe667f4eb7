"""Pytest configuration and fixtures."""

import os

import pytest

TEST_ENV = {
    "SUPABASE_URL": "https://test.supabase.co",
    "SUPABASE_SERVICE_ROLE_KEY": "test-key",
    "OPENAI_API_KEY": "test-openai-key",
    "PORTFOLIO_ENV": "test",
    "ADMIN_PASSWORD": "test-admin-password",
    "ADMIN_SESSION_SECRET": "test-session-secret",
    "OWNER_NAME": "Test Owner",
    "PUBLIC_SITE_URL": "https://portfolio.test",
}

# Settings are cached on first use, so the environment must be in place
# before any app module is imported by a test module.
os.environ.update(TEST_ENV)


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ.update(TEST_ENV)


@pytest.fixture(autouse=True)
def reset_rate_limiters():
    """Rate limiter buckets are process-global; start every test with fresh ones."""
    from app.core.rate_limiter import chat_rate_limiter, login_limiter

    chat_rate_limiter._buckets.clear()
    login_limiter._attempts.clear()
    yield


@pytest.fixture
def client():
    """Anonymous test client."""
    from fastapi.testclient import TestClient

    from app.main import app

    return TestClient(app)


@pytest.fixture
def admin_client():
    """Test client carrying a valid admin session and a matching CSRF cookie + header."""
    from fastapi.testclient import TestClient

    from app.core.admin_session import (
        CSRF_COOKIE,
        CSRF_HEADER,
        SESSION_COOKIE,
        create_session_cookie_value,
    )
    from app.main import app

    test_client = TestClient(app, headers={CSRF_HEADER: "test-csrf-token"})
    test_client.cookies.set(SESSION_COOKIE, create_session_cookie_value())
    test_client.cookies.set(CSRF_COOKIE, "test-csrf-token")
    return test_client
