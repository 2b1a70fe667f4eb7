"""Tests for the cached Supabase client."""

from unittest.mock import MagicMock, patch

import pytest

from app.db import supabase_client


@pytest.fixture(autouse=True)
def clear_client_cache():
    supabase_client.get_supabase.cache_clear()
    yield
    supabase_client.get_supabase.cache_clear()


def _settings(url="https://example.supabase.co", key="service-key"):
    settings = MagicMock()
    settings.SUPABASE_URL = url
    settings.SUPABASE_SERVICE_ROLE_KEY = key
    return settings


def test_get_supabase_builds_client_once():
    with (
        patch("app.db.supabase_client.get_settings", return_value=_settings()),
        patch("app.db.supabase_client.create_client") as mock_create,
    ):
        first = supabase_client.get_supabase()
        second = supabase_client.get_supabase()

    assert first is second
    mock_create.assert_called_once_with("https://example.supabase.co", "service-key")


def test_get_supabase_rejects_blank_credentials():
    with (
        patch("app.db.supabase_client.get_settings", return_value=_settings(key="  ")),
        patch("app.db.supabase_client.create_client") as mock_create,
    ):
        with pytest.raises(RuntimeError, match="must be set"):
            supabase_client.get_supabase()
    mock_create.assert_not_called()


def test_get_supabase_wraps_client_errors():
    with (
        patch("app.db.supabase_client.get_settings", return_value=_settings()),
        patch("app.db.supabase_client.create_client", side_effect=ValueError("bad url")),
    ):
        with pytest.raises(RuntimeError, match="Failed to initialize Supabase client: bad url"):
            supabase_client.get_supabase()
