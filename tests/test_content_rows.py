"""Tests for slugged row helpers and Postgres error classification."""

from unittest.mock import MagicMock, patch

import pytest
from postgrest.exceptions import APIError

from app.db.content_rows import (
    SlugConflictError,
    find_id_by_slug,
    insert_with_auto_slug,
    resolve_update_slug,
)
from app.db.errors import is_missing_column, is_missing_table, is_unique_violation, maybe_single


def _api_error(code: str) -> APIError:
    return APIError({"message": "boom", "code": code, "hint": None, "details": None})


def _mock_supabase(data=None):
    mock_sb = MagicMock()
    chain = MagicMock()
    mock_sb.table.return_value = chain
    chain.select.return_value = chain
    chain.eq.return_value = chain
    chain.maybe_single.return_value = chain
    chain.execute.return_value = MagicMock(data=data)
    return mock_sb, chain


def test_error_classification():
    assert is_unique_violation(_api_error("23505"))
    assert is_missing_table(_api_error("42P01"))
    assert is_missing_column(_api_error("42703"))
    assert is_missing_column(_api_error("PGRST204"))
    assert not is_unique_violation(ValueError("plain"))


def test_maybe_single_returns_none_on_no_rows():
    query = MagicMock()
    query.maybe_single.return_value.execute.side_effect = _api_error("204")
    assert maybe_single(query) is None


def test_maybe_single_reraises_other_errors():
    query = MagicMock()
    query.maybe_single.return_value.execute.side_effect = _api_error("42P01")
    with pytest.raises(APIError):
        maybe_single(query)


def test_find_id_by_slug():
    mock_sb, chain = _mock_supabase({"id": "row-1"})
    with patch("app.db.content_rows.get_supabase", return_value=mock_sb):
        assert find_id_by_slug("projects", "owner", "my-slug") == "row-1"

    mock_sb.table.assert_called_with("projects")
    chain.eq.assert_any_call("slug", "my-slug")
    chain.eq.assert_any_call("owner_id", "owner")


def test_insert_derives_slug_from_title():
    insert = MagicMock(side_effect=lambda data: data)

    row = insert_with_auto_slug("projects", "owner", {"title": "My App"}, "My App", None, "project", insert=insert)

    assert row["slug"] == "my-app"
    assert row["owner_id"] == "owner"


def test_insert_uses_trimmed_provided_slug():
    insert = MagicMock(side_effect=lambda data: data)
    row = insert_with_auto_slug("projects", "owner", {}, "My App", "  custom  ", "project", insert=insert)
    assert row["slug"] == "custom"


def test_insert_falls_back_to_prefix_when_title_has_no_slug():
    insert = MagicMock(side_effect=lambda data: data)
    row = insert_with_auto_slug("articles", "owner", {}, "!!!", None, "article", insert=insert)
    assert row["slug"].startswith("article-")


def test_insert_retries_auto_slug_on_conflict():
    insert = MagicMock(side_effect=[_api_error("23505"), {"id": "new", "slug": "my-app-3"}])
    taken = {"my-app-2": "other"}

    with patch("app.db.content_rows.find_id_by_slug", side_effect=lambda t, o, s: taken.get(s)):
        row = insert_with_auto_slug("projects", "owner", {}, "My App", None, "project", insert=insert)

    assert row["id"] == "new"
    assert insert.call_args_list[1].args[0]["slug"] == "my-app-3"


def test_insert_provided_slug_conflict_raises():
    insert = MagicMock(side_effect=_api_error("23505"))

    with pytest.raises(SlugConflictError) as exc_info:
        insert_with_auto_slug("projects", "owner", {}, "My App", "taken", "project", insert=insert)

    assert exc_info.value.slug == "taken"
    assert str(exc_info.value) == "Slug already exists"
    assert insert.call_count == 1


def test_insert_other_errors_propagate():
    insert = MagicMock(side_effect=_api_error("42P01"))
    with pytest.raises(APIError):
        insert_with_auto_slug("projects", "owner", {}, "My App", None, "project", insert=insert)


def test_resolve_update_slug_drops_blank():
    updates = {"title": "x", "slug": "   "}
    resolve_update_slug("projects", "owner", "row-1", updates)
    assert "slug" not in updates


def test_resolve_update_slug_allows_own_slug():
    updates = {"slug": " mine "}
    with patch("app.db.content_rows.find_id_by_slug", return_value="row-1"):
        resolve_update_slug("projects", "owner", "row-1", updates)
    assert updates["slug"] == "mine"


def test_resolve_update_slug_conflict():
    with patch("app.db.content_rows.find_id_by_slug", return_value="row-2"):
        with pytest.raises(SlugConflictError):
            resolve_update_slug("projects", "owner", "row-1", {"slug": "theirs"})


def test_resolve_update_slug_absent_is_noop():
    updates = {"title": "x"}
    with patch("app.db.content_rows.find_id_by_slug") as mock_find:
        resolve_update_slug("projects", "owner", "row-1", updates)
    mock_find.assert_not_called()
    assert updates == {"title": "x"}
