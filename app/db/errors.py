"""Postgres / PostgREST error code helpers."""

from typing import Any

from postgrest.exceptions import APIError

UNIQUE_VIOLATION = "23505"
UNDEFINED_TABLE = "42P01"
UNDEFINED_COLUMN = "42703"
SCHEMA_CACHE_MISSING_COLUMN = "PGRST204"
NO_ROWS = "PGRST116"


def pg_error_code(exc: BaseException) -> str | None:
    """Return the Postgres/PostgREST error code carried by ``exc``, if any."""
    if isinstance(exc, APIError):
        return exc.code
    code = getattr(exc, "code", None)
    return str(code) if code is not None else None


def is_unique_violation(exc: BaseException) -> bool:
    return pg_error_code(exc) == UNIQUE_VIOLATION


def is_missing_table(exc: BaseException) -> bool:
    return pg_error_code(exc) == UNDEFINED_TABLE


def is_missing_column(exc: BaseException) -> bool:
    return pg_error_code(exc) in (UNDEFINED_COLUMN, SCHEMA_CACHE_MISSING_COLUMN)


def maybe_single(query) -> dict[str, Any] | None:
    """Execute a maybe_single query, returning None if no row found."""
    try:
        result = query.maybe_single().execute()
        return result.data if result else None
    except APIError as e:
        # older postgrest clients raise with code 204 instead of returning None
        if e.code in ("204", NO_ROWS):
            return None
        raise
