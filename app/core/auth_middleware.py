"""Admin request gating and response security headers."""

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.core.admin_session import (
    CSRF_COOKIE,
    CSRF_HEADER,
    SESSION_COOKIE,
    validate_session_cookie_value,
)
from app.core.logging import get_logger

logger = get_logger(__name__)

ADMIN_PAGE_PREFIX = "/admin"
ADMIN_API_PREFIX = "/api/admin"
ADMIN_LOGIN_PATH = "/api/admin/login"
LOGIN_PAGE_PATH = "/login"

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def requires_admin_session(path: str) -> bool:
    is_admin_page = path.startswith(ADMIN_PAGE_PREFIX)
    is_admin_api = path.startswith(ADMIN_API_PREFIX)
    return is_admin_page or (is_admin_api and path != ADMIN_LOGIN_PATH)


def requires_csrf(path: str, method: str) -> bool:
    return (
        path.startswith(ADMIN_API_PREFIX)
        and path != ADMIN_LOGIN_PATH
        and method.upper() not in SAFE_METHODS
    )


def csrf_matches(request: Request) -> bool:
    header_token = request.headers.get(CSRF_HEADER)
    cookie_token = request.cookies.get(CSRF_COOKIE)
    return bool(header_token and cookie_token and header_token == cookie_token)


def is_admin_request(request: Request) -> bool:
    return validate_session_cookie_value(request.cookies.get(SESSION_COOKIE))


class AdminSessionMiddleware(BaseHTTPMiddleware):
    """
    Route-level gate for the admin surface.

    - ``/admin*`` pages and ``/api/admin*`` endpoints (except login) need a
      valid session cookie: API calls get 401, pages redirect to ``/login``.
    - Mutating admin API calls also need ``X-CSRF-Token`` to equal the CSRF cookie.
    - Every response carries the standard security headers.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path

        if requires_admin_session(path):
            if not is_admin_request(request):
                if path.startswith("/api/"):
                    logger.info(f"Rejected unauthenticated admin call: {request.method} {path}")
                    response: Response = JSONResponse({"error": "Unauthorized"}, status_code=401)
                else:
                    response = RedirectResponse(LOGIN_PAGE_PATH, status_code=303)
                return _with_security_headers(response)

            if requires_csrf(path, request.method) and not csrf_matches(request):
                logger.warning(f"CSRF mismatch on {request.method} {path}")
                return _with_security_headers(
                    JSONResponse({"error": "Invalid CSRF token"}, status_code=403)
                )

        response = await call_next(request)
        return _with_security_headers(response)


def _with_security_headers(response: Response) -> Response:
    for name, value in SECURITY_HEADERS.items():
        response.headers[name] = value
    return response
