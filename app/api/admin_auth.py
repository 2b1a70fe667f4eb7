"""Admin login / logout endpoints."""

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from app.core.admin_session import (
    CSRF_COOKIE,
    SESSION_COOKIE,
    create_session,
    session_cookie_options,
    verify_password,
)
from app.core.logging import get_logger
from app.core.rate_limiter import get_client_ip, login_limiter
from app.core.schemas_content import LoginRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/admin")


@router.post("/login")
async def login(body: LoginRequest, request: Request) -> JSONResponse:
    """
    Exchange the admin password for a session cookie + CSRF cookie.

    Attempts are limited per client IP: five free attempts, then exponential
    backoff (1, 2, 4, ... minutes between attempts), reset after 15 quiet
    minutes or a successful login.
    """
    client_ip = get_client_ip(request)
    decision = login_limiter.check(f"login:{client_ip}")
    if not decision.allowed:
        raise HTTPException(
            status_code=429,
            detail="Too many login attempts. Please try again later.",
            headers={"Retry-After": str(decision.retry_after)},
        )

    if not body.password:
        raise HTTPException(status_code=400, detail="Password is required")

    if not verify_password(body.password):
        logger.warning(f"Failed admin login from {client_ip}")
        raise HTTPException(status_code=401, detail="Invalid password")

    try:
        session_value, csrf_token = create_session()
    except RuntimeError as e:
        logger.error(f"Cannot create admin session: {e}")
        raise HTTPException(status_code=500, detail="Admin sessions are not configured") from e

    login_limiter.reset(f"login:{client_ip}")
    logger.info(f"Admin login from {client_ip}")

    response = JSONResponse({"success": True})
    options = session_cookie_options()
    response.set_cookie(SESSION_COOKIE, session_value, **options)
    response.set_cookie(CSRF_COOKIE, csrf_token, **{**options, "httponly": False})
    return response


@router.post("/logout")
async def logout() -> JSONResponse:
    response = JSONResponse({"success": True})
    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")
    return response
