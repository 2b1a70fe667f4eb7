"""FastAPI application entry point."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import router as api_router
from app.api.pages import router as pages_router
from app.core.auth_middleware import AdminSessionMiddleware
from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="Portfolio Twin",
    description="Personal portfolio with a retrieval-grounded AI chat twin",
    version="0.1.0",
)

app.add_middleware(AdminSessionMiddleware)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render every HTTP error as ``{"error": detail}``, keeping headers like Retry-After."""
    return JSONResponse(
        content={"error": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    logger.info(f"Rejected invalid request to {request.url.path}: {message}")
    return JSONResponse(content={"error": message}, status_code=400)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Liveness probe; never touches Supabase or OpenAI."""
    return JSONResponse(
        content={"status": "ok", "service": "portfolio-twin", "env": get_settings().PORTFOLIO_ENV},
        status_code=200,
    )


# Include API router
app.include_router(api_router, prefix="/api")

# Server-rendered pages
app.include_router(pages_router)
