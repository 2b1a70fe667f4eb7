"""Server-rendered portfolio pages."""

from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.api.deps import get_owner_id
from app.api.public import group_skills
from app.core.config import get_settings
from app.core.logging import get_logger
from app.db import articles as articles_db
from app.db import experiences as experiences_db
from app.db import projects as projects_db
from app.db import skills as skills_db
from app.db import stories as stories_db
from app.db.errors import is_missing_table

logger = get_logger(__name__)

router = APIRouter(include_in_schema=False)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

HOME_ARTICLE_COUNT = 3


def render(request: Request, name: str, status_code: int = 200, **context: Any) -> HTMLResponse:
    context.setdefault("owner_name", get_settings().OWNER_NAME)
    return templates.TemplateResponse(request, name, context, status_code=status_code)


def not_found(request: Request, what: str) -> HTMLResponse:
    return render(request, "not_found.html", status_code=404, what=what)


def _published_experiences(owner_id: str) -> list[dict[str, Any]]:
    try:
        return experiences_db.list_experiences(owner_id, published_only=True)
    except Exception as e:
        if not is_missing_table(e):
            raise
        logger.warning("experiences table missing, rendering empty experience page")
        return []


@router.get("/", response_class=HTMLResponse)
async def home(request: Request, owner_id: str = Depends(get_owner_id)) -> HTMLResponse:
    return render(
        request,
        "home.html",
        featured_projects=projects_db.list_projects(owner_id, published_only=True, featured=True),
        primary_skills=[s for s in skills_db.list_skills(owner_id) if s.get("is_primary")],
        recent_articles=articles_db.list_articles(owner_id, published_only=True)[:HOME_ARTICLE_COUNT],
    )


@router.get("/projects", response_class=HTMLResponse)
async def projects_page(request: Request, owner_id: str = Depends(get_owner_id)) -> HTMLResponse:
    return render(request, "projects.html", projects=projects_db.list_projects(owner_id))


@router.get("/projects/{slug}", response_class=HTMLResponse)
async def project_detail(
    request: Request, slug: str, owner_id: str = Depends(get_owner_id)
) -> HTMLResponse:
    project = projects_db.get_project_by_slug(owner_id, slug)
    if not project:
        return not_found(request, "Project")
    return render(request, "project_detail.html", project=project)


@router.get("/articles", response_class=HTMLResponse)
async def articles_page(request: Request, owner_id: str = Depends(get_owner_id)) -> HTMLResponse:
    return render(request, "articles.html", articles=articles_db.list_articles(owner_id))


@router.get("/articles/{slug}", response_class=HTMLResponse)
async def article_detail(
    request: Request, slug: str, owner_id: str = Depends(get_owner_id)
) -> HTMLResponse:
    article = articles_db.get_article_by_slug(owner_id, slug)
    if not article:
        return not_found(request, "Article")
    return render(request, "article_detail.html", article=article)


@router.get("/skills", response_class=HTMLResponse)
async def skills_page(request: Request, owner_id: str = Depends(get_owner_id)) -> HTMLResponse:
    return render(request, "skills.html", grouped=group_skills(skills_db.list_skills(owner_id)))


@router.get("/experience", response_class=HTMLResponse)
async def experience_page(request: Request, owner_id: str = Depends(get_owner_id)) -> HTMLResponse:
    return render(request, "experience.html", experiences=_published_experiences(owner_id))


@router.get("/stories", response_class=HTMLResponse)
async def stories_page(request: Request, owner_id: str = Depends(get_owner_id)) -> HTMLResponse:
    return render(request, "stories.html", stories=stories_db.list_stories(owner_id, public_only=True))


@router.get("/chat", response_class=HTMLResponse)
async def chat_page(request: Request) -> HTMLResponse:
    return render(request, "chat.html")


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request) -> HTMLResponse:
    return render(request, "login.html")


@router.get("/admin", response_class=HTMLResponse)
async def admin_page(request: Request) -> HTMLResponse:
    """Admin dashboard shell; data is loaded client-side from ``/api/admin/*``."""
    return render(request, "admin.html")


@router.get("/jd-match", response_class=HTMLResponse)
async def jd_match_page(request: Request) -> HTMLResponse:
    return render(request, "jd_match.html")
