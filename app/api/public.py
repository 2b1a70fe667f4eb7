"""Public read-only API: projects, skills and the resume download."""

from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse

from app.api.deps import get_owner_id
from app.core.config import get_settings
from app.core.logging import get_logger
from app.db import projects as projects_db
from app.db import skills as skills_db

logger = get_logger(__name__)

router = APIRouter()


@router.get("/projects")
async def get_projects(
    featured: str | None = Query(None, description="'true' to list featured projects only"),
    slug: str | None = Query(None, description="Return a single project by slug"),
    owner_id: str = Depends(get_owner_id),
) -> Any:
    """Published projects in display order, or one project when ``slug`` is given."""
    try:
        if slug:
            project = projects_db.get_project_by_slug(owner_id, slug)
            if not project:
                raise HTTPException(status_code=404, detail="Project not found")
            return project

        return projects_db.list_projects(
            owner_id,
            published_only=True,
            featured=True if featured == "true" else None,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error listing public projects: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


def group_skills(skills: list[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    grouped: dict[str, list[dict[str, Any]]] = {}
    for skill in skills:
        grouped.setdefault(skill.get("category") or "other", []).append(skill)
    return grouped


@router.get("/skills")
async def get_skills(owner_id: str = Depends(get_owner_id)) -> dict[str, Any]:
    try:
        skills = skills_db.list_skills(owner_id)
        return {"skills": skills, "grouped": group_skills(skills)}
    except Exception as e:
        logger.error(f"Error listing public skills: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/resume")
async def download_resume() -> FileResponse:
    resume_path = Path(get_settings().RESUME_PATH)
    if not resume_path.is_file():
        logger.warning(f"Resume file not found at {resume_path}")
        raise HTTPException(status_code=404, detail="Resume not found")

    return FileResponse(
        resume_path,
        media_type="application/pdf",
        filename=resume_path.name,
        headers={"Cache-Control": "public, max-age=3600"},
    )
