"""Admin CRUD for projects. Published projects are kept indexed for chat."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from app.api.deps import get_owner_id
from app.core import indexer
from app.core.logging import get_logger
from app.core.schemas_content import ProjectCreateRequest, ProjectUpdateRequest
from app.db import projects as projects_db
from app.db.content_rows import SlugConflictError

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/projects")


def _sync_index(owner_id: str, project: dict[str, Any]) -> None:
    if project.get("status") == "published":
        indexer.index_project(owner_id, project)
    else:
        indexer.delete_source_chunks(owner_id, "project", project["id"])


@router.get("")
async def list_projects(owner_id: str = Depends(get_owner_id)) -> list[dict[str, Any]]:
    """List every non-deleted project, drafts included."""
    try:
        return projects_db.list_projects(owner_id, published_only=False)
    except Exception as e:
        logger.error(f"Error listing projects: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("", status_code=201)
async def create_project(
    body: ProjectCreateRequest,
    owner_id: str = Depends(get_owner_id),
) -> JSONResponse:
    try:
        project = projects_db.create_project(owner_id, body.row(), slug=body.slug)
        if project.get("status") == "published":
            indexer.index_project(owner_id, project)
        return JSONResponse(project, status_code=201)

    except SlugConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error creating project: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.put("")
async def update_project(
    body: ProjectUpdateRequest,
    owner_id: str = Depends(get_owner_id),
) -> dict[str, Any]:
    try:
        project = projects_db.update_project(owner_id, body.id, body.updates())
        if not project:
            raise HTTPException(status_code=404, detail="Project not found")

        _sync_index(owner_id, project)
        return project

    except HTTPException:
        raise
    except SlugConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error updating project {body.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.delete("")
async def delete_project(
    id: str | None = Query(None, description="Project id"),
    owner_id: str = Depends(get_owner_id),
) -> dict[str, bool]:
    """Soft-delete a project and drop its chunks so chat stops citing it."""
    if not id:
        raise HTTPException(status_code=400, detail="Project ID is required")

    try:
        projects_db.soft_delete_project(owner_id, id)
        indexer.delete_source_chunks(owner_id, "project", id)
        return {"success": True}

    except Exception as e:
        logger.error(f"Error deleting project {id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e
