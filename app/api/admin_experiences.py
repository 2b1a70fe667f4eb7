"""Admin CRUD for work experience.

The ``experiences`` table ships in a later migration than the rest of the
schema, so every handler answers 501 with a setup hint while it is missing.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from app.api.deps import get_owner_id
from app.core import indexer
from app.core.logging import get_logger
from app.core.schemas_content import ExperienceCreateRequest, ExperienceUpdateRequest
from app.db import experiences as experiences_db
from app.db.errors import is_missing_table

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/experiences")


def _raise_for(e: Exception, action: str) -> None:
    if is_missing_table(e):
        logger.warning(f"Experiences table missing while trying to {action}")
        raise HTTPException(status_code=501, detail=experiences_db.MIGRATION_HINT) from e
    logger.error(f"Error trying to {action}: {e}", exc_info=True)
    raise HTTPException(status_code=500, detail="Internal server error") from e


def _sync_index(owner_id: str, experience: dict[str, Any]) -> None:
    if experience.get("status") == "published":
        indexer.index_experience(owner_id, experience)
    else:
        indexer.delete_source_chunks(owner_id, "experience", experience["id"])


@router.get("")
async def list_experiences(owner_id: str = Depends(get_owner_id)) -> list[dict[str, Any]]:
    try:
        return experiences_db.list_experiences(owner_id, published_only=False)
    except Exception as e:
        _raise_for(e, "list experiences")


@router.post("", status_code=201)
async def create_experience(
    body: ExperienceCreateRequest,
    owner_id: str = Depends(get_owner_id),
) -> JSONResponse:
    try:
        data = body.model_dump()
        data = {k: (v or None) if isinstance(v, str) else v for k, v in data.items()}
        data["status"] = body.status
        experience = experiences_db.create_experience(owner_id, data)
        if experience.get("status") == "published":
            indexer.index_experience(owner_id, experience)
        return JSONResponse(experience, status_code=201)

    except Exception as e:
        _raise_for(e, "create experience")


@router.put("")
async def update_experience(
    body: ExperienceUpdateRequest,
    owner_id: str = Depends(get_owner_id),
) -> dict[str, Any]:
    try:
        experience = experiences_db.update_experience(owner_id, body.id, body.updates())
        if not experience:
            raise HTTPException(status_code=404, detail="Experience not found")

        _sync_index(owner_id, experience)
        return experience

    except HTTPException:
        raise
    except Exception as e:
        _raise_for(e, f"update experience {body.id}")


@router.delete("")
async def delete_experience(
    id: str | None = Query(None, description="Experience id"),
    owner_id: str = Depends(get_owner_id),
) -> dict[str, bool]:
    if not id:
        raise HTTPException(status_code=400, detail="Experience ID is required")

    try:
        experiences_db.delete_experience(owner_id, id)
        indexer.delete_source_chunks(owner_id, "experience", id)
        return {"success": True}

    except Exception as e:
        _raise_for(e, f"delete experience {id}")
