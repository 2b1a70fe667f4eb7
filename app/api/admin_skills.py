"""Admin CRUD for skills. Every skill is indexed so chat can cite it."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from app.api.deps import get_owner_id
from app.core import indexer
from app.core.logging import get_logger
from app.core.schemas_content import SkillCreateRequest, SkillUpdateRequest
from app.db import skills as skills_db

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/skills")


@router.get("")
async def list_skills(owner_id: str = Depends(get_owner_id)) -> list[dict[str, Any]]:
    try:
        return skills_db.list_skills(owner_id)
    except Exception as e:
        logger.error(f"Error listing skills: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("", status_code=201)
async def create_skill(
    body: SkillCreateRequest,
    owner_id: str = Depends(get_owner_id),
) -> JSONResponse:
    try:
        data = body.model_dump()
        data["icon"] = data.get("icon") or None
        skill = skills_db.create_skill(owner_id, data)
        indexer.index_skill(owner_id, skill)
        return JSONResponse(skill, status_code=201)

    except Exception as e:
        logger.error(f"Error creating skill: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.put("")
async def update_skill(
    body: SkillUpdateRequest,
    owner_id: str = Depends(get_owner_id),
) -> dict[str, Any]:
    try:
        skill = skills_db.update_skill(owner_id, body.id, body.updates())
        if not skill:
            raise HTTPException(status_code=404, detail="Skill not found")

        indexer.index_skill(owner_id, skill)
        return skill

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating skill {body.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.delete("")
async def delete_skill(
    id: str | None = Query(None, description="Skill id"),
    owner_id: str = Depends(get_owner_id),
) -> dict[str, bool]:
    if not id:
        raise HTTPException(status_code=400, detail="Skill ID is required")

    try:
        skills_db.delete_skill(owner_id, id)
        indexer.delete_source_chunks(owner_id, "skill", id)
        return {"success": True}

    except Exception as e:
        logger.error(f"Error deleting skill {id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e
