"""Admin CRUD for articles. Published articles are kept indexed for chat."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from app.api.deps import get_owner_id
from app.core import indexer
from app.core.logging import get_logger
from app.core.schemas_content import ArticleCreateRequest, ArticleUpdateRequest
from app.db import articles as articles_db
from app.db.content_rows import SlugConflictError

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/articles")


@router.get("")
async def list_articles(owner_id: str = Depends(get_owner_id)) -> list[dict[str, Any]]:
    try:
        return articles_db.list_articles(owner_id, published_only=False)
    except Exception as e:
        logger.error(f"Error listing articles: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("", status_code=201)
async def create_article(
    body: ArticleCreateRequest,
    owner_id: str = Depends(get_owner_id),
) -> JSONResponse:
    try:
        data = body.model_dump(exclude={"slug"})
        data["summary"] = data.get("summary") or None
        article = articles_db.create_article(owner_id, data, slug=body.slug)
        if article.get("status") == "published":
            indexer.index_article(owner_id, article)
        return JSONResponse(article, status_code=201)

    except SlugConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error creating article: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.put("")
async def update_article(
    body: ArticleUpdateRequest,
    owner_id: str = Depends(get_owner_id),
) -> dict[str, Any]:
    try:
        article = articles_db.update_article(owner_id, body.id, body.updates())
        if not article:
            raise HTTPException(status_code=404, detail="Article not found")

        if article.get("status") == "published":
            indexer.index_article(owner_id, article)
        else:
            indexer.delete_source_chunks(owner_id, "article", article["id"])
        return article

    except HTTPException:
        raise
    except SlugConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error updating article {body.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.delete("")
async def delete_article(
    id: str | None = Query(None, description="Article id"),
    owner_id: str = Depends(get_owner_id),
) -> dict[str, bool]:
    if not id:
        raise HTTPException(status_code=400, detail="Article ID is required")

    try:
        articles_db.delete_article(owner_id, id)
        indexer.delete_source_chunks(owner_id, "article", id)
        return {"success": True}

    except Exception as e:
        logger.error(f"Error deleting article {id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e
