"""API router for /api endpoints."""

from fastapi import APIRouter

from app.api import (
    admin_analytics,
    admin_articles,
    admin_auth,
    admin_experiences,
    admin_knowledge,
    admin_projects,
    admin_rebuild,
    admin_resume,
    admin_skills,
    admin_stories,
    chat,
    jd_match,
    public,
    track,
)

router = APIRouter()

# Public visitor routes
router.include_router(public.router, tags=["public"])
router.include_router(chat.router, tags=["chat"])
router.include_router(jd_match.router, tags=["jd-match"])
router.include_router(track.router, tags=["track"])

# Admin session
router.include_router(admin_auth.router, tags=["admin"])

# Admin content management (re-indexes chunks on write)
router.include_router(admin_projects.router, tags=["admin"])
router.include_router(admin_articles.router, tags=["admin"])
router.include_router(admin_skills.router, tags=["admin"])
router.include_router(admin_stories.router, tags=["admin"])
router.include_router(admin_experiences.router, tags=["admin"])

# Admin knowledge base, resume and maintenance
router.include_router(admin_knowledge.router, tags=["admin"])
router.include_router(admin_resume.router, tags=["admin"])
router.include_router(admin_rebuild.router, tags=["admin"])
router.include_router(admin_analytics.router, tags=["admin"])
