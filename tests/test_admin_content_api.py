"""Tests for admin CRUD endpoints and their index side effects."""

from unittest.mock import patch

import pytest
from postgrest.exceptions import APIError

from app.db.content_rows import SlugConflictError

OWNER = "00000000-0000-0000-0000-000000000001"


@pytest.fixture
def mock_indexer():
    with (
        patch("app.api.admin_projects.indexer") as projects_indexer,
        patch("app.api.admin_articles.indexer") as articles_indexer,
        patch("app.api.admin_skills.indexer") as skills_indexer,
        patch("app.api.admin_stories.indexer") as stories_indexer,
        patch("app.api.admin_experiences.indexer") as experiences_indexer,
    ):
        yield {
            "project": projects_indexer,
            "article": articles_indexer,
            "skill": skills_indexer,
            "story": stories_indexer,
            "experience": experiences_indexer,
        }


# =============================================================================
# Projects
# =============================================================================


def test_create_published_project_indexes(admin_client, mock_indexer):
    created = {"id": "p1", "title": "Twin", "slug": "twin", "status": "published"}

    with patch("app.api.admin_projects.projects_db") as mock_db:
        mock_db.create_project.return_value = created
        response = admin_client.post(
            "/api/admin/projects",
            json={"title": "Twin", "description": "A chat twin", "status": "published", "repo_url": ""},
        )

    assert response.status_code == 201
    assert response.json() == created
    owner_id, row = mock_db.create_project.call_args.args
    assert owner_id == OWNER
    assert row["repo_url"] is None
    assert "slug" not in row
    assert mock_db.create_project.call_args.kwargs == {"slug": None}
    mock_indexer["project"].index_project.assert_called_once_with(OWNER, created)


def test_create_draft_project_not_indexed(admin_client, mock_indexer):
    with patch("app.api.admin_projects.projects_db") as mock_db:
        mock_db.create_project.return_value = {"id": "p1", "status": "draft"}
        response = admin_client.post("/api/admin/projects", json={"title": "T", "description": "D"})

    assert response.status_code == 201
    mock_indexer["project"].index_project.assert_not_called()


def test_create_project_missing_title_is_400(admin_client, mock_indexer):
    response = admin_client.post("/api/admin/projects", json={"description": "D"})

    assert response.status_code == 400
    assert "title" in response.json()["error"]


def test_create_project_slug_conflict_is_409(admin_client, mock_indexer):
    with patch("app.api.admin_projects.projects_db") as mock_db:
        mock_db.create_project.side_effect = SlugConflictError("taken")
        response = admin_client.post("/api/admin/projects", json={"title": "T", "description": "D", "slug": "taken"})

    assert response.status_code == 409
    assert response.json() == {"error": "Slug already exists"}


def test_update_project_unpublish_removes_chunks(admin_client, mock_indexer):
    with patch("app.api.admin_projects.projects_db") as mock_db:
        mock_db.update_project.return_value = {"id": "p1", "status": "draft"}
        response = admin_client.put("/api/admin/projects", json={"id": "p1", "status": "draft"})

    assert response.status_code == 200
    assert mock_db.update_project.call_args.args == (OWNER, "p1", {"status": "draft"})
    mock_indexer["project"].delete_source_chunks.assert_called_once_with(OWNER, "project", "p1")


def test_update_project_not_found(admin_client, mock_indexer):
    with patch("app.api.admin_projects.projects_db") as mock_db:
        mock_db.update_project.return_value = None
        response = admin_client.put("/api/admin/projects", json={"id": "missing", "title": "x"})

    assert response.status_code == 404
    assert response.json() == {"error": "Project not found"}


def test_delete_project(admin_client, mock_indexer):
    with patch("app.api.admin_projects.projects_db") as mock_db:
        response = admin_client.delete("/api/admin/projects?id=p1")

    assert response.status_code == 200
    assert response.json() == {"success": True}
    mock_db.soft_delete_project.assert_called_once_with(OWNER, "p1")
    mock_indexer["project"].delete_source_chunks.assert_called_once_with(OWNER, "project", "p1")


def test_delete_project_requires_id(admin_client, mock_indexer):
    response = admin_client.delete("/api/admin/projects")

    assert response.status_code == 400
    assert response.json() == {"error": "Project ID is required"}


def test_list_projects_db_error_is_500(admin_client):
    with patch("app.api.admin_projects.projects_db") as mock_db:
        mock_db.list_projects.side_effect = RuntimeError("db down")
        response = admin_client.get("/api/admin/projects")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


# =============================================================================
# Articles
# =============================================================================


def test_create_article_blank_summary_stored_as_null(admin_client, mock_indexer):
    with patch("app.api.admin_articles.articles_db") as mock_db:
        mock_db.create_article.return_value = {"id": "a1", "status": "published"}
        response = admin_client.post(
            "/api/admin/articles",
            json={"title": "RAG", "content": "Body", "summary": "", "status": "published"},
        )

    assert response.status_code == 201
    assert mock_db.create_article.call_args.args[1]["summary"] is None
    mock_indexer["article"].index_article.assert_called_once()


def test_update_article_published_reindexes(admin_client, mock_indexer):
    updated = {"id": "a1", "status": "published", "title": "RAG"}
    with patch("app.api.admin_articles.articles_db") as mock_db:
        mock_db.update_article.return_value = updated
        response = admin_client.put("/api/admin/articles", json={"id": "a1", "content": "New body"})

    assert response.status_code == 200
    mock_indexer["article"].index_article.assert_called_once_with(OWNER, updated)


# =============================================================================
# Skills
# =============================================================================


def test_create_skill_always_indexes(admin_client, mock_indexer):
    skill = {"id": "k1", "name": "Python"}
    with patch("app.api.admin_skills.skills_db") as mock_db:
        mock_db.create_skill.return_value = skill
        response = admin_client.post("/api/admin/skills", json={"name": "Python", "category": "language", "proficiency": 5})

    assert response.status_code == 201
    mock_indexer["skill"].index_skill.assert_called_once_with(OWNER, skill)


def test_create_skill_invalid_proficiency(admin_client, mock_indexer):
    response = admin_client.post("/api/admin/skills", json={"name": "Python", "proficiency": 9})
    assert response.status_code == 400


def test_delete_skill_removes_chunks(admin_client, mock_indexer):
    with patch("app.api.admin_skills.skills_db"):
        response = admin_client.delete("/api/admin/skills?id=k1")

    assert response.status_code == 200
    mock_indexer["skill"].delete_source_chunks.assert_called_once_with(OWNER, "skill", "k1")


# =============================================================================
# Stories
# =============================================================================


def test_create_public_story_indexes(admin_client, mock_indexer):
    story = {"id": "s1", "title": "Outage", "is_public": True}
    with patch("app.api.admin_stories.stories_db") as mock_db:
        mock_db.create_story.return_value = story
        response = admin_client.post(
            "/api/admin/stories",
            json={
                "title": "Outage",
                "situation": "S",
                "task": "T",
                "action": "A",
                "result": "R",
                "project_id": "",
                "is_public": True,
            },
        )

    assert response.status_code == 201
    assert mock_db.create_story.call_args.args[1]["project_id"] is None
    mock_indexer["story"].index_story.assert_called_once_with(OWNER, story)


def test_update_story_private_removes_chunks(admin_client, mock_indexer):
    with patch("app.api.admin_stories.stories_db") as mock_db:
        mock_db.update_story.return_value = {"id": "s1", "is_public": False}
        response = admin_client.put("/api/admin/stories", json={"id": "s1", "is_public": False})

    assert response.status_code == 200
    mock_indexer["story"].delete_source_chunks.assert_called_once_with(OWNER, "story", "s1")


# =============================================================================
# Experiences
# =============================================================================


def test_experiences_missing_table_is_501(admin_client, mock_indexer):
    error = APIError({"message": "relation does not exist", "code": "42P01", "hint": None, "details": None})
    with patch("app.api.admin_experiences.experiences_db.list_experiences", side_effect=error):
        response = admin_client.get("/api/admin/experiences")

    assert response.status_code == 501
    assert "Experiences table is not set up yet" in response.json()["error"]


def test_create_experience_published_indexes(admin_client, mock_indexer):
    experience = {"id": "e1", "role": "Engineer", "company": "Acme", "status": "published"}
    with patch("app.api.admin_experiences.experiences_db") as mock_db:
        mock_db.create_experience.return_value = experience
        response = admin_client.post(
            "/api/admin/experiences",
            json={"company": "Acme", "role": "Engineer", "location": ""},
        )

    assert response.status_code == 201
    row = mock_db.create_experience.call_args.args[1]
    assert row["location"] is None
    assert row["status"] == "published"
    mock_indexer["experience"].index_experience.assert_called_once_with(OWNER, experience)


def test_delete_experience(admin_client, mock_indexer):
    with patch("app.api.admin_experiences.experiences_db") as mock_db:
        response = admin_client.delete("/api/admin/experiences?id=e1")

    assert response.status_code == 200
    mock_db.delete_experience.assert_called_once_with(OWNER, "e1")
