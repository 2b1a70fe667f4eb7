"""Tests for job description matching."""

import json
from unittest.mock import AsyncMock, patch

from app.api.jd_match import (
    compute_match_score,
    find_gaps,
    match_skills,
    parse_jd_output,
    score_story,
)
from app.core.retrieval import ChunkReference, RetrievalResult

JD = "We are hiring a backend engineer with Python, FastAPI and Kubernetes experience to build APIs."

PARSED = {
    "required_skills": ["Python", "FastAPI", "Kubernetes"],
    "preferred_skills": ["Redis"],
    "years_experience": 3,
    "responsibilities": ["Build APIs"],
    "soft_skills": [],
    "keywords": ["backend"],
}


def test_parse_jd_output_with_surrounding_text():
    parsed = parse_jd_output("Sure! Here it is:\n" + json.dumps(PARSED) + "\nHope this helps.")

    assert parsed is not None
    assert parsed.required_skills == ["Python", "FastAPI", "Kubernetes"]
    assert parsed.years_experience == 3


def test_parse_jd_output_invalid():
    assert parse_jd_output("no json here") is None
    assert parse_jd_output("{not: valid}") is None
    assert parse_jd_output(None) is None


def test_match_skills_substring_either_way():
    skills = [{"name": "Python"}, {"name": "Go"}, {"name": "PostgreSQL"}]

    matched = match_skills(skills, ["Python 3", "Postgres", ""])

    assert [s["name"] for s in matched] == ["Python", "PostgreSQL"]


def test_compute_match_score():
    assert compute_match_score(2, 3) == 67
    assert compute_match_score(5, 3) == 100
    assert compute_match_score(0, 0) == 0
    assert compute_match_score(1, 0) == 100


def test_find_gaps():
    assert find_gaps(["Python", "Kubernetes", "Rust"], ["python", "kubernetes"]) == ["Rust"]


def test_score_story_counts_keyword_hits():
    story = {"title": "Scaling the API", "situation": "Python service", "action": "Moved to Kubernetes"}
    assert score_story(story, ["python", "Kubernetes", "Rust", " "]) == 2


def test_jd_match_endpoint(client):
    retrieval = RetrievalResult(
        chunks=[ChunkReference("c1", "project", "Twin", "p1", "twin", 0.03, "Built with Python and FastAPI")]
    )
    stories = [
        {"id": "s1", "title": "Hiring", "situation": "", "task": "", "action": "", "result": ""},
        {"id": "s2", "title": "Kubernetes migration", "situation": "Python backend", "task": "", "action": "", "result": ""},
    ]
    generate = AsyncMock(side_effect=[json.dumps(PARSED), "Strong match overall."])

    with (
        patch("app.api.jd_match.generate_text", new=generate),
        patch("app.api.jd_match.retrieve_context", new=AsyncMock(return_value=retrieval)) as mock_retrieve,
        patch("app.api.jd_match.skills_db.list_skills", return_value=[{"name": "Python"}, {"name": "FastAPI"}]),
        patch("app.api.jd_match.projects_db.list_projects", return_value=[{"id": f"p{i}"} for i in range(7)]),
        patch("app.api.jd_match.stories_db.list_stories", return_value=stories),
    ):
        response = client.post("/api/jd-match", json={"jd": JD})

    assert response.status_code == 200
    data = response.json()
    assert data["match_score"] == 67
    assert data["gaps"] == ["Kubernetes"]
    assert data["summary"] == "Strong match overall."
    assert data["matched_skills"][0] == {
        "skill": {"name": "Python"},
        "jd_requirement": "Python",
        "evidence_count": 1,
    }
    assert len(data["relevant_projects"]) == 5
    assert data["suggested_stories"][0]["id"] == "s2"
    assert data["parsed_jd"]["preferred_skills"] == ["Redis"]
    assert data["sources"][0]["chunk_id"] == "c1"
    assert mock_retrieve.call_args.args[1] == "Python FastAPI Kubernetes Redis backend"
    assert mock_retrieve.call_args.kwargs == {"top_k": 10}


def test_jd_match_unparseable_jd(client):
    with patch("app.api.jd_match.generate_text", new=AsyncMock(return_value="I cannot help with that.")):
        response = client.post("/api/jd-match", json={"jd": JD})

    assert response.status_code == 422
    assert response.json() == {"error": "Failed to parse job description. Please try with a cleaner JD."}


def test_jd_match_too_short(client):
    response = client.post("/api/jd-match", json={"jd": "too short"})
    assert response.status_code == 400


def test_jd_match_llm_failure(client):
    with patch("app.api.jd_match.generate_text", new=AsyncMock(side_effect=RuntimeError("rate limited"))):
        response = client.post("/api/jd-match", json={"jd": JD})

    assert response.status_code == 500
