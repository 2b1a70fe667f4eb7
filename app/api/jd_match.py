"""Job description matching: how well does the portfolio fit a JD?"""

import asyncio
import json
import re
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from app.api.deps import get_owner_id
from app.core.llm import generate_text, parse_llm_json
from app.core.logging import get_logger
from app.core.retrieval import retrieve_context
from app.core.schemas_chat import JDMatchRequest, ParsedJD
from app.db import projects as projects_db
from app.db import skills as skills_db
from app.db import stories as stories_db

logger = get_logger(__name__)

router = APIRouter(prefix="/jd-match")

JD_MATCH_TOP_K = 10
SUGGESTED_STORY_COUNT = 3
RELEVANT_PROJECT_COUNT = 5

JD_PARSE_PROMPT = """You are a professional job description (JD) analyst. Extract the key information from the JD below:

1. Core skill requirements (tech stack, tools, frameworks)
2. Years of experience (if mentioned)
3. Responsibilities
4. Team / project context
5. Soft-skill requirements

Rules:
- Return ONLY valid JSON. No Markdown, no commentary, no code fences.
- Keep required_skills / preferred_skills strictly to concrete, checkable items (languages, frameworks, databases, cloud, dev tools). Do NOT include generic phrases like "strong fundamentals", "communication skills", "problem solving", etc.
- Normalize common abbreviations (e.g., JS -> JavaScript, TS -> TypeScript, Postgres -> PostgreSQL, k8s -> Kubernetes).

Return JSON in the following schema:
{
  "required_skills": ["skill1", "skill2"],
  "preferred_skills": ["skill1", "skill2"],
  "years_experience": number | null,
  "responsibilities": ["resp1", "resp2"],
  "soft_skills": ["skill1", "skill2"],
  "keywords": ["kw1", "kw2"]
}"""

SUMMARY_SYSTEM_PROMPT = "You are a professional career advisor. Respond in English."

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


# ============================================================================
# Matching helpers
# ============================================================================


def parse_jd_output(raw: str) -> ParsedJD | None:
    """Parse the LLM's JD analysis; None when no usable JSON object is present."""
    match = _JSON_OBJECT_RE.search(raw or "")
    if not match:
        return None
    try:
        return parse_llm_json(match.group(0), ParsedJD)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"JD parse output was not valid: {e}")
        return None


def _overlaps(a: str, b: str) -> bool:
    a, b = a.lower(), b.lower()
    return a in b or b in a


def match_skills(skills: list[dict[str, Any]], keywords: list[str]) -> list[dict[str, Any]]:
    """Skills whose name contains, or is contained in, any keyword."""
    return [s for s in skills if any(_overlaps(s.get("name", ""), kw) for kw in keywords if kw)]


def compute_match_score(matched_count: int, required_count: int) -> int:
    return min(100, round(matched_count / max(1, required_count) * 100))


def find_gaps(required_skills: list[str], matched_names: list[str]) -> list[str]:
    return [req for req in required_skills if not any(_overlaps(name, req) for name in matched_names)]


def score_story(story: dict[str, Any], keywords: list[str]) -> int:
    haystack = "\n".join(
        str(story.get(field) or "") for field in ("title", "situation", "task", "action", "result")
    ).lower()
    return sum(1 for kw in keywords if kw.strip() and kw.lower().strip() in haystack)


def build_summary_prompt(parsed: ParsedJD, matched_names: list[str], score: int, gaps: list[str]) -> str:
    return (
        "Based on the job requirements and the candidate's profile, provide a brief 2-3 "
        "sentence summary of the match quality. Be professional and constructive.\n\n"
        f"Job requires: {', '.join(parsed.required_skills)}\n"
        f"Candidate has: {', '.join(matched_names)}\n"
        f"Match score: {score}%\n"
        f"Gaps: {', '.join(gaps) or 'None'}"
    )


# ============================================================================
# Endpoint
# ============================================================================


@router.post("")
async def match_job_description(
    body: JDMatchRequest,
    owner_id: str = Depends(get_owner_id),
) -> dict[str, Any]:
    """
    Score the portfolio against a job description.

    Returns:
        match_score, matched_skills, relevant_projects, suggested_stories,
        gaps, summary, parsed_jd and the retrieved sources

    Raises:
        HTTPException 422: The JD could not be parsed into structured fields
        HTTPException 500: Retrieval, database or LLM failure
    """
    try:
        parsed = parse_jd_output(await generate_text(JD_PARSE_PROMPT, body.jd))
        if parsed is None:
            raise HTTPException(
                status_code=422,
                detail="Failed to parse job description. Please try with a cleaner JD.",
            )

        keywords = [*parsed.required_skills, *parsed.preferred_skills, *parsed.keywords]

        retrieval = await retrieve_context(owner_id, " ".join(keywords), top_k=JD_MATCH_TOP_K)
        skills, projects, stories = await asyncio.gather(
            asyncio.to_thread(skills_db.list_skills, owner_id),
            asyncio.to_thread(projects_db.list_projects, owner_id, True),
            asyncio.to_thread(stories_db.list_stories, owner_id, True),
        )

        matched = match_skills(skills, keywords)
        matched_names = [s["name"].lower() for s in matched]
        score = compute_match_score(len(matched), len(parsed.required_skills))
        gaps = find_gaps(parsed.required_skills, matched_names)
        suggested = sorted(stories, key=lambda s: score_story(s, keywords), reverse=True)

        summary = await generate_text(
            SUMMARY_SYSTEM_PROMPT, build_summary_prompt(parsed, matched_names, score, gaps)
        )

        sources = [ref.to_dict() for ref in retrieval.chunks]
        matched_skills = [
            {
                "skill": skill,
                "jd_requirement": next(
                    (req for req in parsed.required_skills if _overlaps(req, skill["name"])), ""
                ),
                "evidence_count": sum(
                    1 for ref in retrieval.chunks if skill["name"].lower() in ref.content_preview.lower()
                ),
            }
            for skill in matched
        ]

        logger.info(
            f"JD match scored {score}%",
            extra={"matched": len(matched), "required": len(parsed.required_skills)},
        )

        return {
            "match_score": score,
            "matched_skills": matched_skills,
            "relevant_projects": projects[:RELEVANT_PROJECT_COUNT],
            "suggested_stories": suggested[:SUGGESTED_STORY_COUNT],
            "gaps": gaps,
            "summary": summary,
            "parsed_jd": parsed.model_dump(),
            "sources": sources,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error matching job description: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e
