"""Known-skill keyword detection used to expand chat retrieval queries."""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class SkillPattern:
    name: str
    category: str
    patterns: tuple[re.Pattern, ...]


def _p(*patterns: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


# Symbols like "#" and "+" are not word characters, so those use explicit boundaries
_SYMBOL_EDGE = r"(?![a-z0-9])"

SKILL_CATALOG: tuple[SkillPattern, ...] = (
    # Languages
    SkillPattern("TypeScript", "language", _p(r"\btypescript\b")),
    SkillPattern("JavaScript", "language", _p(r"\bjavascript\b", r"\bjs\b")),
    SkillPattern("Python", "language", _p(r"\bpython\b")),
    SkillPattern("Java", "language", _p(r"\bjava\b")),
    SkillPattern("Go", "language", _p(r"\bgo\b", r"\bgolang\b")),
    SkillPattern("C#", "language", _p(r"\bc#" + _SYMBOL_EDGE, r"\bcsharp\b")),
    SkillPattern("C++", "language", _p(r"\bc\+\+" + _SYMBOL_EDGE, r"\bcplusplus\b")),
    SkillPattern("SQL", "language", _p(r"\bsql\b")),
    SkillPattern("Bash", "language", _p(r"\bbash\b", r"\bshell\b")),
    SkillPattern("Swift", "language", _p(r"\bswift\b")),
    # Frameworks
    SkillPattern("Next.js", "framework", _p(r"\bnext\.?js\b", r"\bnextjs\b")),
    SkillPattern("React", "framework", _p(r"\breact\b")),
    SkillPattern("React Native", "framework", _p(r"\breact native\b")),
    SkillPattern("FastAPI", "framework", _p(r"\bfastapi\b")),
    SkillPattern("Django", "framework", _p(r"\bdjango\b")),
    SkillPattern("Flask", "framework", _p(r"\bflask\b")),
    SkillPattern("Spring Boot", "framework", _p(r"\bspring\s*boot\b", r"\bspringboot\b")),
    SkillPattern("Node.js", "framework", _p(r"\bnode\.?js\b", r"\bnodejs\b")),
    SkillPattern("Angular", "framework", _p(r"\bangular\b")),
    # Platforms / cloud
    SkillPattern("AWS", "platform", _p(r"\baws\b", r"\bamazon web services\b")),
    SkillPattern("GCP", "platform", _p(r"\bgcp\b", r"\bgoogle cloud\b")),
    SkillPattern("Azure", "platform", _p(r"\bazure\b")),
    SkillPattern("Supabase", "platform", _p(r"\bsupabase\b")),
    SkillPattern("PostgreSQL", "platform", _p(r"\bpostgres\b", r"\bpostgresql\b")),
    SkillPattern("MySQL", "platform", _p(r"\bmysql\b")),
    SkillPattern("Redis", "platform", _p(r"\bredis\b")),
    SkillPattern("Kafka", "platform", _p(r"\bkafka\b")),
    SkillPattern("Prometheus", "platform", _p(r"\bprometheus\b")),
    # Tools
    SkillPattern("Docker", "tool", _p(r"\bdocker\b")),
    SkillPattern("Docker Compose", "tool", _p(r"\bdocker compose\b", r"\bdocker-compose\b")),
    SkillPattern("Kubernetes", "tool", _p(r"\bkubernetes\b", r"\bk8s\b")),
    SkillPattern("Helm", "tool", _p(r"\bhelm\b")),
    SkillPattern("Terraform", "tool", _p(r"\bterraform\b")),
    SkillPattern("Git", "tool", _p(r"\bgit\b")),
    SkillPattern("CI/CD", "methodology", _p(r"\bci/cd\b", r"\bcicd\b")),
    SkillPattern("gRPC", "tool", _p(r"\bgrpc\b")),
    SkillPattern("REST APIs", "tool", _p(r"\brest\b", r"\brest api\b")),
    SkillPattern("pgvector", "tool", _p(r"\bpgvector\b")),
    SkillPattern("OpenAI API", "tool", _p(r"\bopenai\b")),
    # AI / ML
    SkillPattern("RAG", "methodology", _p(r"\brag\b", r"\bretrieval-augmented generation\b")),
    SkillPattern("AI Agents", "methodology", _p(r"\bagents?\b", r"\bagentic\b")),
    SkillPattern("LangChain", "tool", _p(r"\blangchain\b")),
    SkillPattern("LangGraph", "tool", _p(r"\blanggraph\b")),
    SkillPattern("FAISS", "tool", _p(r"\bfaiss\b")),
    SkillPattern("BM25", "methodology", _p(r"\bbm25\b")),
    SkillPattern("PyTorch", "tool", _p(r"\bpytorch\b")),
    SkillPattern("MLflow", "tool", _p(r"\bmlflow\b")),
)


def normalize_skill_key(value: str) -> str:
    key = (value or "").strip().lower()
    key = key.replace("c++", "cplusplus").replace("c#", "csharp").replace(".js", "js")
    return re.sub(r"[^a-z0-9]+", "", key)


def extract_skills_from_text(text: str | None) -> list[dict[str, str]]:
    """
    Detect catalog skills mentioned in ``text``.

    Returns:
        ``[{"name", "category"}]`` deduplicated by normalized name, sorted by name
    """
    haystack = f"\n{text or ''}\n"
    found: dict[str, dict[str, str]] = {}

    for skill in SKILL_CATALOG:
        if any(pattern.search(haystack) for pattern in skill.patterns):
            found[normalize_skill_key(skill.name)] = {"name": skill.name, "category": skill.category}

    return sorted(found.values(), key=lambda s: s["name"].lower())
