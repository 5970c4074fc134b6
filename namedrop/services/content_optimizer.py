"""AI review of CV profiles — impact score, suggestions, rewritten copy."""

import json
import logging

from namedrop.models.optimization import CVOptimizationResult, ProfileSnapshot
from namedrop.services.llm import chat_completion

logger = logging.getLogger(__name__)

DEFAULT_SCORE = 75

OPTIMIZE_SYSTEM = (
    "You are a professional career coach and CV optimization expert. Provide "
    "detailed, actionable feedback to improve professional profiles. Always "
    "respond with valid JSON."
)

OPTIMIZE_PROMPT = """Analyze and optimize this CV profile for maximum \
professional impact. Provide specific improvements and suggestions.

PROFILE:
Name: {name}
Tagline: {tagline}
Bio: {bio}
Skills: {skills}
Work History: {work_history}
Projects: {projects}

Respond with valid JSON:
{{
  "optimizedContent": "Improved version of the bio and tagline",
  "suggestions": ["specific improvement suggestion", ...],
  "improvements": ["what was improved and why", ...],
  "score": 1-100
}}"""

SUMMARY_SYSTEM = (
    "You are a professional resume writer. Create compelling, concise "
    "professional summaries."
)

SUMMARY_PROMPT = """Create a compelling professional summary based on this \
work history and skills:

Work History: {work_history}
Skills: {skills}

Write a 2-3 sentence professional summary that highlights key achievements \
and expertise."""


class ContentOptimizationError(Exception):
    """The LLM call failed or returned something unusable."""


def _clamp_score(value: object) -> int:
    try:
        score = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return DEFAULT_SCORE
    return max(1, min(100, score))


def _str_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v]


async def optimize_profile(snapshot: ProfileSnapshot) -> CVOptimizationResult:
    """Score a profile and suggest improvements.

    Missing fields in the model's answer fall back to safe defaults: the
    original bio for the rewritten content and a neutral score of 75.

    Raises:
        ContentOptimizationError: If the LLM call fails or its answer isn't JSON.
    """
    prompt = OPTIMIZE_PROMPT.format(
        name=snapshot.name or "",
        tagline=snapshot.tagline or "",
        bio=snapshot.bio or "",
        skills=", ".join(snapshot.skills),
        work_history=json.dumps(snapshot.work_history),
        projects=json.dumps(snapshot.projects),
    )

    try:
        response = await chat_completion(
            prompt=prompt,
            system=OPTIMIZE_SYSTEM,
            max_tokens=1500,
            temperature=0.4,
            json_mode=True,
        )
    except Exception as e:
        logger.error("Profile optimization call failed: %s", e)
        raise ContentOptimizationError(f"Failed to optimize CV: {e}") from e

    try:
        data = json.loads(response)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse optimization result: %s", e)
        raise ContentOptimizationError("Failed to optimize CV: invalid JSON") from e
    if not isinstance(data, dict):
        raise ContentOptimizationError("Failed to optimize CV: unexpected response")

    return CVOptimizationResult(
        optimized_content=data.get("optimizedContent") or snapshot.bio or "",
        suggestions=_str_list(data.get("suggestions")),
        improvements=_str_list(data.get("improvements")),
        score=_clamp_score(data.get("score", DEFAULT_SCORE)),
    )


async def generate_professional_summary(
    work_history: list[dict], skills: list[str]
) -> str:
    """Write a short professional summary from work history and skills."""
    prompt = SUMMARY_PROMPT.format(
        work_history=json.dumps(work_history),
        skills=", ".join(skills),
    )
    try:
        summary = await chat_completion(
            prompt=prompt, system=SUMMARY_SYSTEM, max_tokens=200
        )
    except Exception as e:
        logger.error("Summary generation failed: %s", e)
        raise ContentOptimizationError(f"Failed to generate summary: {e}") from e
    return summary.strip()
