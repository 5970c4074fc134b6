"""Content optimization request/response models."""

from typing import Any

from pydantic import BaseModel, Field

from namedrop.models.base import CamelModel


class ProfileSnapshot(CamelModel):
    """The parts of a profile sent for AI review."""

    name: str | None = Field(None, max_length=200)
    tagline: str | None = Field(None, max_length=500)
    bio: str | None = Field(None, max_length=5000)
    skills: list[str] = []
    work_history: list[dict[str, Any]] = []
    projects: list[dict[str, Any]] = []


class SummaryRequest(CamelModel):
    work_history: list[dict[str, Any]] = []
    skills: list[str] = []


class CVOptimizationResult(CamelModel):
    """AI review of a profile."""

    optimized_content: str
    suggestions: list[str] = []
    improvements: list[str] = []
    score: int = Field(..., ge=1, le=100)


class SummaryResponse(BaseModel):
    summary: str
