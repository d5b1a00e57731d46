"""Intent analysis result models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    """Recoverable failure kinds of the analysis pipeline."""

    CLAUDE_NOT_AVAILABLE = "claude_not_available"
    TIMEOUT_OR_ERROR = "timeout_or_error"
    INVALID_RESPONSE = "invalid_response"
    MISSING_FIELDS = "missing_fields"
    MANIFEST_GENERATION_FAILED = "manifest_generation_failed"


class AnalysisError(BaseModel):
    """Tagged failure value; never carries a partial result."""

    error: ErrorKind
    exit_code: int | None = None
    raw: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class AgentRecommendation(BaseModel):
    """An agent suggested by the classifier."""

    name: str
    reason: str = ""
    priority: int = 1


class IntentAnalysisResult(BaseModel):
    """Normalized classifier output."""

    intent: str = "general"  # utility | feature | debug | refactor | question | general
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    recommended_agents: list[AgentRecommendation] = Field(default_factory=list)
    recommended_skills: list[str] = Field(default_factory=list)
    tdd_mode: bool = False
    message: str = ""

    @property
    def has_recommendation(self) -> bool:
        return bool(self.recommended_agents or self.recommended_skills or self.message)
