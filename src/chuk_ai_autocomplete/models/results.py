# chuk_ai_autocomplete/models/results.py
"""Structured model responses and caller-facing outcomes."""

from pydantic import BaseModel, Field

from chuk_ai_autocomplete.models.enums import CompletionPath, CompletionStatus, ErrorKind


class StructuredCompletion(BaseModel):
    """Typed form of a structured-output model response."""

    accept: bool = Field(..., description="Whether a continuation should be inserted")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Model confidence (0-1)")
    sentences: list[str] = Field(default_factory=list, description="Continuation sentences")

    @property
    def joined(self) -> str:
        return " ".join(self.sentences).rstrip()


class CompletionOutcome(BaseModel):
    """What request_completion() hands back to its caller."""

    status: CompletionStatus
    text: str | None = Field(default=None, description="Completion to offer as ghost text")
    message: str | None = Field(default=None, description="Neutral/progress/error message")
    error_kind: ErrorKind | None = None
    confidence: float | None = None
    path: CompletionPath | None = None
    request_id: str | None = None
    cursor_position: int | None = Field(default=None, description="Cursor offset when the request started")

    @property
    def from_cache(self) -> bool:
        return self.path == CompletionPath.CACHE

    @property
    def has_suggestion(self) -> bool:
        return bool(self.text) and self.status in (
            CompletionStatus.READY,
            CompletionStatus.LOW_CONFIDENCE,
        )
