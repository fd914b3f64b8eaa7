# chuk_ai_autocomplete/models/events.py
"""Input events and trigger decisions."""

from pydantic import BaseModel, Field

from chuk_ai_autocomplete.models.enums import EventKind, RejectReason, TriggerKind


class InputEvent(BaseModel):
    """A raw UI event, reduced to the fields the trigger controller needs."""

    kind: EventKind
    code: str = Field(default="", description="Physical key code, e.g. 'Space', 'Enter', 'KeyS'")
    ctrl: bool = False
    shift: bool = False
    alt: bool = False
    timestamp_ms: float = Field(..., description="Monotonic event time in milliseconds")
    text_before_cursor: str = Field(default="", description="Surface text before the cursor (input events)")

    @property
    def has_modifiers(self) -> bool:
        return self.ctrl or self.shift or self.alt


class TriggerDecision(BaseModel):
    """Result of evaluating an event against the trigger policy."""

    admitted: bool = False
    kind: TriggerKind | None = None
    reason: RejectReason | None = None
    deferred_until_ms: float | None = Field(default=None, description="Set for settle-delayed triggers")
    generation: int | None = Field(default=None, description="Deferred trigger generation")
    cancels_active: bool = Field(default=False, description="Typing or Escape dismisses the in-flight request")

    @classmethod
    def reject(cls, reason: RejectReason, kind: TriggerKind | None = None) -> "TriggerDecision":
        return cls(admitted=False, kind=kind, reason=reason)

    @property
    def is_deferred(self) -> bool:
        return self.deferred_until_ms is not None
