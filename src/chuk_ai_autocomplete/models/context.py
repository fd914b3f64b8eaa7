# chuk_ai_autocomplete/models/context.py
"""Context window models."""

from pydantic import BaseModel, Field


class ContextWindow(BaseModel):
    """
    Cursor-relative view of the focused text surface.

    Built fresh per trigger and never mutated afterwards. ``before_cursor`` may
    carry a summary placeholder for long prefixes; ``recent_window`` never
    does, it is always a verbatim suffix of the raw text before the cursor.
    """

    model_config = {"frozen": True}

    before_cursor: str = Field(default="", description="Processed text before the cursor")
    after_cursor: str = Field(default="", description="Text after the cursor")
    recent_window: str = Field(default="", description="Verbatim tail of the raw prefix (<=200 chars)")
    full_text: str = Field(default="", description="Entire surface text")
    summarized: bool = Field(default=False, description="Whether before_cursor holds a summary")

    @property
    def is_empty(self) -> bool:
        return not self.before_cursor.strip()


class TextBlock(BaseModel):
    """A block of visible page text with the centre of its bounding box."""

    text: str
    center_x: float = 0.0
    center_y: float = 0.0


class AmbientContextCache(BaseModel):
    """Last extracted page context and when it was captured (ms)."""

    value: str | None = None
    captured_at_ms: float = 0.0
