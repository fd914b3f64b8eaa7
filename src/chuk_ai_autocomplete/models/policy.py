# chuk_ai_autocomplete/models/policy.py
"""Trigger policy model."""

from pydantic import BaseModel, Field, model_validator

from chuk_ai_autocomplete.constants import (
    DEFAULT_MAX_SENTENCES,
    DEFAULT_MIN_SENTENCES,
    DEFAULT_SITE_TOGGLE_SHORTCUT,
    MIN_TRIGGER_INTERVAL_MS,
)


class TriggerPolicy(BaseModel):
    """
    Process-wide trigger and output policy.

    Loaded once from the settings store and replaced wholesale on change
    notifications. Components read it, they never mutate it.
    """

    model_config = {"frozen": True}

    ctrl_enter_enabled: bool = Field(default=False)
    double_space_enabled: bool = Field(default=False)
    auto_after_punctuation_enabled: bool = Field(default=False)
    min_trigger_interval_ms: float = Field(default=MIN_TRIGGER_INTERVAL_MS, ge=0)
    min_sentences: int = Field(default=DEFAULT_MIN_SENTENCES, ge=1)
    max_sentences: int = Field(default=DEFAULT_MAX_SENTENCES, ge=1)
    site_toggle_shortcut: str = Field(default=DEFAULT_SITE_TOGGLE_SHORTCUT)

    @model_validator(mode="after")
    def _check_sentence_range(self) -> "TriggerPolicy":
        if self.max_sentences < self.min_sentences:
            raise ValueError("max_sentences must be >= min_sentences")
        return self
