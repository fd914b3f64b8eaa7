# chuk_ai_autocomplete/engine/state.py
"""
EngineState - the one explicit container for mutable engine state.

Policy, cache, active request and trigger marks live here instead of in
module globals, so independent engines (one per tab, one per test) never
interfere. Every engine operation receives the state it works on.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr

from chuk_ai_autocomplete.models import AmbientContextCache, CompletionRequest, TriggerPolicy
from chuk_ai_autocomplete.settings import EngineSettings

from .cache import CompletionCache

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
"""Returns monotonic time in milliseconds."""


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class TriggerMarks(BaseModel):
    """Timestamps (ms) the trigger controller needs between events."""

    last_admitted_ms: float | None = None
    last_space_ms: float | None = None
    punctuation_due_ms: float | None = None
    punctuation_generation: int = 0


class ModelHandles(BaseModel):
    """Created provider sessions. None until the loader succeeds."""

    model_config = {"arbitrary_types_allowed": True}

    session: Any = None
    summarizer: Any = None
    detector: Any = None
    downloading: bool = False

    @property
    def ready(self) -> bool:
        return self.session is not None


class EngineState(BaseModel):
    """All mutable state for one engine instance."""

    model_config = {"arbitrary_types_allowed": True}

    site: str = Field(default="", description="Site identifier (e.g. hostname)")
    site_enabled: bool = True
    surface: Any = Field(default=None, description="Focused HostTextSurface, if any")
    settings: EngineSettings = Field(default_factory=EngineSettings)
    marks: TriggerMarks = Field(default_factory=TriggerMarks)
    ambient: AmbientContextCache = Field(default_factory=AmbientContextCache)
    handles: ModelHandles = Field(default_factory=ModelHandles)
    active_request: CompletionRequest | None = None

    _policy: TriggerPolicy | None = PrivateAttr(default=None)
    _cache: CompletionCache | None = PrivateAttr(default=None)

    @property
    def policy(self) -> TriggerPolicy:
        if self._policy is None:
            self._policy = self.settings.to_policy()
        return self._policy

    @property
    def cache(self) -> CompletionCache:
        if self._cache is None:
            self._cache = CompletionCache(self.settings.cache_size)
        return self._cache

    def apply_settings(self, settings: EngineSettings) -> None:
        """
        Swap in new settings without a restart.

        A capacity change discards the old cache outright; entries are not
        migrated.
        """
        capacity_changed = settings.cache_size != self.settings.cache_size
        self.settings = settings
        self._policy = settings.to_policy()
        if capacity_changed or self._cache is None:
            self._cache = CompletionCache(settings.cache_size)
            logger.debug(f"Cache reset with capacity {settings.cache_size}")

    def is_active(self, request: CompletionRequest) -> bool:
        """True while ``request`` is the live request and not cancelled."""
        return self.active_request is request and not request.cancelled
