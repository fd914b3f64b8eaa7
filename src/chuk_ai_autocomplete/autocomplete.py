# src/chuk_ai_autocomplete/autocomplete.py
"""
AutocompleteEngine - high-level API for one page/tab.

Wires an EngineState to the providers and stores it depends on:
- settings are loaded once and re-applied on every store notification
- the per-site enable flag comes from the site preference store
- UI events go through the trigger controller; admitted triggers run a
  completion and the site-toggle shortcut flips the site flag
- accepted completions are inserted through the focused surface
"""

from __future__ import annotations

import logging
from typing import Any

from chuk_ai_autocomplete.engine import (
    AmbientContextExtractor,
    Clock,
    CompletionOrchestrator,
    ContextExtractor,
    EngineState,
    ModelLoader,
    OutcomeCallback,
    TriggerController,
    monotonic_ms,
)
from chuk_ai_autocomplete.models import CacheStats, CompletionOutcome, InputEvent
from chuk_ai_autocomplete.providers import (
    HostTextSurface,
    LanguageDetectorProvider,
    LanguageModelProvider,
    PageInspector,
    SummarizerProvider,
)
from chuk_ai_autocomplete.settings import (
    EngineSettings,
    InMemorySitePreferenceStore,
    SettingsStore,
    SitePreferenceStore,
)

logger = logging.getLogger(__name__)


class AutocompleteEngine:
    """
    High-level autocomplete engine bound to one site.

    Examples:
        ```python
        engine = AutocompleteEngine(site="example.com", model_provider=provider)
        engine.focus(InMemoryTextSurface("Hello, my name is John and I"))
        outcome = await engine.request_completion()
        if outcome.has_suggestion:
            engine.accept(outcome)
        ```
    """

    def __init__(
        self,
        site: str = "",
        model_provider: LanguageModelProvider | None = None,
        summarizer_provider: SummarizerProvider | None = None,
        detector_provider: LanguageDetectorProvider | None = None,
        inspector: PageInspector | None = None,
        settings_store: SettingsStore | None = None,
        site_preferences: SitePreferenceStore | None = None,
        clock: Clock = monotonic_ms,
        trigger: TriggerController | None = None,
    ):
        self.site_preferences = site_preferences or InMemorySitePreferenceStore()
        self.settings_store = settings_store
        self.state = EngineState(site=site, site_enabled=self.site_preferences.is_enabled(site))
        self.orchestrator = CompletionOrchestrator(
            loader=ModelLoader(model_provider, summarizer_provider, detector_provider),
            extractor=ContextExtractor(),
            ambient=AmbientContextExtractor(inspector, clock=clock),
            trigger=trigger,
            clock=clock,
        )
        self._unsubscribe = None

        if settings_store is not None:
            self.apply_settings(settings_store.load())
            self._unsubscribe = settings_store.subscribe(self.apply_settings)

    # ------------------------------------------------------------------ config

    @property
    def settings(self) -> EngineSettings:
        return self.state.settings

    def apply_settings(self, data: dict[str, Any]) -> None:
        """Normalize a raw settings payload and apply it without a restart."""
        settings = EngineSettings.from_store(data, current=self.state.settings)
        self.state.apply_settings(settings)
        logger.debug(f"Settings applied for {self.state.site or 'engine'}")

    def close(self) -> None:
        """Stop listening for settings changes and cancel any active request."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.cancel_active()

    # ----------------------------------------------------------------- surface

    def focus(self, surface: HostTextSurface | None) -> None:
        """Set the focused surface; focusing elsewhere cancels the active request."""
        if surface is not self.state.surface:
            self.cancel_active()
        self.state.surface = surface

    def accept(self, outcome: CompletionOutcome) -> bool:
        """
        Insert a suggested completion where the cursor was when it was
        requested. Returns True if inserted.
        """
        surface = self.state.surface
        if not outcome.has_suggestion or surface is None or not surface.is_editable:
            return False
        surface.insert_at_cursor(outcome.text, outcome.cursor_position)
        return True

    # ----------------------------------------------------------------- actions

    async def request_completion(
        self,
        on_update: OutcomeCallback | None = None,
        user_activation: bool = True,
    ) -> CompletionOutcome:
        return await self.orchestrator.request_completion(self.state, on_update, user_activation)

    async def handle_event(
        self,
        event: InputEvent,
        on_update: OutcomeCallback | None = None,
    ) -> CompletionOutcome | None:
        return await self.orchestrator.handle_event(
            self.state, event, on_update=on_update, on_site_toggle=self.toggle_site
        )

    def cancel_active(self) -> bool:
        return self.orchestrator.cancel_active(self.state)

    def toggle_site(self) -> bool:
        """Flip autocomplete for the current site and return the new flag."""
        enabled = self.site_preferences.toggle(self.state.site)
        self.state.site_enabled = enabled
        if not enabled:
            self.cancel_active()
        return enabled

    # ------------------------------------------------------------------- stats

    def get_cache_stats(self) -> CacheStats:
        return self.state.cache.get_stats()
