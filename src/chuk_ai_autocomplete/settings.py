# chuk_ai_autocomplete/settings.py
"""
Engine settings and the stores they come from.

The settings payload is whatever the options page persisted (camelCase keys,
loosely typed). EngineSettings.from_store() is the single place that
normalizes it: unknown or out-of-range values fall back to the current value.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from chuk_ai_autocomplete.config import DEFAULT_CACHE_CAPACITY
from chuk_ai_autocomplete.constants import (
    CACHE_CAPACITY_CEILING,
    CACHE_CAPACITY_FLOOR,
    DEFAULT_MAX_SENTENCES,
    DEFAULT_MIN_SENTENCES,
    DEFAULT_SITE_TOGGLE_SHORTCUT,
    MAX_SENTENCES_RANGE,
    MIN_SENTENCES_RANGE,
    MIN_TRIGGER_INTERVAL_MS,
)
from chuk_ai_autocomplete.models import TriggerPolicy

logger = logging.getLogger(__name__)

SettingsListener = Callable[[dict[str, Any]], None]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _clamp(value: float, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return int(min(high, max(low, value)))


class EngineSettings(BaseModel):
    """Normalized settings: trigger policy fields plus cache capacity."""

    ctrl_enter: bool = False
    double_space: bool = False
    auto_after_punctuation: bool = False
    disable_toggle_shortcut: str = DEFAULT_SITE_TOGGLE_SHORTCUT
    cache_size: int = Field(default=DEFAULT_CACHE_CAPACITY, ge=1)
    min_sentences: int = DEFAULT_MIN_SENTENCES
    max_sentences: int = DEFAULT_MAX_SENTENCES
    min_trigger_interval_ms: float = MIN_TRIGGER_INTERVAL_MS

    @classmethod
    def from_store(
        cls,
        data: dict[str, Any] | None,
        current: EngineSettings | None = None,
    ) -> EngineSettings:
        """
        Build settings from a raw store payload.

        Args:
            data: Raw settings dict (camelCase keys as persisted)
            current: Settings to fall back to for missing/invalid values

        Returns:
            A new EngineSettings
        """
        data = data or {}
        base = current or cls()
        values = base.model_dump()

        values["ctrl_enter"] = bool(data.get("ctrlEnter"))
        values["double_space"] = bool(data.get("doubleSpace"))
        values["auto_after_punctuation"] = bool(data.get("autoAfterPunctuation"))

        shortcut = data.get("disableToggleShortcut")
        if isinstance(shortcut, str) and shortcut.strip():
            values["disable_toggle_shortcut"] = shortcut.strip()

        cache_size = data.get("cacheSize")
        if _is_number(cache_size) and CACHE_CAPACITY_FLOOR < cache_size <= CACHE_CAPACITY_CEILING:
            values["cache_size"] = int(cache_size)

        if _is_number(data.get("minSentences")):
            values["min_sentences"] = _clamp(data["minSentences"], MIN_SENTENCES_RANGE)
        if _is_number(data.get("maxSentences")):
            values["max_sentences"] = _clamp(data["maxSentences"], MAX_SENTENCES_RANGE)
        if values["max_sentences"] < values["min_sentences"]:
            values["max_sentences"] = values["min_sentences"]

        interval = data.get("minTriggerIntervalMs")
        if _is_number(interval) and interval >= 0:
            values["min_trigger_interval_ms"] = float(interval)

        return cls(**values)

    def to_policy(self) -> TriggerPolicy:
        return TriggerPolicy(
            ctrl_enter_enabled=self.ctrl_enter,
            double_space_enabled=self.double_space,
            auto_after_punctuation_enabled=self.auto_after_punctuation,
            min_trigger_interval_ms=self.min_trigger_interval_ms,
            min_sentences=self.min_sentences,
            max_sentences=self.max_sentences,
            site_toggle_shortcut=self.disable_toggle_shortcut,
        )


# =============================================================================
# Store protocols
# =============================================================================


@runtime_checkable
class SettingsStore(Protocol):
    def load(self) -> dict[str, Any]: ...

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe callable."""
        ...


@runtime_checkable
class SitePreferenceStore(Protocol):
    def is_enabled(self, site: str) -> bool: ...

    def set_enabled(self, site: str, enabled: bool) -> None: ...

    def toggle(self, site: str) -> bool: ...


# =============================================================================
# In-memory implementations
# =============================================================================


class InMemorySettingsStore:
    """Settings store backed by a dict, notifying listeners on save()."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})
        self._listeners: list[SettingsListener] = []

    def load(self) -> dict[str, Any]:
        return dict(self._data)

    def save(self, data: dict[str, Any]) -> None:
        self._data = dict(data)
        for listener in list(self._listeners):
            listener(dict(self._data))

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


class InMemorySitePreferenceStore:
    """Per-site enable flags. Sites are enabled unless explicitly disabled."""

    def __init__(self, prefs: dict[str, bool] | None = None) -> None:
        self._prefs: dict[str, bool] = dict(prefs or {})

    def is_enabled(self, site: str) -> bool:
        return self._prefs.get(site) is not False

    def set_enabled(self, site: str, enabled: bool) -> None:
        self._prefs[site] = enabled

    def toggle(self, site: str) -> bool:
        """Flip the flag for a site and return the new value."""
        enabled = not self.is_enabled(site)
        self.set_enabled(site, enabled)
        logger.info(f"{'Enabled' if enabled else 'Disabled'} autocomplete on {site}")
        return enabled

    def disabled_sites(self) -> list[str]:
        return sorted(site for site, enabled in self._prefs.items() if enabled is False)
