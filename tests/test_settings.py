# tests/test_settings.py
"""Tests for settings normalization, engine state settings and the stores."""

import pytest
from pydantic import ValidationError

from chuk_ai_autocomplete.engine import EngineState
from chuk_ai_autocomplete.models import TriggerPolicy
from chuk_ai_autocomplete.settings import (
    EngineSettings,
    InMemorySettingsStore,
    InMemorySitePreferenceStore,
    SettingsStore,
    SitePreferenceStore,
)

# =============================================================================
# EngineSettings.from_store
# =============================================================================


class TestFromStore:
    def test_defaults(self):
        settings = EngineSettings.from_store({})
        assert not settings.ctrl_enter
        assert not settings.double_space
        assert not settings.auto_after_punctuation
        assert settings.disable_toggle_shortcut == "Ctrl+Shift+S"
        assert settings.min_sentences == 1
        assert settings.max_sentences == 3
        assert settings.min_trigger_interval_ms == 350

    def test_none_payload(self):
        assert EngineSettings.from_store(None) == EngineSettings()

    def test_flags(self):
        settings = EngineSettings.from_store({"ctrlEnter": True, "doubleSpace": 1, "autoAfterPunctuation": "yes"})
        assert settings.ctrl_enter
        assert settings.double_space
        assert settings.auto_after_punctuation

    def test_shortcut(self):
        assert EngineSettings.from_store({"disableToggleShortcut": "Alt+X"}).disable_toggle_shortcut == "Alt+X"
        assert EngineSettings.from_store({"disableToggleShortcut": "  "}).disable_toggle_shortcut == "Ctrl+Shift+S"
        assert EngineSettings.from_store({"disableToggleShortcut": 5}).disable_toggle_shortcut == "Ctrl+Shift+S"

    @pytest.mark.parametrize("size,expected", [(100, 100), (500, 500), (11, 11)])
    def test_cache_size_accepted(self, size, expected):
        assert EngineSettings.from_store({"cacheSize": size}).cache_size == expected

    @pytest.mark.parametrize("size", [10, 5, 501, 0, -3, "100", True])
    def test_cache_size_rejected(self, size):
        current = EngineSettings(cache_size=42)
        assert EngineSettings.from_store({"cacheSize": size}, current).cache_size == 42

    def test_sentence_bounds_clamped(self):
        settings = EngineSettings.from_store({"minSentences": 9, "maxSentences": 20})
        assert settings.min_sentences == 3
        assert settings.max_sentences == 6

    def test_max_raised_to_min(self):
        settings = EngineSettings.from_store({"minSentences": 3, "maxSentences": 1})
        assert settings.min_sentences == 3
        assert settings.max_sentences == 3

    def test_min_trigger_interval(self):
        assert EngineSettings.from_store({"minTriggerIntervalMs": 0}).min_trigger_interval_ms == 0
        assert EngineSettings.from_store({"minTriggerIntervalMs": -5}).min_trigger_interval_ms == 350

    def test_falls_back_to_current(self):
        current = EngineSettings(disable_toggle_shortcut="Alt+Q", max_sentences=5)
        settings = EngineSettings.from_store({}, current)
        assert settings.disable_toggle_shortcut == "Alt+Q"
        assert settings.max_sentences == 5

    def test_to_policy(self):
        policy = EngineSettings(ctrl_enter=True, max_sentences=4).to_policy()
        assert isinstance(policy, TriggerPolicy)
        assert policy.ctrl_enter_enabled
        assert policy.max_sentences == 4


class TestTriggerPolicy:
    def test_frozen(self):
        policy = TriggerPolicy()
        with pytest.raises(ValidationError):
            policy.max_sentences = 5

    def test_max_below_min_rejected(self):
        with pytest.raises(ValidationError):
            TriggerPolicy(min_sentences=3, max_sentences=2)


# =============================================================================
# EngineState.apply_settings
# =============================================================================


class TestApplySettings:
    def test_policy_replaced(self):
        state = EngineState()
        assert not state.policy.ctrl_enter_enabled
        state.apply_settings(EngineSettings(ctrl_enter=True))
        assert state.policy.ctrl_enter_enabled

    def test_cache_rebuilt_on_capacity_change(self):
        state = EngineState()
        state.cache.set("k", "v")
        state.apply_settings(EngineSettings(cache_size=100))
        assert state.cache.capacity == 100
        assert len(state.cache) == 0

    def test_cache_kept_when_capacity_unchanged(self):
        state = EngineState()
        state.cache.set("k", "v")
        state.apply_settings(EngineSettings(ctrl_enter=True, cache_size=state.settings.cache_size))
        assert state.cache.get("k") == "v"


# =============================================================================
# Stores
# =============================================================================


class TestInMemorySettingsStore:
    def test_protocol(self):
        assert isinstance(InMemorySettingsStore(), SettingsStore)

    def test_load_returns_copy(self):
        store = InMemorySettingsStore({"ctrlEnter": True})
        data = store.load()
        data["ctrlEnter"] = False
        assert store.load() == {"ctrlEnter": True}

    def test_subscribe_and_unsubscribe(self):
        store = InMemorySettingsStore()
        received = []
        unsubscribe = store.subscribe(received.append)
        store.save({"doubleSpace": True})
        unsubscribe()
        store.save({"doubleSpace": False})
        assert received == [{"doubleSpace": True}]


class TestInMemorySitePreferenceStore:
    def test_protocol(self):
        assert isinstance(InMemorySitePreferenceStore(), SitePreferenceStore)

    def test_enabled_by_default(self):
        assert InMemorySitePreferenceStore().is_enabled("example.com")

    def test_toggle(self):
        store = InMemorySitePreferenceStore()
        assert store.toggle("example.com") is False
        assert not store.is_enabled("example.com")
        assert store.disabled_sites() == ["example.com"]
        assert store.toggle("example.com") is True
        assert store.disabled_sites() == []
