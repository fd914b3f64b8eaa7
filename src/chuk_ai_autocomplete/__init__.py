# chuk_ai_autocomplete/__init__.py
"""
On-device inline text completion engine.

Watches a focused text surface, decides when to request a continuation,
prompts a local language model, and turns its output into a cleaned,
cached, cancellable suggestion.
"""

from chuk_ai_autocomplete.autocomplete import AutocompleteEngine
from chuk_ai_autocomplete.engine import CompletionOrchestrator, EngineState, ModelLoader
from chuk_ai_autocomplete.exceptions import AutocompleteError
from chuk_ai_autocomplete.models import (
    CompletionOutcome,
    CompletionStatus,
    ErrorKind,
    EventKind,
    InputEvent,
    ModelAvailability,
)
from chuk_ai_autocomplete.settings import (
    EngineSettings,
    InMemorySettingsStore,
    InMemorySitePreferenceStore,
)
from chuk_ai_autocomplete.surfaces import InMemoryTextSurface

__version__ = "0.1.0"

__all__ = [
    "AutocompleteEngine",
    "AutocompleteError",
    "CompletionOrchestrator",
    "CompletionOutcome",
    "CompletionStatus",
    "EngineSettings",
    "EngineState",
    "ErrorKind",
    "EventKind",
    "InMemorySettingsStore",
    "InMemorySitePreferenceStore",
    "InMemoryTextSurface",
    "InputEvent",
    "ModelAvailability",
    "ModelLoader",
]
