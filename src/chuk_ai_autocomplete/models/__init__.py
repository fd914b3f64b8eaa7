# chuk_ai_autocomplete/models/__init__.py
"""Pydantic models and enums for the autocomplete engine."""

from chuk_ai_autocomplete.models.context import AmbientContextCache, ContextWindow, TextBlock
from chuk_ai_autocomplete.models.enums import (
    CompletionPath,
    CompletionStatus,
    ErrorKind,
    EventKind,
    ModelAvailability,
    RejectReason,
    RequestState,
    TriggerKind,
)
from chuk_ai_autocomplete.models.events import InputEvent, TriggerDecision
from chuk_ai_autocomplete.models.policy import TriggerPolicy
from chuk_ai_autocomplete.models.request import (
    CancelToken,
    CompletionRequest,
    RequestTimings,
    StreamState,
)
from chuk_ai_autocomplete.models.results import CompletionOutcome, StructuredCompletion
from chuk_ai_autocomplete.models.stats import CacheStats, DownloadProgress

__all__ = [
    # Enums
    "CompletionPath",
    "CompletionStatus",
    "ErrorKind",
    "EventKind",
    "ModelAvailability",
    "RejectReason",
    "RequestState",
    "TriggerKind",
    # Context
    "AmbientContextCache",
    "ContextWindow",
    "TextBlock",
    # Events
    "InputEvent",
    "TriggerDecision",
    # Policy
    "TriggerPolicy",
    # Requests
    "CancelToken",
    "CompletionRequest",
    "RequestTimings",
    "StreamState",
    # Results
    "CompletionOutcome",
    "StructuredCompletion",
    # Stats
    "CacheStats",
    "DownloadProgress",
]
