# chuk_ai_autocomplete/models/enums.py
"""Enums for the autocomplete engine."""

from enum import Enum

# =============================================================================
# Provider-facing enums
# =============================================================================


class ModelAvailability(str, Enum):
    """Availability reported by a language model provider."""

    UNAVAILABLE = "unavailable"
    DOWNLOADABLE = "downloadable"
    DOWNLOADING = "downloading"
    READY = "ready"


# =============================================================================
# Outward-facing enums
# =============================================================================


class CompletionStatus(str, Enum):
    """Status of a completion outcome delivered to the caller."""

    READY = "ready"
    STREAMING_UPDATE = "streaming-update"
    LOW_CONFIDENCE = "low-confidence"
    NO_SUGGESTION = "no-suggestion"
    DOWNLOADING = "downloading"  # Model download in progress, not an error
    CANCELLED = "cancelled"  # Silent, callers should render nothing
    ERROR = "error"


class ErrorKind(str, Enum):
    """
    Failure taxonomy.

    Every provider-originated failure is translated into one of these at the
    orchestrator boundary.
    """

    MODEL_UNAVAILABLE = "model_unavailable"  # Terminal, no retry
    DOWNLOAD_REQUIRED = "download_required"
    DOWNLOAD_IN_PROGRESS = "download_in_progress"
    USER_ACTIVATION_REQUIRED = "user_activation_required"
    CANCELLED = "cancelled"
    EMPTY_CONTEXT = "empty_context"
    PARSE_ERROR = "parse_error"
    STREAMING_FAILURE = "streaming_failure"
    PROVIDER_ERROR = "provider_error"


# =============================================================================
# Request lifecycle
# =============================================================================


class RequestState(str, Enum):
    """Per-request state machine."""

    IDLE = "idle"
    CONTEXT_READY = "context_ready"
    CACHE_HIT = "cache_hit"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    BATCH = "batch"
    CLEANING = "cleaning"
    DONE = "done"
    ABORTED = "aborted"
    FAILED = "failed"


class CompletionPath(str, Enum):
    """Which provider path produced a completion."""

    CACHE = "cache"
    STREAMING = "streaming"
    BATCH = "batch"


# =============================================================================
# Triggers
# =============================================================================


class EventKind(str, Enum):
    """Raw UI event kinds the trigger controller understands."""

    KEY_DOWN = "keydown"
    KEY_UP = "keyup"
    INPUT = "input"


class TriggerKind(str, Enum):
    """Why a completion was requested."""

    MANUAL = "manual"  # Ctrl+Shift+Space, always considered
    CTRL_ENTER = "ctrl_enter"
    DOUBLE_SPACE = "double_space"
    AFTER_PUNCTUATION = "after_punctuation"
    SITE_TOGGLE = "site_toggle"  # Not a completion trigger


class RejectReason(str, Enum):
    """Why a trigger was not admitted."""

    NOT_A_TRIGGER = "not_a_trigger"
    TRIGGER_DISABLED = "trigger_disabled"
    RATE_LIMITED = "rate_limited"
    NOT_EDITABLE = "not_editable"
    SITE_DISABLED = "site_disabled"
    DEFERRED = "deferred"  # Waiting for the punctuation settle delay
    SUPERSEDED = "superseded"  # A later input replaced the deferred trigger
