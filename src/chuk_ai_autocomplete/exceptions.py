# chuk_ai_autocomplete/exceptions.py
"""
Exception hierarchy for the autocomplete engine.

Each exception maps onto one ErrorKind. The orchestrator catches these (and
any other provider exception) at its boundary and turns them into a
CompletionOutcome, so a failed request never leaves the engine unusable.
"""

from __future__ import annotations

from chuk_ai_autocomplete.models.enums import ErrorKind


class AutocompleteError(Exception):
    """Base class for all engine errors."""

    kind: ErrorKind = ErrorKind.PROVIDER_ERROR
    user_message: str = "Completion failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.user_message)
        self.message = message or self.user_message


class ModelUnavailable(AutocompleteError):
    """The language model provider reports the model cannot be used here."""

    kind = ErrorKind.MODEL_UNAVAILABLE
    user_message = "Built-in AI model is not available on this device"


class DownloadRequired(AutocompleteError):
    """
    The model is not downloaded yet.

    Raised as one of its subclasses: the download is already running, or it
    still has to be started by a user-initiated trigger.
    """

    kind = ErrorKind.DOWNLOAD_REQUIRED
    user_message = "AI model download required"


class DownloadInProgress(DownloadRequired):
    """A model download is already running; retry once it completes."""

    kind = ErrorKind.DOWNLOAD_IN_PROGRESS
    user_message = "AI model downloading… (this can take a while, please wait)"


class UserActivationRequired(DownloadRequired):
    """Starting the download needs a user-initiated trigger."""

    kind = ErrorKind.USER_ACTIVATION_REQUIRED
    user_message = "Trigger again to download the AI model (requires user interaction)"


class CompletionCancelled(AutocompleteError):
    """The request was superseded or explicitly cancelled."""

    kind = ErrorKind.CANCELLED
    user_message = "Completion cancelled"


class EmptyContext(AutocompleteError):
    """There is no text before the cursor to continue."""

    kind = ErrorKind.EMPTY_CONTEXT
    user_message = "No context available for completion"


class ParseError(AutocompleteError):
    """A structured response could not be parsed or validated."""

    kind = ErrorKind.PARSE_ERROR
    user_message = "Failed to parse AI response"


class StreamingFailure(AutocompleteError):
    """Streaming and its batch fallback both failed."""

    kind = ErrorKind.STREAMING_FAILURE
    user_message = "Completion failed"

    def __init__(self, message: str | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
