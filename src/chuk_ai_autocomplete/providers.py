# chuk_ai_autocomplete/providers.py
"""
Collaborator protocols and boundary adapters.

The engine never talks to a concrete browser or model runtime. Everything it
consumes is described here as a Protocol, together with the two adapters that
normalise provider output at the boundary:

- ``iterate_fragments``: turns any supported streaming shape (async iterator,
  sync iterable, or token/done/error callbacks) into one pull-based async
  sequence of text fragments.
- ``parse_structured_response``: turns a raw JSON string, a dict, or an
  already-typed object into a StructuredCompletion.

Usage::

    async for fragment in iterate_fragments(await session.prompt_streaming(prompt, options)):
        ...
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import AsyncIterator, Callable
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field, ValidationError

from chuk_ai_autocomplete.constants import DEFAULT_TEMPERATURE, DEFAULT_TOP_K, PROMPT_LANGUAGE
from chuk_ai_autocomplete.exceptions import ParseError
from chuk_ai_autocomplete.models import (
    CancelToken,
    DownloadProgress,
    ModelAvailability,
    StructuredCompletion,
    TextBlock,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[DownloadProgress], None]
"""Callback invoked with download progress while a session is created."""

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


# =============================================================================
# Option structures
# =============================================================================


class CompleteOptions(BaseModel):
    """Per-call options for a model prompt. Unset fields keep their defaults."""

    model_config = {"arbitrary_types_allowed": True}

    response_schema: dict[str, Any] | None = Field(
        default=None, description="JSON schema constraint; None for free text"
    )
    cancel_signal: CancelToken | None = Field(default=None, description="Cooperative cancellation")
    temperature: float = Field(default=DEFAULT_TEMPERATURE)
    top_k: int = Field(default=DEFAULT_TOP_K)
    language: str = Field(default=PROMPT_LANGUAGE, description="Language of the prompt itself")


class SessionOptions(BaseModel):
    """Options used once when creating a model session."""

    system_prompt: str = ""
    temperature: float = Field(default=DEFAULT_TEMPERATURE)
    top_k: int = Field(default=DEFAULT_TOP_K)
    language: str = Field(default=PROMPT_LANGUAGE)


# =============================================================================
# Host surface
# =============================================================================


@runtime_checkable
class HostTextSurface(Protocol):
    """The focused editable surface. The engine trusts whatever it returns."""

    @property
    def is_editable(self) -> bool: ...

    def get_before_cursor(self) -> str: ...

    def get_after_cursor(self) -> str: ...

    def get_full_text(self) -> str: ...

    def get_cursor_position(self) -> Any: ...

    def insert_at_cursor(self, text: str, position: Any = None) -> None: ...


@runtime_checkable
class PageInspector(Protocol):
    """Read-only view of the page hosting the focused surface."""

    def title(self) -> str: ...

    def meta_description(self) -> str: ...

    def headings(self) -> list[str]: ...

    def text_blocks(self) -> list[TextBlock]: ...

    def focused_center(self) -> tuple[float, float] | None: ...


# =============================================================================
# Language model
# =============================================================================


@runtime_checkable
class LanguageModelSession(Protocol):
    """A created model session supporting one-shot prompts."""

    async def prompt(self, prompt: str, options: CompleteOptions) -> Any:
        """Return a raw JSON string, a dict, or a StructuredCompletion."""
        ...


@runtime_checkable
class StreamingLanguageModelSession(LanguageModelSession, Protocol):
    """A session that can also stream continuation text."""

    async def prompt_streaming(self, prompt: str, options: CompleteOptions) -> Any:
        """Return any shape accepted by ``iterate_fragments``."""
        ...


@runtime_checkable
class LanguageModelProvider(Protocol):
    async def check_availability(self) -> ModelAvailability: ...

    async def create(
        self,
        options: SessionOptions,
        on_progress: ProgressCallback | None = None,
    ) -> LanguageModelSession: ...


@runtime_checkable
class CallbackStream(Protocol):
    """Event-emitter style stream: token, done and error callbacks."""

    def on_token(self, callback: Callable[[str], None]) -> None: ...

    def on_done(self, callback: Callable[[], None]) -> None: ...

    def on_error(self, callback: Callable[[BaseException], None]) -> None: ...


# =============================================================================
# Summarizer / language detector
# =============================================================================


@runtime_checkable
class Summarizer(Protocol):
    async def summarize(self, text: str) -> str: ...


@runtime_checkable
class SummarizerProvider(Protocol):
    async def check_availability(self) -> ModelAvailability: ...

    async def create(self) -> Summarizer: ...


class DetectedLanguage(BaseModel):
    """One language detection candidate."""

    detected_language: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


@runtime_checkable
class LanguageDetector(Protocol):
    async def detect(self, text: str) -> list[DetectedLanguage]:
        """Candidates ordered by descending confidence."""
        ...


@runtime_checkable
class LanguageDetectorProvider(Protocol):
    async def check_availability(self) -> ModelAvailability: ...

    async def create(self) -> LanguageDetector: ...


# =============================================================================
# Boundary adapters
# =============================================================================


class _StreamDone:
    pass


class _StreamFailed:
    def __init__(self, error: BaseException) -> None:
        self.error = error


async def iterate_fragments(stream: Any) -> AsyncIterator[str]:
    """
    Normalize a provider stream into a pull-based async sequence of fragments.

    Non-string chunks from iterator-style streams are skipped. Errors signalled
    through a callback stream are raised from the iterator.
    """
    if isinstance(stream, str):
        if stream:
            yield stream
        return

    if hasattr(stream, "__aiter__"):
        async for chunk in stream:
            if isinstance(chunk, str):
                yield chunk
        return

    if isinstance(stream, CallbackStream):
        queue: asyncio.Queue[Any] = asyncio.Queue()
        stream.on_token(lambda token: queue.put_nowait(token or ""))
        stream.on_done(lambda: queue.put_nowait(_StreamDone()))
        stream.on_error(lambda error: queue.put_nowait(_StreamFailed(error)))
        while True:
            item = await queue.get()
            if isinstance(item, _StreamDone):
                return
            if isinstance(item, _StreamFailed):
                raise item.error
            if item:
                yield item

    if hasattr(stream, "__iter__"):
        for chunk in stream:
            if isinstance(chunk, str):
                yield chunk
        return

    raise TypeError(f"Unsupported stream type: {type(stream).__name__}")


def parse_structured_response(raw: Any) -> StructuredCompletion:
    """
    Parse-or-pass-through adapter for structured model output.

    Raises:
        ParseError: if the payload is not valid JSON or fails validation.
    """
    if isinstance(raw, StructuredCompletion):
        return raw

    payload = raw
    if isinstance(raw, str):
        text = _CODE_FENCE.sub("", raw.strip())
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseError(f"Failed to parse AI response: {e.msg}") from e
    elif isinstance(raw, BaseModel):
        payload = raw.model_dump()

    if not isinstance(payload, dict):
        raise ParseError(f"Failed to parse AI response: expected object, got {type(payload).__name__}")

    try:
        return StructuredCompletion.model_validate(payload)
    except ValidationError as e:
        raise ParseError(f"Failed to parse AI response: {e.error_count()} validation error(s)") from e
