# chuk_ai_autocomplete/models/request.py
"""
Request lifecycle models.

A CompletionRequest lives for exactly one trigger cycle. Its state machine:

    IDLE -> CONTEXT_READY -> CACHE_HIT -> DONE
                          -> REQUESTING -> STREAMING | BATCH -> CLEANING -> DONE

ABORTED is reachable from every state except DONE; FAILED from REQUESTING,
STREAMING and BATCH. STREAMING -> BATCH covers the batch fallback.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr

from chuk_ai_autocomplete.models.context import ContextWindow
from chuk_ai_autocomplete.models.enums import RequestState

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[RequestState, set[RequestState]] = {
    RequestState.IDLE: {RequestState.CONTEXT_READY},
    RequestState.CONTEXT_READY: {RequestState.CACHE_HIT, RequestState.REQUESTING},
    RequestState.CACHE_HIT: {RequestState.DONE},
    RequestState.REQUESTING: {RequestState.STREAMING, RequestState.BATCH, RequestState.FAILED},
    RequestState.STREAMING: {RequestState.CLEANING, RequestState.BATCH, RequestState.FAILED},
    RequestState.BATCH: {RequestState.CLEANING, RequestState.FAILED},
    RequestState.CLEANING: {RequestState.DONE},
    RequestState.DONE: set(),
    RequestState.ABORTED: set(),
    RequestState.FAILED: set(),
}

_TERMINAL = {RequestState.DONE, RequestState.ABORTED, RequestState.FAILED}


class CancelToken:
    """
    Cooperative cancellation signal.

    Handed to providers via CompleteOptions.cancel_signal. Cancelling never
    interrupts anything by force; providers are expected to stop, and the
    orchestrator drops any result that arrives afterwards.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "superseded") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


class RequestTimings(BaseModel):
    """Timing marks (monotonic milliseconds) for one request."""

    started_ms: float = 0.0
    context_ready_ms: float | None = None
    first_fragment_ms: float | None = None
    finished_ms: float | None = None

    @property
    def total_ms(self) -> float | None:
        if self.finished_ms is None:
            return None
        return self.finished_ms - self.started_ms


class CompletionRequest(BaseModel):
    """Ephemeral value object for one trigger cycle, owned by the orchestrator."""

    model_config = {"arbitrary_types_allowed": True}

    request_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    window: ContextWindow | None = None
    language: str | None = None
    cache_key: str | None = None
    cursor_position: Any = None
    timings: RequestTimings = Field(default_factory=RequestTimings)
    state: RequestState = RequestState.IDLE

    _cancel_token: CancelToken = PrivateAttr(default_factory=CancelToken)

    @property
    def cancel_token(self) -> CancelToken:
        return self._cancel_token

    @property
    def cancelled(self) -> bool:
        return self._cancel_token.cancelled

    @property
    def is_terminal(self) -> bool:
        return self.state in _TERMINAL

    def transition(self, target: RequestState) -> None:
        """Move to ``target``, enforcing the state machine."""
        if target == RequestState.ABORTED and self.state != RequestState.DONE:
            self.state = target
            return
        if target not in _TRANSITIONS[self.state]:
            raise ValueError(f"Invalid request transition {self.state.value} -> {target.value}")
        logger.debug(f"Request {self.request_id}: {self.state.value} -> {target.value}")
        self.state = target

    def abort(self, reason: str = "superseded") -> None:
        """Signal cancellation and mark the request aborted (no-op once terminal)."""
        self._cancel_token.cancel(reason)
        if not self.is_terminal:
            self.state = RequestState.ABORTED


class StreamState(BaseModel):
    """Accumulator for one streamed response, owned by the StreamAssembler."""

    buffer: str = ""
    projection: str = ""
    last_update_ms: float | None = None
    fragments: int = 0
    early_stopped: bool = False
    finished: bool = False
