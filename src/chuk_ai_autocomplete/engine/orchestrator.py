# chuk_ai_autocomplete/engine/orchestrator.py
"""
CompletionOrchestrator - runs one trigger cycle end to end.

    trigger -> cancel previous -> extract context -> ensure model
            -> detect language -> cache lookup -> streaming (or batch)
            -> clean/trim -> cache -> outcome

At most one request is active per EngineState. Starting a new request
cancels the previous one, and any result belonging to a request that is no
longer active is discarded as CANCELLED. Provider failures never escape:
they become a CompletionOutcome with status ERROR (or DOWNLOADING).

Usage::

    orchestrator = CompletionOrchestrator(loader=ModelLoader(provider))
    outcome = await orchestrator.request_completion(state, on_update=render)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator, Callable

from chuk_ai_autocomplete.config import DEFAULT_LANGUAGE
from chuk_ai_autocomplete.constants import (
    LANGUAGE_CONFIDENCE_THRESHOLD,
    LOW_CONFIDENCE_THRESHOLD,
    MIN_DETECTION_CHARS,
)
from chuk_ai_autocomplete.exceptions import (
    AutocompleteError,
    CompletionCancelled,
    DownloadInProgress,
    EmptyContext,
    StreamingFailure,
)
from chuk_ai_autocomplete.models import (
    CompletionOutcome,
    CompletionPath,
    CompletionRequest,
    CompletionStatus,
    ContextWindow,
    InputEvent,
    RequestState,
    RequestTimings,
    TriggerKind,
)
from chuk_ai_autocomplete.providers import (
    CompleteOptions,
    LanguageModelSession,
    StreamingLanguageModelSession,
    iterate_fragments,
    parse_structured_response,
)

from .cache import compute_cache_key
from .context_extractor import AmbientContextExtractor, ContextExtractor
from .model_loader import ModelLoader
from .prompt_builder import PromptBuilder, build_response_schema
from .state import Clock, EngineState, monotonic_ms
from .stream_assembler import StreamAssembler, finalize_completion
from .trigger import TriggerController

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[CompletionOutcome], None]


class CompletionOrchestrator:
    """Coordinates extraction, model calls, assembly and caching."""

    def __init__(
        self,
        loader: ModelLoader,
        extractor: ContextExtractor | None = None,
        ambient: AmbientContextExtractor | None = None,
        prompt_builder: PromptBuilder | None = None,
        trigger: TriggerController | None = None,
        clock: Clock = monotonic_ms,
        default_language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self.loader = loader
        self.extractor = extractor or ContextExtractor()
        self.ambient = ambient or AmbientContextExtractor(clock=clock)
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.trigger = trigger or TriggerController()
        self.clock = clock
        self.default_language = default_language

    # =========================================================================
    # Public API
    # =========================================================================

    def cancel_active(self, state: EngineState, reason: str = "superseded") -> bool:
        """Cancel the in-flight request, if any. Returns True if one was cancelled."""
        request = state.active_request
        state.active_request = None
        if request is None or request.is_terminal:
            return False
        request.abort(reason)
        logger.debug(f"Request {request.request_id} cancelled ({reason})")
        return True

    async def request_completion(
        self,
        state: EngineState,
        on_update: OutcomeCallback | None = None,
        user_activation: bool = True,
    ) -> CompletionOutcome:
        """
        Run one completion cycle against ``state``.

        Args:
            state: Engine state (surface, policy, cache, model handles)
            on_update: Receives STREAMING_UPDATE and DOWNLOADING outcomes
            user_activation: Whether the trigger was a user gesture

        Returns:
            The final CompletionOutcome for this request
        """
        self.cancel_active(state)
        request = CompletionRequest(timings=RequestTimings(started_ms=self.clock()))
        state.active_request = request

        try:
            return await self._run(state, request, on_update, user_activation)
        except CompletionCancelled:
            return self._cancelled(request)
        except asyncio.CancelledError:
            # A provider honouring the cancel signal; a cancelled task still propagates
            if state.is_active(request):
                raise
            return self._cancelled(request)
        except EmptyContext as e:
            request.abort("empty_context")
            return CompletionOutcome(
                status=CompletionStatus.NO_SUGGESTION,
                message=e.message,
                error_kind=e.kind,
                request_id=request.request_id,
            )
        except DownloadInProgress as e:
            request.abort("downloading")
            return CompletionOutcome(
                status=CompletionStatus.DOWNLOADING,
                message=e.message,
                error_kind=e.kind,
                request_id=request.request_id,
            )
        except AutocompleteError as e:
            if not state.is_active(request):
                return self._cancelled(request)
            logger.warning(f"Completion failed ({e.kind.value}): {e.message}")
            self._fail(request)
            return CompletionOutcome(
                status=CompletionStatus.ERROR,
                message=e.user_message,
                error_kind=e.kind,
                request_id=request.request_id,
            )
        except Exception as e:
            if not state.is_active(request):
                return self._cancelled(request)
            logger.error(f"Unexpected completion error: {e}")
            self._fail(request)
            return CompletionOutcome(
                status=CompletionStatus.ERROR,
                message=AutocompleteError.user_message,
                error_kind=AutocompleteError.kind,
                request_id=request.request_id,
            )
        finally:
            request.timings.finished_ms = self.clock()
            if state.active_request is request:
                state.active_request = None

    async def handle_event(
        self,
        state: EngineState,
        event: InputEvent,
        on_update: OutcomeCallback | None = None,
        on_site_toggle: Callable[[], None] | None = None,
    ) -> CompletionOutcome | None:
        """
        Feed a UI event through the trigger controller.

        Returns the outcome of the completion it started, or None when the
        event did not start one.
        Typing keys and Escape cancel the in-flight request.
        """
        decision = self.trigger.evaluate(state, event)

        if decision.cancels_active:
            self.cancel_active(state, reason="dismissed")
            return None

        if decision.is_deferred and decision.generation is not None:
            delay_ms = max(0.0, decision.deferred_until_ms - event.timestamp_ms)
            await asyncio.sleep(delay_ms / 1000.0)
            decision = self.trigger.fire_deferred(state, decision.generation, self.clock())

        if not decision.admitted:
            if decision.reason is not None:
                logger.debug(f"Event not admitted: {decision.reason.value}")
            return None

        if decision.kind == TriggerKind.SITE_TOGGLE:
            if on_site_toggle is not None:
                on_site_toggle()
            return None

        return await self.request_completion(state, on_update=on_update, user_activation=True)

    # =========================================================================
    # Pipeline
    # =========================================================================

    async def _run(
        self,
        state: EngineState,
        request: CompletionRequest,
        on_update: OutcomeCallback | None,
        user_activation: bool,
    ) -> CompletionOutcome:
        surface = state.surface
        window = await self.extractor.extract(surface, state.handles.summarizer)
        self._ensure_active(state, request)
        if window.is_empty:
            raise EmptyContext()

        request.window = window
        request.cursor_position = surface.get_cursor_position() if surface is not None else None

        def on_status(message: str) -> None:
            if on_update is not None and state.is_active(request):
                on_update(
                    CompletionOutcome(
                        status=CompletionStatus.DOWNLOADING,
                        message=message,
                        request_id=request.request_id,
                    )
                )

        session = await self.loader.ensure_ready(state, user_activation, on_status)
        self._ensure_active(state, request)

        request.language = await self._detect_language(state, window)
        self._ensure_active(state, request)
        request.cache_key = compute_cache_key(state.site, window.before_cursor, request.language)
        request.transition(RequestState.CONTEXT_READY)
        request.timings.context_ready_ms = self.clock()

        cached = state.cache.get(request.cache_key)
        if cached is not None:
            request.transition(RequestState.CACHE_HIT)
            request.transition(RequestState.DONE)
            logger.debug(f"Request {request.request_id} served from cache")
            return CompletionOutcome(
                status=CompletionStatus.READY,
                text=cached,
                path=CompletionPath.CACHE,
                request_id=request.request_id,
                cursor_position=request.cursor_position,
            )

        request.transition(RequestState.REQUESTING)

        if isinstance(session, StreamingLanguageModelSession):
            request.transition(RequestState.STREAMING)
            try:
                text = await self._run_streaming(state, request, session, on_update)
            except CompletionCancelled:
                raise
            except Exception as e:
                self._ensure_active(state, request)
                logger.info(f"Streaming failed, falling back to batch: {e}")
                request.transition(RequestState.BATCH)
                try:
                    return await self._run_batch(state, request, session)
                except CompletionCancelled:
                    raise
                except Exception as batch_error:
                    self._ensure_active(state, request)
                    raise StreamingFailure(str(batch_error), cause=e) from batch_error
            return self._finish(state, request, text, CompletionPath.STREAMING)

        request.transition(RequestState.BATCH)
        return await self._run_batch(state, request, session)

    async def _run_streaming(
        self,
        state: EngineState,
        request: CompletionRequest,
        session: StreamingLanguageModelSession,
        on_update: OutcomeCallback | None,
    ) -> str:
        policy = state.policy
        prompt = self.prompt_builder.build_streaming(request.window, request.language, policy)
        options = CompleteOptions(cancel_signal=request.cancel_token)
        stream = await session.prompt_streaming(prompt, options)
        self._ensure_active(state, request)

        def render(projection: str) -> None:
            if on_update is not None and state.is_active(request):
                on_update(
                    CompletionOutcome(
                        status=CompletionStatus.STREAMING_UPDATE,
                        text=projection,
                        path=CompletionPath.STREAMING,
                        request_id=request.request_id,
                        cursor_position=request.cursor_position,
                    )
                )

        assembler = StreamAssembler(request.window, policy, clock=self.clock)
        text = await assembler.consume(
            self._timed(iterate_fragments(stream), request),
            on_update=render,
            is_active=lambda: state.is_active(request),
        )
        self._ensure_active(state, request)
        return text

    async def _run_batch(
        self,
        state: EngineState,
        request: CompletionRequest,
        session: LanguageModelSession,
    ) -> CompletionOutcome:
        policy = state.policy
        ambient = await self.ambient.extract(state, state.handles.summarizer)
        self._ensure_active(state, request)

        prompt = self.prompt_builder.build_structured(request.window, request.language, policy, ambient)
        options = CompleteOptions(
            response_schema=build_response_schema(policy.max_sentences),
            cancel_signal=request.cancel_token,
        )
        raw = await session.prompt(prompt, options)
        self._ensure_active(state, request)

        structured = parse_structured_response(raw)
        if not structured.accept or not structured.sentences:
            return self._finish(state, request, "", CompletionPath.BATCH, structured.confidence)

        text = finalize_completion(structured.joined, request.window.before_cursor, policy.max_sentences)
        return self._finish(state, request, text, CompletionPath.BATCH, structured.confidence)

    def _finish(
        self,
        state: EngineState,
        request: CompletionRequest,
        text: str,
        path: CompletionPath,
        confidence: float | None = None,
    ) -> CompletionOutcome:
        request.transition(RequestState.CLEANING)
        request.transition(RequestState.DONE)

        if not text.strip():
            return CompletionOutcome(
                status=CompletionStatus.NO_SUGGESTION,
                confidence=confidence,
                path=path,
                request_id=request.request_id,
                cursor_position=request.cursor_position,
            )

        if confidence is not None and confidence < LOW_CONFIDENCE_THRESHOLD:
            logger.debug(f"Request {request.request_id}: low confidence {confidence:.2f}, not cached")
            return CompletionOutcome(
                status=CompletionStatus.LOW_CONFIDENCE,
                text=text,
                confidence=confidence,
                path=path,
                request_id=request.request_id,
                cursor_position=request.cursor_position,
            )

        state.cache.set(request.cache_key, text)
        return CompletionOutcome(
            status=CompletionStatus.READY,
            text=text,
            confidence=confidence,
            path=path,
            request_id=request.request_id,
            cursor_position=request.cursor_position,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _detect_language(self, state: EngineState, window: ContextWindow) -> str:
        """Top detection result if confident enough, otherwise the default."""
        detector = state.handles.detector
        if detector is None or len(window.before_cursor) < MIN_DETECTION_CHARS:
            return self.default_language
        try:
            results = await detector.detect(window.recent_window)
        except Exception as e:
            logger.warning(f"Language detection failed: {e}")
            return self.default_language
        if results and results[0].confidence >= LANGUAGE_CONFIDENCE_THRESHOLD:
            return results[0].detected_language
        return self.default_language

    async def _timed(
        self,
        fragments: AsyncGenerator[str, None],
        request: CompletionRequest,
    ) -> AsyncGenerator[str, None]:
        try:
            async for fragment in fragments:
                if request.timings.first_fragment_ms is None:
                    request.timings.first_fragment_ms = self.clock()
                yield fragment
        finally:
            await fragments.aclose()

    @staticmethod
    def _ensure_active(state: EngineState, request: CompletionRequest) -> None:
        if not state.is_active(request):
            raise CompletionCancelled()

    @staticmethod
    def _fail(request: CompletionRequest) -> None:
        if request.state in (RequestState.REQUESTING, RequestState.STREAMING, RequestState.BATCH):
            request.transition(RequestState.FAILED)
        else:
            request.abort("failed")

    @staticmethod
    def _cancelled(request: CompletionRequest) -> CompletionOutcome:
        request.abort("superseded")
        return CompletionOutcome(status=CompletionStatus.CANCELLED, request_id=request.request_id)
