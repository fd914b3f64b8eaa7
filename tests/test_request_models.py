# tests/test_request_models.py
"""Tests for request lifecycle models, outcomes and the error taxonomy."""

import asyncio

import pytest

from chuk_ai_autocomplete.exceptions import (
    DownloadInProgress,
    DownloadRequired,
    EmptyContext,
    StreamingFailure,
    UserActivationRequired,
)
from chuk_ai_autocomplete.models import (
    CancelToken,
    CompletionOutcome,
    CompletionPath,
    CompletionRequest,
    CompletionStatus,
    ContextWindow,
    ErrorKind,
    RequestState,
    RequestTimings,
)

# =============================================================================
# Request state machine
# =============================================================================


class TestCompletionRequest:
    def test_ids_unique(self):
        assert CompletionRequest().request_id != CompletionRequest().request_id

    def test_streaming_path(self):
        request = CompletionRequest()
        for target in (
            RequestState.CONTEXT_READY,
            RequestState.REQUESTING,
            RequestState.STREAMING,
            RequestState.CLEANING,
            RequestState.DONE,
        ):
            request.transition(target)
        assert request.state == RequestState.DONE
        assert request.is_terminal

    def test_cache_hit_path(self):
        request = CompletionRequest()
        request.transition(RequestState.CONTEXT_READY)
        request.transition(RequestState.CACHE_HIT)
        request.transition(RequestState.DONE)
        assert request.is_terminal

    def test_streaming_falls_back_to_batch(self):
        request = CompletionRequest(state=RequestState.STREAMING)
        request.transition(RequestState.BATCH)
        assert request.state == RequestState.BATCH

    def test_invalid_transition(self):
        request = CompletionRequest()
        with pytest.raises(ValueError):
            request.transition(RequestState.STREAMING)

    def test_abort_from_any_live_state(self):
        request = CompletionRequest(state=RequestState.STREAMING)
        request.abort()
        assert request.state == RequestState.ABORTED
        assert request.cancelled
        assert request.cancel_token.reason == "superseded"

    def test_abort_after_done_keeps_state(self):
        request = CompletionRequest(state=RequestState.DONE)
        request.abort()
        assert request.state == RequestState.DONE
        assert request.cancelled

    def test_done_cannot_be_aborted_by_transition(self):
        request = CompletionRequest(state=RequestState.DONE)
        with pytest.raises(ValueError):
            request.transition(RequestState.ABORTED)

    def test_timings(self):
        timings = RequestTimings(started_ms=100)
        assert timings.total_ms is None
        timings.finished_ms = 250
        assert timings.total_ms == 150


class TestCancelToken:
    def test_first_reason_wins(self):
        token = CancelToken()
        token.cancel("focus-lost")
        token.cancel("superseded")
        assert token.cancelled
        assert token.reason == "focus-lost"

    @pytest.mark.asyncio
    async def test_wait(self):
        token = CancelToken()
        waiter = asyncio.create_task(token.wait())
        await asyncio.sleep(0)
        assert not waiter.done()
        token.cancel()
        await asyncio.wait_for(waiter, timeout=1)


# =============================================================================
# Outcomes and context
# =============================================================================


class TestCompletionOutcome:
    def test_has_suggestion(self):
        assert CompletionOutcome(status=CompletionStatus.READY, text=" hi").has_suggestion
        assert CompletionOutcome(status=CompletionStatus.LOW_CONFIDENCE, text=" hi").has_suggestion
        assert not CompletionOutcome(status=CompletionStatus.READY, text="").has_suggestion
        assert not CompletionOutcome(status=CompletionStatus.STREAMING_UPDATE, text=" hi").has_suggestion

    def test_from_cache(self):
        assert CompletionOutcome(status=CompletionStatus.READY, path=CompletionPath.CACHE).from_cache
        assert not CompletionOutcome(status=CompletionStatus.READY, path=CompletionPath.BATCH).from_cache

    def test_status_values(self):
        assert CompletionStatus.STREAMING_UPDATE.value == "streaming-update"
        assert CompletionStatus.LOW_CONFIDENCE.value == "low-confidence"


class TestContextWindow:
    def test_frozen(self):
        window = ContextWindow(before_cursor="abc")
        with pytest.raises(Exception):
            window.before_cursor = "changed"

    def test_is_empty(self):
        assert ContextWindow().is_empty
        assert ContextWindow(before_cursor=" \n").is_empty
        assert not ContextWindow(before_cursor="a").is_empty


class TestErrors:
    def test_kinds_and_messages(self):
        assert EmptyContext().kind == ErrorKind.EMPTY_CONTEXT
        assert EmptyContext().message == "No context available for completion"
        assert DownloadInProgress().kind == ErrorKind.DOWNLOAD_IN_PROGRESS

    def test_download_states_share_base(self):
        assert isinstance(DownloadInProgress(), DownloadRequired)
        assert isinstance(UserActivationRequired(), DownloadRequired)
        assert UserActivationRequired().kind == ErrorKind.USER_ACTIVATION_REQUIRED

    def test_custom_message(self):
        assert str(EmptyContext("nothing here")) == "nothing here"

    def test_streaming_failure_cause(self):
        cause = RuntimeError("socket closed")
        error = StreamingFailure("batch failed too", cause=cause)
        assert error.cause is cause
        assert error.kind == ErrorKind.STREAMING_FAILURE
