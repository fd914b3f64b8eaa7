# tests/conftest.py
"""
Shared pytest fixtures and fakes for chuk_ai_autocomplete tests.

Providers are replaced by small in-memory fakes and time by a FakeClock, so
rate limiting, throttling and cache TTLs are fully deterministic.
"""

import logging

import pytest

from chuk_ai_autocomplete.engine import EngineState
from chuk_ai_autocomplete.models import DownloadProgress, ModelAvailability
from chuk_ai_autocomplete.providers import DetectedLanguage
from chuk_ai_autocomplete.settings import EngineSettings
from chuk_ai_autocomplete.surfaces import InMemoryTextSurface

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)
logging.getLogger("chuk_ai_autocomplete").setLevel(logging.DEBUG)


# =============================================================================
# Fakes
# =============================================================================


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 10_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


class FakeSession:
    """Batch-only model session returning queued responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []

    async def prompt(self, prompt, options):
        self.prompts.append((prompt, options))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, BaseException):
            raise response
        return response


class FakeStreamingSession(FakeSession):
    """Streaming session yielding fixed fragments (batch responses optional)."""

    def __init__(self, fragments=(), *responses, stream_error=None, fail_after=None):
        super().__init__(*(responses or ('{"accept": false, "confidence": 0, "sentences": []}',)))
        self.fragments = list(fragments)
        self.stream_error = stream_error
        self.fail_after = fail_after
        self.stream_prompts = []
        self.fragments_sent = 0

    async def prompt_streaming(self, prompt, options):
        self.stream_prompts.append((prompt, options))
        if self.stream_error is not None and self.fail_after is None:
            raise self.stream_error
        return self._generate()

    async def _generate(self):
        for fragment in self.fragments:
            if self.fail_after is not None and self.fragments_sent >= self.fail_after:
                raise self.stream_error
            self.fragments_sent += 1
            yield fragment


class FakeModelProvider:
    """Language model provider with a fixed availability."""

    def __init__(self, session=None, availability=ModelAvailability.READY, progress=(), error=None):
        self.session = session
        self.availability = availability
        self.progress = list(progress)
        self.error = error
        self.check_calls = 0
        self.create_calls = 0
        self.created_with = None

    async def check_availability(self):
        self.check_calls += 1
        return self.availability

    async def create(self, options, on_progress=None):
        self.create_calls += 1
        self.created_with = options
        if on_progress is not None:
            for loaded, total in self.progress:
                on_progress(DownloadProgress(loaded=loaded, total=total))
        if self.error is not None:
            raise self.error
        return self.session


class FakeSummarizer:
    def __init__(self, summary="short summary", error=None):
        self.summary = summary
        self.error = error
        self.calls = []

    async def summarize(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.summary


class FakeDetector:
    def __init__(self, results=None, error=None):
        self.results = results if results is not None else [DetectedLanguage(detected_language="en", confidence=0.9)]
        self.error = error
        self.calls = []

    async def detect(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.results


class FakeHelperProvider:
    """Summarizer/detector provider."""

    def __init__(self, helper, availability=ModelAvailability.READY):
        self.helper = helper
        self.availability = availability
        self.create_calls = 0

    async def check_availability(self):
        return self.availability

    async def create(self):
        self.create_calls += 1
        return self.helper


class FakeInspector:
    """PageInspector over fixed page data."""

    def __init__(self, title="", description="", headings=(), blocks=(), center=(0.0, 0.0)):
        self._title = title
        self._description = description
        self._headings = list(headings)
        self._blocks = list(blocks)
        self._center = center
        self.title_calls = 0

    def title(self):
        self.title_calls += 1
        return self._title

    def meta_description(self):
        return self._description

    def headings(self):
        return self._headings

    def text_blocks(self):
        return self._blocks

    def focused_center(self):
        return self._center


# =============================================================================
# Helpers
# =============================================================================


def structured(sentences, confidence=0.9, accept=True) -> dict:
    return {"accept": accept, "confidence": confidence, "sentences": list(sentences)}


def make_state(text="", cursor=None, editable=True, site="example.com", **settings) -> EngineState:
    """EngineState with an in-memory surface and optional settings overrides."""
    state = EngineState(site=site)
    if settings:
        state.apply_settings(EngineSettings(**settings))
    state.surface = InMemoryTextSurface(text, cursor=cursor, editable=editable)
    return state


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def state():
    return make_state("Hello, my name is John and I")


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
