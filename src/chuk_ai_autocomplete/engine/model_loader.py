# chuk_ai_autocomplete/engine/model_loader.py
"""
ModelLoader - lazily creates the model sessions an engine needs.

The language model session is mandatory. Summarizer and language detector
sessions are optional helpers: they are created only when their provider
reports READY, and any failure leaves them unset instead of failing the
request.

Availability handling for the language model:
- UNAVAILABLE  -> ModelUnavailable (terminal)
- DOWNLOADING  -> DownloadInProgress (the next trigger re-checks)
- DOWNLOADABLE -> needs a user-initiated trigger, then downloads with progress
- READY        -> created immediately
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from chuk_ai_autocomplete.exceptions import (
    AutocompleteError,
    DownloadInProgress,
    ModelUnavailable,
    UserActivationRequired,
)
from chuk_ai_autocomplete.models import DownloadProgress, ModelAvailability
from chuk_ai_autocomplete.providers import (
    LanguageDetectorProvider,
    LanguageModelProvider,
    LanguageModelSession,
    SessionOptions,
    SummarizerProvider,
)

from .prompt_builder import SYSTEM_PROMPT
from .state import EngineState

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]


def download_message(progress: DownloadProgress) -> str:
    percent = progress.percent
    if percent is None:
        return "Downloading AI model…"
    return f"Downloading AI model… {percent}%"


class ModelLoader:
    """Creates and caches model sessions on an EngineState."""

    def __init__(
        self,
        model_provider: LanguageModelProvider | None,
        summarizer_provider: SummarizerProvider | None = None,
        detector_provider: LanguageDetectorProvider | None = None,
        session_options: SessionOptions | None = None,
    ) -> None:
        self.model_provider = model_provider
        self.summarizer_provider = summarizer_provider
        self.detector_provider = detector_provider
        self.session_options = session_options or SessionOptions(system_prompt=SYSTEM_PROMPT)

    async def ensure_ready(
        self,
        state: EngineState,
        user_activation: bool = True,
        on_status: StatusCallback | None = None,
    ) -> LanguageModelSession:
        """
        Return the language model session, creating it if needed.

        Args:
            state: Engine state holding the session handles
            user_activation: Whether the current trigger came from the user
            on_status: Receives download progress messages

        Returns:
            The ready session

        Raises:
            ModelUnavailable: no provider, or the model cannot run here
            DownloadInProgress: a download is already running
            UserActivationRequired: a download must be started by the user
            AutocompleteError: session creation failed
        """
        handles = state.handles
        if handles.session is not None:
            return handles.session

        if self.model_provider is None:
            raise ModelUnavailable()
        if handles.downloading:
            raise DownloadInProgress()

        availability = await self.model_provider.check_availability()
        logger.debug(f"Language model availability: {availability.value}")

        if availability == ModelAvailability.UNAVAILABLE:
            raise ModelUnavailable()
        if availability == ModelAvailability.DOWNLOADING:
            raise DownloadInProgress()
        if availability == ModelAvailability.DOWNLOADABLE and not user_activation:
            raise UserActivationRequired()

        downloading = availability == ModelAvailability.DOWNLOADABLE

        def report(progress: DownloadProgress) -> None:
            if on_status is not None:
                on_status(download_message(progress))

        handles.downloading = downloading
        try:
            if downloading:
                logger.info("Starting language model download")
                if on_status is not None:
                    on_status(download_message(DownloadProgress()))
            session = await self.model_provider.create(
                self.session_options,
                report if downloading else None,
            )
        except AutocompleteError:
            raise
        except Exception as e:
            logger.error(f"Failed to create language model session: {e}")
            raise AutocompleteError(f"Failed to create language model session: {e}") from e
        finally:
            handles.downloading = False

        handles.session = session
        logger.info("Language model session ready")
        await self.load_helpers(state)
        return session

    async def load_helpers(self, state: EngineState) -> None:
        """Create summarizer and detector sessions when their models are READY."""
        handles = state.handles
        if handles.summarizer is None and self.summarizer_provider is not None:
            handles.summarizer = await self._create_helper(self.summarizer_provider, "summarizer")
        if handles.detector is None and self.detector_provider is not None:
            handles.detector = await self._create_helper(self.detector_provider, "language detector")

    async def _create_helper(self, provider, name: str):
        try:
            availability = await provider.check_availability()
            if availability != ModelAvailability.READY:
                logger.debug(f"{name} not ready ({availability.value}), continuing without it")
                return None
            helper = await provider.create()
        except Exception as e:
            logger.warning(f"Failed to create {name}: {e}")
            return None
        logger.debug(f"{name} ready")
        return helper
