# chuk_ai_autocomplete/engine/context_extractor.py
"""
Context extraction for completion requests.

ContextExtractor builds the cursor-relative ContextWindow:
- recent_window: last 200 raw chars before the cursor, never summarized
- before_cursor: raw prefix, or for prefixes over 1000 chars
  "[Earlier context: <summary>]\\n\\n<last 500 chars>" when a summarizer exists,
  falling back to the last 800 chars if summarization fails

AmbientContextExtractor condenses the surrounding page (title, description,
headings, nearby text) into a short hint, cached for 5 seconds.

Neither extractor lets a summarizer or inspector failure escape.
"""

from __future__ import annotations

import logging
import math

from chuk_ai_autocomplete.constants import (
    AMBIENT_CACHE_TTL_MS,
    AMBIENT_FALLBACK_CHARS,
    AMBIENT_MAX_CHARS,
    AMBIENT_MAX_HEADINGS,
    AMBIENT_MAX_NEARBY_BLOCKS,
    AMBIENT_MAX_NEARBY_CANDIDATES,
    AMBIENT_NEARBY_RADIUS,
    AMBIENT_SUMMARIZE_THRESHOLD_CHARS,
    EARLIER_CONTEXT_TEMPLATE,
    RECENT_SEGMENT_CHARS,
    RECENT_WINDOW_CHARS,
    SUMMARIZE_THRESHOLD_CHARS,
    TRUNCATION_FALLBACK_CHARS,
)
from chuk_ai_autocomplete.models import AmbientContextCache, ContextWindow, TextBlock
from chuk_ai_autocomplete.providers import HostTextSurface, PageInspector, Summarizer

from .state import Clock, EngineState, monotonic_ms

logger = logging.getLogger(__name__)


class ContextExtractor:
    """Builds a ContextWindow from a host text surface."""

    def __init__(
        self,
        recent_window_chars: int = RECENT_WINDOW_CHARS,
        summarize_threshold_chars: int = SUMMARIZE_THRESHOLD_CHARS,
        recent_segment_chars: int = RECENT_SEGMENT_CHARS,
        fallback_chars: int = TRUNCATION_FALLBACK_CHARS,
    ) -> None:
        self.recent_window_chars = recent_window_chars
        self.summarize_threshold_chars = summarize_threshold_chars
        self.recent_segment_chars = recent_segment_chars
        self.fallback_chars = fallback_chars

    async def extract(
        self,
        surface: HostTextSurface | None,
        summarizer: Summarizer | None = None,
    ) -> ContextWindow:
        """
        Extract the context window around the cursor.

        Args:
            surface: The focused surface (None yields an empty window)
            summarizer: Optional summarizer for long prefixes

        Returns:
            A frozen ContextWindow
        """
        if surface is None:
            return ContextWindow()

        before = surface.get_before_cursor() or ""
        after = surface.get_after_cursor() or ""
        full_text = surface.get_full_text() or ""

        processed, summarized = await self.condense_prefix(before, summarizer)
        return ContextWindow(
            before_cursor=processed,
            after_cursor=after,
            recent_window=before[-self.recent_window_chars :],
            full_text=full_text,
            summarized=summarized,
        )

    async def condense_prefix(self, before: str, summarizer: Summarizer | None) -> tuple[str, bool]:
        """Summarize the early part of a long prefix; returns (text, summarized)."""
        if len(before) <= self.summarize_threshold_chars or summarizer is None:
            return before, False

        early = before[: -self.recent_segment_chars]
        recent = before[-self.recent_segment_chars :]
        try:
            summary = await summarizer.summarize(early)
        except Exception as e:
            logger.warning(f"Summarization failed, using truncated context: {e}")
            return before[-self.fallback_chars :], False

        logger.info("Used summarization for long context")
        return EARLIER_CONTEXT_TEMPLATE.format(summary=summary, recent=recent), True


class AmbientContextExtractor:
    """Extracts and caches a short description of the surrounding page."""

    def __init__(
        self,
        inspector: PageInspector | None = None,
        clock: Clock = monotonic_ms,
        ttl_ms: float = AMBIENT_CACHE_TTL_MS,
        radius: float = AMBIENT_NEARBY_RADIUS,
    ) -> None:
        self.inspector = inspector
        self.clock = clock
        self.ttl_ms = ttl_ms
        self.radius = radius

    async def extract(self, state: EngineState, summarizer: Summarizer | None = None) -> str | None:
        """
        Return the ambient page context, reusing a value younger than the TTL.

        Returns None when there is no inspector or inspection fails.
        """
        if self.inspector is None:
            return None

        now = self.clock()
        cached = state.ambient
        if cached.value is not None and now - cached.captured_at_ms < self.ttl_ms:
            return cached.value

        try:
            context = self._collect(self.inspector)
        except Exception as e:
            logger.warning(f"Website context extraction failed: {e}")
            return None

        if len(context) > AMBIENT_SUMMARIZE_THRESHOLD_CHARS and summarizer is not None:
            try:
                context = await summarizer.summarize(context)
            except Exception as e:
                logger.warning(f"Website context summarization failed: {e}")
                context = context[:AMBIENT_FALLBACK_CHARS]

        state.ambient = AmbientContextCache(value=context, captured_at_ms=self.clock())
        return context

    def _collect(self, inspector: PageInspector) -> str:
        title = (inspector.title() or "").strip()
        description = (inspector.meta_description() or "").strip()

        headings = [
            heading.strip()
            for heading in (inspector.headings() or [])[:AMBIENT_MAX_HEADINGS]
            if heading and 5 < len(heading.strip()) < 100
        ]

        nearby = [
            block.text.strip()
            for block in self.nearby_blocks(inspector)
            if 10 < len(block.text.strip()) < 200
        ][:AMBIENT_MAX_NEARBY_BLOCKS]

        parts = [title, description, "; ".join(headings), " ".join(nearby)]
        return " | ".join(part for part in parts if part.strip())[:AMBIENT_MAX_CHARS]

    def nearby_blocks(self, inspector: PageInspector) -> list[TextBlock]:
        """Text blocks whose centre lies within the radius of the focused surface."""
        center = inspector.focused_center()
        if center is None:
            return []
        cx, cy = center
        found = [
            block
            for block in inspector.text_blocks() or []
            if math.hypot(block.center_x - cx, block.center_y - cy) <= self.radius
            and len(block.text.strip()) > 10
        ]
        return found[:AMBIENT_MAX_NEARBY_CANDIDATES]
