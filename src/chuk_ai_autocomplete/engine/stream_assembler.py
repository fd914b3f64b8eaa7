# chuk_ai_autocomplete/engine/stream_assembler.py
"""
Stream assembly and completion cleaning.

Model output arrives either as one finished string (batch) or as a sequence
of fragments (streaming). Either way it is turned into a cleaned projection:

1. strip literal or partial [CURSOR] markers
2. remove overlap between the tail of the context and the head of the output
   (direct case-insensitive match vs. punctuation/whitespace-normalized
   match over the last 120 chars; the larger wins)
3. strip a repeated last-sentence fragment
4. strip leading duplicate punctuation

Finalization trims to max_sentences and restores the single space needed to
join the completion onto the context.

Usage::

    assembler = StreamAssembler(window, policy)
    text = await assembler.consume(iterate_fragments(stream), on_update=render)
"""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing

from chuk_ai_autocomplete.constants import (
    LEADING_PUNCTUATION_PATTERN,
    MIN_PARTIAL_WORD_OVERLAP,
    OVERLAP_WINDOW_CHARS,
    SENTENCE_END_PATTERN,
    SENTENCE_SPLIT_PATTERN,
    STREAM_UPDATE_INTERVAL_MS,
)
from chuk_ai_autocomplete.models import ContextWindow, StreamState, TriggerPolicy

from .state import Clock, monotonic_ms

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[str], None]

_FULL_MARKER = re.compile(r"\[CURSOR\]", re.IGNORECASE)
_OPEN_PARTIAL = re.compile(r"\[CURS(?:OR?)?", re.IGNORECASE)
_CLOSE_PARTIAL = re.compile(r"\bCURSOR\]", re.IGNORECASE)
# A marker cut off at the end of a buffer that is still streaming
_DANGLING_PARTIAL = re.compile(r"\[(?:C(?:U(?:R(?:S(?:O(?:R)?)?)?)?)?)?$", re.IGNORECASE)
_LAST_SENTENCE = re.compile(r"[^.!?]*$")
_WHITESPACE_RUN = re.compile(r"\s+")
_ZERO_WIDTH = re.compile(r"[​-‍﻿]")
_STRIPPED_PUNCTUATION = re.compile(r"[,.;:!?\-()\[\]{}\"']")
_JOINABLE_CONTEXT_END = ".,;:!?)]}"


# =============================================================================
# Cleaning steps
# =============================================================================


def _strip_markers(text: str) -> str:
    text = _FULL_MARKER.sub("", text)
    text = _OPEN_PARTIAL.sub("", text)
    text = _CLOSE_PARTIAL.sub("", text)
    return _DANGLING_PARTIAL.sub("", text)


def strip_cursor_artifacts(text: str) -> str:
    """Remove echoed [CURSOR] markers, including fragments of one."""
    if not text:
        return text
    return _strip_markers(text).strip()


def _normalize(text: str) -> str:
    text = _WHITESPACE_RUN.sub(" ", text.lower())
    text = _ZERO_WIDTH.sub("", text)
    text = _STRIPPED_PUNCTUATION.sub("", text)
    return text.strip()


def _starts_on_word(before: str, length: int) -> bool:
    """The context side of an overlap must begin at the start of a word."""
    start = len(before) - length
    return start == 0 or not (before[start - 1].isalnum() and before[start].isalnum())


def _splits_word(completion: str, cut: int) -> bool:
    return 0 < cut < len(completion) and completion[cut - 1].isalnum() and completion[cut].isalnum()


def _longest_overlap(before: str, completion: str) -> int:
    """
    Longest suffix of ``before`` that is a prefix of ``completion``.

    A match may end inside a completion word (the model finishing a partially
    typed word), but only when it covers at least two characters.
    """
    for length in range(min(len(before), len(completion)), 0, -1):
        if before[-length:] != completion[:length] or not _starts_on_word(before, length):
            continue
        if length < MIN_PARTIAL_WORD_OVERLAP and _splits_word(completion, length):
            continue
        return length
    return 0


def _overlap_cut(before_tail: str, completion: str) -> int:
    """Raw index in ``completion`` where non-overlapping text begins."""
    cut = _longest_overlap(before_tail.lower(), completion.lower())

    normalized_overlap = _longest_overlap(_normalize(before_tail), _normalize(completion))
    if normalized_overlap > cut:
        # Walk the raw completion until its normalized form covers the overlap
        index = 0
        while index < len(completion) and len(_normalize(completion[:index])) < normalized_overlap:
            index += 1
        cut = max(cut, index)
    return cut


def _strip_overlap(before_cursor: str, completion: str, window: int) -> tuple[str, bool | None]:
    """
    Overlap removal plus how the last cut landed.

    The second item is None when nothing was removed, otherwise whether the
    last cut fell inside a word.
    """
    text = completion or ""
    tail = (before_cursor or "")[-window:]
    split: bool | None = None
    if not tail:
        return text, split
    while text:
        cut = _overlap_cut(tail, text)
        if cut == 0:
            break
        split = _splits_word(text, cut)
        text = LEADING_PUNCTUATION_PATTERN.sub("", text[cut:].lstrip())
    return text, split


def remove_context_overlap(before_cursor: str, completion: str, window: int = OVERLAP_WINDOW_CHARS) -> str:
    """
    Strip the head of ``completion`` that repeats the tail of the context.

    Removal repeats until no overlap remains, so applying it to its own
    output changes nothing.
    """
    return _strip_overlap(before_cursor, completion, window)[0]


def continues_word(before_cursor: str, completion: str) -> bool:
    """
    True when ``completion`` finishes the word the context ends in.

    Only possible when the context ends in a letter or digit. A completion
    that opens with whitespace, or whose echoed context ends between words,
    starts a new word; a bare completion, or one whose echo was cut
    mid-word ("I love pro" + "programming."), continues the current one.
    """
    if not before_cursor or not before_cursor[-1].isalnum():
        return False
    head = _strip_markers(completion or "")
    if not head.strip() or head[0].isspace():
        return False
    _, split = _strip_overlap(before_cursor, head, OVERLAP_WINDOW_CHARS)
    if split is None:
        return head[0].isalnum()
    return split


def strip_repeated_sentence(before_cursor: str, completion: str) -> str:
    """Drop a restatement of the context's unfinished last sentence."""
    match = _LAST_SENTENCE.search(before_cursor or "")
    last_sentence = match.group(0).strip() if match else ""
    if last_sentence and completion.lower().startswith(last_sentence.lower()):
        return completion[len(last_sentence) :].strip()
    return completion


def clean_completion(completion: str, before_cursor: str) -> str:
    """Apply all cleaning steps; the result carries no leading whitespace."""
    if not completion:
        return ""
    text = strip_cursor_artifacts(completion)
    text = remove_context_overlap(before_cursor, text)
    text = strip_repeated_sentence(before_cursor, text)
    return LEADING_PUNCTUATION_PATTERN.sub("", text)


# =============================================================================
# Sentence handling
# =============================================================================


def count_sentence_endings(text: str) -> int:
    """Count terminators followed by whitespace or end of text."""
    if not text:
        return 0
    return len(SENTENCE_END_PATTERN.findall(text))


def limit_to_sentence_range(text: str, max_sentences: int) -> str:
    """
    Keep at most ``max_sentences`` sentence-like segments.

    Segments keep their own terminators and are joined with single spaces.
    """
    if not text:
        return text
    tokens = SENTENCE_SPLIT_PATTERN.split(text)
    sentences: list[str] = []
    for i in range(0, len(tokens), 2):
        segment = tokens[i].strip()
        if not segment:
            continue
        end = tokens[i + 1] if i + 1 < len(tokens) else ""
        sentences.append((segment + end).strip())
        if len(sentences) >= max_sentences:
            break
    return " ".join(sentences).strip()


def apply_join_spacing(before_cursor: str, completion: str, continues: bool = False) -> str:
    """
    Prefix one space when the completion would otherwise fuse onto a word.

    ``continues`` marks a completion that finishes a partially typed word;
    it is joined without a space.
    """
    if continues or not completion or not before_cursor:
        return completion
    last = before_cursor[-1]
    first = completion[0]
    if first.isspace() or last.isspace():
        return completion
    if (last.isalnum() or last in _JOINABLE_CONTEXT_END) and first.isalnum():
        return f" {completion}"
    return completion


def finalize_completion(completion: str, before_cursor: str, max_sentences: int) -> str:
    """Clean, trim to the sentence bound and space-join; '' means no suggestion."""
    text = clean_completion(completion, before_cursor).strip()
    text = limit_to_sentence_range(text, max_sentences)
    if not text:
        return ""
    return apply_join_spacing(before_cursor, text, continues_word(before_cursor, completion))


# =============================================================================
# Assembler
# =============================================================================


class StreamAssembler:
    """
    Accumulates streamed fragments for one request.

    Each fragment re-derives the cleaned projection. UI updates are throttled
    to one per update interval, and assembly stops early once the projection
    holds max_sentences terminators.
    """

    def __init__(
        self,
        window: ContextWindow,
        policy: TriggerPolicy,
        clock: Clock = monotonic_ms,
        update_interval_ms: float = STREAM_UPDATE_INTERVAL_MS,
    ) -> None:
        self.window = window
        self.policy = policy
        self.clock = clock
        self.update_interval_ms = update_interval_ms
        self.state = StreamState()

    @property
    def should_stop(self) -> bool:
        return self.state.early_stopped

    def feed(self, fragment: str) -> str | None:
        """
        Add a fragment and return a projection if a UI update is due.

        Returns None when throttled or when the projection is still blank.
        """
        state = self.state
        state.buffer += fragment
        state.fragments += 1
        state.projection = clean_completion(state.buffer, self.window.before_cursor)

        if count_sentence_endings(state.projection) >= self.policy.max_sentences:
            state.early_stopped = True

        if not state.projection.strip():
            return None
        now = self.clock()
        if state.last_update_ms is not None and now - state.last_update_ms <= self.update_interval_ms:
            return None
        state.last_update_ms = now
        before = self.window.before_cursor
        return apply_join_spacing(before, state.projection, continues_word(before, state.buffer))

    def finalize(self) -> str:
        self.state.finished = True
        return finalize_completion(self.state.buffer, self.window.before_cursor, self.policy.max_sentences)

    async def consume(
        self,
        fragments: AsyncIterator[str],
        on_update: UpdateCallback | None = None,
        is_active: Callable[[], bool] | None = None,
    ) -> str:
        """
        Pull fragments until the stream ends, early-stops, or the request
        stops being active, then return the finalized text.
        """
        async with aclosing(fragments) as stream:
            async for fragment in stream:
                if is_active is not None and not is_active():
                    break
                update = self.feed(fragment)
                if update is not None and on_update is not None:
                    on_update(update)
                if self.should_stop:
                    logger.debug(f"Early stop after {self.state.fragments} fragments")
                    break
        return self.finalize()
