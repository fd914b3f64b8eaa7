# tests/test_stream_assembler.py
"""
Tests for completion cleaning and stream assembly.

Covers:
- [CURSOR] artifact stripping (full, partial, dangling)
- context overlap removal (direct, normalized, partial words, idempotence)
- repeated last-sentence and leading punctuation stripping
- sentence counting, trimming and join spacing
- StreamAssembler: throttled projections, early stop, cancellation
"""

import pytest

from chuk_ai_autocomplete.engine.stream_assembler import (
    StreamAssembler,
    apply_join_spacing,
    clean_completion,
    continues_word,
    count_sentence_endings,
    finalize_completion,
    limit_to_sentence_range,
    remove_context_overlap,
    strip_cursor_artifacts,
    strip_repeated_sentence,
)
from chuk_ai_autocomplete.models import ContextWindow, TriggerPolicy
from tests.conftest import FakeClock


async def _fragments(*items, closed=None):
    try:
        for item in items:
            yield item
    finally:
        if closed is not None:
            closed.append(True)


# =============================================================================
# Cursor artifacts
# =============================================================================


class TestStripCursorArtifacts:
    def test_full_marker(self):
        assert strip_cursor_artifacts("work as an engineer.[CURSOR]") == "work as an engineer."

    def test_marker_case_insensitive(self):
        assert strip_cursor_artifacts("[cursor] hello") == "hello"

    def test_open_partial(self):
        assert strip_cursor_artifacts("hello [CURS") == "hello"

    def test_dangling_partial(self):
        assert strip_cursor_artifacts("hello [CU") == "hello"

    def test_close_partial(self):
        assert strip_cursor_artifacts("CURSOR] hello") == "hello"

    def test_ordinary_words_untouched(self):
        text = "The recursive cursor moved occurrently"
        assert strip_cursor_artifacts(text) == text

    def test_empty(self):
        assert strip_cursor_artifacts("") == ""


# =============================================================================
# Overlap removal
# =============================================================================


class TestRemoveContextOverlap:
    def test_direct_overlap(self):
        result = remove_context_overlap(
            "Hello, my name is John and I",
            "Hello, my name is John and I work as an engineer.",
        )
        assert result == "work as an engineer."

    def test_direct_overlap_case_insensitive(self):
        assert remove_context_overlap("The cat sat", "the CAT SAT on the mat.") == "on the mat."

    def test_overlap_strips_leading_punctuation(self):
        assert remove_context_overlap("I went to the store", "I went to the store, and bought milk.") == (
            "and bought milk."
        )

    def test_normalized_overlap(self):
        result = remove_context_overlap("Well, I think we should go", "well I think we should go home.")
        assert result == "home."

    def test_single_letter_does_not_split_words(self):
        assert remove_context_overlap("and I", "In the morning") == "In the morning"

    def test_context_word_not_split(self):
        assert remove_context_overlap("the cat", "the dog barked.") == "the dog barked."

    def test_partial_word_echo(self):
        assert remove_context_overlap("I love pro", "programming.") == "gramming."

    def test_partial_word_echo_case_insensitive(self):
        assert remove_context_overlap("I love Pro", "programming in Python.") == "gramming in Python."

    def test_no_overlap_unchanged(self):
        assert remove_context_overlap("Dear team", "thanks for the update.") == "thanks for the update."

    def test_full_repeat_becomes_empty(self):
        assert remove_context_overlap("Hello world", "Hello world") == ""

    def test_empty_context(self):
        assert remove_context_overlap("", "anything") == "anything"

    @pytest.mark.parametrize(
        "before,completion",
        [
            ("Hello, my name is John and I", "Hello, my name is John and I work as an engineer."),
            ("Well, I think we should go", "well I think we should go home."),
            ("the end. the end.", "the end. the end. the end. More to say."),
            ("and I", "I I I went home."),
            ("Notes", "notes notes: first item."),
            ("I love pro", "programming."),
        ],
    )
    def test_idempotent(self, before, completion):
        once = remove_context_overlap(before, completion)
        assert remove_context_overlap(before, once) == once


# =============================================================================
# Other cleaning steps
# =============================================================================


class TestCleanCompletion:
    def test_repeated_last_sentence(self):
        assert strip_repeated_sentence("First one. Second is here", "second is here and more") == "and more"

    def test_repeated_sentence_ignored_after_terminator(self):
        assert strip_repeated_sentence("All done.", "All done. Next.") == "All done. Next."

    def test_leading_punctuation_removed(self):
        assert clean_completion("  , and then we left.", "We arrived") == "and then we left."

    def test_combined(self):
        before = "Hello, my name is John and I"
        assert clean_completion("[CURSOR]Hello, my name is John and I work here.", before) == "work here."

    def test_empty(self):
        assert clean_completion("", "context") == ""


# =============================================================================
# Sentences and spacing
# =============================================================================


class TestSentences:
    def test_count(self):
        assert count_sentence_endings("Hello there. This is great. More text") == 2

    def test_count_ignores_inner_periods(self):
        assert count_sentence_endings("Pi is 3.14 roughly") == 0
        assert count_sentence_endings("e.g. this") == 1

    def test_limit_to_three(self):
        assert limit_to_sentence_range("One. Two. Three. Four. Five.", 3) == "One. Two. Three."

    def test_limit_keeps_terminators(self):
        assert limit_to_sentence_range("Wow! Really? Yes.", 2) == "Wow! Really?"

    def test_limit_keeps_unterminated_tail(self):
        assert limit_to_sentence_range("One. Two", 3) == "One. Two"

    def test_limit_single_spaces(self):
        assert limit_to_sentence_range("One.   Two.\nThree.", 3) == "One. Two. Three."


class TestJoinSpacing:
    def test_adds_space_after_word(self):
        assert apply_join_spacing("and I", "work") == " work"

    def test_adds_space_after_punctuation(self):
        assert apply_join_spacing("Done.", "Next") == " Next"

    def test_no_space_when_context_ends_with_space(self):
        assert apply_join_spacing("and I ", "work") == "work"

    def test_no_space_before_punctuation(self):
        assert apply_join_spacing("word", ", more") == ", more"

    def test_no_space_after_open_quote(self):
        assert apply_join_spacing('He said "', "Hi") == "Hi"

    def test_empty_context(self):
        assert apply_join_spacing("", "x") == "x"

    def test_no_space_when_continuing_word(self):
        assert apply_join_spacing("I love pro", "gramming.", continues=True) == "gramming."


class TestContinuesWord:
    def test_echo_cut_mid_word(self):
        assert continues_word("I love pro", "programming.")

    def test_bare_continuation(self):
        assert continues_word("I love pro", "gramming.")

    def test_leading_space_starts_new_word(self):
        assert not continues_word("Hello, my name is John and I", " work as an engineer.")

    def test_echo_cut_between_words(self):
        assert not continues_word("Hello, my name is John and I", "Hello, my name is John and I work.")

    def test_context_ending_in_space_or_punctuation(self):
        assert not continues_word("and I ", "work")
        assert not continues_word("Done.", "Next")

    def test_marker_ignored(self):
        assert not continues_word("and I", "[CURSOR] work")


class TestFinalizeCompletion:
    def test_end_to_end_example(self):
        result = finalize_completion(
            "Hello, my name is John and I work as an engineer.",
            "Hello, my name is John and I",
            3,
        )
        assert result == " work as an engineer."

    def test_finishes_partial_word_from_echo(self):
        assert finalize_completion("programming.", "I love pro", 3) == "gramming."

    def test_finishes_partial_word(self):
        assert finalize_completion("gramming.", "I love pro", 3) == "gramming."

    def test_new_word_keeps_leading_space(self):
        assert finalize_completion(" work as an engineer.", "Hello, my name is John and I", 3) == (
            " work as an engineer."
        )

    def test_trims_five_sentences_to_three(self):
        assert finalize_completion("One. Two. Three. Four. Five.", "Notes:", 3) == " One. Two. Three."

    def test_pure_repeat_is_empty(self):
        assert finalize_completion("Hello world", "Hello world", 3) == ""


# =============================================================================
# StreamAssembler
# =============================================================================


def _assembler(before="Intro:", max_sentences=3, clock=None):
    return StreamAssembler(
        ContextWindow(before_cursor=before),
        TriggerPolicy(max_sentences=max_sentences),
        clock=clock or FakeClock(),
    )


class TestStreamAssemblerFeed:
    def test_first_projection_emitted(self):
        assembler = _assembler()
        assert assembler.feed("Hello") == " Hello"

    def test_updates_throttled(self):
        clock = FakeClock()
        assembler = _assembler(clock=clock)
        assert assembler.feed("Hello") == " Hello"
        assert assembler.feed(" world") is None
        clock.advance(60)
        assert assembler.feed(",") is None
        clock.advance(1)
        assert assembler.feed(" again") == " Hello world, again"

    def test_blank_projection_not_emitted(self):
        assembler = _assembler()
        assert assembler.feed("   ") is None
        assert assembler.state.last_update_ms is None
        assert assembler.feed("Hi") == " Hi"

    def test_early_stop_flag(self):
        assembler = _assembler(max_sentences=2)
        assembler.feed("Hello there. ")
        assert not assembler.should_stop
        assembler.feed("This is great. ")
        assert assembler.should_stop

    def test_finalize(self):
        assembler = _assembler(max_sentences=2)
        assembler.feed("One. Two. Three.")
        assert assembler.finalize() == " One. Two."
        assert assembler.state.finished


class TestStreamAssemblerConsume:
    @pytest.mark.asyncio
    async def test_early_stop_on_max_sentences(self):
        assembler = _assembler(max_sentences=2)
        closed = []
        result = await assembler.consume(
            _fragments("Hello there. ", "This is great. ", "More text", closed=closed)
        )
        assert result == " Hello there. This is great."
        assert assembler.state.fragments == 2
        assert assembler.state.early_stopped
        assert closed == [True]

    @pytest.mark.asyncio
    async def test_updates_delivered(self):
        clock = FakeClock()
        assembler = _assembler(clock=clock)
        updates = []
        result = await assembler.consume(_fragments("Good ", "morning"), on_update=updates.append)
        assert updates == [" Good"]
        assert result == " Good morning"

    @pytest.mark.asyncio
    async def test_stops_when_inactive(self):
        assembler = _assembler()
        result = await assembler.consume(_fragments("Hello", " world"), is_active=lambda: False)
        assert result == ""
        assert assembler.state.fragments == 0

    @pytest.mark.asyncio
    async def test_overlap_removed_while_streaming(self):
        assembler = _assembler(before="Hello, my name is John and I")
        result = await assembler.consume(
            _fragments("Hello, my name ", "is John and I ", "work as an engineer.")
        )
        assert result == " work as an engineer."
