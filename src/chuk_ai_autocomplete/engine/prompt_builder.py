# chuk_ai_autocomplete/engine/prompt_builder.py
"""
Prompt construction for continuation requests.

Two prompt shapes share one set of hard constraints:
- structured: asks for a JSON object {accept, confidence, sentences}
- streaming: asks for raw continuation text only

Both mark the continuation point with [CURSOR] between the text before and
after the cursor.
"""

from __future__ import annotations

import re
from typing import Any

from chuk_ai_autocomplete.constants import (
    CURSOR_MARKER,
    QUESTION_WORDS,
    TONE_WINDOW_CHARS,
)
from chuk_ai_autocomplete.models import ContextWindow, TriggerPolicy

# Session-level instructions, sent once when the model session is created
SYSTEM_PROMPT = (
    "You are an on-device text continuation engine. You ONLY generate the next part "
    f"of the user's text after a {CURSOR_MARKER} marker. Never answer questions, never "
    "address the user, never explain your reasoning, and never repeat text that appears "
    f"before {CURSOR_MARKER}. Match the detected language, tone, and style. If no "
    "continuation is appropriate, you output nothing (or accept: false when structured "
    "output is requested)."
)

PROMPT_HEADER = f"You are a text continuation engine. Continue ONLY the text after {CURSOR_MARKER}."

CONTINUE_RULE = "DO NOT answer questions, give advice, or address the user"
QUESTION_RULE = (
    f"The text before {CURSOR_MARKER} is a question: answer it tersely in the writer's "
    "own voice, without addressing the user"
)

STRUCTURED_EXAMPLE = f"""Example:
Text: "Hello, my name is John and I{CURSOR_MARKER}"
Good completion: " work as a software engineer."
Bad completion: "Hello, my name is John and I work as a software engineer.\""""

_TONE_PATTERNS: list[tuple[str, Any]] = [
    ("emphatic", re.compile(r"[A-Z]{3,}")),
    ("inclusive", re.compile(r"\b(we|our)\b", re.IGNORECASE)),
    ("first-person", re.compile(r"\b(I|me|my)\b")),
    ("concise", re.compile(r"\b(agenda|action items|next steps)\b", re.IGNORECASE)),
]
_POLITE_END = re.compile(r"[!:]$")
_POLITE_WORDS = re.compile(r"\b(please|thank you|appreciate)\b", re.IGNORECASE)
_CAPITALIZED_WORD = re.compile(r"\b(?!I )[A-Z][a-z]+\b")
_FORMAL_WORDS = re.compile(r"\b(analysis|summary|overview)\b", re.IGNORECASE)
_SENTENCE_BREAK = re.compile(r"[.!?]")


def is_question(text: str) -> bool:
    """
    Classify text as a question.

    True if it ends with '?', or its final clause starts with or contains one
    of the interrogative words/phrases.
    """
    trimmed = (text or "").strip().lower()
    if not trimmed:
        return False
    if trimmed.endswith("?"):
        return True
    last_clause = _SENTENCE_BREAK.split(trimmed)[-1].strip() or trimmed
    return any(last_clause.startswith(f"{word} ") or f" {word} " in last_clause for word in QUESTION_WORDS)


def derive_tone_hints(text: str) -> list[str]:
    """Shallow tone heuristics over the last 300 characters."""
    recent = (text or "")[-TONE_WINDOW_CHARS:]
    hints: list[str] = []
    if _POLITE_END.search(recent) or _POLITE_WORDS.search(recent):
        hints.append("polite")
    hints.extend(name for name, pattern in _TONE_PATTERNS if pattern.search(recent))
    if _CAPITALIZED_WORD.search(recent) and _FORMAL_WORDS.search(recent):
        hints.append("formal")
    return hints


def language_instruction(language: str | None) -> str:
    if language and language != "en":
        return f"Continue in {language}."
    return "Continue in English."


def build_response_schema(max_sentences: int) -> dict[str, Any]:
    """
    JSON schema constraining structured output.

    ``sentences`` may be empty so a rejection (accept: false) stays valid;
    the requested range is carried by the prompt text.
    """
    return {
        "type": "object",
        "properties": {
            "accept": {"type": "boolean"},
            "confidence": {"type": "number", "minimum": 0, "maximum": 1},
            "sentences": {
                "type": "array",
                "items": {"type": "string"},
                "minItems": 0,
                "maxItems": max_sentences,
            },
        },
        "required": ["accept", "confidence", "sentences"],
    }


def completion_point(window: ContextWindow) -> str:
    return f"{window.before_cursor}{CURSOR_MARKER}{window.after_cursor}"


class PromptBuilder:
    """Builds structured and streaming continuation prompts."""

    def _shared_rules(self, window: ContextWindow, language: str, policy: TriggerPolicy) -> list[str]:
        hints = derive_tone_hints(window.before_cursor)
        tone = "Match the writing style and tone exactly"
        if hints:
            tone += f" (hints: {', '.join(hints)})"
        return [
            f"Output ONLY the continuation that should come after {CURSOR_MARKER}",
            f"DO NOT repeat any text that appears before {CURSOR_MARKER}",
            "Begin with a space when the continuation starts a new word; omit it when finishing a "
            "partially typed word",
            QUESTION_RULE if is_question(window.before_cursor) else CONTINUE_RULE,
            language_instruction(language),
            tone,
            f"Provide {policy.min_sentences}-{policy.max_sentences} sentences that flow naturally "
            "from the cursor position",
        ]

    def build_structured(
        self,
        window: ContextWindow,
        language: str,
        policy: TriggerPolicy,
        ambient_context: str | None = None,
    ) -> str:
        """
        Build the JSON-output prompt.

        Args:
            window: Context around the cursor
            language: Detected language code
            policy: Supplies the sentence range
            ambient_context: Optional page context hint

        Returns:
            Prompt text
        """
        rules = self._shared_rules(window, language, policy)
        rules.append("If no continuation is appropriate, set accept: false and leave sentences empty")
        context_info = f"\n\nWebsite context: {ambient_context}" if ambient_context else ""
        rule_block = "\n".join(f"- {rule}" for rule in rules)

        return f"""{PROMPT_HEADER}

Current text: "{completion_point(window)}"{context_info}

CRITICAL INSTRUCTIONS:
{rule_block}

{STRUCTURED_EXAMPLE}

Respond with JSON only containing:
- accept: boolean (whether a continuation should be inserted)
- confidence: number 0-1 (how confident you are)
- sentences: array of {policy.min_sentences}-{policy.max_sentences} continuation sentences (only new text, no repetitions; empty when accept is false)"""

    def build_streaming(self, window: ContextWindow, language: str, policy: TriggerPolicy) -> str:
        """Build the raw-text prompt used for streaming."""
        rules = self._shared_rules(window, language, policy)
        rules.append("If no continuation is appropriate, output nothing")
        rule_block = "\n".join(f"- {rule}" for rule in rules)

        return f"""{PROMPT_HEADER}

Current text: "{completion_point(window)}"

Rules:
{rule_block}"""
