# chuk_ai_autocomplete/constants.py
"""Shared constants for the autocomplete engine.

Centralizes thresholds, windows and patterns. Numeric thresholds are tunable
defaults, not derived values.
"""

from __future__ import annotations

import re

# Cursor marker placed between before/after text in prompts
CURSOR_MARKER = "[CURSOR]"

# --- Triggers (milliseconds) ---
MIN_TRIGGER_INTERVAL_MS = 350
DOUBLE_SPACE_WINDOW_MS = 350
PUNCTUATION_SETTLE_MS = 350
DEFAULT_SITE_TOGGLE_SHORTCUT = "Ctrl+Shift+S"

# Keys that move or dismiss rather than type; the modifiers themselves never type
NON_TYPING_KEYS = frozenset(
    {"Tab", "Escape", "ArrowUp", "ArrowDown", "ArrowLeft", "ArrowRight", "Home", "End", "PageUp", "PageDown"}
)
MODIFIER_KEY_PREFIXES = ("Shift", "Control", "Alt", "Meta")

# Input that ends a sentence, optionally closed by a bracket and one space
PUNCTUATION_TRIGGER_PATTERN = re.compile(r"[.!?][)\]]?\s?$")

# --- Context windows (characters) ---
RECENT_WINDOW_CHARS = 200
SUMMARIZE_THRESHOLD_CHARS = 1000
RECENT_SEGMENT_CHARS = 500
TRUNCATION_FALLBACK_CHARS = 800
CACHE_KEY_WINDOW_CHARS = 200
TONE_WINDOW_CHARS = 300
OVERLAP_WINDOW_CHARS = 120
# A match that ends inside a completion word must be at least this long
MIN_PARTIAL_WORD_OVERLAP = 2
EARLIER_CONTEXT_TEMPLATE = "[Earlier context: {summary}]\n\n{recent}"

# --- Ambient page context ---
AMBIENT_CACHE_TTL_MS = 5000
AMBIENT_MAX_CHARS = 500
AMBIENT_SUMMARIZE_THRESHOLD_CHARS = 300
AMBIENT_FALLBACK_CHARS = 200
AMBIENT_MAX_HEADINGS = 3
AMBIENT_MAX_NEARBY_CANDIDATES = 5
AMBIENT_MAX_NEARBY_BLOCKS = 2
AMBIENT_NEARBY_RADIUS = 200.0

# --- Model gating ---
LOW_CONFIDENCE_THRESHOLD = 0.3
LANGUAGE_CONFIDENCE_THRESHOLD = 0.5
MIN_DETECTION_CHARS = 10
STREAM_UPDATE_INTERVAL_MS = 60

# --- Sentence bounds ---
MIN_SENTENCES_RANGE = (1, 3)
MAX_SENTENCES_RANGE = (1, 6)
DEFAULT_MIN_SENTENCES = 1
DEFAULT_MAX_SENTENCES = 3

# --- Cache capacity accepted from settings (exclusive lower, inclusive upper) ---
CACHE_CAPACITY_FLOOR = 10
CACHE_CAPACITY_CEILING = 500

# --- Generation parameters ---
DEFAULT_TEMPERATURE = 0.3
DEFAULT_TOP_K = 3
PROMPT_LANGUAGE = "en"

# A sentence terminator followed by whitespace or end of text
SENTENCE_END_PATTERN = re.compile(r"[.!?](?:\s|$)")
SENTENCE_SPLIT_PATTERN = re.compile(r"([.!?](?:\s|$))")

# Leading punctuation that would duplicate the context's own punctuation
LEADING_PUNCTUATION_PATTERN = re.compile(r"^[,;:.!?]+\s*")

# Interrogative openers used for question classification
QUESTION_WORDS = (
    "what",
    "how",
    "why",
    "when",
    "where",
    "who",
    "which",
    "can you",
    "do you",
    "are you",
    "will you",
)
