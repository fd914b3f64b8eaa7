# chuk_ai_autocomplete/surfaces.py
"""
Host surface helpers.

InMemoryTextSurface is a HostTextSurface over a plain string with a single
collapsed cursor. It backs headless use and tests; real hosts (text inputs,
textareas, contenteditable regions) implement the same protocol.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

EDITABLE_INPUT_TYPES = frozenset({"text", "search", "email", "url", "tel", ""})


def is_editable_element(tag: str, input_type: str | None = None, content_editable: bool = False) -> bool:
    """
    Decide whether an element can host completions.

    Textareas and content-editable regions qualify, as do text-like inputs.
    Password and other non-text inputs never do.
    """
    if content_editable:
        return True
    tag = (tag or "").lower()
    if tag == "textarea":
        return True
    if tag == "input":
        return (input_type or "").lower() in EDITABLE_INPUT_TYPES
    return False


class InMemoryTextSurface:
    """A HostTextSurface over a Python string."""

    def __init__(self, text: str = "", cursor: int | None = None, editable: bool = True) -> None:
        self.text = text
        self.cursor = len(text) if cursor is None else max(0, min(cursor, len(text)))
        self.editable = editable

    @property
    def is_editable(self) -> bool:
        return self.editable

    def get_before_cursor(self) -> str:
        return self.text[: self.cursor]

    def get_after_cursor(self) -> str:
        return self.text[self.cursor :]

    def get_full_text(self) -> str:
        return self.text

    def get_cursor_position(self) -> int:
        return self.cursor

    def insert_at_cursor(self, text: str, position: int | None = None) -> None:
        """
        Insert ``text`` at ``position`` (default: the cursor) and move the
        cursor to the end of the inserted text.

        Leading whitespace is dropped when the character before the insertion
        point is already whitespace, so accepted completions never double-space.
        """
        at = self.cursor if position is None else max(0, min(position, len(self.text)))
        if at > 0 and self.text[at - 1].isspace():
            text = text.lstrip()
        self.text = self.text[:at] + text + self.text[at:]
        self.cursor = at + len(text)
        logger.debug(f"Inserted {len(text)} chars at {at}")
