# chuk_ai_autocomplete/engine/trigger.py
"""
TriggerController - decides whether an input event may start a completion.

Rules, in order:
1. Ctrl+Shift+Space (manual) is always considered.
2. Ctrl+Enter, double space and auto-after-punctuation are considered only
   when their policy flag is enabled. Auto-after-punctuation waits for a
   settle delay; any newer input supersedes the pending trigger.
3. Every candidate is rejected if less than min_trigger_interval_ms elapsed
   since the last admitted trigger, whatever its kind.
4. Every candidate is rejected if no editable surface is focused or the site
   is disabled.

Typing keys and Escape are never triggers; their decision asks the caller to
dismiss the in-flight request instead.
Admission records its timestamp for the next rate-limit check. Rejections
are silent: the decision says why, and no request is issued.
"""

from __future__ import annotations

import logging

from chuk_ai_autocomplete.constants import (
    DOUBLE_SPACE_WINDOW_MS,
    MODIFIER_KEY_PREFIXES,
    NON_TYPING_KEYS,
    PUNCTUATION_SETTLE_MS,
    PUNCTUATION_TRIGGER_PATTERN,
)
from chuk_ai_autocomplete.models import (
    EventKind,
    InputEvent,
    RejectReason,
    TriggerDecision,
    TriggerKind,
)

from .state import EngineState

logger = logging.getLogger(__name__)

SPACE = "Space"
ENTER = "Enter"
ESCAPE = "Escape"


def matches_shortcut(event: InputEvent, shortcut: str) -> bool:
    """
    Check whether a key event matches a shortcut such as ``Ctrl+Shift+S``.

    Modifiers must match exactly. Single letters compare against ``KeyX``
    codes, single digits against ``DigitN``, anything else against the code.
    """
    if not shortcut:
        return False
    parts = [part.strip() for part in shortcut.split("+") if part.strip()]
    if not parts:
        return False
    key = parts[-1]
    if event.ctrl != ("Ctrl" in parts[:-1]):
        return False
    if event.shift != ("Shift" in parts[:-1]):
        return False
    if event.alt != ("Alt" in parts[:-1]):
        return False
    if len(key) == 1:
        if key.isdigit():
            return event.code == f"Digit{key}"
        return event.code == f"Key{key.upper()}"
    return event.code == key


def is_typing_key(event: InputEvent) -> bool:
    """A key that edits the text: no Ctrl/Alt, not navigation, not a bare modifier."""
    if event.ctrl or event.alt or not event.code:
        return False
    return event.code not in NON_TYPING_KEYS and not event.code.startswith(MODIFIER_KEY_PREFIXES)


class TriggerController:
    """Stateless admission policy; all marks live in EngineState."""

    def __init__(
        self,
        double_space_window_ms: float = DOUBLE_SPACE_WINDOW_MS,
        punctuation_settle_ms: float = PUNCTUATION_SETTLE_MS,
    ) -> None:
        self.double_space_window_ms = double_space_window_ms
        self.punctuation_settle_ms = punctuation_settle_ms

    def evaluate(self, state: EngineState, event: InputEvent) -> TriggerDecision:
        """Classify an event and, for immediate triggers, run admission."""
        if event.kind == EventKind.KEY_DOWN:
            return self._on_key_down(state, event)
        if event.kind == EventKind.KEY_UP:
            return self._on_key_up(state, event)
        return self._on_input(state, event)

    def fire_deferred(self, state: EngineState, generation: int, now_ms: float) -> TriggerDecision:
        """
        Admit a settle-delayed punctuation trigger if it is still current.

        Returns a SUPERSEDED rejection if newer input arrived in the meantime.
        """
        marks = state.marks
        if generation != marks.punctuation_generation or marks.punctuation_due_ms is None:
            return TriggerDecision.reject(RejectReason.SUPERSEDED, TriggerKind.AFTER_PUNCTUATION)
        if now_ms < marks.punctuation_due_ms:
            return TriggerDecision(
                kind=TriggerKind.AFTER_PUNCTUATION,
                reason=RejectReason.DEFERRED,
                deferred_until_ms=marks.punctuation_due_ms,
                generation=generation,
            )
        marks.punctuation_due_ms = None
        return self._admit(state, TriggerKind.AFTER_PUNCTUATION, now_ms)

    # ------------------------------------------------------------------ events

    def _on_key_down(self, state: EngineState, event: InputEvent) -> TriggerDecision:
        policy = state.policy
        if event.ctrl and event.shift and not event.alt and event.code == SPACE:
            return self._admit(state, TriggerKind.MANUAL, event.timestamp_ms)

        if matches_shortcut(event, policy.site_toggle_shortcut):
            return TriggerDecision(admitted=True, kind=TriggerKind.SITE_TOGGLE)

        if event.ctrl and not event.shift and event.code == ENTER:
            if not policy.ctrl_enter_enabled:
                return TriggerDecision.reject(RejectReason.TRIGGER_DISABLED, TriggerKind.CTRL_ENTER)
            return self._admit(state, TriggerKind.CTRL_ENTER, event.timestamp_ms)

        if event.code == ESCAPE or is_typing_key(event):
            return TriggerDecision(reason=RejectReason.NOT_A_TRIGGER, cancels_active=True)

        return TriggerDecision.reject(RejectReason.NOT_A_TRIGGER)

    def _on_key_up(self, state: EngineState, event: InputEvent) -> TriggerDecision:
        if event.code != SPACE or event.has_modifiers:
            return TriggerDecision.reject(RejectReason.NOT_A_TRIGGER)
        if not state.policy.double_space_enabled:
            return TriggerDecision.reject(RejectReason.TRIGGER_DISABLED, TriggerKind.DOUBLE_SPACE)

        marks = state.marks
        now = event.timestamp_ms
        if marks.last_space_ms is not None and now - marks.last_space_ms < self.double_space_window_ms:
            marks.last_space_ms = None
            return self._admit(state, TriggerKind.DOUBLE_SPACE, now)

        marks.last_space_ms = now
        return TriggerDecision.reject(RejectReason.NOT_A_TRIGGER, TriggerKind.DOUBLE_SPACE)

    def _on_input(self, state: EngineState, event: InputEvent) -> TriggerDecision:
        if not state.policy.auto_after_punctuation_enabled:
            return TriggerDecision.reject(RejectReason.TRIGGER_DISABLED, TriggerKind.AFTER_PUNCTUATION)
        if not self._surface_editable(state):
            return TriggerDecision.reject(RejectReason.NOT_EDITABLE, TriggerKind.AFTER_PUNCTUATION)

        marks = state.marks
        # Any input supersedes a pending punctuation trigger
        marks.punctuation_generation += 1
        marks.punctuation_due_ms = None

        text = event.text_before_cursor
        if not text or not PUNCTUATION_TRIGGER_PATTERN.search(text):
            return TriggerDecision.reject(RejectReason.NOT_A_TRIGGER, TriggerKind.AFTER_PUNCTUATION)

        due = event.timestamp_ms + self.punctuation_settle_ms
        marks.punctuation_due_ms = due
        return TriggerDecision(
            kind=TriggerKind.AFTER_PUNCTUATION,
            reason=RejectReason.DEFERRED,
            deferred_until_ms=due,
            generation=marks.punctuation_generation,
        )

    # --------------------------------------------------------------- admission

    def _admit(self, state: EngineState, kind: TriggerKind, now_ms: float) -> TriggerDecision:
        marks = state.marks
        interval = state.policy.min_trigger_interval_ms
        if marks.last_admitted_ms is not None and now_ms - marks.last_admitted_ms < interval:
            logger.debug(f"Trigger {kind.value} rate limited")
            return TriggerDecision.reject(RejectReason.RATE_LIMITED, kind)

        if not self._surface_editable(state):
            logger.debug(f"Trigger {kind.value} rejected: no editable surface focused")
            return TriggerDecision.reject(RejectReason.NOT_EDITABLE, kind)

        if not state.site_enabled:
            logger.debug(f"Trigger {kind.value} rejected: disabled on {state.site}")
            return TriggerDecision.reject(RejectReason.SITE_DISABLED, kind)

        marks.last_admitted_ms = now_ms
        logger.debug(f"Trigger {kind.value} admitted")
        return TriggerDecision(admitted=True, kind=kind)

    @staticmethod
    def _surface_editable(state: EngineState) -> bool:
        surface = state.surface
        return surface is not None and bool(getattr(surface, "is_editable", False))
