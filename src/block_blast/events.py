from __future__ import annotations

from typing import Callable, Dict

from blinker import Signal


class EventBus:
    """Named blinker signals. Handlers receive ``(sender, **payload)``."""

    def __init__(self) -> None:
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn: Callable) -> None:
        sig = self._signals.setdefault(name, Signal(name))
        # Strong reference so handlers that nobody else holds keep firing.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn: Callable) -> None:
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, sender: object = None, **payload) -> None:
        sig = self._signals.get(name)
        if sig:
            sig.send(sender if sender is not None else self, **payload)


# ============================================================================
# SESSION
# ============================================================================
EVENT_PHASE_CHANGED = "phase_changed"      # payload: phase=Phase, previous=Phase
EVENT_GAME_OVER = "game_over"              # payload: final_score=int
EVENT_AI_TOGGLED = "ai_toggled"            # payload: enabled=bool


# ============================================================================
# BOARD & SCORE
# ============================================================================
EVENT_BOARD_CHANGED = "board_changed"      # payload: cells=[(row, col, color_id or 0), ...]
EVENT_LINES_CLEARED = "lines_cleared"      # payload: rows=tuple[int], cols=tuple[int]
EVENT_SCORE_CHANGED = "score_changed"      # payload: score=int, delta=int


# ============================================================================
# SHAPES
# ============================================================================
EVENT_BATCH_GENERATED = "batch_generated"  # payload: shapes=tuple[ActiveShape]
EVENT_SHAPE_CONSUMED = "shape_consumed"    # payload: shape_id=int


ALL_EVENTS = (
    EVENT_PHASE_CHANGED,
    EVENT_GAME_OVER,
    EVENT_AI_TOGGLED,
    EVENT_BOARD_CHANGED,
    EVENT_LINES_CLEARED,
    EVENT_SCORE_CHANGED,
    EVENT_BATCH_GENERATED,
    EVENT_SHAPE_CONSUMED,
)
