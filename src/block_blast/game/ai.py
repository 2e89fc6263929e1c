"""Heuristic move selection and the paced AI player.

The search is exhaustive: every shape of the batch is tried at every anchor
where it fits, the resulting board is simulated on a scratch array and scored
with a weighted sum of simple board features. The best candidate wins; on a
tie the first candidate in scan order (batch order, then row, then column)
is kept.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from block_blast.events import EVENT_AI_TOGGLED, EVENT_PHASE_CHANGED

from .batch import ActiveShape
from .core import GameSession, Phase
from .grid import GameGrid
from .pieces import Shape


logger = logging.getLogger(__name__)

_DIRECTIONS = ((-1, 0), (1, 0), (0, -1), (0, 1))


@dataclass(frozen=True)
class HeuristicWeights:
    line: int = 1000
    clear_bonus: int = 2000
    gap: int = 50
    contact: int = 100
    edge: int = 30
    low_row: int = 20


DEFAULT_WEIGHTS = HeuristicWeights()


@dataclass(frozen=True)
class Move:
    shape_id: int
    row: int
    col: int
    score: int


def count_full_lines(filled: np.ndarray) -> int:
    return int(np.count_nonzero(np.all(filled, axis=1)) + np.count_nonzero(np.all(filled, axis=0)))


def count_gaps(filled: np.ndarray) -> int:
    """Count empty runs that start right after a filled cell.

    Each row is scanned left to right and each column top to bottom; a gap is
    counted whenever an empty cell directly follows a filled one.
    """
    row_gaps = np.count_nonzero(filled[:, :-1] & ~filled[:, 1:])
    col_gaps = np.count_nonzero(filled[:-1, :] & ~filled[1:, :])
    return int(row_gaps + col_gaps)


def count_contacts(filled: np.ndarray, shape: Shape, row: int, col: int) -> tuple[int, int]:
    """(touching, edges) for a shape anchored at (row, col).

    `touching` counts neighbours already filled on the board before the
    placement, `edges` counts neighbours that fall off the board.
    """
    size_r, size_c = filled.shape
    touching = 0
    edges = 0
    for dr, dc in zip(*np.nonzero(shape)):
        r = row + int(dr)
        c = col + int(dc)
        for nr, nc in ((r + d_r, c + d_c) for d_r, d_c in _DIRECTIONS):
            if 0 <= nr < size_r and 0 <= nc < size_c:
                if filled[nr, nc]:
                    touching += 1
            else:
                edges += 1
    return touching, edges


def score_placement(
    grid: GameGrid,
    shape: Shape,
    row: int,
    col: int,
    weights: HeuristicWeights = DEFAULT_WEIGHTS,
) -> int:
    """Score placing `shape` at (row, col). Assumes grid.can_place is true."""
    before = grid.filled_mask()
    simulated = before.copy()
    h, w = shape.shape
    simulated[row : row + h, col : col + w] |= shape.astype(np.bool_)

    lines = count_full_lines(simulated)
    gaps = count_gaps(simulated)
    touching, edges = count_contacts(before, shape, row, col)

    score = lines * weights.line
    score -= gaps * weights.gap
    score += touching * weights.contact
    score -= edges * weights.edge
    score += (grid.size - row) * weights.low_row
    if lines > 0:
        score += weights.clear_bonus
    return int(score)


def find_best_move(
    grid: GameGrid,
    batch: Sequence[ActiveShape],
    weights: HeuristicWeights = DEFAULT_WEIGHTS,
) -> Optional[Move]:
    """Best placement over the whole batch, or None when nothing fits."""
    best: Optional[Move] = None
    for shape in batch:
        for row in range(grid.size):
            for col in range(grid.size):
                if not grid.can_place(shape.matrix, row, col):
                    continue
                score = score_placement(grid, shape.matrix, row, col, weights)
                if best is None or score > best.score:
                    best = Move(shape.shape_id, row, col, score)
    return best


class AIPlayer:
    """Plays a session one paced move at a time.

    Each turn picks a move, sleeps for the pacing delay and then checks that
    the AI is still enabled and the game still running before placing. The
    move goes through ``GameSession.place`` like a human move does.
    """

    def __init__(
        self,
        session: GameSession,
        delay: Optional[float] = None,
        weights: HeuristicWeights = DEFAULT_WEIGHTS,
    ) -> None:
        self.session = session
        self.delay = session.config.ai_delay if delay is None else float(delay)
        self.weights = weights
        self.moves_made = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def is_active(self) -> bool:
        return self.session.ai_enabled and self.session.phase == Phase.PLAYING

    def attach(self) -> "AIPlayer":
        """Start playing automatically whenever the session enables AI."""
        self.session.bus.subscribe(EVENT_AI_TOGGLED, self._on_session_event)
        self.session.bus.subscribe(EVENT_PHASE_CHANGED, self._on_session_event)
        return self

    def detach(self) -> None:
        self.session.bus.unsubscribe(EVENT_AI_TOGGLED, self._on_session_event)
        self.session.bus.unsubscribe(EVENT_PHASE_CHANGED, self._on_session_event)

    def _on_session_event(self, sender, **payload) -> None:
        if not self.is_active() or self.running:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("no running event loop; AI turn loop not started")
            return
        self._task = loop.create_task(self.run())
        self._task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            logger.debug("ai turn loop cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error("ai turn loop stopped", exc_info=error)

    def choose_move(self) -> Optional[Move]:
        move = find_best_move(self.session.board, self.session.batch, self.weights)
        if move is not None:
            logger.debug("ai picked shape %s at (%d, %d) score=%d", move.shape_id, move.row, move.col, move.score)
        return move

    async def run(self) -> int:
        """Play until the AI is disabled or the game stops; returns moves made."""
        made = 0
        while self.is_active():
            move = self.choose_move()
            if move is None:
                logger.debug("ai found no move, dealing a new batch")
                self.session.regenerate_batch()
                if not self.is_active():
                    break
                move = self.choose_move()
                if move is None:
                    break
            await asyncio.sleep(self.delay)
            if not self.is_active():
                break
            result = self.session.place(move.shape_id, move.row, move.col)
            if not result.accepted:
                # The board or batch changed while we were waiting.
                logger.debug("ai move rejected: %s", result.message)
                continue
            made += 1
            self.moves_made += 1
        return made

    async def wait(self) -> int:
        if self._task is None:
            return 0
        try:
            return await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise
            return 0

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
