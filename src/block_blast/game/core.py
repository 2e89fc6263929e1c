from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from block_blast.events import (
    EVENT_AI_TOGGLED,
    EVENT_BATCH_GENERATED,
    EVENT_BOARD_CHANGED,
    EVENT_GAME_OVER,
    EVENT_LINES_CLEARED,
    EVENT_PHASE_CHANGED,
    EVENT_SCORE_CHANGED,
    EVENT_SHAPE_CONSUMED,
    EventBus,
)

from .batch import DEFAULT_PALETTE, ActiveShape, BatchGenerator, has_valid_moves
from .errors import CommandResult, RejectReason
from .grid import GameGrid
from .lines import resolve_lines
from .pieces import ShapeCatalog
from .rules import ScoringRules


logger = logging.getLogger(__name__)


class Phase(Enum):
    START = "start"
    PLAYING = "playing"
    PAUSED = "paused"
    GAME_OVER = "game_over"


@dataclass
class GameConfig:
    """Static configuration supplied when a session is built."""
    grid_size: int = 8
    shapes: Optional[Sequence[Any]] = None  # None selects the built-in catalog
    palette: Tuple[int, ...] = DEFAULT_PALETTE
    ai_delay: float = 0.15  # seconds between AI decision and commit
    pieces_per_set: int = 3
    random_seed: Optional[int] = None
    rules: ScoringRules = field(default_factory=ScoringRules)

    def __post_init__(self) -> None:
        if self.grid_size < 1:
            raise ValueError(f"grid_size must be positive, got {self.grid_size}")
        if not self.palette:
            raise ValueError("palette must contain at least one colour")
        if self.ai_delay < 0:
            raise ValueError("ai_delay must not be negative")
        if self.pieces_per_set < 1:
            raise ValueError("pieces_per_set must be positive")


class GameSession:
    """Phase-gated state machine owning the board, the batch and the score.

    Every mutation goes through one of the command methods below. Commands
    return a :class:`CommandResult`; a rejected command changes nothing and
    emits nothing. Consumers observe the game through the event bus.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        bus: Optional[EventBus] = None,
        generator: Optional[BatchGenerator] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.rules = self.config.rules
        self.bus = bus or EventBus()
        self.catalog = ShapeCatalog(self.config.shapes)
        self.rng = random.Random(self.config.random_seed)
        self.generator = generator or BatchGenerator(
            self.catalog,
            self.config.palette,
            rng=self.rng,
            pieces_per_set=self.config.pieces_per_set,
        )

        self._grid = GameGrid(self.config.grid_size)
        self._batch: List[ActiveShape] = []
        self._phase = Phase.START
        self._ai_enabled = False
        self._ai_before_pause = False
        self.score = 0
        self.shapes_placed = 0
        self.lines_cleared_total = 0
        self.batches_generated = 0

    # ---------- Read-only views ----------
    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def ai_enabled(self) -> bool:
        return self._ai_enabled

    @property
    def board(self) -> GameGrid:
        """A scratch copy of the board; changing it does not affect the game."""
        return self._grid.copy()

    @property
    def batch(self) -> Tuple[ActiveShape, ...]:
        return tuple(self._batch)

    def find_shape(self, shape_id: int) -> Optional[ActiveShape]:
        for shape in self._batch:
            if shape.shape_id == shape_id:
                return shape
        return None

    def has_valid_moves(self) -> bool:
        return has_valid_moves(self._grid, self._batch)

    # ---------- Commands ----------
    def start(self) -> CommandResult:
        if self._phase != Phase.START:
            return self._reject(RejectReason.INVALID_PHASE, "start")
        self._grid.reset()
        self.score = 0
        self._transition(Phase.PLAYING)
        self._deal_batch()
        self._check_game_over()
        return CommandResult.ok(phase=self._phase)

    def pause(self) -> CommandResult:
        if self._phase != Phase.PLAYING:
            return self._reject(RejectReason.INVALID_PHASE, "pause")
        self._ai_before_pause = self._ai_enabled
        self._set_ai(False)
        self._transition(Phase.PAUSED)
        return CommandResult.ok(phase=self._phase)

    def resume(self) -> CommandResult:
        if self._phase != Phase.PAUSED:
            return self._reject(RejectReason.INVALID_PHASE, "resume")
        self._transition(Phase.PLAYING)
        self._set_ai(self._ai_before_pause)
        self._ai_before_pause = False
        return CommandResult.ok(phase=self._phase)

    def reset(self, seed: Optional[int] = None) -> CommandResult:
        """Return to START from any phase, clearing board, batch, score and AI."""
        if seed is not None:
            self.rng.seed(seed)
        cleared = [(int(r), int(c), 0) for r, c in zip(*self._grid.filled_mask().nonzero())]
        old_score = self.score
        self._grid.reset()
        self._batch = []
        self.score = 0
        self.shapes_placed = 0
        self.lines_cleared_total = 0
        self.batches_generated = 0
        self._ai_before_pause = False
        self._set_ai(False)
        if cleared:
            self.bus.emit(EVENT_BOARD_CHANGED, self, cells=cleared)
        if old_score:
            self.bus.emit(EVENT_SCORE_CHANGED, self, score=0, delta=-old_score)
        self._transition(Phase.START)
        return CommandResult.ok(phase=self._phase)

    def restart(self, seed: Optional[int] = None) -> CommandResult:
        self.reset(seed)
        return self.start()

    def set_ai_enabled(self, enabled: bool) -> CommandResult:
        if self._phase == Phase.GAME_OVER:
            return self._reject(RejectReason.INVALID_PHASE, "set_ai_enabled")
        if self._phase == Phase.PAUSED:
            # Applied on resume.
            self._ai_before_pause = bool(enabled)
        else:
            self._set_ai(bool(enabled))
        return CommandResult.ok(enabled=bool(enabled))

    def place(self, shape_id: int, row: int, col: int) -> CommandResult:
        if self._phase != Phase.PLAYING:
            return self._reject(RejectReason.INVALID_PHASE, "place")
        if not self._batch:
            return self._reject(RejectReason.EMPTY_BATCH_UNDERFLOW, "place")
        shape = self.find_shape(shape_id)
        if shape is None:
            return self._reject(RejectReason.UNKNOWN_SHAPE, "place", shape_id=shape_id)
        if not self._grid.can_place(shape.matrix, row, col):
            return self._reject(RejectReason.ILLEGAL_PLACEMENT, "place", shape_id=shape_id, row=row, col=col)

        placed = self._grid.commit_placement(shape.matrix, row, col, shape.color_id)
        cleared = resolve_lines(self._grid, self.rules)
        self._batch.remove(shape)
        self.shapes_placed += 1
        self.lines_cleared_total += cleared.lines
        self.score += cleared.score_delta
        logger.debug("placed shape %s at (%d, %d), cleared %d line(s)", shape_id, row, col, cleared.lines)

        touched = sorted(set(placed) | cleared.cells)
        self.bus.emit(EVENT_SHAPE_CONSUMED, self, shape_id=shape_id)
        self.bus.emit(EVENT_BOARD_CHANGED, self, cells=[(r, c, self._grid.cell(r, c)) for r, c in touched])
        if cleared.lines:
            self.bus.emit(EVENT_LINES_CLEARED, self, rows=cleared.rows, cols=cleared.cols)
            self.bus.emit(EVENT_SCORE_CHANGED, self, score=self.score, delta=cleared.score_delta)

        if not self._batch:
            self._deal_batch()
        self._check_game_over()
        return CommandResult.ok(
            shape_id=shape_id,
            lines=cleared.lines,
            rows=cleared.rows,
            cols=cleared.cols,
            score_delta=cleared.score_delta,
        )

    def regenerate_batch(self) -> CommandResult:
        """Discard the current batch and deal a new one."""
        if self._phase != Phase.PLAYING:
            return self._reject(RejectReason.INVALID_PHASE, "regenerate_batch")
        self._batch = []
        self._deal_batch()
        self._check_game_over()
        return CommandResult.ok(shapes=self.batch)

    # ---------- Internals ----------
    def _reject(self, reason: RejectReason, command: str, **detail: Any) -> CommandResult:
        logger.debug("rejected %s in phase %s: %s %s", command, self._phase.value, reason.value, detail)
        return CommandResult.reject(reason, f"{command}: {reason.value}", command=command, **detail)

    def _transition(self, phase: Phase) -> None:
        previous = self._phase
        self._phase = phase
        logger.info("phase %s -> %s", previous.value, phase.value)
        self.bus.emit(EVENT_PHASE_CHANGED, self, phase=phase, previous=previous)

    def _set_ai(self, enabled: bool) -> None:
        if enabled == self._ai_enabled:
            return
        self._ai_enabled = enabled
        logger.debug("ai %s", "enabled" if enabled else "disabled")
        self.bus.emit(EVENT_AI_TOGGLED, self, enabled=enabled)

    def _deal_batch(self) -> None:
        self._batch = self.generator.generate()
        self.batches_generated += 1
        self.bus.emit(EVENT_BATCH_GENERATED, self, shapes=self.batch)

    def _check_game_over(self) -> None:
        if self._phase != Phase.PLAYING:
            return
        if self._batch and not self.has_valid_moves():
            self._transition(Phase.GAME_OVER)
            logger.info("game over with score %d", self.score)
            self.bus.emit(EVENT_GAME_OVER, self, final_score=self.score)

    # ---------- Reporting ----------
    def get_state(self) -> Dict[str, Any]:
        return {
            "grid": self._grid.snapshot(),
            "current_pieces": [shape.kind for shape in self._batch],
            "pieces_remaining": len(self._batch),
            "score": self.score,
            "phase": self._phase,
            "ai_enabled": self._ai_enabled,
            "game_over": self._phase == Phase.GAME_OVER,
            "filled_ratio": self._grid.get_filled_ratio(),
        }

    def get_game_stats(self) -> Dict[str, Any]:
        return {
            "final_score": self.score,
            "pieces_placed": self.shapes_placed,
            "lines_cleared": self.lines_cleared_total,
            "batches_generated": self.batches_generated,
            "final_fill_ratio": self._grid.get_filled_ratio(),
            "avg_score_per_piece": self.score / max(1, self.shapes_placed),
            "avg_lines_per_piece": self.lines_cleared_total / max(1, self.shapes_placed),
        }
