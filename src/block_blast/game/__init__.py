"""Game module for Block Blast.

Exports the puzzle engine and supporting classes:
- GameGrid: Board representation and placement validation
- ShapeCatalog / rotate_clockwise: Shape library and rotation
- resolve_lines: Full row/column clearing
- ScoringRules: Points per cleared line
- BatchGenerator / ActiveShape: Dealing the placeable shapes
- GameSession / Phase / GameConfig: Phase-gated state machine
- find_best_move / AIPlayer: Heuristic move selection and paced play
"""

from .grid import GameGrid, format_board
from .pieces import ShapeCatalog, ShapeKind, BASE_SHAPES, rotate, rotate_clockwise
from .lines import ClearResult, apply_clear, compute_cleared_cells, detect_full_lines, resolve_lines
from .rules import ScoringRules
from .batch import DEFAULT_PALETTE, ActiveShape, BatchGenerator, has_valid_moves
from .errors import (
    CommandRejected,
    CommandResult,
    EmptyBatchUnderflow,
    IllegalPlacement,
    InvalidPhase,
    RejectReason,
    UnknownShape,
)
from .core import GameConfig, GameSession, Phase
from .ai import AIPlayer, HeuristicWeights, Move, find_best_move, score_placement

__all__ = [
    "GameGrid",
    "format_board",
    "ShapeCatalog",
    "ShapeKind",
    "BASE_SHAPES",
    "rotate",
    "rotate_clockwise",
    "ClearResult",
    "apply_clear",
    "compute_cleared_cells",
    "detect_full_lines",
    "resolve_lines",
    "ScoringRules",
    "DEFAULT_PALETTE",
    "ActiveShape",
    "BatchGenerator",
    "has_valid_moves",
    "CommandRejected",
    "CommandResult",
    "EmptyBatchUnderflow",
    "IllegalPlacement",
    "InvalidPhase",
    "RejectReason",
    "UnknownShape",
    "GameConfig",
    "GameSession",
    "Phase",
    "AIPlayer",
    "HeuristicWeights",
    "Move",
    "find_best_move",
    "score_placement",
]
