"""Full row/column detection and clearing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Set, Tuple

import numpy as np

from .grid import EMPTY, Coordinate, GameGrid
from .rules import ScoringRules


@dataclass(frozen=True)
class ClearResult:
    rows: Tuple[int, ...] = ()
    cols: Tuple[int, ...] = ()
    cells: frozenset = field(default_factory=frozenset)
    score_delta: int = 0

    @property
    def lines(self) -> int:
        return len(self.rows) + len(self.cols)


def detect_full_lines(grid: GameGrid) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    filled = grid.filled_mask()
    rows = tuple(int(r) for r in np.flatnonzero(np.all(filled, axis=1)))
    cols = tuple(int(c) for c in np.flatnonzero(np.all(filled, axis=0)))
    return rows, cols


def compute_cleared_cells(grid: GameGrid, rows: Iterable[int], cols: Iterable[int]) -> Set[Coordinate]:
    """Union of every cell in the given rows and columns."""
    cells: Set[Coordinate] = set()
    for row in rows:
        cells.update((row, col) for col in range(grid.size))
    for col in cols:
        cells.update((row, col) for row in range(grid.size))
    return cells


def apply_clear(grid: GameGrid, cells: Iterable[Coordinate]) -> None:
    for row, col in cells:
        grid.grid[row, col] = EMPTY


def resolve_lines(grid: GameGrid, rules: ScoringRules) -> ClearResult:
    """Detect, clear and score all full lines on `grid` in one pass."""
    rows, cols = detect_full_lines(grid)
    if not rows and not cols:
        return ClearResult()
    cells = compute_cleared_cells(grid, rows, cols)
    apply_clear(grid, cells)
    return ClearResult(
        rows=rows,
        cols=cols,
        cells=frozenset(cells),
        score_delta=rules.score_for_lines(len(rows) + len(cols)),
    )
