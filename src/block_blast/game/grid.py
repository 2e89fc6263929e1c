from __future__ import annotations

from typing import List, Tuple

import numpy as np

from .pieces import Shape


Coordinate = Tuple[int, int]

EMPTY = 0


class GameGrid:
    """Square board of placed cells.

    The grid stores 0 for empty cells and a positive colour id for filled
    cells, so a filled cell can never carry the empty sentinel. Indexing is
    ``grid[row, col]`` with row 0 at the top.
    """

    def __init__(self, size: int = 8) -> None:
        if int(size) < 1:
            raise ValueError(f"grid size must be positive, got {size}")
        self.size = int(size)
        self.grid = np.zeros((self.size, self.size), dtype=np.int32)

    def reset(self) -> None:
        self.grid.fill(EMPTY)

    def cell(self, row: int, col: int) -> int:
        """Colour id at (row, col), 0 when empty."""
        return int(self.grid[row, col])

    def can_place(self, shape: Shape, row: int, col: int) -> bool:
        """Check bounds and overlap for `shape` anchored at (row, col).

        Never mutates the grid, so it is safe for previews and AI simulation.
        """
        shape_h, shape_w = shape.shape
        if row < 0 or col < 0:
            return False
        if row + shape_h > self.size or col + shape_w > self.size:
            return False
        window = self.grid[row : row + shape_h, col : col + shape_w]
        return not bool(np.any(shape & (window != EMPTY)))

    def commit_placement(self, shape: Shape, row: int, col: int, color_id: int) -> List[Coordinate]:
        """
        Write `color_id` into every covered cell and return the coordinates set.
        Assumes position is already validated with can_place.
        """
        changed: List[Coordinate] = []
        shape_h, shape_w = shape.shape
        for dr in range(shape_h):
            for dc in range(shape_w):
                if shape[dr, dc]:
                    self.grid[row + dr, col + dc] = color_id
                    changed.append((row + dr, col + dc))
        return changed

    def valid_positions(self, shape: Shape) -> List[Coordinate]:
        """All (row, col) anchors where `shape` fits, row-major."""
        positions: List[Coordinate] = []
        for row in range(self.size):
            for col in range(self.size):
                if self.can_place(shape, row, col):
                    positions.append((row, col))
        return positions

    def filled_mask(self) -> np.ndarray:
        return self.grid != EMPTY

    def filled_count(self) -> int:
        return int(np.count_nonzero(self.grid))

    def get_filled_ratio(self) -> float:
        return self.filled_count() / float(self.size * self.size)

    def snapshot(self) -> np.ndarray:
        state = self.grid.copy()
        state.flags.writeable = False
        return state

    def copy(self) -> "GameGrid":
        new_grid = GameGrid(self.size)
        new_grid.grid = self.grid.copy()
        return new_grid


def format_board(grid: np.ndarray) -> str:
    return "\n".join("".join("█" if cell else "·" for cell in row) for row in grid)
