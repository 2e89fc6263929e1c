from __future__ import annotations

import itertools
import random
from dataclasses import dataclass
from typing import Iterator, List, Sequence

from .grid import GameGrid
from .pieces import Shape, ShapeCatalog, rotate


# Hex RGB values; colour id N refers to DEFAULT_PALETTE[N - 1] so 0 stays free
# as the empty-cell sentinel.
DEFAULT_PALETTE: tuple[int, ...] = (
    0xFF0000,
    0x00FF00,
    0x0000FF,
    0xFFFF00,
    0xFF00FF,
    0x00FFFF,
    0xFFA500,
)


@dataclass(frozen=True, eq=False)
class ActiveShape:
    """A placeable shape dealt to the player: frozen matrix, colour and id."""

    shape_id: int
    matrix: Shape
    color_id: int
    kind: int = -1
    rotation: int = 0

    @property
    def height(self) -> int:
        return int(self.matrix.shape[0])

    @property
    def width(self) -> int:
        return int(self.matrix.shape[1])


class BatchGenerator:
    """Deals batches of random shapes.

    Each shape independently gets a uniform catalog entry, a uniform palette
    colour and 0-3 clockwise rotations. Shape ids are unique for the lifetime
    of the generator.
    """

    def __init__(
        self,
        catalog: ShapeCatalog,
        palette: Sequence[int] = DEFAULT_PALETTE,
        rng: random.Random | None = None,
        pieces_per_set: int = 3,
    ) -> None:
        if not palette:
            raise ValueError("palette must contain at least one colour")
        if pieces_per_set < 1:
            raise ValueError("pieces_per_set must be positive")
        self.catalog = catalog
        self.palette = tuple(palette)
        self.rng = rng or random.Random()
        self.pieces_per_set = int(pieces_per_set)
        self._ids: Iterator[int] = itertools.count(1)

    def _random_shape(self) -> ActiveShape:
        kind = self.rng.randrange(len(self.catalog))
        color_id = self.rng.randrange(len(self.palette)) + 1
        rotation = self.rng.randrange(4)
        return ActiveShape(
            shape_id=next(self._ids),
            matrix=rotate(self.catalog[kind], rotation),
            color_id=color_id,
            kind=kind,
            rotation=rotation,
        )

    def generate(self) -> List[ActiveShape]:
        return [self._random_shape() for _ in range(self.pieces_per_set)]


def shape_has_move(grid: GameGrid, shape: ActiveShape) -> bool:
    for row in range(grid.size):
        for col in range(grid.size):
            if grid.can_place(shape.matrix, row, col):
                return True
    return False


def has_valid_moves(grid: GameGrid, batch: Sequence[ActiveShape]) -> bool:
    """True if any shape in the batch fits anywhere on the grid."""
    return any(shape_has_move(grid, shape) for shape in batch)
