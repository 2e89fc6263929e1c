from __future__ import annotations

from enum import IntEnum
from typing import Dict, Iterable, List, Sequence

import numpy as np


class ShapeKind(IntEnum):
    SINGLE = 0
    DOMINO_H = 1
    DOMINO_V = 2
    I = 3
    L = 4
    J = 5
    O = 6
    S = 7
    T = 8
    Z = 9


Shape = np.ndarray


def _frozen(rows: Sequence[Sequence[int]]) -> Shape:
    arr = np.array(rows, dtype=np.bool_)
    arr.flags.writeable = False
    return arr


BASE_SHAPES: Dict[ShapeKind, Shape] = {
    ShapeKind.SINGLE: _frozen([[1]]),
    ShapeKind.DOMINO_H: _frozen([[1, 1]]),
    ShapeKind.DOMINO_V: _frozen([[1], [1]]),
    ShapeKind.I: _frozen([[1], [1], [1], [1]]),
    ShapeKind.L: _frozen([[1, 0], [1, 0], [1, 1]]),
    ShapeKind.J: _frozen([[0, 1], [0, 1], [1, 1]]),
    ShapeKind.O: _frozen([[1, 1], [1, 1]]),
    ShapeKind.S: _frozen([[0, 1, 1], [1, 1, 0]]),
    ShapeKind.T: _frozen([[1, 1, 1], [0, 1, 0]]),
    ShapeKind.Z: _frozen([[1, 1, 0], [0, 1, 1]]),
}


def rotate_clockwise(shape: Shape) -> Shape:
    """Rotate a shape matrix 90 degrees clockwise.

    ``out[c, rows - 1 - r] == shape[r, c]`` for every cell. The result is a
    fresh read-only array; the input is never modified.
    """
    out = np.ascontiguousarray(np.rot90(shape, 1, axes=(1, 0)))
    out.flags.writeable = False
    return out


def rotate(shape: Shape, times: int) -> Shape:
    times = times % 4
    for _ in range(times):
        shape = rotate_clockwise(shape)
    return shape


def is_canonical(shape: Shape) -> bool:
    """True for a non-empty 2D matrix with no fully-empty border row/column."""
    if shape.ndim != 2 or shape.size == 0 or not shape.any():
        return False
    return bool(shape[0, :].any() and shape[-1, :].any() and shape[:, 0].any() and shape[:, -1].any())


def cell_count(shape: Shape) -> int:
    return int(np.count_nonzero(shape))


class ShapeCatalog:
    """Immutable, ordered library of base shape matrices."""

    def __init__(self, shapes: Iterable[Sequence[Sequence[int]] | Shape] | None = None) -> None:
        if shapes is None:
            matrices = [BASE_SHAPES[kind] for kind in ShapeKind]
        else:
            matrices = [_frozen(np.asarray(s, dtype=np.bool_)) for s in shapes]
        if not matrices:
            raise ValueError("shape catalog must not be empty")
        for idx, matrix in enumerate(matrices):
            if not is_canonical(matrix):
                raise ValueError(f"catalog shape {idx} is not in canonical form:\n{matrix.astype(int)}")
        self._shapes: tuple[Shape, ...] = tuple(matrices)

    def __len__(self) -> int:
        return len(self._shapes)

    def __getitem__(self, kind: int) -> Shape:
        return self._shapes[int(kind)]

    def __iter__(self):
        return iter(self._shapes)

    def all_rotations(self, kind: int) -> List[Shape]:
        """Unique rotations of a catalog shape, in clockwise order."""
        rotations: List[Shape] = []
        for r in range(4):
            shape = rotate(self[kind], r)
            if not any(np.array_equal(shape, existing) for existing in rotations):
                rotations.append(shape)
        return rotations
