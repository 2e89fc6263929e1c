from __future__ import annotations

import itertools
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from block_blast.game import ActiveShape, GameSession


_ids = itertools.count(1000)


def make_shape(rows: Sequence[Sequence[int]], color_id: int = 1, shape_id: int | None = None) -> ActiveShape:
    matrix = np.array(rows, dtype=np.bool_)
    return ActiveShape(shape_id=next(_ids) if shape_id is None else shape_id, matrix=matrix, color_id=color_id)


class ScriptedGenerator:
    """Deals predefined batches in order, then repeats single cells."""

    def __init__(self, batches: Iterable[Sequence[Sequence[Sequence[int]]]]) -> None:
        self._batches: List[List[Sequence[Sequence[int]]]] = [list(b) for b in batches]
        self.calls = 0

    def generate(self) -> List[ActiveShape]:
        self.calls += 1
        if self._batches:
            rows_list = self._batches.pop(0)
        else:
            rows_list = [[[1]], [[1]], [[1]]]
        return [make_shape(rows, color_id=i + 1) for i, rows in enumerate(rows_list)]


def fill_cells(session: GameSession, cells: Iterable[Tuple[int, int]], color_id: int = 7) -> None:
    for row, col in cells:
        session._grid.grid[row, col] = color_id


def record_events(session: GameSession) -> List[Tuple[str, dict]]:
    """Subscribe to every session event and collect (name, payload) pairs."""
    from block_blast.events import ALL_EVENTS

    captured: List[Tuple[str, dict]] = []
    for name in ALL_EVENTS:
        def _capture(sender, _name=name, **payload):
            captured.append((_name, payload))

        session.bus.subscribe(name, _capture)
    return captured
