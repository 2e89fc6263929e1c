import pytest

from block_blast.events import (
    EVENT_BATCH_GENERATED,
    EVENT_BOARD_CHANGED,
    EVENT_GAME_OVER,
    EVENT_LINES_CLEARED,
    EVENT_PHASE_CHANGED,
    EVENT_SCORE_CHANGED,
    EVENT_SHAPE_CONSUMED,
)
from block_blast.game import (
    EmptyBatchUnderflow,
    GameConfig,
    GameSession,
    IllegalPlacement,
    InvalidPhase,
    Phase,
    RejectReason,
    UnknownShape,
)

from tests.helpers import ScriptedGenerator, fill_cells, make_shape, record_events


SINGLES = [[[1]], [[1]], [[1]]]
O = [[1, 1], [1, 1]]


def _session(batches, grid_size=8):
    return GameSession(GameConfig(grid_size=grid_size, ai_delay=0), generator=ScriptedGenerator(batches))


def test_start_deals_first_batch():
    session = GameSession(GameConfig(random_seed=3))
    events = record_events(session)
    assert session.phase == Phase.START
    assert session.start().accepted
    assert session.phase == Phase.PLAYING
    assert len(session.batch) == 3
    assert session.score == 0
    assert [name for name, _ in events] == [EVENT_PHASE_CHANGED, EVENT_BATCH_GENERATED]
    assert events[0][1] == {"phase": Phase.PLAYING, "previous": Phase.START}


def test_start_twice_is_rejected():
    session = _session([SINGLES])
    session.start()
    result = session.start()
    assert not result.accepted
    assert result.reason == RejectReason.INVALID_PHASE


def test_place_single_cell_on_empty_board():
    session = _session([SINGLES])
    session.start()
    shape = session.batch[0]
    result = session.place(shape.shape_id, 0, 0)
    assert result.accepted
    assert session.board.cell(0, 0) == shape.color_id
    assert session.board.filled_count() == 1
    assert session.score == 0
    assert result.detail["lines"] == 0
    assert len(session.batch) == 2


def test_completing_a_row_clears_it_and_scores():
    session = _session([SINGLES])
    session.start()
    fill_cells(session, [(3, c) for c in range(7)])
    events = record_events(session)
    shape = session.batch[0]

    result = session.place(shape.shape_id, 3, 7)

    assert result.accepted
    assert result.detail["rows"] == (3,)
    assert session.score == 100
    board = session.board
    assert all(board.cell(3, c) == 0 for c in range(8))
    names = [name for name, _ in events]
    assert names == [EVENT_SHAPE_CONSUMED, EVENT_BOARD_CHANGED, EVENT_LINES_CLEARED, EVENT_SCORE_CHANGED]
    payloads = dict(events)
    assert payloads[EVENT_SHAPE_CONSUMED] == {"shape_id": shape.shape_id}
    assert payloads[EVENT_BOARD_CHANGED]["cells"] == [(3, c, 0) for c in range(8)]
    assert payloads[EVENT_LINES_CLEARED] == {"rows": (3,), "cols": ()}
    assert payloads[EVENT_SCORE_CHANGED] == {"score": 100, "delta": 100}


def test_row_and_column_double_clear_scores_200():
    session = _session([SINGLES])
    session.start()
    fill_cells(session, [(3, c) for c in range(8) if c != 5])
    fill_cells(session, [(r, 5) for r in range(8) if r != 3])
    result = session.place(session.batch[0].shape_id, 3, 5)
    assert result.detail["lines"] == 2
    assert session.score == 200
    assert session.board.filled_count() == 0


def test_batch_regenerates_only_when_empty():
    generator = ScriptedGenerator([SINGLES, SINGLES])
    session = GameSession(GameConfig(ai_delay=0), generator=generator)
    session.start()
    events = record_events(session)
    first_ids = [s.shape_id for s in session.batch]

    session.place(first_ids[0], 0, 0)
    session.place(first_ids[1], 0, 2)
    assert generator.calls == 1
    assert len(session.batch) == 1

    session.place(first_ids[2], 0, 4)
    assert generator.calls == 2
    assert len(session.batch) == 3
    assert not set(first_ids) & {s.shape_id for s in session.batch}
    assert [name for name, _ in events].count(EVENT_BATCH_GENERATED) == 1


def test_unknown_shape_is_rejected():
    session = _session([SINGLES])
    session.start()
    result = session.place(-5, 0, 0)
    assert result.reason == RejectReason.UNKNOWN_SHAPE
    with pytest.raises(UnknownShape):
        result.raise_for_reason()


def test_illegal_placement_changes_nothing():
    session = _session([[O, O, O]])
    session.start()
    fill_cells(session, [(0, 0)])
    events = record_events(session)
    shape = session.batch[0]
    before = session.board.grid.copy()

    for row, col in [(0, 0), (7, 7), (-1, 0)]:
        result = session.place(shape.shape_id, row, col)
        assert result.reason == RejectReason.ILLEGAL_PLACEMENT
    assert (session.board.grid == before).all()
    assert len(session.batch) == 3
    assert events == []
    with pytest.raises(IllegalPlacement):
        result.raise_for_reason()


def test_place_before_start_is_invalid_phase():
    session = _session([SINGLES])
    events = record_events(session)
    result = session.place(1, 0, 0)
    assert result.reason == RejectReason.INVALID_PHASE
    assert events == []
    with pytest.raises(InvalidPhase):
        result.raise_for_reason()


def test_empty_batch_underflow():
    session = _session([SINGLES])
    session.start()
    session._batch = []
    result = session.place(1, 0, 0)
    assert result.reason == RejectReason.EMPTY_BATCH_UNDERFLOW
    with pytest.raises(EmptyBatchUnderflow):
        result.raise_for_reason()


def test_accepted_result_does_not_raise():
    session = _session([SINGLES])
    assert session.start().raise_for_reason().accepted


def test_game_over_when_first_batch_cannot_fit():
    bar = [[1, 1, 1, 1]]
    session = _session([[bar, bar, bar]], grid_size=3)
    events = record_events(session)
    session.start()
    assert session.phase == Phase.GAME_OVER
    assert (EVENT_GAME_OVER, {"final_score": 0}) in events


def test_game_over_after_placement_blocks_remaining_shapes():
    session = _session([[[[1]], O, O]], grid_size=3)
    session.start()
    fill_cells(session, [(0, 0), (0, 1), (1, 0)])
    events = record_events(session)

    result = session.place(session.batch[0].shape_id, 1, 1)

    assert result.accepted
    assert session.phase == Phase.GAME_OVER
    assert len(session.batch) == 2
    assert events[-1] == (EVENT_GAME_OVER, {"final_score": 0})
    assert (EVENT_PHASE_CHANGED, {"phase": Phase.GAME_OVER, "previous": Phase.PLAYING}) in events

    follow_up = session.place(session.batch[0].shape_id, 0, 0)
    assert follow_up.reason == RejectReason.INVALID_PHASE
    assert session.set_ai_enabled(True).reason == RejectReason.INVALID_PHASE
    assert session.pause().reason == RejectReason.INVALID_PHASE


def test_reset_returns_to_start_from_game_over():
    bar = [[1, 1, 1, 1]]
    session = _session([[bar, bar, bar], SINGLES], grid_size=3)
    session.start()
    assert session.phase == Phase.GAME_OVER
    assert session.reset().accepted
    assert session.phase == Phase.START
    assert session.batch == ()
    assert session.start().accepted
    assert session.phase == Phase.PLAYING


def test_pause_blocks_placement_and_restores_ai_flag():
    session = _session([SINGLES])
    session.start()
    session.set_ai_enabled(True)

    assert session.pause().accepted
    assert session.phase == Phase.PAUSED
    assert not session.ai_enabled
    result = session.place(session.batch[0].shape_id, 0, 0)
    assert result.reason == RejectReason.INVALID_PHASE
    assert session.board.filled_count() == 0

    assert session.resume().accepted
    assert session.phase == Phase.PLAYING
    assert session.ai_enabled


def test_ai_toggle_while_paused_applies_on_resume():
    session = _session([SINGLES])
    session.start()
    session.pause()
    session.set_ai_enabled(True)
    assert not session.ai_enabled
    session.resume()
    assert session.ai_enabled


def test_resume_without_pause_is_rejected():
    session = _session([SINGLES])
    session.start()
    assert session.resume().reason == RejectReason.INVALID_PHASE


def test_reset_clears_board_score_and_ai():
    session = _session([SINGLES])
    session.start()
    fill_cells(session, [(3, c) for c in range(7)])
    session.place(session.batch[0].shape_id, 3, 7)
    session.place(session.batch[0].shape_id, 0, 0)
    session.set_ai_enabled(True)
    events = record_events(session)

    session.reset()

    assert session.phase == Phase.START
    assert session.score == 0
    assert session.board.filled_count() == 0
    assert session.batch == ()
    assert not session.ai_enabled
    assert session.get_game_stats()["pieces_placed"] == 0
    names = [name for name, _ in events]
    assert EVENT_BOARD_CHANGED in names
    assert (EVENT_SCORE_CHANGED, {"score": 0, "delta": -100}) in events
    assert names[-1] == EVENT_PHASE_CHANGED


def test_restart_starts_a_fresh_game():
    session = GameSession(GameConfig(random_seed=9))
    session.start()
    first = [(s.kind, s.rotation) for s in session.batch]
    session.restart(seed=9)
    session2 = GameSession(GameConfig(random_seed=1))
    session2.restart(seed=9)
    assert session.phase == Phase.PLAYING
    assert [(s.kind, s.rotation) for s in session2.batch] == [(s.kind, s.rotation) for s in session.batch]
    assert len(first) == 3


def test_regenerate_batch_replaces_shapes():
    session = _session([SINGLES, [O, O, O]])
    session.start()
    old_ids = {s.shape_id for s in session.batch}
    assert session.regenerate_batch().accepted
    assert not old_ids & {s.shape_id for s in session.batch}
    assert session.batch[0].matrix.shape == (2, 2)


def test_regenerate_batch_requires_playing():
    session = _session([SINGLES])
    assert session.regenerate_batch().reason == RejectReason.INVALID_PHASE


def test_board_view_cannot_mutate_session():
    session = _session([SINGLES])
    session.start()
    view = session.board
    view.grid[0, 0] = 3
    assert session.board.cell(0, 0) == 0


def test_stats_track_placements():
    session = _session([SINGLES])
    session.start()
    fill_cells(session, [(3, c) for c in range(7)])
    session.place(session.batch[0].shape_id, 3, 7)
    stats = session.get_game_stats()
    assert stats["pieces_placed"] == 1
    assert stats["lines_cleared"] == 1
    assert stats["final_score"] == 100
    state = session.get_state()
    assert state["pieces_remaining"] == 2
    assert state["phase"] == Phase.PLAYING


@pytest.mark.parametrize(
    "kwargs",
    [{"grid_size": 0}, {"palette": ()}, {"ai_delay": -1}, {"pieces_per_set": 0}],
)
def test_config_validation(kwargs):
    with pytest.raises(ValueError):
        GameConfig(**kwargs)


def test_place_with_colour_from_long_palette():
    session = GameSession(GameConfig(palette=tuple(range(1, 201)), random_seed=0))
    session.start()
    shape = make_shape([[1]], color_id=200)
    session._batch = [shape]
    result = session.place(shape.shape_id, 0, 0)
    assert result.accepted
    assert session.board.cell(0, 0) == 200
