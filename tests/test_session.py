from __future__ import annotations

import numpy as np

from falling_block_ai.ai.search import BeamSearchPlanner
from falling_block_ai.ai.types import MoveRecommendation
from falling_block_ai.config import GameConfig, PhysicsConfig, SearchConfig
from falling_block_ai.game import Action, GameSession, HeldInput
from falling_block_ai.game.grid import FIELD_HEIGHT, FIELD_WIDTH, SPAWN_X, SPAWN_Y, GameGrid, move_left
from falling_block_ai.game.pieces import PieceKind


def test_reset_spawns_first_piece():
    session = GameSession()
    assert session.active is not None
    assert (session.active.x, session.active.y, session.active.rotation) == (SPAWN_X, SPAWN_Y, 0)
    assert not session.game_over
    assert session.pieces_placed == 0


def test_same_seed_same_pieces():
    a, b = GameSession(), GameSession()
    a.reset(7)
    b.reset(7)
    assert a.current_kind == b.current_kind
    assert a.snapshot().next_pieces == b.snapshot().next_pieces


def test_hard_drop_locks_piece():
    session = GameSession()
    event = session.step(Action.HARD_DROP)
    assert event is not None
    assert session.pieces_placed == 1
    assert session.grid.filled_count() == 4
    assert event.points == 0
    assert not event.game_over


def test_hold_once_per_turn():
    session = GameSession()
    first = session.active.kind
    session.step(Action.HOLD)
    assert session.queue_state.hold == first
    assert not session.queue_state.can_hold
    second = session.active.kind
    session.step(Action.HOLD)
    assert session.active.kind == second
    assert session.queue_state.hold == first


def test_gravity_moves_piece_down():
    session = GameSession()
    y = session.active.y
    session.tick(session.physics.gravity_interval_ms)
    assert session.active.y == y + 1


def test_rotation_flag_cleared_by_gravity():
    session = GameSession()
    session.step(Action.ROTATE_CW)
    assert session.last_action_was_rotation
    session.tick(session.physics.gravity_interval_ms)
    assert not session.last_action_was_rotation


def test_lock_delay_expires_on_ground():
    session = GameSession()
    while not session.on_ground:
        session.step(Action.SOFT_DROP)
    assert session.tick(session.physics.lock_delay_ms / 2) is None
    event = session.tick(session.physics.lock_delay_ms)
    assert event is not None
    assert session.pieces_placed == 1


def test_das_then_arr_reaches_wall():
    session = GameSession()
    x = session.active.x
    held = HeldInput(left=True)
    session.tick(100, held)
    assert session.active.x == x
    session.tick(40, held)
    assert session.active.x < x
    assert move_left(session.grid, session.active) == session.active


def test_blocked_spawn_ends_game():
    session = GameSession()
    arr = np.zeros((FIELD_HEIGHT, FIELD_WIDTH), dtype=np.int8)
    arr[20:, 1:] = 1
    session.grid = GameGrid(arr)
    event = session.step(Action.HARD_DROP)
    assert event is not None
    assert event.game_over
    assert session.game_over
    assert session.step(Action.LEFT) is None


def test_apply_planner_move():
    session = GameSession()
    response = BeamSearchPlanner().search(session.snapshot(),
                                          SearchConfig(beam_width=1, max_depth=1, time_limit_ms=60_000))
    event = session.apply_move(response.best)
    assert event is not None
    assert session.pieces_placed == 1
    if response.best.use_hold:
        assert session.queue_state.hold is not None


def test_apply_move_rejects_floating_pose():
    session = GameSession()
    kind = session.active.kind
    move = MoveRecommendation(kind=kind, rotation=0, x=3, y=10, use_hold=False, score=0.0)
    assert session.apply_move(move) is None
    assert session.pieces_placed == 0
    assert session.active.kind == kind


def test_apply_move_rejects_wrong_kind():
    session = GameSession()
    other = next(k for k in PieceKind if k != session.active.kind)
    move = MoveRecommendation(kind=other, rotation=0, x=3, y=38, use_hold=False, score=0.0)
    assert session.apply_move(move) is None
    assert session.queue_state.hold is None


def test_snapshot_and_stats():
    session = GameSession()
    session.step(Action.HARD_DROP)
    snap = session.snapshot()
    assert snap.grid is session.grid
    assert snap.active == session.active
    assert len(snap.next_pieces) == session.physics.preview_depth
    stats = session.get_game_stats()
    assert stats["pieces_placed"] == 1
    assert stats["lines_cleared"] == 0
    assert stats["max_height"] > 0


def _land(session: GameSession) -> None:
    while not session.on_ground:
        session.step(Action.SOFT_DROP)


def test_ground_move_resets_lock_delay_below_cap():
    session = GameSession(GameConfig(physics=PhysicsConfig(lock_resets_max=3)))
    _land(session)
    assert session.lock_resets_used == 1
    session.tick(300)
    assert session.lock_delay_remaining_ms == 200
    session.step(Action.LEFT)
    assert session.lock_delay_remaining_ms == session.physics.lock_delay_ms
    assert session.lock_resets_used == 2


def test_reset_cap_forces_lock_with_delay_left():
    session = GameSession(GameConfig(physics=PhysicsConfig(lock_resets_max=2)))
    _land(session)
    assert session.tick(1) is None
    session.step(Action.LEFT)
    assert session.lock_resets_used == 2
    session.step(Action.RIGHT)
    assert session.lock_resets_used == 2
    event = session.tick(1)
    assert event is not None
    assert session.pieces_placed == 1


def test_held_soft_drop_uses_multiplier():
    session = GameSession()
    y = session.active.y
    session.tick(100, HeldInput(soft_drop=True))
    assert session.active.y == y + 10


def test_held_soft_drop_inactive_without_multiplier():
    session = GameSession(GameConfig(physics=PhysicsConfig(soft_drop_multiplier=1)))
    y = session.active.y
    session.tick(100, HeldInput(soft_drop=True))
    assert session.active.y == y


def test_zero_arr_moves_to_wall_in_one_tick():
    session = GameSession(GameConfig(physics=PhysicsConfig(arr_ms=0)))
    x = session.active.x
    session.tick(session.physics.das_ms, HeldInput(left=True))
    assert session.active.x < x - 1
    assert move_left(session.grid, session.active) == session.active


def test_constructor_seed_matches_reset():
    seeded = GameSession(seed=7)
    reset = GameSession()
    reset.reset(7)
    assert seeded.seed == 7
    assert seeded.snapshot().next_pieces == reset.snapshot().next_pieces
