from __future__ import annotations

import pytest

from falling_block_ai.game.pieces import (
    ALL_KINDS,
    CCW,
    CW,
    I_KICKS,
    JLSTZ_KICKS,
    ActivePiece,
    PieceKind,
    cells_for,
    kicks_for,
    rotate_index,
    try_rotate,
)

TRANSITIONS = [(0, 1), (1, 0), (1, 2), (2, 1), (2, 3), (3, 2), (3, 0), (0, 3)]


@pytest.mark.parametrize("kind", ALL_KINDS)
@pytest.mark.parametrize("rotation", range(4))
def test_shapes_have_four_unique_cells_inside_box(kind, rotation):
    cells = cells_for(kind, rotation, 0, 0)
    assert len(cells) == 4
    assert len(set(cells)) == 4
    assert all(0 <= x < 4 and 0 <= y < 4 for x, y in cells)


def test_rotate_index_wraps():
    assert rotate_index(0, CW) == 1
    assert rotate_index(3, CW) == 0
    assert rotate_index(0, CCW) == 3
    assert rotate_index(2, CCW) == 1


@pytest.mark.parametrize("transition,expected", [
    ((0, 1), ((0, 0), (-1, 0), (-1, -1), (0, 2), (-1, 2))),
    ((1, 0), ((0, 0), (1, 0), (1, 1), (0, -2), (1, -2))),
    ((1, 2), ((0, 0), (1, 0), (1, 1), (0, -2), (1, -2))),
    ((2, 1), ((0, 0), (-1, 0), (-1, -1), (0, 2), (-1, 2))),
    ((2, 3), ((0, 0), (1, 0), (1, -1), (0, 2), (1, 2))),
    ((3, 2), ((0, 0), (-1, 0), (-1, 1), (0, -2), (-1, -2))),
    ((3, 0), ((0, 0), (-1, 0), (-1, 1), (0, -2), (-1, -2))),
    ((0, 3), ((0, 0), (1, 0), (1, -1), (0, 2), (1, 2))),
])
@pytest.mark.parametrize("kind", [PieceKind.J, PieceKind.L, PieceKind.S, PieceKind.T, PieceKind.Z])
def test_jlstz_kicks_exact(kind, transition, expected):
    assert kicks_for(kind, *transition) == expected


@pytest.mark.parametrize("transition,expected", [
    ((0, 1), ((0, 0), (-2, 0), (1, 0), (-2, 1), (1, -2))),
    ((1, 0), ((0, 0), (2, 0), (-1, 0), (2, -1), (-1, 2))),
    ((1, 2), ((0, 0), (-1, 0), (2, 0), (-1, -2), (2, 1))),
    ((2, 1), ((0, 0), (1, 0), (-2, 0), (1, 2), (-2, -1))),
    ((2, 3), ((0, 0), (2, 0), (-1, 0), (2, -1), (-1, 2))),
    ((3, 2), ((0, 0), (-2, 0), (1, 0), (-2, 1), (1, -2))),
    ((3, 0), ((0, 0), (1, 0), (-2, 0), (1, 2), (-2, -1))),
    ((0, 3), ((0, 0), (-1, 0), (2, 0), (-1, -2), (2, 1))),
])
def test_i_kicks_exact(transition, expected):
    assert kicks_for(PieceKind.I, *transition) == expected


@pytest.mark.parametrize("transition", TRANSITIONS)
def test_o_kicks_are_single_zero_offset(transition):
    assert kicks_for(PieceKind.O, *transition) == ((0, 0),)


def test_tables_cover_all_transitions():
    assert set(JLSTZ_KICKS) == set(TRANSITIONS)
    assert set(I_KICKS) == set(TRANSITIONS)


def test_undefined_transition_has_no_kicks():
    assert kicks_for(PieceKind.T, 0, 2) == ()
    assert kicks_for(PieceKind.I, 1, 3) == ()


def test_try_rotate_unobstructed_uses_zero_offset():
    result = try_rotate(PieceKind.T, 0, CW, 3, 18, lambda x, y: True)
    assert result.success
    assert result.offset == (0, 0)
    assert (result.rotation, result.x, result.y) == (1, 3, 18)


def test_try_rotate_falls_through_to_first_free_kick():
    # T 0 -> 1 at (3, 18) needs (5, 19); blocking it forces the (-1, 0) kick
    blocked = {(5, 19)}
    result = try_rotate(PieceKind.T, 0, CW, 3, 18, lambda x, y: (x, y) not in blocked)
    assert result.success
    assert result.offset == (-1, 0)
    assert (result.rotation, result.x, result.y) == (1, 2, 18)


def test_try_rotate_fails_when_every_kick_collides():
    result = try_rotate(PieceKind.T, 0, CW, 3, 18, lambda x, y: False)
    assert not result.success
    assert result.offset is None
    assert (result.rotation, result.x, result.y) == (0, 3, 18)


def test_active_piece_pivot_and_move():
    piece = ActivePiece(PieceKind.T, 2, 4, 10)
    assert piece.pivot == (5, 11)
    moved = piece.moved(-1, 2)
    assert (moved.x, moved.y) == (3, 12)
    assert piece.x == 4
