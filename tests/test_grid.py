from __future__ import annotations

import numpy as np
import pytest

from falling_block_ai.game.grid import (
    FIELD_HEIGHT,
    FIELD_WIDTH,
    SPAWN_X,
    SPAWN_Y,
    GameGrid,
    can_descend,
    field_to_text,
    hard_drop,
    move_left,
    rotate_piece,
    spawn_piece,
)
from falling_block_ai.game.pieces import CW, ActivePiece, PieceKind

from conftest import grid_with


def test_spawn_on_empty_field(empty_grid):
    piece = spawn_piece(empty_grid, PieceKind.T)
    assert piece == ActivePiece(PieceKind.T, 0, SPAWN_X, SPAWN_Y)


def test_spawn_blocked_returns_none():
    grid = grid_with([(x, SPAWN_Y + 1) for x in range(FIELD_WIDTH)])
    assert spawn_piece(grid, PieceKind.T) is None


def test_out_of_bounds_counts_as_occupied(empty_grid):
    assert not empty_grid.is_cell_free(-1, 0)
    assert not empty_grid.is_cell_free(FIELD_WIDTH, 0)
    assert not empty_grid.is_cell_free(0, FIELD_HEIGHT)
    assert not empty_grid.can_place(ActivePiece(PieceKind.I, 0, -1, 0))
    assert not empty_grid.can_place(ActivePiece(PieceKind.I, 0, 7, 0))
    assert empty_grid.can_place(ActivePiece(PieceKind.I, 0, 6, 0))


def test_lock_returns_new_grid(empty_grid):
    piece = ActivePiece(PieceKind.O, 0, 0, 38)
    locked = empty_grid.lock(piece)
    assert locked.filled_count() == 4
    assert empty_grid.filled_count() == 0
    assert not locked.is_cell_free(1, 38)


def test_clear_full_lines_compacts_and_reports_rows():
    grid = GameGrid.from_text([
        "#########.",
        "##########",
        "#.########",
        "##########",
    ])
    result = grid.clear_full_lines()
    assert result.cleared_rows == (37, 39)
    assert result.lines_cleared == 2
    assert result.grid.grid.shape == (FIELD_HEIGHT, FIELD_WIDTH)
    assert result.grid.filled_count() == 18
    expected = GameGrid.from_text(["#########.", "#.########"])
    assert result.grid == expected


def test_clear_full_lines_without_full_rows_is_identity():
    grid = GameGrid.from_text(["#########."])
    result = grid.clear_full_lines()
    assert result.cleared_rows == ()
    assert result.grid == grid


def test_hard_drop_reports_distance(empty_grid):
    piece = spawn_piece(empty_grid, PieceKind.T)
    result = hard_drop(empty_grid, piece)
    assert result.distance == 20
    assert result.piece.y == 38
    assert not can_descend(empty_grid, result.piece)


def test_blocked_move_returns_same_piece(empty_grid):
    piece = ActivePiece(PieceKind.T, 0, 0, 10)
    assert move_left(empty_grid, piece) == piece


def test_rotation_blocked_everywhere_leaves_piece():
    arr = np.ones((FIELD_HEIGHT, FIELD_WIDTH), dtype=np.int8)
    piece = ActivePiece(PieceKind.T, 0, 3, 18)
    for x, y in piece.cells():
        arr[y, x] = 0
    grid = GameGrid(arr)
    assert rotate_piece(grid, piece, CW) == piece


def test_column_heights_and_holes():
    grid = GameGrid.from_text([
        "#.",
        "..",
        "##",
    ])
    heights = grid.column_heights()
    assert heights[0] == 3
    assert heights[1] == 1
    assert grid.get_max_height() == 3
    assert grid.count_holes() == 1


def test_grid_is_read_only(empty_grid):
    state = empty_grid.clone_state()
    state[0, 0] = 1
    assert empty_grid.is_cell_free(0, 0)
    assert not empty_grid.grid.flags.writeable


def test_field_to_text_shows_visible_rows(empty_grid):
    piece = ActivePiece(PieceKind.O, 0, 0, 38)
    text = field_to_text(empty_grid.lock(piece))
    lines = text.splitlines()
    assert len(lines) == 20
    assert lines[-1].startswith("·██")
    assert len(field_to_text(empty_grid, visible_only=False).splitlines()) == FIELD_HEIGHT


def test_from_text_rejects_too_many_rows():
    with pytest.raises(ValueError):
        GameGrid.from_text(["#"] * (FIELD_HEIGHT + 1))
