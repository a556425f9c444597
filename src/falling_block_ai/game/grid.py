from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .pieces import CW, ActivePiece, Coordinate, PieceKind, try_rotate


FIELD_WIDTH = 10
FIELD_HEIGHT = 40
VISIBLE_ROWS = 20

SPAWN_X = 3
SPAWN_Y = 18


@dataclass(frozen=True)
class LineClearResult:
    grid: "GameGrid"
    cleared_rows: Tuple[int, ...]

    @property
    def lines_cleared(self) -> int:
        return len(self.cleared_rows)


@dataclass(frozen=True)
class HardDropResult:
    piece: ActivePiece
    distance: int


class GameGrid:
    """Occupancy field, 0 for empty and 1 for filled. Row 0 is the top.

    Instances are never mutated: ``lock`` and ``clear_full_lines`` return new
    grids, so search branches can hold on to a grid without copying it.
    """

    def __init__(self, grid: Optional[np.ndarray] = None,
                 width: int = FIELD_WIDTH, height: int = FIELD_HEIGHT) -> None:
        if grid is None:
            grid = np.zeros((int(height), int(width)), dtype=np.int8)
        else:
            grid = (np.asarray(grid) != 0).astype(np.int8)
        grid.setflags(write=False)
        self.grid = grid
        self.height, self.width = grid.shape
        # Python-level rows make per-cell lookups cheap in the search loops
        self._rows: List[List[int]] = grid.tolist()

    @classmethod
    def empty(cls, width: int = FIELD_WIDTH, height: int = FIELD_HEIGHT) -> "GameGrid":
        return cls(width=width, height=height)

    @classmethod
    def from_text(cls, rows: Sequence[str], width: int = FIELD_WIDTH,
                  height: int = FIELD_HEIGHT) -> "GameGrid":
        """Build a grid whose bottom rows are given as text ('#' or 'X' filled)."""
        if len(rows) > height:
            raise ValueError(f"{len(rows)} rows do not fit a field of height {height}")
        grid = np.zeros((height, width), dtype=np.int8)
        offset = height - len(rows)
        for i, row in enumerate(rows):
            for x, ch in enumerate(row[:width]):
                if ch in "#X":
                    grid[offset + i, x] = 1
        return cls(grid)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameGrid):
            return NotImplemented
        return np.array_equal(self.grid, other.grid)

    def __hash__(self) -> int:
        return hash(self.grid.tobytes())

    def is_inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_cell_free(self, x: int, y: int) -> bool:
        """Out-of-bounds cells count as occupied."""
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            return False
        return self._rows[y][x] == 0

    def cells_free(self, cells: Iterable[Coordinate]) -> bool:
        rows = self._rows
        w, h = self.width, self.height
        for x, y in cells:
            if x < 0 or x >= w or y < 0 or y >= h or rows[y][x]:
                return False
        return True

    def can_place(self, piece: ActivePiece) -> bool:
        return self.cells_free(piece.cells())

    def lock(self, piece: ActivePiece) -> "GameGrid":
        """Stamp the piece into a new grid. Lines are not cleared."""
        grid = self.grid.copy()
        for x, y in piece.cells():
            if self.is_inside(x, y):
                grid[y, x] = 1
        return GameGrid(grid)

    def clear_full_lines(self) -> LineClearResult:
        full_rows = np.where(np.all(self.grid != 0, axis=1))[0]
        if full_rows.size == 0:
            return LineClearResult(self, ())
        num = int(full_rows.size)
        # Remove full rows and add empty rows at the top
        kept = np.delete(self.grid, full_rows, axis=0)
        new_rows = np.zeros((num, self.width), dtype=np.int8)
        grid = np.vstack((new_rows, kept))
        return LineClearResult(GameGrid(grid), tuple(int(r) for r in full_rows))

    def filled_count(self) -> int:
        return int(np.count_nonzero(self.grid))

    def column_heights(self) -> np.ndarray:
        filled = self.grid != 0
        has_block = filled.any(axis=0)
        top = np.argmax(filled, axis=0)
        return np.where(has_block, self.height - top, 0).astype(np.int64)

    def get_max_height(self) -> int:
        return int(self.column_heights().max(initial=0))

    def count_holes(self) -> int:
        heights = self.column_heights()
        filled = np.count_nonzero(self.grid, axis=0)
        return int(np.sum(heights - filled))

    def clone_state(self) -> np.ndarray:
        return self.grid.copy()


# ---------- piece movement ----------

def spawn_piece(grid: GameGrid, kind: PieceKind) -> Optional[ActivePiece]:
    """Spawn ``kind`` at the fixed anchor, or ``None`` when it is blocked."""
    piece = ActivePiece(kind=PieceKind(kind), rotation=0, x=SPAWN_X, y=SPAWN_Y)
    if not grid.can_place(piece):
        return None
    return piece


def try_move(grid: GameGrid, piece: ActivePiece, dx: int, dy: int) -> ActivePiece:
    moved = piece.moved(dx, dy)
    if grid.can_place(moved):
        return moved
    return piece


def move_left(grid: GameGrid, piece: ActivePiece) -> ActivePiece:
    return try_move(grid, piece, -1, 0)


def move_right(grid: GameGrid, piece: ActivePiece) -> ActivePiece:
    return try_move(grid, piece, 1, 0)


def soft_drop(grid: GameGrid, piece: ActivePiece) -> ActivePiece:
    return try_move(grid, piece, 0, 1)


def can_descend(grid: GameGrid, piece: ActivePiece) -> bool:
    return grid.can_place(piece.moved(0, 1))


def hard_drop(grid: GameGrid, piece: ActivePiece) -> HardDropResult:
    current = piece
    distance = 0
    while can_descend(grid, current):
        current = current.moved(0, 1)
        distance += 1
    return HardDropResult(current, distance)


def rotate_piece(grid: GameGrid, piece: ActivePiece, direction: str = CW) -> ActivePiece:
    """Rotate with kicks; the unchanged piece is returned when every kick fails."""
    result = try_rotate(piece.kind, piece.rotation, direction, piece.x, piece.y, grid.is_cell_free)
    if not result.success:
        return piece
    return ActivePiece(piece.kind, result.rotation, result.x, result.y)


def field_to_text(grid: GameGrid, piece: Optional[ActivePiece] = None,
                  visible_only: bool = True) -> str:
    overlay = set(piece.cells()) if piece is not None else set()
    start = grid.height - VISIBLE_ROWS if visible_only else 0
    lines = []
    for y in range(max(0, start), grid.height):
        row = []
        for x in range(grid.width):
            if (x, y) in overlay:
                row.append("▒")
            else:
                row.append("█" if not grid.is_cell_free(x, y) else "·")
        lines.append("".join(row))
    return "\n".join(lines)


def print_field(grid: GameGrid, piece: Optional[ActivePiece] = None) -> None:
    print(field_to_text(grid, piece))
