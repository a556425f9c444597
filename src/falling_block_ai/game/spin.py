from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .grid import GameGrid
from .pieces import PIVOT_KIND, ActivePiece
from .rules import ClearKind


class SpinCategory(str, Enum):
    NONE = "none"
    SPIN = "spin"


@dataclass(frozen=True)
class SpinClassification:
    category: SpinCategory
    clear_kind: ClearKind

    @property
    def is_spin(self) -> bool:
        return self.category is SpinCategory.SPIN


_ORDINARY = {
    1: ClearKind.SINGLE,
    2: ClearKind.DOUBLE,
    3: ClearKind.TRIPLE,
    4: ClearKind.TETRIS,
}

_SPIN = {
    1: ClearKind.SPIN_SINGLE,
    2: ClearKind.SPIN_DOUBLE,
    3: ClearKind.SPIN_TRIPLE,
}


def kind_for_lines(lines: int) -> ClearKind:
    return _ORDINARY.get(lines, ClearKind.NONE)


def occupied_corners(grid: GameGrid, piece: ActivePiece) -> int:
    """Count filled diagonal neighbours of the pivot; walls count as filled."""
    cx, cy = piece.pivot
    corners = ((cx - 1, cy - 1), (cx + 1, cy - 1), (cx - 1, cy + 1), (cx + 1, cy + 1))
    return sum(1 for x, y in corners if not grid.is_cell_free(x, y))


def classify(grid: GameGrid, piece: ActivePiece, lines_cleared: int,
             last_action_was_rotation: bool) -> SpinClassification:
    """3-corner spin test on the field as it was before rows were cleared.

    Four-line spins are still tagged as spins but keep the ordinary tetris kind.
    """
    ordinary = SpinClassification(SpinCategory.NONE, kind_for_lines(lines_cleared))
    if piece.kind != PIVOT_KIND or lines_cleared <= 0 or not last_action_was_rotation:
        return ordinary
    if occupied_corners(grid, piece) < 3:
        return ordinary
    # No dedicated four-line spin tier
    spin_kind = _SPIN.get(lines_cleared, ordinary.clear_kind)
    return SpinClassification(SpinCategory.SPIN, spin_kind)
