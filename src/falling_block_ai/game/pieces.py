from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Callable, Dict, Optional, Tuple


Coordinate = Tuple[int, int]
Offset = Tuple[int, int]
CellFreeFn = Callable[[int, int], bool]


class PieceKind(IntEnum):
    I = 1
    O = 2
    T = 3
    S = 4
    Z = 5
    J = 6
    L = 7


ALL_KINDS: Tuple[PieceKind, ...] = tuple(PieceKind)

# Kind whose rotation centre is used by the 3-corner spin test
PIVOT_KIND = PieceKind.T

CW = "cw"
CCW = "ccw"


# Cells inside the 4x4 bounding box, anchor = top-left, +y is downward.
SHAPES: Dict[PieceKind, Tuple[Tuple[Coordinate, ...], ...]] = {
    PieceKind.I: (
        ((0, 1), (1, 1), (2, 1), (3, 1)),
        ((2, 0), (2, 1), (2, 2), (2, 3)),
        ((0, 2), (1, 2), (2, 2), (3, 2)),
        ((1, 0), (1, 1), (1, 2), (1, 3)),
    ),
    PieceKind.O: (
        ((1, 0), (2, 0), (1, 1), (2, 1)),
    ) * 4,
    PieceKind.T: (
        ((1, 0), (0, 1), (1, 1), (2, 1)),
        ((1, 0), (1, 1), (2, 1), (1, 2)),
        ((0, 1), (1, 1), (2, 1), (1, 2)),
        ((1, 0), (0, 1), (1, 1), (1, 2)),
    ),
    PieceKind.S: (
        ((1, 0), (2, 0), (0, 1), (1, 1)),
        ((1, 0), (1, 1), (2, 1), (2, 2)),
        ((1, 1), (2, 1), (0, 2), (1, 2)),
        ((0, 0), (0, 1), (1, 1), (1, 2)),
    ),
    PieceKind.Z: (
        ((0, 0), (1, 0), (1, 1), (2, 1)),
        ((2, 0), (1, 1), (2, 1), (1, 2)),
        ((0, 1), (1, 1), (1, 2), (2, 2)),
        ((1, 0), (0, 1), (1, 1), (0, 2)),
    ),
    PieceKind.J: (
        ((0, 0), (0, 1), (1, 1), (2, 1)),
        ((1, 0), (2, 0), (1, 1), (1, 2)),
        ((0, 1), (1, 1), (2, 1), (2, 2)),
        ((1, 0), (1, 1), (0, 2), (1, 2)),
    ),
    PieceKind.L: (
        ((2, 0), (0, 1), (1, 1), (2, 1)),
        ((1, 0), (1, 1), (1, 2), (2, 2)),
        ((0, 1), (1, 1), (2, 1), (0, 2)),
        ((0, 0), (1, 0), (1, 1), (1, 2)),
    ),
}


# SRS kick tables with the y axis flipped (+y is down on this field).
JLSTZ_KICKS: Dict[Tuple[int, int], Tuple[Offset, ...]] = {
    (0, 1): ((0, 0), (-1, 0), (-1, -1), (0, 2), (-1, 2)),
    (1, 0): ((0, 0), (1, 0), (1, 1), (0, -2), (1, -2)),
    (1, 2): ((0, 0), (1, 0), (1, 1), (0, -2), (1, -2)),
    (2, 1): ((0, 0), (-1, 0), (-1, -1), (0, 2), (-1, 2)),
    (2, 3): ((0, 0), (1, 0), (1, -1), (0, 2), (1, 2)),
    (3, 2): ((0, 0), (-1, 0), (-1, 1), (0, -2), (-1, -2)),
    (3, 0): ((0, 0), (-1, 0), (-1, 1), (0, -2), (-1, -2)),
    (0, 3): ((0, 0), (1, 0), (1, -1), (0, 2), (1, 2)),
}
I_KICKS: Dict[Tuple[int, int], Tuple[Offset, ...]] = {
    (0, 1): ((0, 0), (-2, 0), (1, 0), (-2, 1), (1, -2)),
    (1, 0): ((0, 0), (2, 0), (-1, 0), (2, -1), (-1, 2)),
    (1, 2): ((0, 0), (-1, 0), (2, 0), (-1, -2), (2, 1)),
    (2, 1): ((0, 0), (1, 0), (-2, 0), (1, 2), (-2, -1)),
    (2, 3): ((0, 0), (2, 0), (-1, 0), (2, -1), (-1, 2)),
    (3, 2): ((0, 0), (-2, 0), (1, 0), (-2, 1), (1, -2)),
    (3, 0): ((0, 0), (1, 0), (-2, 0), (1, 2), (-2, -1)),
    (0, 3): ((0, 0), (-1, 0), (2, 0), (-1, -2), (2, 1)),
}
# O never moves when rotating
O_KICKS: Dict[Tuple[int, int], Tuple[Offset, ...]] = {
    transition: ((0, 0),) for transition in JLSTZ_KICKS
}


def rotate_index(rotation: int, direction: str) -> int:
    """Advance a rotation index by one step clockwise or counter-clockwise."""
    delta = 1 if direction == CW else -1
    return (rotation + delta) & 3


def cells_for(kind: PieceKind, rotation: int, anchor_x: int, anchor_y: int) -> Tuple[Coordinate, ...]:
    shape = SHAPES[kind][rotation & 3]
    return tuple((anchor_x + dx, anchor_y + dy) for dx, dy in shape)


def kicks_for(kind: PieceKind, rot_from: int, rot_to: int) -> Tuple[Offset, ...]:
    """Ordered kick candidates for a transition; empty for undefined transitions."""
    if kind == PieceKind.I:
        table = I_KICKS
    elif kind == PieceKind.O:
        table = O_KICKS
    else:
        table = JLSTZ_KICKS
    return table.get((rot_from, rot_to), ())


@dataclass(frozen=True)
class ActivePiece:
    """A falling piece. ``x``/``y`` is the top-left of its 4x4 box."""
    kind: PieceKind
    rotation: int = 0
    x: int = 0
    y: int = 0

    def cells(self) -> Tuple[Coordinate, ...]:
        return cells_for(self.kind, self.rotation, self.x, self.y)

    def moved(self, dx: int, dy: int) -> "ActivePiece":
        return replace(self, x=self.x + dx, y=self.y + dy)

    @property
    def pivot(self) -> Coordinate:
        return self.x + 1, self.y + 1


@dataclass(frozen=True)
class RotationResult:
    success: bool
    rotation: int
    x: int
    y: int
    offset: Optional[Offset] = None


def try_rotate(
    kind: PieceKind,
    rotation: int,
    direction: str,
    anchor_x: int,
    anchor_y: int,
    is_cell_free: CellFreeFn,
) -> RotationResult:
    """Rotate using the first kick candidate whose cells are all free.

    Candidates are tried strictly in table order. On failure the original
    rotation and anchor are returned with ``success=False``.
    """
    target = rotate_index(rotation, direction)
    for kx, ky in kicks_for(kind, rotation, target):
        cx, cy = anchor_x + kx, anchor_y + ky
        if all(is_cell_free(x, y) for x, y in cells_for(kind, target, cx, cy)):
            return RotationResult(True, target, cx, cy, (kx, ky))
    return RotationResult(False, rotation, anchor_x, anchor_y)
