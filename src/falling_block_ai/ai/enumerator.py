"""
Reachable placement enumeration.

Breadth-first search from the spawn pose over the five primitive inputs
(left, right, soft drop, rotate cw, rotate ccw). Every visited pose that
cannot descend is a resting placement, including intermediate ones such as
a piece that has just spun under an overhang.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Tuple

from ..game.grid import GameGrid, can_descend, move_left, move_right, rotate_piece, soft_drop
from ..game.pieces import CCW, CW, ActivePiece


@dataclass(frozen=True)
class ReachablePlacement:
    piece: ActivePiece
    last_action_was_rotation: bool
    soft_drop_steps: int


NodeKey = Tuple[ActivePiece, bool]


def _neighbours(grid: GameGrid, node: ReachablePlacement) -> List[ReachablePlacement]:
    piece = node.piece
    steps = node.soft_drop_steps
    candidates = (
        (move_left(grid, piece), False, steps),
        (move_right(grid, piece), False, steps),
        (soft_drop(grid, piece), False, steps + 1),
        (rotate_piece(grid, piece, CW), True, steps),
        (rotate_piece(grid, piece, CCW), True, steps),
    )
    return [
        ReachablePlacement(moved, rotated, n_steps)
        for moved, rotated, n_steps in candidates
        if moved != piece
    ]


def enumerate_placements(grid: GameGrid, start: ActivePiece) -> List[ReachablePlacement]:
    """All resting placements reachable from ``start``.

    Each (pose, last-move-was-rotation) pair appears once, with the fewest
    soft-drop steps found. An empty list means the piece cannot be placed.
    """
    if not grid.can_place(start):
        return []

    start_node = ReachablePlacement(start, False, 0)
    queue: Deque[ReachablePlacement] = deque([start_node])
    visited: Dict[NodeKey, int] = {(start, False): 0}
    resting: Dict[NodeKey, ReachablePlacement] = {}

    while queue:
        node = queue.popleft()
        key = (node.piece, node.last_action_was_rotation)
        if visited.get(key, node.soft_drop_steps) < node.soft_drop_steps:
            # superseded by a cheaper path queued later
            continue

        if not can_descend(grid, node.piece):
            known = resting.get(key)
            if known is None or node.soft_drop_steps < known.soft_drop_steps:
                resting[key] = node

        for nxt in _neighbours(grid, node):
            nkey = (nxt.piece, nxt.last_action_was_rotation)
            previous = visited.get(nkey)
            if previous is None or nxt.soft_drop_steps < previous:
                visited[nkey] = nxt.soft_drop_steps
                queue.append(nxt)

    return list(resting.values())
