"""
Seeded 7-bag piece sequencer with a single hold slot.

Every function is pure: it takes a ``PieceQueueState`` and returns a new one,
so the planner can branch on hold/no-hold without copying anything.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from .pieces import ALL_KINDS, PieceKind

_MASK32 = 0xFFFFFFFF
_ZERO_SEED_REPLACEMENT = 0x12345678


def create_rng(seed: int) -> int:
    state = int(seed) & _MASK32
    if state == 0:
        # xorshift gets stuck at zero
        state = _ZERO_SEED_REPLACEMENT
    return state


def next_random(state: int) -> Tuple[int, float]:
    """One xorshift32 step. Returns the new state and a float in [0, 1)."""
    x = state
    x ^= (x << 13) & _MASK32
    x ^= x >> 17
    x ^= (x << 5) & _MASK32
    return x, x / 4294967296.0


def generate_bag(rng: int) -> Tuple[int, List[PieceKind]]:
    """Fisher-Yates shuffle of one copy of every kind."""
    bag = list(ALL_KINDS)
    for i in range(len(bag) - 1, 0, -1):
        rng, u = next_random(rng)
        j = int(u * (i + 1))
        bag[i], bag[j] = bag[j], bag[i]
    return rng, bag


@dataclass(frozen=True)
class PieceQueueState:
    rng: int
    queue: Tuple[PieceKind, ...] = ()
    hold: Optional[PieceKind] = None
    can_hold: bool = True

    def preview(self, depth: int) -> Tuple[PieceKind, ...]:
        return self.queue[:depth]


def ensure_queue(state: PieceQueueState, min_length: int) -> PieceQueueState:
    """Append whole bags until the queue holds at least ``min_length`` pieces."""
    if len(state.queue) >= min_length:
        return state
    rng = state.rng
    queue = list(state.queue)
    while len(queue) < min_length:
        rng, bag = generate_bag(rng)
        queue.extend(bag)
    return replace(state, rng=rng, queue=tuple(queue))


def create_queue(seed: int, preview_depth: int) -> Tuple[PieceQueueState, PieceKind]:
    """Start a new sequence and draw the first piece."""
    state = PieceQueueState(rng=create_rng(seed))
    state = ensure_queue(state, preview_depth + 1)
    return draw_next(state, preview_depth)


def draw_next(state: PieceQueueState, preview_depth: int) -> Tuple[PieceQueueState, PieceKind]:
    """Take the front piece. A draw always starts a new turn, so hold re-arms."""
    state = ensure_queue(state, preview_depth + 1)
    current, rest = state.queue[0], state.queue[1:]
    state = replace(state, queue=rest, can_hold=True)
    state = ensure_queue(state, preview_depth)
    return state, current


def hold(state: PieceQueueState, current: PieceKind,
         preview_depth: int) -> Tuple[PieceQueueState, PieceKind]:
    """Bank ``current``; at most one hold is honoured between draws.

    With an empty slot the current piece is stored and a new one is drawn.
    With an occupied slot the two are swapped without touching the queue.
    """
    if not state.can_hold:
        return state, current

    if state.hold is None:
        banked = replace(state, hold=current)
        drawn, new_current = draw_next(banked, preview_depth)
        # draw_next re-armed hold; this turn has already used it
        return replace(drawn, can_hold=False), new_current

    return replace(state, hold=current, can_hold=False), state.hold
