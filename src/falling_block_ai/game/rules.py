from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, Tuple


class ClearKind(str, Enum):
    NONE = "none"
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"
    TETRIS = "tetris"
    SPIN_MINI_SINGLE = "spin_mini_single"
    SPIN_SINGLE = "spin_single"
    SPIN_DOUBLE = "spin_double"
    SPIN_TRIPLE = "spin_triple"


BASE_SCORES: Dict[ClearKind, int] = {
    ClearKind.NONE: 0,
    ClearKind.SINGLE: 0,
    ClearKind.DOUBLE: 1,
    ClearKind.TRIPLE: 2,
    ClearKind.TETRIS: 4,
    ClearKind.SPIN_MINI_SINGLE: 1,
    ClearKind.SPIN_SINGLE: 2,
    ClearKind.SPIN_DOUBLE: 4,
    ClearKind.SPIN_TRIPLE: 6,
}

CHAIN_ELIGIBLE: FrozenSet[ClearKind] = frozenset({
    ClearKind.TETRIS,
    ClearKind.SPIN_MINI_SINGLE,
    ClearKind.SPIN_SINGLE,
    ClearKind.SPIN_DOUBLE,
    ClearKind.SPIN_TRIPLE,
})

WINDOW_MS = 300_000

CHAIN_BONUS = 1


@dataclass(frozen=True)
class ScoreEvent:
    timestamp_ms: float
    points: int


@dataclass(frozen=True)
class KpiState:
    """Lifetime total, rolling-window total and the chain flag."""
    total_score: int = 0
    window_score: int = 0
    window_events: Tuple[ScoreEvent, ...] = ()
    chain_active: bool = False


@dataclass(frozen=True)
class ScoringRules:
    base_scores: Dict[ClearKind, int] = field(default_factory=lambda: dict(BASE_SCORES))
    chain_eligible: FrozenSet[ClearKind] = CHAIN_ELIGIBLE
    chain_bonus: int = CHAIN_BONUS
    window_ms: float = WINDOW_MS

    def score_for(self, kind: ClearKind) -> int:
        return self.base_scores.get(ClearKind(kind), 0)

    def is_chain_eligible(self, kind: ClearKind) -> bool:
        return ClearKind(kind) in self.chain_eligible

    def _prune(self, events: Tuple[ScoreEvent, ...], timestamp_ms: float) -> Tuple[ScoreEvent, ...]:
        cutoff = timestamp_ms - self.window_ms
        return tuple(e for e in events if e.timestamp_ms >= cutoff)

    def apply_clear(self, state: KpiState, kind: ClearKind, timestamp_ms: float) -> KpiState:
        """Apply one clear event and return the new state.

        Events older than the window relative to ``timestamp_ms`` are evicted
        first. A ``NONE`` event only does that eviction: it neither scores nor
        touches the chain.
        """
        kind = ClearKind(kind)
        events = self._prune(state.window_events, timestamp_ms)

        if kind is ClearKind.NONE:
            return replace(state, window_events=events,
                           window_score=sum(e.points for e in events))

        chain_active = state.chain_active
        bonus = 0
        if self.is_chain_eligible(kind):
            if chain_active:
                bonus = self.chain_bonus
            chain_active = True
        else:
            chain_active = False

        points = self.score_for(kind) + bonus
        if points > 0:
            events = events + (ScoreEvent(timestamp_ms, points),)

        return KpiState(
            total_score=state.total_score + points,
            window_score=sum(e.points for e in events),
            window_events=events,
            chain_active=chain_active,
        )


DEFAULT_RULES = ScoringRules()


def score_for(kind: ClearKind) -> int:
    return DEFAULT_RULES.score_for(kind)


def apply_clear(state: KpiState, kind: ClearKind, timestamp_ms: float) -> KpiState:
    return DEFAULT_RULES.apply_clear(state, kind, timestamp_ms)
