from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from ..config import SearchConfig
from ..game.core import GameSnapshot
from ..game.pieces import ActivePiece, PieceKind


@dataclass(frozen=True)
class MoveRecommendation:
    """A placement to play now, with whether hold must be used first."""
    kind: PieceKind
    rotation: int
    x: int
    y: int
    use_hold: bool
    score: float
    last_action_was_rotation: bool = False
    soft_drop_steps: int = 0

    @property
    def piece(self) -> ActivePiece:
        return ActivePiece(self.kind, self.rotation, self.x, self.y)


@dataclass(frozen=True)
class SearchDebugInfo:
    depth_reached: int = 0
    explored_states: int = 0
    root_candidates: Tuple[MoveRecommendation, ...] = ()
    timed_out: bool = False


@dataclass(frozen=True)
class SearchResponse:
    best: Optional[MoveRecommendation]
    explored_states: int
    elapsed_ms: float
    debug: SearchDebugInfo = field(default_factory=SearchDebugInfo)


@dataclass(frozen=True)
class SearchRequest:
    snapshot: GameSnapshot
    config: SearchConfig
