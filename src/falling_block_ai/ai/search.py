"""
Beam search over future placements.

Each candidate move is scored as the rolling-window score it gains (heavily
weighted) plus the board heuristic of the resulting field (tie-break). The
best move seen at any depth is kept, but it is always reported as the ply-1
move that started its branch.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, List, NamedTuple, Optional, Tuple

from ..config import HeuristicWeights, SearchConfig
from ..game.core import GameSnapshot
from ..game.grid import spawn_piece
from ..game.pieces import ActivePiece
from ..game.queue import PieceQueueState, draw_next, hold
from ..game.rules import DEFAULT_RULES, ScoringRules
from ..game.spin import classify
from .enumerator import enumerate_placements
from .heuristic import HeuristicEvaluator
from .types import MoveRecommendation, SearchDebugInfo, SearchResponse

logger = logging.getLogger(__name__)

MAX_ROOT_CANDIDATES = 5
# Seven pieces (one bag) count as the opening
OPENING_BLOCK_LIMIT = 28


@dataclass(frozen=True)
class PlannedAction:
    placement: ActivePiece
    use_hold: bool
    last_action_was_rotation: bool
    soft_drop_steps: int
    queue_after: PieceQueueState


@dataclass(frozen=True)
class SearchNode:
    snapshot: GameSnapshot
    score: float
    first_move: MoveRecommendation


class _Best(NamedTuple):
    score: float
    move: Optional[MoveRecommendation]


def _improve(best: _Best, score: float, move: MoveRecommendation) -> _Best:
    if score > best.score:
        return _Best(score, move)
    return best


def enumerate_actions(snapshot: GameSnapshot) -> List[PlannedAction]:
    """Every placement for this turn, without and (if allowed) with hold."""
    if snapshot.active is None:
        return []

    actions = [
        PlannedAction(p.piece, False, p.last_action_was_rotation, p.soft_drop_steps, snapshot.queue)
        for p in enumerate_placements(snapshot.grid, snapshot.active)
    ]

    queue = snapshot.queue
    if queue.can_hold:
        held_queue, held_kind = hold(queue, snapshot.active.kind, snapshot.preview_depth)
        spawned = spawn_piece(snapshot.grid, held_kind)
        # A blocked respawn after holding would top out, so it is not a candidate
        if spawned is not None:
            actions.extend(
                PlannedAction(p.piece, True, p.last_action_was_rotation, p.soft_drop_steps, held_queue)
                for p in enumerate_placements(snapshot.grid, spawned)
            )
    return actions


class BeamSearchPlanner:
    def __init__(
        self,
        weights: Optional[HeuristicWeights] = None,
        rules: Optional[ScoringRules] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.weights = weights or HeuristicWeights()
        self.rules = rules or DEFAULT_RULES
        self.evaluator = HeuristicEvaluator(self.weights)
        self.clock = clock

    def apply_and_evaluate(self, snapshot: GameSnapshot, action: PlannedAction) -> Tuple[GameSnapshot, float]:
        """Play ``action`` on a copy of the position and score the result."""
        grid = snapshot.grid
        filled_before = grid.filled_count()
        window_before = snapshot.kpi.window_score

        locked = grid.lock(action.placement)
        cleared = locked.clear_full_lines()
        kpi = snapshot.kpi
        if cleared.lines_cleared > 0:
            classification = classify(locked, action.placement, cleared.lines_cleared,
                                      action.last_action_was_rotation)
            # Game time is frozen while searching
            kpi = self.rules.apply_clear(kpi, classification.clear_kind, snapshot.elapsed_ms)
        delta_window = kpi.window_score - window_before

        queue, next_kind = draw_next(action.queue_after, snapshot.preview_depth)
        next_snapshot = GameSnapshot(
            grid=cleared.grid,
            active=spawn_piece(cleared.grid, next_kind),
            queue=queue,
            kpi=kpi,
            elapsed_ms=snapshot.elapsed_ms,
            preview_depth=snapshot.preview_depth,
        )

        w = self.weights
        score = delta_window * w.kpi_weight + self.evaluator.evaluate(cleared.grid) * w.field_weight
        if w.opening_soft_drop_weight != 0 and filled_before < OPENING_BLOCK_LIMIT:
            opening_phase = 1.0 - min(filled_before / OPENING_BLOCK_LIMIT, 1.0)
            score += w.opening_soft_drop_weight * action.soft_drop_steps * opening_phase
        return next_snapshot, score

    def search(self, snapshot: GameSnapshot, config: Optional[SearchConfig] = None) -> SearchResponse:
        config = config or SearchConfig()
        if snapshot.active is None:
            return SearchResponse(best=None, explored_states=0, elapsed_ms=0.0)

        start = self.clock()

        def elapsed_ms() -> float:
            return (self.clock() - start) * 1000.0

        root_actions = enumerate_actions(snapshot)
        if not root_actions:
            return SearchResponse(best=None, explored_states=0, elapsed_ms=elapsed_ms(),
                                  debug=SearchDebugInfo(depth_reached=1))

        best = _Best(float("-inf"), None)
        explored = 0
        root_nodes: List[SearchNode] = []
        for action in root_actions:
            next_snapshot, score = self.apply_and_evaluate(snapshot, action)
            explored += 1
            piece = action.placement
            move = MoveRecommendation(
                kind=piece.kind,
                rotation=piece.rotation,
                x=piece.x,
                y=piece.y,
                use_hold=action.use_hold,
                score=score,
                last_action_was_rotation=action.last_action_was_rotation,
                soft_drop_steps=action.soft_drop_steps,
            )
            best = _improve(best, score, move)
            root_nodes.append(SearchNode(next_snapshot, score, move))

        root_nodes.sort(key=lambda n: n.score, reverse=True)
        root_candidates = tuple(n.first_move for n in root_nodes[:MAX_ROOT_CANDIDATES])

        depth = 1
        timed_out = False
        beam = root_nodes[:config.beam_width]
        while depth < config.max_depth and beam:
            best, next_beam, expanded, timed_out = self._expand(beam, best, start, config)
            explored += expanded
            if timed_out or not next_beam:
                break
            next_beam.sort(key=lambda n: n.score, reverse=True)
            beam = next_beam[:config.beam_width]
            depth += 1

        total_ms = elapsed_ms()
        if timed_out and depth == 1:
            logger.warning("Search budget of %.0f ms ran out before ply 2 completed", config.time_limit_ms)
        logger.debug("Search explored %d states, depth %d, %.1f ms", explored, depth, total_ms)
        return SearchResponse(
            best=best.move,
            explored_states=explored,
            elapsed_ms=total_ms,
            debug=SearchDebugInfo(
                depth_reached=depth,
                explored_states=explored,
                root_candidates=root_candidates,
                timed_out=timed_out,
            ),
        )

    def _expand(self, beam: List[SearchNode], best: _Best, start: float,
                config: SearchConfig) -> Tuple[_Best, List[SearchNode], int, bool]:
        """Expand one ply. Returns the updated best, the successors, the count and a timeout flag."""
        limit_s = config.time_limit_ms / 1000.0
        successors: List[SearchNode] = []
        expanded = 0
        for node in beam:
            if self.clock() - start >= limit_s:
                return best, successors, expanded, True
            if node.snapshot.active is None:
                continue
            for action in enumerate_actions(node.snapshot):
                if self.clock() - start >= limit_s:
                    return best, successors, expanded, True
                next_snapshot, score = self.apply_and_evaluate(node.snapshot, action)
                expanded += 1
                best = _improve(best, score, replace(node.first_move, score=score))
                successors.append(SearchNode(next_snapshot, score, node.first_move))
        return best, successors, expanded, False


def search(snapshot: GameSnapshot, config: Optional[SearchConfig] = None,
           weights: Optional[HeuristicWeights] = None) -> SearchResponse:
    return BeamSearchPlanner(weights).search(snapshot, config)
