from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Optional, Tuple

from ..config import GameConfig
from .grid import GameGrid, can_descend, hard_drop, move_left, move_right, rotate_piece, soft_drop, spawn_piece
from .pieces import CCW, CW, ActivePiece, PieceKind
from .queue import PieceQueueState, create_queue, draw_next, hold
from .rules import DEFAULT_RULES, KpiState, ScoringRules
from .spin import SpinClassification, classify

if TYPE_CHECKING:
    from ..ai.types import MoveRecommendation

logger = logging.getLogger(__name__)


class Action(IntEnum):
    LEFT = 0
    RIGHT = 1
    ROTATE_CW = 2
    ROTATE_CCW = 3
    SOFT_DROP = 4
    HARD_DROP = 5
    HOLD = 6
    NONE = 7


@dataclass(frozen=True)
class HeldInput:
    left: bool = False
    right: bool = False
    soft_drop: bool = False

    @property
    def horizontal(self) -> int:
        if self.left and not self.right:
            return -1
        if self.right and not self.left:
            return 1
        return 0


@dataclass(frozen=True)
class GameSnapshot:
    """Immutable view of a game position, as consumed by the planner."""
    grid: GameGrid
    active: Optional[ActivePiece]
    queue: PieceQueueState
    kpi: KpiState = field(default_factory=KpiState)
    elapsed_ms: float = 0.0
    preview_depth: int = 5

    @property
    def hold(self) -> Optional[PieceKind]:
        return self.queue.hold

    @property
    def next_pieces(self) -> Tuple[PieceKind, ...]:
        return self.queue.preview(self.preview_depth)


@dataclass(frozen=True)
class LockEvent:
    piece: ActivePiece
    cleared_rows: Tuple[int, ...]
    classification: SpinClassification
    points: int
    game_over: bool

    @property
    def lines_cleared(self) -> int:
        return len(self.cleared_rows)


class GameSession:
    """Headless game driver: discrete actions, frame ticks and locking."""

    def __init__(self, config: Optional[GameConfig] = None, rules: Optional[ScoringRules] = None,
                 seed: Optional[int] = None) -> None:
        self.config = config or GameConfig()
        self.rules = rules or DEFAULT_RULES
        self.physics = self.config.physics
        self.grid = GameGrid.empty()
        self.queue_state: Optional[PieceQueueState] = None
        self.current_kind: Optional[PieceKind] = None
        self.active: Optional[ActivePiece] = None
        self.kpi = KpiState()
        self.reset(seed)

    def reset(self, seed: Optional[int] = None) -> None:
        if seed is None:
            seed = self.physics.rng_seed
        self.seed = int(seed)
        self.grid = GameGrid.empty()
        self.kpi = KpiState()
        self.elapsed_ms = 0.0
        self.game_over = False
        self.lines_cleared_total = 0
        self.last_lines_cleared = 0
        self.pieces_placed = 0
        self.last_clear: Optional[SpinClassification] = None
        self.last_action_was_rotation = False
        self.gravity_acc_ms = 0.0
        self._reset_piece_timers()
        self.queue_state, self.current_kind = create_queue(self.seed, self.physics.preview_depth)
        self._spawn_current()
        logger.info("Session reset with seed %d", self.seed)

    def _reset_piece_timers(self) -> None:
        self.lock_delay_remaining_ms = float(self.physics.lock_delay_ms)
        self.lock_resets_used = 0
        self.soft_drop_acc_ms = 0.0
        self.das_timer_ms = 0.0
        self.arr_timer_ms = 0.0
        self.last_horizontal = 0

    def _spawn_current(self) -> None:
        assert self.current_kind is not None
        self.active = spawn_piece(self.grid, self.current_kind)
        self.last_action_was_rotation = False
        self._reset_piece_timers()
        if self.active is None:
            self.game_over = True
            logger.info("Game over after %d pieces (spawn blocked)", self.pieces_placed)

    @property
    def on_ground(self) -> bool:
        return self.active is not None and not can_descend(self.grid, self.active)

    # ---------- discrete actions ----------

    def step(self, action: Action) -> Optional[LockEvent]:
        """Apply one discrete action. Returns the lock event if the piece locked."""
        if self.game_over or self.active is None:
            return None

        action = Action(action)
        if action == Action.LEFT:
            self._apply_move(move_left(self.grid, self.active), rotation=False)
        elif action == Action.RIGHT:
            self._apply_move(move_right(self.grid, self.active), rotation=False)
        elif action == Action.SOFT_DROP:
            self._apply_move(soft_drop(self.grid, self.active), rotation=False)
        elif action == Action.ROTATE_CW:
            self._apply_move(rotate_piece(self.grid, self.active, CW), rotation=True)
        elif action == Action.ROTATE_CCW:
            self._apply_move(rotate_piece(self.grid, self.active, CCW), rotation=True)
        elif action == Action.HARD_DROP:
            result = hard_drop(self.grid, self.active)
            rotation_flag = self.last_action_was_rotation and result.distance == 0
            return self._lock(result.piece, rotation_flag)
        elif action == Action.HOLD:
            self._hold()
        return None

    def _apply_move(self, moved: ActivePiece, rotation: bool) -> bool:
        """Commit a movement result and update lock-delay bookkeeping."""
        if moved == self.active:
            return False
        self.active = moved
        self.last_action_was_rotation = rotation
        if self.on_ground:
            if self.lock_resets_used < self.physics.lock_resets_max:
                self.lock_delay_remaining_ms = float(self.physics.lock_delay_ms)
                self.lock_resets_used += 1
        else:
            self.lock_delay_remaining_ms = float(self.physics.lock_delay_ms)
        return True

    def _hold(self) -> bool:
        assert self.queue_state is not None and self.current_kind is not None
        if not self.queue_state.can_hold:
            return False
        self.queue_state, self.current_kind = hold(self.queue_state, self.current_kind,
                                                   self.physics.preview_depth)
        self._spawn_current()
        return True

    # ---------- frame update ----------

    def tick(self, delta_ms: float, held: Optional[HeldInput] = None) -> Optional[LockEvent]:
        """Advance game time: gravity, held soft drop, auto-repeat and lock delay."""
        if self.game_over or self.active is None:
            return None
        held = held or HeldInput()
        physics = self.physics
        self.elapsed_ms += delta_ms

        self.gravity_acc_ms += delta_ms
        interval = physics.gravity_interval_ms
        while self.gravity_acc_ms >= interval:
            self.gravity_acc_ms -= interval
            fallen = soft_drop(self.grid, self.active)
            if fallen != self.active:
                self.active = fallen
                self.last_action_was_rotation = False

        if held.soft_drop and physics.soft_drop_multiplier > 1:
            self.soft_drop_acc_ms += delta_ms
            while self.soft_drop_acc_ms >= physics.soft_drop_interval_ms:
                self.soft_drop_acc_ms -= physics.soft_drop_interval_ms
                if not self._apply_move(soft_drop(self.grid, self.active), rotation=False):
                    break
        else:
            self.soft_drop_acc_ms = 0.0

        self._auto_repeat(delta_ms, held.horizontal)

        if self.on_ground:
            self.lock_delay_remaining_ms = max(0.0, self.lock_delay_remaining_ms - delta_ms)
            if self.lock_delay_remaining_ms <= 0 or self.lock_resets_used >= physics.lock_resets_max:
                return self._lock(self.active, self.last_action_was_rotation)
        else:
            self.lock_delay_remaining_ms = float(physics.lock_delay_ms)
        return None

    def _auto_repeat(self, delta_ms: float, direction: int) -> None:
        if direction != self.last_horizontal or direction == 0:
            self.das_timer_ms = 0.0
            self.arr_timer_ms = 0.0
        self.last_horizontal = direction
        if direction == 0:
            return

        mover = move_left if direction < 0 else move_right
        self.das_timer_ms += delta_ms
        if self.das_timer_ms < self.physics.das_ms:
            return
        if self.physics.arr_ms <= 0:
            while self._apply_move(mover(self.grid, self.active), rotation=False):
                pass
            return
        self.arr_timer_ms += delta_ms
        while self.arr_timer_ms >= self.physics.arr_ms:
            self.arr_timer_ms -= self.physics.arr_ms
            if not self._apply_move(mover(self.grid, self.active), rotation=False):
                self.arr_timer_ms = 0.0
                break

    # ---------- locking ----------

    def _lock(self, piece: ActivePiece, rotation_flag: bool) -> LockEvent:
        assert self.queue_state is not None
        locked = self.grid.lock(piece)
        cleared = locked.clear_full_lines()
        classification = classify(locked, piece, cleared.lines_cleared, rotation_flag)

        total_before = self.kpi.total_score
        self.kpi = self.rules.apply_clear(self.kpi, classification.clear_kind, self.elapsed_ms)

        self.grid = cleared.grid
        self.last_lines_cleared = cleared.lines_cleared
        self.lines_cleared_total += cleared.lines_cleared
        self.pieces_placed += 1
        self.last_clear = classification

        self.queue_state, self.current_kind = draw_next(self.queue_state, self.physics.preview_depth)
        self._spawn_current()
        return LockEvent(
            piece=piece,
            cleared_rows=cleared.cleared_rows,
            classification=classification,
            points=self.kpi.total_score - total_before,
            game_over=self.game_over,
        )

    def apply_move(self, move: "MoveRecommendation") -> Optional[LockEvent]:
        """Execute a planner recommendation: optional hold, then lock at its pose.

        Returns ``None`` without changing anything if the move does not fit the
        current position.
        """
        if self.game_over or self.active is None:
            return None
        kind = self.active.kind
        if move.use_hold:
            if not self.queue_state.can_hold:
                return None
            _, kind = hold(self.queue_state, self.current_kind, self.physics.preview_depth)
        piece = ActivePiece(PieceKind(move.kind), move.rotation, move.x, move.y)
        if kind != piece.kind or not self.grid.can_place(piece) or can_descend(self.grid, piece):
            return None
        if move.use_hold:
            self._hold()
            if self.active is None:
                return None
        return self._lock(piece, move.last_action_was_rotation)

    def snapshot(self) -> GameSnapshot:
        assert self.queue_state is not None
        return GameSnapshot(
            grid=self.grid,
            active=self.active,
            queue=self.queue_state,
            kpi=self.kpi,
            elapsed_ms=self.elapsed_ms,
            preview_depth=self.physics.preview_depth,
        )

    def get_game_stats(self) -> dict:
        return {
            "pieces_placed": self.pieces_placed,
            "lines_cleared": self.lines_cleared_total,
            "total_score": self.kpi.total_score,
            "window_score": self.kpi.window_score,
            "elapsed_ms": self.elapsed_ms,
            "game_over": self.game_over,
            "max_height": self.grid.get_max_height(),
            "holes": self.grid.count_holes(),
        }
