from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from falling_block_ai.ai.heuristic import HeuristicEvaluator
from falling_block_ai.ai.search import PlannedAction, enumerate_actions
from falling_block_ai.ai.types import MoveRecommendation
from falling_block_ai.config import GameConfig
from falling_block_ai.game import GameSession
from falling_block_ai.game.grid import FIELD_HEIGHT, FIELD_WIDTH


def _compute_action_mask(actions: List[PlannedAction], n: int) -> np.ndarray:
    mask = np.zeros((n,), dtype=np.bool_)
    mask[: min(len(actions), n)] = True
    return mask


def _as_move(action: PlannedAction) -> MoveRecommendation:
    piece = action.placement
    return MoveRecommendation(
        kind=piece.kind,
        rotation=piece.rotation,
        x=piece.x,
        y=piece.y,
        use_hold=action.use_hold,
        score=0.0,
        last_action_was_rotation=action.last_action_was_rotation,
        soft_drop_steps=action.soft_drop_steps,
    )


class PlacementEnv(gym.Env):
    """One step = one placement, chosen by index from the reachable list.

    Non-hold placements come first, then placements after holding. Indices
    beyond the list (see ``info["action_mask"]``) are invalid.
    """

    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None,
                 max_actions: int = 256,
                 max_episode_pieces: int = 1000,
                 invalid_action_penalty: float = -0.1,
                 heuristic_weight: float = 0.0,
                 terminal_penalty: float = 0.0) -> None:
        super().__init__()
        self.config = config or GameConfig()
        self.game = GameSession(self.config)
        self.render_mode = render_mode
        self.max_actions = int(max_actions)
        self.max_episode_pieces = int(max_episode_pieces)

        # Reward shaping parameters
        self.invalid_action_penalty = float(invalid_action_penalty)
        self.heuristic_weight = float(heuristic_weight)
        self.terminal_penalty = float(terminal_penalty)
        self._evaluator = HeuristicEvaluator(self.config.weights)

        depth = self.config.physics.preview_depth
        # Piece kinds are 1..7; 0 means "none"
        self.observation_space = spaces.Dict(
            {
                "field": spaces.Box(low=0, high=1, shape=(FIELD_HEIGHT, FIELD_WIDTH), dtype=np.int8),
                "current": spaces.Discrete(8),
                "hold": spaces.Discrete(8),
                "preview": spaces.Box(low=0, high=7, shape=(depth,), dtype=np.int8),
            }
        )
        self.action_space = spaces.Discrete(self.max_actions)

        self._actions: List[PlannedAction] = []
        self._last_obs: Optional[Dict[str, Any]] = None

    def _refresh_actions(self) -> None:
        self._actions = enumerate_actions(self.game.snapshot())[: self.max_actions]

    def _get_obs(self) -> Dict[str, Any]:
        snapshot = self.game.snapshot()
        preview = np.zeros((snapshot.preview_depth,), dtype=np.int8)
        for i, kind in enumerate(snapshot.next_pieces):
            preview[i] = int(kind)
        return {
            "field": snapshot.grid.clone_state(),
            "current": int(snapshot.active.kind) if snapshot.active is not None else 0,
            "hold": int(snapshot.hold) if snapshot.hold is not None else 0,
            "preview": preview,
        }

    def _get_info(self) -> Dict[str, Any]:
        return {
            "action_mask": _compute_action_mask(self._actions, self.max_actions),
            "num_actions": len(self._actions),
            "score": self.game.kpi.total_score,
            "window_score": self.game.kpi.window_score,
            "lines": self.game.lines_cleared_total,
            "pieces": self.game.pieces_placed,
        }

    def get_action_mask(self) -> np.ndarray:
        return _compute_action_mask(self._actions, self.max_actions)

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        if seed is None:
            # Continue the env RNG so unseeded episodes differ
            seed = int(self.np_random.integers(1, 2**32))
        self.game.reset(seed)
        self._refresh_actions()
        obs = self._get_obs()
        self._last_obs = obs
        return obs, self._get_info()

    def step(self, action: int):
        idx = int(action)
        reward_components: Dict[str, float] = {}

        if 0 <= idx < len(self._actions) and not self.game.game_over:
            window_before = self.game.kpi.window_score
            field_before = self._evaluator.evaluate(self.game.grid)
            event = self.game.apply_move(_as_move(self._actions[idx]))
            if event is None:
                reward_components["invalid"] = self.invalid_action_penalty
            else:
                reward_components["window"] = float(self.game.kpi.window_score - window_before)
                if self.heuristic_weight:
                    delta = self._evaluator.evaluate(self.game.grid) - field_before
                    reward_components["heuristic"] = self.heuristic_weight * delta
        else:
            reward_components["invalid"] = self.invalid_action_penalty

        self._refresh_actions()
        terminated = bool(self.game.game_over or not self._actions)
        truncated = self.game.pieces_placed >= self.max_episode_pieces
        if terminated:
            reward_components["terminal"] = self.terminal_penalty

        obs = self._get_obs()
        info = self._get_info()
        info["reward_components"] = reward_components
        self._last_obs = obs
        return obs, float(sum(reward_components.values())), terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        grid = self.game.grid.grid
        active = set(self.game.active.cells()) if self.game.active is not None else set()
        cell = 12
        h, w = grid.shape
        img = np.zeros((h * cell, w * cell, 3), dtype=np.uint8)
        for y in range(h):
            for x in range(w):
                if (x, y) in active:
                    color = (200, 120, 240)
                elif grid[y, x]:
                    color = (70, 200, 120)
                else:
                    color = (30, 30, 36)
                img[y * cell:(y + 1) * cell, x * cell:(x + 1) * cell, :] = color
        return img

    def close(self) -> None:
        pass
