from __future__ import annotations

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from falling_block_ai.game.pieces import ALL_KINDS


class FlattenPlacementObservation(gym.ObservationWrapper):
    """Flattens the Dict observation into one float32 vector.

    Layout: visible field rows, then one-hot current, hold and preview kinds
    (8 slots each, slot 0 meaning "none").
    """

    def __init__(self, env: gym.Env, visible_rows: int = 20):
        super().__init__(env)
        space = env.observation_space
        assert isinstance(space, spaces.Dict)
        height, width = space["field"].shape
        self.visible_rows = min(int(visible_rows), int(height))
        self.preview_depth = int(space["preview"].shape[0])
        self.kind_slots = len(ALL_KINDS) + 1
        n = self.visible_rows * width + self.kind_slots * (2 + self.preview_depth)
        self.observation_space = spaces.Box(low=0.0, high=1.0, shape=(n,), dtype=np.float32)

    def _one_hot(self, kind: int) -> np.ndarray:
        vec = np.zeros((self.kind_slots,), dtype=np.float32)
        vec[int(kind)] = 1.0
        return vec

    def observation(self, observation):  # type: ignore[override]
        field = np.asarray(observation["field"], dtype=np.float32)[-self.visible_rows:]
        parts = [field.reshape(-1), self._one_hot(observation["current"]), self._one_hot(observation["hold"])]
        parts.extend(self._one_hot(k) for k in observation["preview"])
        return np.concatenate(parts)


class ResampleInvalidActionWrapper(gym.Wrapper):
    """If a sampled action is invalid, resample uniformly among valid ones.

    Useful for agents that ignore ``info["action_mask"]``.
    """

    def step(self, action):  # type: ignore[override]
        mask = self.get_action_mask()
        if 0 <= int(action) < mask.shape[0] and not bool(mask[int(action)]):
            valid_idxs = np.flatnonzero(mask)
            if valid_idxs.size > 0:
                action = int(self.np_random.choice(valid_idxs))
        return self.env.step(action)

    # Delegate mask access to the placement env
    def get_action_mask(self) -> np.ndarray:
        base = self.env.unwrapped
        if hasattr(base, "get_action_mask"):
            return base.get_action_mask()
        raise AttributeError("Underlying env does not provide get_action_mask")
