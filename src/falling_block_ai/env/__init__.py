"""Gymnasium environments for Falling Block AI."""

from __future__ import annotations

from gymnasium.envs.registration import register

# One placement per step, chosen from the reachable list
register(
    id="FallingBlockPlacement-v0",
    entry_point="falling_block_ai.env.placement_env:PlacementEnv",
)

__all__ = ["FallingBlockPlacement-v0"]
