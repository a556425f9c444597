from __future__ import annotations

from typing import Dict, Optional, Sequence

import numpy as np

from ..config import HeuristicWeights
from ..game.grid import GameGrid


# Normalised column-height shapes of early-game setups worth steering toward.
OPENING_TEMPLATES: Dict[str, Sequence[int]] = {
    "mountainous2": (1, 2, 3, 4, 4, 3, 2, 1, 0, 0),
    "honey_cup": (0, 1, 2, 3, 4, 4, 3, 2, 1, 0),
    "stray_cannon": (1, 2, 3, 4, 4, 3, 2, 1, 1, 0),
}

OPENING_MAX_HEIGHT = 10
OPENING_MAX_BLOCKS = 80


def get_board_features(grid: GameGrid) -> dict:
    heights = grid.column_heights()
    filled_per_col = np.count_nonzero(grid.grid, axis=0)
    holes = int(np.sum(heights - filled_per_col))
    bumpiness = int(np.sum(np.abs(np.diff(heights))))

    # Walls act as infinitely tall neighbours
    big = np.iinfo(np.int64).max
    left = np.concatenate(([big], heights[:-1]))
    right = np.concatenate((heights[1:], [big]))
    lower_neighbour = np.minimum(left, right)
    is_well = (heights < left) & (heights < right)
    wells = int(np.sum(np.where(is_well, lower_neighbour - heights, 0)))

    aggregate = int(np.sum(heights))
    return {
        "heights": heights,
        "aggregate_height": aggregate,
        "holes": holes,
        "bumpiness": bumpiness,
        "wells": wells,
        "max_height": int(heights.max(initial=0)),
        "block_count": aggregate,
    }


def _normalise(values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float64)
    shifted = arr - arr.min()
    top = shifted.max()
    if top == 0:
        return np.zeros_like(shifted)
    return shifted / top


def pattern_similarity(heights: np.ndarray, pattern: np.ndarray) -> float:
    """1 for an exact match, falling to 0 as the squared error reaches 10."""
    n = min(len(heights), len(pattern))
    sse = float(np.sum((heights[:n] - pattern[:n]) ** 2))
    return 1.0 - min(sse / 10.0, 1.0)


def opening_shape_score(heights: np.ndarray, max_height: int, block_count: int,
                        weights: Optional[HeuristicWeights] = None) -> float:
    """Best weighted similarity to an opening template, 0 outside the opening."""
    weights = weights or HeuristicWeights()
    if max_height == 0 or max_height > OPENING_MAX_HEIGHT or block_count > OPENING_MAX_BLOCKS:
        return 0.0
    norm = _normalise(heights)
    if not norm.any():
        return 0.0
    mirrored = norm[::-1]

    best = 0.0
    for name, pattern in OPENING_TEMPLATES.items():
        pat = _normalise(pattern)
        similarity = max(pattern_similarity(norm, pat), pattern_similarity(mirrored, pat))
        best = max(best, similarity * weights.template_weight(name))
    return best


class HeuristicEvaluator:
    """Linear board evaluation; higher is better."""

    def __init__(self, weights: Optional[HeuristicWeights] = None) -> None:
        self.weights = weights or HeuristicWeights()

    def evaluate(self, grid: GameGrid) -> float:
        w = self.weights
        f = get_board_features(grid)
        score = (
            w.aggregate_height * f["aggregate_height"]
            + w.holes * f["holes"]
            + w.bumpiness * f["bumpiness"]
            + w.wells * f["wells"]
        )
        if w.opening_bonus != 0:
            score += w.opening_bonus * opening_shape_score(
                f["heights"], f["max_height"], f["block_count"], w)
        return float(score)
