from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np
import pytest

from falling_block_ai.game.grid import FIELD_HEIGHT, FIELD_WIDTH, GameGrid


def grid_with(cells: Iterable[Tuple[int, int]]) -> GameGrid:
    arr = np.zeros((FIELD_HEIGHT, FIELD_WIDTH), dtype=np.int8)
    for x, y in cells:
        arr[y, x] = 1
    return GameGrid(arr)


def grid_from_heights(heights) -> GameGrid:
    arr = np.zeros((FIELD_HEIGHT, FIELD_WIDTH), dtype=np.int8)
    for x, h in enumerate(heights):
        if h:
            arr[FIELD_HEIGHT - h:, x] = 1
    return GameGrid(arr)


@pytest.fixture
def empty_grid() -> GameGrid:
    return GameGrid.empty()
