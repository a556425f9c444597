from __future__ import annotations

import threading

import pytest

from falling_block_ai.ai.search import BeamSearchPlanner
from falling_block_ai.ai.types import SearchRequest
from falling_block_ai.ai.worker import SearchWorker
from falling_block_ai.config import SearchConfig
from falling_block_ai.game import GameSession

CONFIG = SearchConfig(beam_width=1, max_depth=1, time_limit_ms=60_000)


class _GatedPlanner(BeamSearchPlanner):
    def __init__(self) -> None:
        super().__init__()
        self.gate = threading.Event()

    def search(self, snapshot, config=None):
        self.gate.wait(timeout=10)
        return super().search(snapshot, config)


def _request() -> SearchRequest:
    return SearchRequest(GameSession().snapshot(), CONFIG)


def test_submit_and_collect():
    with SearchWorker() as worker:
        worker.submit(_request())
        response = worker.collect(timeout=30)
        assert response is not None
        assert response.best is not None
        assert not worker.busy


def test_collect_without_request_returns_none():
    with SearchWorker() as worker:
        assert worker.collect() is None


def test_one_request_in_flight():
    planner = _GatedPlanner()
    with SearchWorker(planner) as worker:
        worker.submit(_request())
        assert worker.busy
        with pytest.raises(RuntimeError):
            worker.submit(_request())
        planner.gate.set()
        assert worker.collect(timeout=30) is not None


def test_discarded_result_is_dropped():
    planner = _GatedPlanner()
    with SearchWorker(planner) as worker:
        worker.submit(_request())
        worker.discard()
        planner.gate.set()
        assert worker.collect(timeout=30) is None
        # the worker accepts new work afterwards
        worker.submit(_request())
        assert worker.collect(timeout=30) is not None
