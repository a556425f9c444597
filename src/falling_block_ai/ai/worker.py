"""
Off-thread search with a single outstanding request.

The planner stays synchronous; this module only ships an immutable request
to one background thread and hands back the response. Cancellation is not
preemptive: the search ends on its own time budget, and a discarded request
simply has its result dropped.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from .search import BeamSearchPlanner
from .types import SearchRequest, SearchResponse

logger = logging.getLogger(__name__)


class SearchWorker:
    def __init__(self, planner: Optional[BeamSearchPlanner] = None) -> None:
        self.planner = planner or BeamSearchPlanner()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="search")
        self._pending: Optional[Future] = None
        self._discarded = False

    @property
    def busy(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def submit(self, request: SearchRequest) -> "Future[SearchResponse]":
        if self.busy:
            raise RuntimeError("A search request is already in flight")
        self._discarded = False
        self._pending = self._executor.submit(self.planner.search, request.snapshot, request.config)
        return self._pending

    def discard(self) -> None:
        """Mark the pending request stale; its result will be dropped."""
        if self._pending is not None:
            self._discarded = True

    def collect(self, timeout: Optional[float] = None) -> Optional[SearchResponse]:
        """Wait for the pending response. Returns ``None`` if nothing usable is pending."""
        if self._pending is None:
            return None
        try:
            response = self._pending.result(timeout=timeout)
        finally:
            if self._pending.done():
                self._pending = None
        if self._discarded:
            self._discarded = False
            logger.warning("Dropping late search result (%d states explored)", response.explored_states)
            return None
        return response

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        self._pending = None

    def __enter__(self) -> "SearchWorker":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
