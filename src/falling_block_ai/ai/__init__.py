"""Move-search engine: placement enumeration, board heuristic and beam search."""

from .enumerator import ReachablePlacement, enumerate_placements
from .heuristic import HeuristicEvaluator, get_board_features
from .search import BeamSearchPlanner, enumerate_actions, search
from .types import MoveRecommendation, SearchDebugInfo, SearchRequest, SearchResponse
from .worker import SearchWorker

__all__ = [
    "ReachablePlacement",
    "enumerate_placements",
    "HeuristicEvaluator",
    "get_board_features",
    "BeamSearchPlanner",
    "enumerate_actions",
    "search",
    "MoveRecommendation",
    "SearchDebugInfo",
    "SearchRequest",
    "SearchResponse",
    "SearchWorker",
]
