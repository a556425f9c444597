from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from ..config import GameConfig, load_config
from ..game.core import GameSession
from ..game.grid import field_to_text
from .search import BeamSearchPlanner

logger = logging.getLogger(__name__)


def _print_progress(idx: int, total: int, lines: int, score: int) -> None:
    width = 30
    filled = int(width * (idx + 1) / max(1, total))
    bar = "=" * filled + "." * (width - filled)
    msg = f"\r[{bar}] {idx + 1}/{total}  lines={lines}  score={score}"
    print(msg, end="", file=sys.stdout, flush=True)


def play(config: GameConfig, pieces: int, seed: Optional[int] = None, progress: bool = True) -> GameSession:
    """Let the planner play up to ``pieces`` placements and return the session."""
    session = GameSession(config, seed=seed)
    planner = BeamSearchPlanner(config.weights)

    for i in range(pieces):
        if session.game_over:
            break
        response = planner.search(session.snapshot(), config.search)
        if response.best is None:
            logger.info("No placement reachable after %d pieces", session.pieces_placed)
            break
        event = session.apply_move(response.best)
        if event is None:
            logger.warning("Planner move %s could not be applied", response.best)
            break
        # Each placement advances game time by the time spent thinking
        session.elapsed_ms += response.elapsed_ms
        if progress:
            _print_progress(i, pieces, session.lines_cleared_total, session.kpi.total_score)

    if progress:
        print()
    logger.info("Self-play finished: %d pieces, %d lines, score %d",
                session.pieces_placed, session.lines_cleared_total, session.kpi.total_score)
    return session


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Let the beam-search planner play a game.")
    p.add_argument("--pieces", type=int, default=100)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--beam-width", type=int, default=None)
    p.add_argument("--depth", type=int, default=None)
    p.add_argument("--time-limit-ms", type=float, default=None)
    p.add_argument("--config", type=str, default=None, help="JSON file with flat config keys")
    p.add_argument("--no-progress", action="store_true")
    p.add_argument("--verbose", action="store_true")
    return p


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(name)s %(message)s")

    config = load_config(args.config) if args.config else GameConfig()
    overrides = {}
    if args.beam_width is not None:
        overrides["beam_width"] = args.beam_width
    if args.depth is not None:
        overrides["max_depth"] = args.depth
    if args.time_limit_ms is not None:
        overrides["time_limit_ms"] = args.time_limit_ms
    if overrides:
        config = config.with_search(**overrides)

    session = play(config, args.pieces, args.seed, progress=not args.no_progress)
    stats = session.get_game_stats()
    print(field_to_text(session.grid, session.active))
    print(f"pieces={stats['pieces_placed']} lines={stats['lines_cleared']} "
          f"score={stats['total_score']} window={stats['window_score']} "
          f"game_over={stats['game_over']}")


if __name__ == "__main__":  # pragma: no cover
    main()
