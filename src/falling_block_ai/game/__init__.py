"""Game module for Falling Block AI.

Exports the physics/state engine:
- PieceKind, ActivePiece, try_rotate: rotation system and kick tables
- GameGrid: field occupancy, locking and line clearing
- PieceQueueState: seeded 7-bag sequencer with hold
- classify: 3-corner spin classification
- ScoringRules, KpiState: clear scoring with chain bonus and rolling window
- GameSession: headless game driver (gravity, lock delay, actions)
"""

from .pieces import ActivePiece, PieceKind, RotationResult, cells_for, kicks_for, rotate_index, try_rotate
from .grid import GameGrid, LineClearResult, spawn_piece
from .queue import PieceQueueState, create_queue, draw_next, hold
from .rules import ClearKind, KpiState, ScoringRules, apply_clear, score_for
from .spin import SpinCategory, SpinClassification, classify
from .core import Action, GameSession, GameSnapshot, HeldInput, LockEvent

__all__ = [
    "ActivePiece",
    "PieceKind",
    "RotationResult",
    "cells_for",
    "kicks_for",
    "rotate_index",
    "try_rotate",
    "GameGrid",
    "LineClearResult",
    "spawn_piece",
    "PieceQueueState",
    "create_queue",
    "draw_next",
    "hold",
    "ClearKind",
    "KpiState",
    "ScoringRules",
    "apply_clear",
    "score_for",
    "SpinCategory",
    "SpinClassification",
    "classify",
    "Action",
    "GameSession",
    "GameSnapshot",
    "HeldInput",
    "LockEvent",
]
