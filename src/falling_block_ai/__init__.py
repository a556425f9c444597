"""Falling Block AI: a falling-block puzzle engine and a beam-search move planner."""

__version__ = "0.1.0"
