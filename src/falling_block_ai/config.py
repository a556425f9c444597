"""
Session configuration.

All tunables live in frozen dataclasses that are built once per session and
passed explicitly to the functions that need them. ``GameConfig.from_mapping``
accepts the flat key set used by the game front end (camelCase or snake_case)
and resolves every missing key to its default up front.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Union

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when a configuration value cannot be used."""


@dataclass(frozen=True)
class PhysicsConfig:
    """Timing and queue parameters shared by the game and the planner"""
    gravity_cps: float = 5.0
    soft_drop_multiplier: float = 20.0
    das_ms: float = 133.0
    arr_ms: float = 10.0
    lock_delay_ms: float = 500.0
    lock_resets_max: int = 15
    preview_depth: int = 5
    rng_seed: int = 123456789

    @property
    def gravity_interval_ms(self) -> float:
        return 1000.0 / max(self.gravity_cps, 1e-6)

    @property
    def soft_drop_interval_ms(self) -> float:
        if self.soft_drop_multiplier > 0:
            return self.gravity_interval_ms / self.soft_drop_multiplier
        return self.gravity_interval_ms


@dataclass(frozen=True)
class SearchConfig:
    """Beam search limits"""
    beam_width: int = 10
    max_depth: int = 2
    time_limit_ms: float = 1000.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "beam_width", max(1, int(self.beam_width)))
        object.__setattr__(self, "max_depth", max(1, int(self.max_depth)))


@dataclass(frozen=True)
class HeuristicWeights:
    """Linear weights for board evaluation and move scoring"""
    aggregate_height: float = -0.5
    holes: float = -3.0
    bumpiness: float = -0.3
    wells: float = 0.1
    opening_bonus: float = 0.0
    mountainous2: float = 1.0
    honey_cup: float = 1.0
    stray_cannon: float = 1.0
    opening_soft_drop_weight: float = 0.0
    kpi_weight: float = 25.0
    field_weight: float = 1.0

    def template_weight(self, name: str) -> float:
        return float(getattr(self, name, 1.0))


@dataclass(frozen=True)
class GameConfig:
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    weights: HeuristicWeights = field(default_factory=HeuristicWeights)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "GameConfig":
        """Build a config from a flat mapping, falling back to defaults."""
        sections: Dict[str, Dict[str, Any]] = {"physics": {}, "search": {}, "weights": {}}
        for raw_key, value in mapping.items():
            target = _KEY_ALIASES.get(raw_key) or _KEY_ALIASES.get(_snake_case(raw_key))
            if target is None:
                logger.debug("Ignoring unknown config key %r", raw_key)
                continue
            section, name = target
            sections[section][name] = value

        return cls(
            physics=_build(PhysicsConfig, sections["physics"]),
            search=_build(SearchConfig, sections["search"]),
            weights=_build(HeuristicWeights, sections["weights"]),
        )

    def with_search(self, **overrides: Any) -> "GameConfig":
        return replace(self, search=replace(self.search, **overrides))


def load_config(path: Union[str, Path]) -> GameConfig:
    """Read a flat JSON object from ``path`` and build a GameConfig."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a JSON object")
    # Front-end configs nest the heuristic weights under "ai"
    flat = {k: v for k, v in data.items() if k != "ai"}
    ai_section = data.get("ai")
    if isinstance(ai_section, dict):
        flat.update(ai_section)
    return GameConfig.from_mapping(flat)


def _snake_case(name: str) -> str:
    out = []
    for ch in name:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out).lstrip("_")


def _build(cls, values: Dict[str, Any]):
    kwargs: Dict[str, Any] = {}
    types = {f.name: f.type for f in fields(cls)}
    for name, value in values.items():
        kwargs[name] = _coerce(name, value, types[name])
    return cls(**kwargs)


def _coerce(name: str, value: Any, type_name: Any) -> Any:
    kind = type_name if isinstance(type_name, str) else getattr(type_name, "__name__", "")
    try:
        if kind == "int":
            if isinstance(value, bool):
                raise TypeError("bool is not an int setting")
            if isinstance(value, float) and not value.is_integer():
                raise TypeError("expected an integer")
            return int(value)
        if kind == "float":
            if isinstance(value, bool):
                raise TypeError("bool is not a numeric setting")
            return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid value for {name!r}: {value!r} ({exc})") from exc
    return value


_KEY_ALIASES: Dict[str, tuple] = {
    # physics
    "gravity_c_p_s": ("physics", "gravity_cps"),
    "gravity_cps": ("physics", "gravity_cps"),
    "soft_drop_multiplier": ("physics", "soft_drop_multiplier"),
    "das_ms": ("physics", "das_ms"),
    "arr_ms": ("physics", "arr_ms"),
    "lock_delay_ms": ("physics", "lock_delay_ms"),
    "lock_resets_max": ("physics", "lock_resets_max"),
    "next_count": ("physics", "preview_depth"),
    "preview_depth": ("physics", "preview_depth"),
    "rng_seed": ("physics", "rng_seed"),
    # search
    "ai_beam_width": ("search", "beam_width"),
    "beam_width": ("search", "beam_width"),
    "ai_max_depth": ("search", "max_depth"),
    "max_depth": ("search", "max_depth"),
    "ai_time_limit_ms_per_move": ("search", "time_limit_ms"),
    "time_limit_ms": ("search", "time_limit_ms"),
    # heuristic weights
    "aggregate_height_weight": ("weights", "aggregate_height"),
    "hole_weight": ("weights", "holes"),
    "bumpiness_weight": ("weights", "bumpiness"),
    "well_weight": ("weights", "wells"),
    "opening_td_bonus_weight": ("weights", "opening_bonus"),
    "opening_bonus": ("weights", "opening_bonus"),
    "td_mountainous_weight": ("weights", "mountainous2"),
    "td_honey_weight": ("weights", "honey_cup"),
    "td_stray_weight": ("weights", "stray_cannon"),
    "opening_soft_drop_weight": ("weights", "opening_soft_drop_weight"),
    "kpi_weight": ("weights", "kpi_weight"),
    "field_weight": ("weights", "field_weight"),
}
