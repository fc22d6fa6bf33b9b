"""
Game Configuration - Every tunable rule constant in one place.

Defaults match the standard 5x7 board. Values can be overlaid from
CURVE_* environment variables for local tooling.
"""

from __future__ import annotations
from dataclasses import dataclass, fields, replace
import os


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class GameConfig:
    """Rule constants for one match."""
    board_rows: int = 5
    board_cols: int = 7
    starting_health: int = 30
    starting_hand_size: int = 3
    max_hand_size: int = 7
    max_mana: int = 10

    # Rows from a player's spawn edge that count as their Area of Ruling
    yar_range: int = 2

    history_limit: int = 50
    max_effect_depth: int = 10

    min_deck_size: int = 20
    max_deck_size: int = 30

    starting_unit_card_id: str = "kriper"

    # REDUCE_COST defaults. The archetype is a placeholder until the
    # intended default for unfiltered reductions is settled.
    default_cost_reduction: int = 2
    default_cost_reduction_archetype: str = "DEMON"

    first_player_skips_draw: bool = False

    # Drive DRAW/ADVANCE inline; set False to step them from a game loop
    auto_resolve_phases: bool = True
    phase_step_delay: float = 0.3

    random_seed: int | None = None
    strict_invariants: bool = False

    @classmethod
    def from_env(cls, prefix: str = "CURVE_", **overrides) -> GameConfig:
        """
        Build a config from environment variables.

        CURVE_BOARD_ROWS=6 sets board_rows, and so on. Keyword overrides
        win over the environment.
        """
        values = {}
        for f in fields(cls):
            raw = os.getenv(prefix + f.name.upper())
            if raw is None:
                continue
            values[f.name] = _parse_env_value(prefix + f.name.upper(), raw, f.default)
        values.update(overrides)
        config = cls(**values)
        config.validate()
        return config

    def with_overrides(self, **changes) -> GameConfig:
        return replace(self, **changes)

    def validate(self) -> None:
        """Raise ValueError for configurations the engine cannot run."""
        if self.board_rows < 2:
            raise ValueError("board_rows must be >= 2")
        if self.board_cols < 1:
            raise ValueError("board_cols must be >= 1")
        for name in (
            "starting_health", "max_hand_size", "max_mana", "yar_range",
            "history_limit", "max_effect_depth", "min_deck_size",
        ):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")
        if self.max_deck_size < self.min_deck_size:
            raise ValueError("max_deck_size must be >= min_deck_size")
        if self.starting_hand_size < 0:
            raise ValueError("starting_hand_size must be >= 0")


def _parse_env_value(name: str, raw: str, default):
    raw = raw.strip()
    if isinstance(default, bool):
        lowered = raw.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"{name}: expected a boolean, got {raw!r}")
    if isinstance(default, int) or default is None:
        # random_seed is the only None default and it is an int
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{name}: expected an integer, got {raw!r}") from None
    if isinstance(default, float):
        try:
            return float(raw)
        except ValueError:
            raise ValueError(f"{name}: expected a number, got {raw!r}") from None
    return raw
