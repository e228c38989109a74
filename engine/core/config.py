"""
Engine configuration.

Timing values are in milliseconds at 1x speed; every wait is divided
by the active speed multiplier.
"""

from __future__ import annotations

from typing import Any, Mapping

from engine.core.errors import ConfigurationError

SPEED_MULTIPLIERS = (1, 2, 3)


class EngineConfig:
    """Configuration for the battle engine."""

    def __init__(
        self,
        base_interval_ms: float = 2000.0,
        min_wait_ms: float = 50.0,
        transition_delay_ms: float = 2000.0,
        battle_start_delay_ms: float = 0.0,
        default_speed: int = 1,
        carry_over_health: bool = True,
    ):
        if base_interval_ms < 0 or min_wait_ms < 0:
            raise ConfigurationError("Intervals must be non-negative")
        if transition_delay_ms < 0 or battle_start_delay_ms < 0:
            raise ConfigurationError("Delays must be non-negative")
        if default_speed not in SPEED_MULTIPLIERS:
            raise ConfigurationError(f"Invalid default speed: {default_speed}")

        self.base_interval_ms = base_interval_ms
        self.min_wait_ms = min_wait_ms
        self.transition_delay_ms = transition_delay_ms
        self.battle_start_delay_ms = battle_start_delay_ms
        self.default_speed = default_speed
        self.carry_over_health = carry_over_health

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EngineConfig:
        """
        Build a config from a mapping (e.g. a parsed settings file).

        Raises:
            ConfigurationError: on unknown keys or invalid values
        """
        known = {
            "base_interval_ms",
            "min_wait_ms",
            "transition_delay_ms",
            "battle_start_delay_ms",
            "default_speed",
            "carry_over_health",
        }
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {sorted(unknown)}")
        return cls(**dict(data))

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_interval_ms": self.base_interval_ms,
            "min_wait_ms": self.min_wait_ms,
            "transition_delay_ms": self.transition_delay_ms,
            "battle_start_delay_ms": self.battle_start_delay_ms,
            "default_speed": self.default_speed,
            "carry_over_health": self.carry_over_health,
        }

    def __repr__(self) -> str:
        return f"EngineConfig({self.to_dict()!r})"
