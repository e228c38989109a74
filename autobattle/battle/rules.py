"""
Combat constants.

One probability table is used for every attacker, player or enemy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from engine.core.errors import ConfigurationError
from autobattle.components import ELEMENT_AFFINITY, Element


@dataclass(frozen=True)
class BattleRules:
    """
    Attributes:
        variance_low: Lower bound of the random damage offset
        variance_high: Upper bound of the random damage offset
        defense_factor: Share of defense subtracted from incoming damage
        min_damage: Floor for any hit that lands
        curse_multiplier: Outgoing damage multiplier of a cursed attacker
        poison_decay: Amount a poison stack loses each time it deals damage
        critical_multiplier: Damage multiplier of a critical hit
        special_chance: Chance an attacker's ability triggers
        reflect_chance: Chance a defender's reflect triggers
        element_affinity: (attacker element, defender element) -> multiplier
    """
    variance_low: int = -5
    variance_high: int = 9
    defense_factor: float = 0.5
    min_damage: int = 1
    curse_multiplier: float = 0.7
    poison_decay: int = 2
    critical_multiplier: float = 1.5
    special_chance: float = 0.30
    reflect_chance: float = 0.30
    element_affinity: Mapping[tuple[Element, Element], float] = field(
        default_factory=lambda: dict(ELEMENT_AFFINITY), hash=False
    )

    def __post_init__(self):
        if self.variance_low > self.variance_high:
            raise ConfigurationError("variance_low must not exceed variance_high")
        if not 0.0 <= self.special_chance <= 1.0 or not 0.0 <= self.reflect_chance <= 1.0:
            raise ConfigurationError("Trigger chances must be within [0, 1]")
        if self.min_damage < 1:
            raise ConfigurationError("min_damage must be at least 1")
        if any(multiplier < 0 for multiplier in self.element_affinity.values()):
            raise ConfigurationError("Element multipliers must not be negative")

    def affinity(self, attacker: Element | None, defender: Element | None) -> float:
        """Damage multiplier of an elemental matchup (1.0 if either side has none)."""
        if attacker is None or defender is None:
            return 1.0
        return self.element_affinity.get((attacker, defender), 1.0)


DEFAULT_RULES = BattleRules()
