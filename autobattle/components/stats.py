"""
Combatant stats - the immutable numbers a combatant enters battle with.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import Field, field_validator, model_validator

from engine.core.component import Component, register_component
from autobattle.components.abilities import AbilityKind, SpecialAbility, parse_ability
from autobattle.components.elements import Element

logger = logging.getLogger(__name__)


@register_component
class CombatantStats(Component):
    """
    Base combat statistics.

    Attributes:
        level: Combatant level (informational once scaled)
        health: Health at encounter start, clamped to [0, max_health]
        max_health: Maximum health
        attack: Base damage before variance and mitigation
        defense: Half of this is subtracted from incoming damage
        speed: Relative turn-frequency multiplier (1.0 = normal)
        critical_chance: Probability of a critical hit
        evasion: Probability of dodging an incoming attack
        abilities: Special abilities that may trigger in combat
        element: Elemental affinity of attacks and of the body (None = neutral)
    """
    level: int = Field(default=1, ge=1)
    health: int = Field(default=0, ge=0)
    max_health: int = Field(gt=0)
    attack: int = Field(ge=0)
    defense: int = Field(default=0, ge=0)
    speed: float = Field(default=1.0, gt=0)
    critical_chance: float = Field(default=0.15, ge=0.0, le=1.0)
    evasion: float = Field(default=0.0, ge=0.0, le=1.0)
    abilities: tuple[SpecialAbility, ...] = ()
    element: Optional[Element] = None

    @model_validator(mode="before")
    @classmethod
    def _clamp_health(cls, data: Any) -> Any:
        """Default health to max_health and clamp it into range."""
        if not isinstance(data, dict) or "max_health" not in data:
            return data

        data = dict(data)
        max_health = data["max_health"]
        health = data.get("health")
        if health is None:
            data["health"] = max_health
        elif isinstance(health, int) and isinstance(max_health, int):
            clamped = max(0, min(health, max_health))
            if clamped != health:
                logger.warning(f"Clamping health {health} into [0, {max_health}]")
                data["health"] = clamped
        return data

    @field_validator("abilities", mode="before")
    @classmethod
    def _parse_abilities(cls, value: Any) -> Any:
        if value is None:
            return ()
        return tuple(parse_ability(item) for item in value)

    def has_ability(self, kind: AbilityKind) -> bool:
        return any(ability.kind is kind for ability in self.abilities)

    def scaled(
        self,
        health: float = 1.0,
        attack: float = 1.0,
        defense: float = 1.0,
        speed: float = 1.0,
    ) -> CombatantStats:
        """
        Return a copy with multiplied stats.

        A combatant at full health stays at full health; otherwise the
        current health is scaled by the same factor and clamped.
        """
        max_health = max(1, int(self.max_health * health))
        if self.health >= self.max_health:
            current = max_health
        else:
            current = min(max_health, int(self.health * health))

        return self.evolve(
            health=current,
            max_health=max_health,
            attack=max(0, int(self.attack * attack)),
            defense=max(0, int(self.defense * defense)),
            speed=self.speed * speed,
        )
