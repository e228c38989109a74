"""
Battle actions - the resolved outcome of one attack.
"""

from __future__ import annotations

from dataclasses import dataclass

from autobattle.components import AbilityKind


@dataclass(frozen=True)
class BattleAction:
    """
    One resolved attack.

    Attributes:
        tick: Scheduler tick the attack happened on
        attacker_id: Combatant that attacked
        target_id: Combatant that was attacked
        base_damage: Damage after variance, before mitigation
        damage: Final damage applied to the target
        critical: Whether the hit was critical
        missed: Whether the target evaded
        ability: Special ability that triggered, if any
        ability_value: Extra value of the ability (bonus hit, heal, poison stack)
        healed: Health restored to the attacker (life drain)
        reflected: Damage reflected back onto the attacker
        element_multiplier: Elemental matchup applied to the hit (1.0 = neutral)
        message: Human-readable summary
    """
    tick: int
    attacker_id: str
    target_id: str
    base_damage: int
    damage: int
    critical: bool = False
    missed: bool = False
    ability: AbilityKind | None = None
    ability_value: int = 0
    healed: int = 0
    reflected: int = 0
    element_multiplier: float = 1.0
    message: str = ""

    @property
    def primary_damage(self) -> int:
        """Damage of the first hit (excludes a double strike's bonus)."""
        if self.ability is AbilityKind.DOUBLE_STRIKE:
            return self.damage - self.ability_value
        return self.damage
