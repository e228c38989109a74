"""
Battle combatants - participants in one encounter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from autobattle.components import CombatantStats

logger = logging.getLogger(__name__)

PLAYER_ID = "player"


def enemy_id(index: int) -> str:
    """Identity of the enemy at a formation index."""
    return f"enemy-{index}"


@dataclass(frozen=True)
class Drop:
    """An item an enemy may drop when defeated."""
    item_id: str
    chance: float = 1.0


@dataclass(frozen=True)
class Combatant:
    """
    A participant in battle.

    Immutable: every change returns a new Combatant. Health is always
    clamped to [0, max_health].
    """
    combatant_id: str
    name: str
    stats: CombatantStats
    health: int

    # Status flags
    frozen: bool = False
    cursed: bool = False
    poison: int = 0

    # Encounter metadata
    template_id: str | None = None
    is_boss: bool = False
    gold_reward: int = 0
    drops: tuple[Drop, ...] = field(default_factory=tuple)

    @classmethod
    def from_stats(cls, combatant_id: str, name: str, stats: CombatantStats, **metadata) -> Combatant:
        """Create a combatant with the stats' starting health."""
        return cls(combatant_id=combatant_id, name=name, stats=stats, health=stats.health, **metadata)

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    @property
    def is_player(self) -> bool:
        return self.combatant_id == PLAYER_ID

    @property
    def max_health(self) -> int:
        return self.stats.max_health

    def with_health(self, health: int) -> Combatant:
        """Return a copy with health clamped into range."""
        clamped = max(0, min(health, self.max_health))
        if clamped != health:
            logger.debug(f"{self.combatant_id}: health {health} clamped to {clamped}")
        return replace(self, health=clamped)

    def damaged(self, amount: int) -> Combatant:
        if amount < 0:
            logger.warning(f"{self.combatant_id}: negative damage {amount} ignored")
            return self
        return self.with_health(self.health - amount)

    def healed(self, amount: int) -> Combatant:
        if amount < 0:
            logger.warning(f"{self.combatant_id}: negative heal {amount} ignored")
            return self
        return self.with_health(self.health + amount)

    def with_status(
        self,
        frozen: bool | None = None,
        cursed: bool | None = None,
        poison: int | None = None,
    ) -> Combatant:
        """Return a copy with the given status flags replaced (None = unchanged)."""
        return replace(
            self,
            frozen=self.frozen if frozen is None else frozen,
            cursed=self.cursed if cursed is None else cursed,
            poison=self.poison if poison is None else max(0, poison),
        )

    def cleared(self) -> Combatant:
        """Return a copy with all status effects removed."""
        return replace(self, frozen=False, cursed=False, poison=0)
