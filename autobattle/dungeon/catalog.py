"""
Monster catalog and data loading.

Templates describe a monster at level 1. Spawning at a level applies
the growth curve:

    1.25 ** ((level - 1) / 5) * tier bonus * (1 + (level // 10) * 0.3)

to health, attack and defense; speed grows 8% per level above 1.
Critical chance (+1% per level) and evasion (+0.5% per level) grow up
to 50%.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import Field, ValidationError, field_validator

from engine.core.component import Component, register_component
from engine.core.errors import ConfigurationError
from engine.resources.database import Database
from autobattle.battle.combatant import Combatant, Drop, enemy_id
from autobattle.components import CombatantStats, Element, SpecialAbility, parse_ability
from autobattle.dungeon.encounters import DungeonConfig, EnemySpawn, StageConfig

logger = logging.getLogger(__name__)

DATA_PATH = Path(__file__).resolve().parent.parent / "data"

CRITICAL_PER_LEVEL = 0.01
EVASION_PER_LEVEL = 0.005
LEVEL_CHANCE_CAP = 0.5


class MonsterTier(str, Enum):
    COMMON = "common"
    ELITE = "elite"
    BOSS = "boss"
    LEGENDARY = "legendary"


TIER_BONUS = {
    MonsterTier.COMMON: 1.0,
    MonsterTier.ELITE: 1.5,
    MonsterTier.BOSS: 2.2,
    MonsterTier.LEGENDARY: 3.0,
}


class DropEntry(Component):
    item_id: str
    chance: float = Field(default=1.0, ge=0.0, le=1.0)


@register_component
class MonsterTemplate(Component):
    """
    Static data for a monster.

    Attributes:
        id: Template id referenced by stages and dungeons
        name: Display name
        tier: Growth tier, also decides the default boss flag
        health, attack, defense, speed: Level 1 stats
        abilities: Special ability tags or records
        element: Elemental affinity (None = neutral)
        gold_reward: Gold granted when defeated
        drops: Items that may drop when defeated
    """
    id: str
    name: str
    tier: MonsterTier = MonsterTier.COMMON
    health: int = Field(gt=0)
    attack: int = Field(ge=0)
    defense: int = Field(default=0, ge=0)
    speed: float = Field(default=1.0, gt=0)
    critical_chance: float = Field(default=0.15, ge=0.0, le=1.0)
    evasion: float = Field(default=0.0, ge=0.0, le=1.0)
    abilities: tuple[SpecialAbility, ...] = ()
    element: Optional[Element] = None
    gold_reward: int = Field(default=0, ge=0)
    drops: tuple[DropEntry, ...] = ()
    description: Optional[str] = None

    @field_validator("abilities", mode="before")
    @classmethod
    def _parse_abilities(cls, value: Any) -> Any:
        if value is None:
            return ()
        return tuple(parse_ability(item) for item in value)


def level_multiplier(level: int, tier: MonsterTier = MonsterTier.COMMON) -> float:
    """Stat multiplier for health, attack and defense at a level."""
    growth = 1.25 ** ((level - 1) / 5)
    milestone = 1 + (level // 10) * 0.3
    return growth * TIER_BONUS[tier] * milestone


def speed_multiplier(level: int) -> float:
    return 1 + (level - 1) * 0.08


def chance_at_level(base: float, level: int, per_level: float) -> float:
    """
    Critical or evasion chance at a level.

    Grows linearly up to LEVEL_CHANCE_CAP; a template already above the
    cap keeps its own value.
    """
    return max(base, min(LEVEL_CHANCE_CAP, base + level * per_level))


class MonsterCatalog:
    """
    Monster templates keyed by id.

    Usage:
        catalog = load_catalog(database)
        slime = catalog.spawn(EnemySpawn("slime", level=3), index=0)
    """

    def __init__(self, templates: Iterable[MonsterTemplate] = ()):
        self._templates: dict[str, MonsterTemplate] = {}
        for template in templates:
            self.add(template)

    def add(self, template: MonsterTemplate) -> None:
        self._templates[template.id] = template

    def get(self, template_id: str) -> MonsterTemplate:
        """
        Get a template.

        Raises:
            ConfigurationError: unknown id
        """
        try:
            return self._templates[template_id]
        except KeyError:
            raise ConfigurationError(f"Unknown monster template: {template_id!r}") from None

    def __contains__(self, template_id: str) -> bool:
        return template_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    @property
    def ids(self) -> list[str]:
        return sorted(self._templates)

    def stats_for(self, spawn: EnemySpawn) -> CombatantStats:
        """Scaled combat stats for a spawn."""
        template = self.get(spawn.template_id)

        if spawn.level is None:
            level = 1
            growth = 1.0
            speed_growth = 1.0
            critical_chance = template.critical_chance
            evasion = template.evasion
        else:
            if spawn.level < 1:
                raise ConfigurationError(f"Invalid level {spawn.level} for {spawn.template_id!r}")
            level = spawn.level
            growth = level_multiplier(level, template.tier)
            speed_growth = speed_multiplier(level)
            critical_chance = chance_at_level(template.critical_chance, level, CRITICAL_PER_LEVEL)
            evasion = chance_at_level(template.evasion, level, EVASION_PER_LEVEL)

        max_health = max(1, int(template.health * growth * spawn.health_multiplier))
        return CombatantStats(
            level=level,
            max_health=max_health,
            attack=int(template.attack * growth * spawn.attack_multiplier),
            defense=int(template.defense * growth * spawn.defense_multiplier),
            speed=template.speed * speed_growth * spawn.speed_multiplier,
            critical_chance=critical_chance,
            evasion=evasion,
            abilities=template.abilities,
            element=template.element,
        )

    def spawn(self, spawn: EnemySpawn, index: int) -> Combatant:
        """Create the enemy combatant at a formation index."""
        template = self.get(spawn.template_id)
        stats = self.stats_for(spawn)
        is_boss = spawn.is_boss or template.tier in (MonsterTier.BOSS, MonsterTier.LEGENDARY)
        return Combatant.from_stats(
            enemy_id(index),
            template.name,
            stats,
            template_id=template.id,
            is_boss=is_boss,
            gold_reward=template.gold_reward,
            drops=tuple(Drop(d.item_id, d.chance) for d in template.drops),
        )


def default_database() -> Database:
    """Load the bundled monster, stage and dungeon data."""
    database = Database(DATA_PATH)
    database.load_all()
    return database


def load_catalog(database: Database) -> MonsterCatalog:
    """
    Build a catalog from a database's monster records.

    Raises:
        ConfigurationError: a record passed the schema but not the model
    """
    catalog = MonsterCatalog()
    for record_id, record in database.monsters.items():
        catalog.add(_build(MonsterTemplate, record, f"monster {record_id!r}"))
    logger.debug(f"Catalog loaded with {len(catalog)} monsters")
    return catalog


def load_stage(database: Database, stage_id: str) -> StageConfig:
    """
    Raises:
        ConfigurationError: unknown or malformed stage
    """
    record = database.get_stage(stage_id)
    if record is None:
        raise ConfigurationError(f"Unknown stage: {stage_id!r}")
    return _build(StageConfig, record, f"stage {stage_id!r}")


def load_dungeon(database: Database, dungeon_id: str) -> DungeonConfig:
    """
    Raises:
        ConfigurationError: unknown or malformed dungeon
    """
    record = database.get_dungeon(dungeon_id)
    if record is None:
        raise ConfigurationError(f"Unknown dungeon: {dungeon_id!r}")
    return _build(DungeonConfig, record, f"dungeon {dungeon_id!r}")


def _build(model: type[Component], record: dict[str, Any], what: str) -> Any:
    try:
        return model.model_validate(record)
    except ValidationError as e:
        raise ConfigurationError(f"Malformed {what}: {e}") from e
