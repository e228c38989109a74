"""
Encounter plans - what the next wave or floor looks like.

A plan maps an encounter index (0-based) to an EncounterSpec, or None
when the run has no further encounters. Plans only decide composition;
turning a spawn into a combatant is the catalog's job.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from pydantic import Field, model_validator

from engine.core.component import Component, register_component
from engine.core.errors import ConfigurationError
from autobattle.progression import Objective

logger = logging.getLogger(__name__)

DEFAULT_MONSTERS_PER_WAVE = 3


@dataclass(frozen=True)
class EnemySpawn:
    """One enemy to create from a monster template."""
    template_id: str
    # None keeps the template's stats unscaled
    level: int | None = None
    health_multiplier: float = 1.0
    attack_multiplier: float = 1.0
    defense_multiplier: float = 1.0
    speed_multiplier: float = 1.0
    is_boss: bool = False


@dataclass(frozen=True)
class EncounterSpec:
    """Composition of one wave or floor."""
    index: int
    label: str
    spawns: tuple[EnemySpawn, ...]
    is_boss: bool = False


class EncounterPlan(Protocol):
    """Anything that can produce encounters for a run."""

    @property
    def boss_id(self) -> str | None: ...

    @property
    def objectives(self) -> tuple[Objective, ...]: ...

    def encounter(self, index: int, rng: random.Random) -> EncounterSpec | None: ...


# ----------------------------------------------------------------------
# Stage waves
# ----------------------------------------------------------------------

@register_component
class StageConfig(Component):
    """
    Wave table for a stage.

    Attributes:
        monster_ids: Templates regular waves draw from
        boss_id: Template fought alone on the final wave
        wave_count: Number of waves
        monsters_per_wave: Enemies per wave; missing entries default to 3
        difficulty_multiplier: Applied to health and attack
        monster_level: Inclusive level range for regular monsters
        boss_level: Boss level (defaults to the top of monster_level)
        objectives: Objective records
    """
    id: str
    name: str = ""
    description: str = ""
    monster_ids: tuple[str, ...] = Field(min_length=1)
    boss_id: Optional[str] = None
    wave_count: int = Field(default=3, ge=1)
    monsters_per_wave: tuple[int, ...] = ()
    difficulty_multiplier: float = Field(default=1.0, gt=0)
    monster_level: tuple[int, int] = (1, 1)
    boss_level: Optional[int] = Field(default=None, ge=1)
    objectives: tuple[dict[str, Any], ...] = ()

    @model_validator(mode="after")
    def _check_ranges(self) -> StageConfig:
        low, high = self.monster_level
        if low < 1 or low > high:
            raise ValueError(f"Invalid monster level range {self.monster_level}")
        if any(count < 1 for count in self.monsters_per_wave):
            raise ValueError("monsters_per_wave entries must be positive")
        return self


class StagePlan:
    """Waves of a stage; the boss (if any) fights alone on the last wave."""

    def __init__(self, config: StageConfig):
        self.config = config
        self._objectives = tuple(Objective.from_dict(o) for o in config.objectives)

    @property
    def boss_id(self) -> str | None:
        return self.config.boss_id

    @property
    def objectives(self) -> tuple[Objective, ...]:
        return self._objectives

    def monsters_in_wave(self, index: int) -> int:
        if index < len(self.config.monsters_per_wave):
            return self.config.monsters_per_wave[index]
        return DEFAULT_MONSTERS_PER_WAVE

    def encounter(self, index: int, rng: random.Random) -> EncounterSpec | None:
        config = self.config
        if index < 0 or index >= config.wave_count:
            return None

        label = f"{config.name or config.id} wave {index + 1}/{config.wave_count}"
        multiplier = config.difficulty_multiplier

        if config.boss_id and index == config.wave_count - 1:
            boss = EnemySpawn(
                template_id=config.boss_id,
                level=config.boss_level or config.monster_level[1],
                health_multiplier=multiplier,
                attack_multiplier=multiplier,
                is_boss=True,
            )
            return EncounterSpec(index=index, label=label, spawns=(boss,), is_boss=True)

        low, high = config.monster_level
        spawns = tuple(
            EnemySpawn(
                template_id=rng.choice(config.monster_ids),
                level=rng.randint(low, high),
                health_multiplier=multiplier,
                attack_multiplier=multiplier,
            )
            for _ in range(self.monsters_in_wave(index))
        )
        return EncounterSpec(index=index, label=label, spawns=spawns)


# ----------------------------------------------------------------------
# Dungeon floors
# ----------------------------------------------------------------------

class PoolEntry(Component):
    """Weighted monster pool entry of a floor."""
    monster_id: str
    weight: float = Field(default=1.0, gt=0)
    level_range: tuple[int, int] = (1, 1)

    @model_validator(mode="after")
    def _check_levels(self) -> PoolEntry:
        low, high = self.level_range
        if low < 1 or low > high:
            raise ValueError(f"Invalid level range {self.level_range} for {self.monster_id}")
        return self


class FloorBoss(Component):
    monster_id: str
    level: int = Field(default=1, ge=1)


class BattleWeights(Component):
    """Relative chances of 1:1, 1:2 and 1:3 battles."""
    single: float = Field(default=100.0, ge=0)
    double: float = Field(default=0.0, ge=0)
    triple: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def _check_total(self) -> BattleWeights:
        if self.single + self.double + self.triple <= 0:
            raise ValueError("Battle weights must not all be zero")
        return self

    def roll_count(self, rng: random.Random) -> int:
        return rng.choices((1, 2, 3), weights=(self.single, self.double, self.triple))[0]


@register_component
class FloorConfig(Component):
    floor: int = Field(ge=1)
    name: str = ""
    monster_pool: tuple[PoolEntry, ...] = Field(min_length=1)
    boss: Optional[FloorBoss] = None
    battle_weights: BattleWeights = BattleWeights()
    stat_multiplier: float = Field(default=1.0, gt=0)


@register_component
class DungeonConfig(Component):
    id: str
    name: str = ""
    description: str = ""
    floors: tuple[FloorConfig, ...] = Field(min_length=1)
    objectives: tuple[dict[str, Any], ...] = ()


class DungeonPlan:
    """One encounter per floor; boss floors spawn the boss alone."""

    def __init__(self, config: DungeonConfig):
        self.config = config
        self._floors = sorted(config.floors, key=lambda f: f.floor)
        self._objectives = tuple(Objective.from_dict(o) for o in config.objectives)

    @property
    def boss_id(self) -> str | None:
        # The last boss floor is the dungeon's boss
        for floor in reversed(self._floors):
            if floor.boss is not None:
                return floor.boss.monster_id
        return None

    @property
    def objectives(self) -> tuple[Objective, ...]:
        return self._objectives

    def encounter(self, index: int, rng: random.Random) -> EncounterSpec | None:
        if index < 0 or index >= len(self._floors):
            return None

        floor = self._floors[index]
        label = f"{self.config.name or self.config.id} floor {floor.floor}"
        multiplier = floor.stat_multiplier

        if floor.boss is not None:
            boss = EnemySpawn(
                template_id=floor.boss.monster_id,
                level=floor.boss.level,
                health_multiplier=multiplier,
                attack_multiplier=multiplier,
                defense_multiplier=multiplier,
                is_boss=True,
            )
            return EncounterSpec(index=index, label=label, spawns=(boss,), is_boss=True)

        count = floor.battle_weights.roll_count(rng)
        weights = [entry.weight for entry in floor.monster_pool]
        spawns = []
        for entry in rng.choices(floor.monster_pool, weights=weights, k=count):
            spawns.append(EnemySpawn(
                template_id=entry.monster_id,
                level=rng.randint(*entry.level_range),
                health_multiplier=multiplier,
                attack_multiplier=multiplier,
                defense_multiplier=multiplier,
            ))
        return EncounterSpec(index=index, label=label, spawns=tuple(spawns))


# ----------------------------------------------------------------------
# Infinite tower
# ----------------------------------------------------------------------

BOSS_FLOOR_INTERVAL = 10
SPECIAL_BOSS_INTERVAL = 50
MINION_FACTOR = 0.7


class InfiniteTowerPlan:
    """
    Endless floors with growing stats.

    Every 10th floor is a boss floor with minions at 70% strength; every
    50th floor the boss fights alone. Other floors spawn
    min(3 + floor // 10, 8) monsters.
    """

    def __init__(
        self,
        monster_ids: tuple[str, ...] | list[str],
        boss_ids: tuple[str, ...] | list[str],
        start_floor: int = 1,
        max_floors: int | None = None,
        objectives: tuple[Objective, ...] = (),
    ):
        if not monster_ids or not boss_ids:
            raise ConfigurationError("Infinite tower needs monster and boss pools")
        if start_floor < 1:
            raise ConfigurationError(f"Invalid start floor {start_floor}")
        if max_floors is not None and max_floors < 1:
            raise ConfigurationError(f"Invalid max_floors {max_floors}")

        self.monster_ids = tuple(monster_ids)
        self.boss_ids = tuple(boss_ids)
        self.start_floor = start_floor
        self.max_floors = max_floors
        self._objectives = tuple(objectives)

    @property
    def boss_id(self) -> str | None:
        return None

    @property
    def objectives(self) -> tuple[Objective, ...]:
        return self._objectives

    @staticmethod
    def floor_modifiers(floor: int) -> tuple[float, float, float, float]:
        """Health, attack, defense and speed multipliers of a floor."""
        return 1 + floor * 0.1, 1 + floor * 0.1, 1 + floor * 0.05, 1 + floor * 0.02

    def encounter(self, index: int, rng: random.Random) -> EncounterSpec | None:
        if index < 0 or (self.max_floors is not None and index >= self.max_floors):
            return None

        floor = self.start_floor + index
        hp, atk, dfn, spd = self.floor_modifiers(floor)

        if floor % BOSS_FLOOR_INTERVAL == 0:
            special = floor % SPECIAL_BOSS_INTERVAL == 0
            boss = EnemySpawn(
                template_id=rng.choice(self.boss_ids),
                health_multiplier=hp * (3 if special else 2),
                attack_multiplier=atk * 1.5,
                defense_multiplier=dfn * 1.5,
                speed_multiplier=spd,
                is_boss=True,
            )
            spawns = [boss]
            if not special:
                for _ in range(min(2 + floor // 20, 5)):
                    spawns.append(EnemySpawn(
                        template_id=rng.choice(self.monster_ids),
                        health_multiplier=hp * MINION_FACTOR,
                        attack_multiplier=atk * MINION_FACTOR,
                        defense_multiplier=dfn * MINION_FACTOR,
                        speed_multiplier=spd,
                    ))
            return EncounterSpec(index=index, label=f"Tower floor {floor} (boss)", spawns=tuple(spawns), is_boss=True)

        spawns = tuple(
            EnemySpawn(
                template_id=rng.choice(self.monster_ids),
                health_multiplier=hp,
                attack_multiplier=atk,
                defense_multiplier=dfn,
                speed_multiplier=spd,
            )
            for _ in range(min(3 + floor // 10, 8))
        )
        return EncounterSpec(index=index, label=f"Tower floor {floor}", spawns=spawns)
