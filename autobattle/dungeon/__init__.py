"""
Dungeon module - multi-encounter runs.

Exports:
- Encounter plans: StagePlan, DungeonPlan, InfiniteTowerPlan
- MonsterCatalog and the data loaders
- RunOrchestrator, RunPhase, RunResult, RunStatistics
"""

from autobattle.dungeon.encounters import (
    BattleWeights,
    DungeonConfig,
    DungeonPlan,
    EncounterPlan,
    EncounterSpec,
    EnemySpawn,
    FloorBoss,
    FloorConfig,
    InfiniteTowerPlan,
    PoolEntry,
    StageConfig,
    StagePlan,
)
from autobattle.dungeon.catalog import (
    DATA_PATH,
    MonsterCatalog,
    MonsterTemplate,
    MonsterTier,
    default_database,
    level_multiplier,
    load_catalog,
    load_dungeon,
    load_stage,
)
from autobattle.dungeon.statistics import RunEndReason, RunResult, RunStatistics
from autobattle.dungeon.orchestrator import RunOrchestrator, RunPhase

__all__ = [
    "BattleWeights",
    "DungeonConfig",
    "DungeonPlan",
    "EncounterPlan",
    "EncounterSpec",
    "EnemySpawn",
    "FloorBoss",
    "FloorConfig",
    "InfiniteTowerPlan",
    "PoolEntry",
    "StageConfig",
    "StagePlan",
    "DATA_PATH",
    "MonsterCatalog",
    "MonsterTemplate",
    "MonsterTier",
    "default_database",
    "level_multiplier",
    "load_catalog",
    "load_dungeon",
    "load_stage",
    "RunEndReason",
    "RunResult",
    "RunStatistics",
    "RunOrchestrator",
    "RunPhase",
]
