"""
Auto-battle simulation engine.

Speed-paced, cancellable auto battles between a player and waves of
monsters, sequenced into stage, dungeon and tower runs.

Quick Start:
    import asyncio, random
    from autobattle import CombatantStats, RunOrchestrator, StagePlan
    from autobattle.dungeon import default_database, load_catalog, load_stage

    db = default_database()
    run = RunOrchestrator(
        StagePlan(load_stage(db, "meadow-1")),
        CombatantStats(max_health=150, attack=30, defense=10),
        load_catalog(db),
        rng=random.Random(42),
    )
    result = asyncio.run(run.run())
"""

__version__ = "0.1.0"

from autobattle.components import CombatantStats, parse_ability
from autobattle.battle import (
    BattleAction,
    BattleLogEntry,
    BattleOutcome,
    BattleRules,
    BattleSession,
    BattleState,
    Combatant,
    LogType,
    resolve_attack,
)
from autobattle.dungeon import (
    DungeonPlan,
    InfiniteTowerPlan,
    MonsterCatalog,
    RunOrchestrator,
    RunResult,
    RunStatistics,
    StagePlan,
)
from autobattle.progression import Objective, ObjectiveType

__all__ = [
    "CombatantStats",
    "parse_ability",
    "BattleAction",
    "BattleLogEntry",
    "BattleOutcome",
    "BattleRules",
    "BattleSession",
    "BattleState",
    "Combatant",
    "LogType",
    "resolve_attack",
    "DungeonPlan",
    "InfiniteTowerPlan",
    "MonsterCatalog",
    "RunOrchestrator",
    "RunResult",
    "RunStatistics",
    "StagePlan",
    "Objective",
    "ObjectiveType",
]
