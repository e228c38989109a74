"""
Battle module.

Exports:
- Combatant, Drop: battle participants
- BattleAction, BattleLogEntry, LogType: value types
- BattleRules, resolve_attack: damage and effect resolution
- TurnScheduler, TickKind: pacing
- BattleSession, BattleState, BattleOutcome: one encounter
"""

from autobattle.battle.combatant import PLAYER_ID, Combatant, Drop, enemy_id
from autobattle.battle.actions import BattleAction
from autobattle.battle.log import RECENT_LOG_SIZE, BattleLogEntry, LogType
from autobattle.battle.rules import DEFAULT_RULES, BattleRules
from autobattle.battle.resolver import (
    AttackResolution,
    StatusDelta,
    apply_delta,
    mitigate,
    poison_tick,
    resolve_attack,
)
from autobattle.battle.scheduler import TickKind, TurnScheduler
from autobattle.battle.session import BattleOutcome, BattleSession, BattleState

__all__ = [
    "PLAYER_ID",
    "Combatant",
    "Drop",
    "enemy_id",
    "BattleAction",
    "RECENT_LOG_SIZE",
    "BattleLogEntry",
    "LogType",
    "DEFAULT_RULES",
    "BattleRules",
    "AttackResolution",
    "StatusDelta",
    "apply_delta",
    "mitigate",
    "poison_tick",
    "resolve_attack",
    "TickKind",
    "TurnScheduler",
    "BattleOutcome",
    "BattleSession",
    "BattleState",
]
