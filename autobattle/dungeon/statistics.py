"""
Run statistics and results.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from autobattle.battle.actions import BattleAction
from autobattle.battle.combatant import PLAYER_ID
from autobattle.battle.log import BattleLogEntry, LogType
from autobattle.components import AbilityKind
from autobattle.progression import Objective


@dataclass
class RunStatistics:
    """
    Cumulative counters for one run.

    Only the orchestrator folds into these; sessions just emit actions
    and log entries.
    """
    damage_dealt: int = 0
    damage_taken: int = 0
    monsters_defeated: int = 0
    skills_used: int = 0
    combo_damage: int = 0
    encounters_cleared: int = 0
    elapsed_seconds: float = 0.0
    gold_obtained: int = 0
    items_obtained: list[str] = field(default_factory=list)

    def record_action(self, action: BattleAction) -> None:
        """Attribute one action's damage by attacker id."""
        if action.attacker_id == PLAYER_ID:
            self.damage_dealt += action.damage
            self.damage_taken += action.reflected
        else:
            self.damage_taken += action.damage
            self.damage_dealt += action.reflected

        if action.ability is not None:
            self.skills_used += 1
        if action.ability is AbilityKind.DOUBLE_STRIKE:
            self.combo_damage += action.damage

    def record_log(self, entry: BattleLogEntry) -> None:
        """Count defeats and rewards."""
        if entry.type is LogType.ENEMY_DEFEATED:
            self.monsters_defeated += 1
        elif entry.type is LogType.GOLD and isinstance(entry.reward, int):
            self.gold_obtained += entry.reward
        elif entry.type is LogType.ITEM and isinstance(entry.reward, str):
            self.items_obtained.append(entry.reward)

    def snapshot(self) -> RunStatistics:
        return replace(self, items_obtained=list(self.items_obtained))


class RunEndReason(str, Enum):
    """Why a run ended."""
    CLEARED = "cleared"
    DEFEATED = "defeated"
    CONFIGURATION_ERROR = "configuration_error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RunResult:
    """Terminal result handed to the reward collaborator."""
    success: bool
    statistics: RunStatistics
    objectives: tuple[Objective, ...]
    reason: RunEndReason
    encounters_cleared: int = 0
    error: str | None = None

    @property
    def objectives_completed(self) -> bool:
        return all(o.completed for o in self.objectives)
