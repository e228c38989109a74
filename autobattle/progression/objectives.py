"""
Run objectives - declarative progress targets tracked across a run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterable, Mapping

from engine.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ObjectiveType(str, Enum):
    """Types of run objectives."""
    DEFEAT_MONSTERS = "defeat_monsters"   # Defeat N monsters (optionally of one template)
    DEFEAT_BOSS = "defeat_boss"           # Defeat a specific boss
    SURVIVE_TIME = "survive_time"         # Stay alive for N seconds
    CLEAR_WAVES = "clear_waves"           # Win N encounters


@dataclass
class Objective:
    """A single run objective."""
    id: str
    type: ObjectiveType
    description: str = ""

    target: int = 1
    current: int = 0
    completed: bool = False

    # Monster template (defeat_monsters filter) or boss template (defeat_boss)
    target_id: str | None = None

    @property
    def progress(self) -> float:
        """Get progress as a fraction."""
        if self.target <= 0:
            return 1.0 if self.completed else 0.0
        return min(1.0, self.current / self.target)

    def update_progress(self, amount: int = 1) -> bool:
        """
        Add progress.

        Returns:
            True if the objective became complete
        """
        if self.completed:
            return False
        return self.set_progress(self.current + amount)

    def set_progress(self, value: int) -> bool:
        """
        Set progress to an absolute value (never decreases).

        Returns:
            True if the objective became complete
        """
        if self.completed:
            return False

        self.current = min(max(self.current, value), self.target)
        if self.current >= self.target:
            self.completed = True
            return True
        return False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Objective:
        """
        Build an objective from a data-file record.

        Raises:
            ConfigurationError: unknown type or invalid target
        """
        try:
            objective_type = ObjectiveType(data["type"])
        except (KeyError, ValueError):
            raise ConfigurationError(f"Invalid objective type in {dict(data)!r}") from None

        try:
            target = int(data.get("target", 1))
        except (TypeError, ValueError):
            raise ConfigurationError(f"Objective {data.get('id')!r} has a non-numeric target") from None
        if target < 1:
            raise ConfigurationError(f"Objective {data.get('id')!r} needs a positive target")

        return cls(
            id=str(data.get("id", objective_type.value)),
            type=objective_type,
            description=data.get("description", ""),
            target=target,
            target_id=data.get("target_id"),
        )


class ObjectiveTracker:
    """
    Updates a run's objectives from battle outcomes.

    The tracker owns its objectives; snapshot() hands out copies.
    """

    def __init__(self, objectives: Iterable[Objective] = (), boss_id: str | None = None):
        self.objectives = [replace(o) for o in objectives]
        self.boss_id = boss_id

    def snapshot(self) -> tuple[Objective, ...]:
        return tuple(replace(o) for o in self.objectives)

    @property
    def all_completed(self) -> bool:
        return all(o.completed for o in self.objectives)

    def record_defeat(self, template_id: str | None, is_boss: bool = False) -> list[Objective]:
        """
        Record one defeated enemy.

        Returns:
            Objectives completed by this defeat
        """
        completed = []
        for objective in self.objectives:
            if objective.type is ObjectiveType.DEFEAT_MONSTERS:
                if objective.target_id is None or objective.target_id == template_id:
                    if objective.update_progress():
                        completed.append(objective)
            elif objective.type is ObjectiveType.DEFEAT_BOSS:
                if self._is_wanted_boss(objective, template_id, is_boss) and objective.update_progress():
                    completed.append(objective)
        return self._announce(completed)

    def record_elapsed(self, seconds: float) -> list[Objective]:
        """Record total time survived so far."""
        completed = [
            o for o in self.objectives
            if o.type is ObjectiveType.SURVIVE_TIME and o.set_progress(int(seconds))
        ]
        return self._announce(completed)

    def record_encounter_cleared(self, cleared: int) -> list[Objective]:
        """Record the total number of encounters won so far."""
        completed = [
            o for o in self.objectives
            if o.type is ObjectiveType.CLEAR_WAVES and o.set_progress(cleared)
        ]
        return self._announce(completed)

    def _is_wanted_boss(self, objective: Objective, template_id: str | None, is_boss: bool) -> bool:
        wanted = objective.target_id or self.boss_id
        if wanted is not None:
            return template_id == wanted
        return is_boss

    def _announce(self, completed: list[Objective]) -> list[Objective]:
        for objective in completed:
            logger.info(f"Objective completed: {objective.id} ({objective.type.value})")
        return completed
