"""
Battle log entries.

The log is an ordered, append-only record for observability and UI.
Combat logic never reads it back.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum

from autobattle.battle.actions import BattleAction

# The battle UI shows this many recent entries
RECENT_LOG_SIZE = 20


class LogType(str, Enum):
    """Entry types; a sound collaborator may map these to effects."""
    START = "start"
    ATTACK = "attack"
    CRITICAL = "critical"
    MISS = "miss"
    HEAL = "heal"
    STATUS = "status"
    ENEMY_DEFEATED = "enemy_defeated"
    VICTORY = "victory"
    DEFEAT = "defeat"
    GOLD = "gold"
    ITEM = "item"


@dataclass(frozen=True)
class BattleLogEntry:
    sequence: int
    type: LogType
    message: str
    action: BattleAction | None = None
    combatant_id: str | None = None
    # Gold amount or item id for reward entries
    reward: int | str | None = None
    timestamp: float = field(default_factory=time.monotonic)
