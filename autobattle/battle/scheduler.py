"""
Turn scheduler - decides WHEN the next tick happens, never WHAT happens.

Odd ticks belong to the player, even ticks to the enemy side. Between
ticks the scheduler suspends on an asyncio timer whose length comes
from the opposing side's average speed and the speed multiplier.
"""

from __future__ import annotations

import asyncio
import logging
import math
from enum import Enum, auto
from typing import Iterable

from engine.core.cancellation import CancellationToken
from engine.core.config import SPEED_MULTIPLIERS, EngineConfig

logger = logging.getLogger(__name__)


class TickKind(Enum):
    """Which side acts on a tick."""
    PLAYER = auto()
    ENEMIES = auto()

    @classmethod
    def for_tick(cls, tick: int) -> TickKind:
        return cls.PLAYER if tick % 2 == 1 else cls.ENEMIES


class TurnScheduler:
    """
    Paces a battle loop.

    Features:
    - Wait length from opposing speed and speed multiplier
    - pause()/resume() keep the remaining time of an in-flight wait
    - set_speed() only affects waits that start afterwards
    - Cancellation through a CancellationToken wakes the wait, which
      then raises OperationCancelled
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        token: CancellationToken | None = None,
        speed: int | None = None,
    ):
        self.config = config or EngineConfig()
        self.token = token or CancellationToken("scheduler")
        self._speed = self.config.default_speed
        if speed is not None:
            self.set_speed(speed)
        self._paused = False
        self._wake: asyncio.Event | None = None

    @property
    def speed(self) -> int:
        return self._speed

    @property
    def paused(self) -> bool:
        return self._paused

    def set_speed(self, multiplier: int) -> None:
        """
        Change the speed multiplier for subsequent waits.

        Raises:
            ValueError: multiplier is not 1, 2 or 3
        """
        if isinstance(multiplier, bool) or multiplier not in SPEED_MULTIPLIERS:
            raise ValueError(f"Speed must be one of {SPEED_MULTIPLIERS}, got {multiplier!r}")
        self._speed = multiplier

    def pause(self) -> None:
        self._paused = True
        self._signal()

    def resume(self) -> None:
        self._paused = False
        self._signal()

    def compute_wait_ms(self, opposing_speeds: Iterable[float], speed: int | None = None) -> float:
        """
        Wait before the next tick, in milliseconds.

        Args:
            opposing_speeds: Speeds of the living combatants about to be struck
            speed: Multiplier override (defaults to the current one)
        """
        speeds = list(opposing_speeds)
        average = sum(speeds) / len(speeds) if speeds else 1.0
        multiplier = speed if speed is not None else self._speed
        wait = math.floor(self.config.base_interval_ms / average / multiplier)
        return max(self.config.min_wait_ms, wait)

    async def wait(self, opposing_speeds: Iterable[float]) -> float:
        """
        Suspend until the next tick is due.

        Returns:
            The scheduled wait in milliseconds

        Raises:
            OperationCancelled: the token was cancelled before or during the wait
        """
        scheduled = self.compute_wait_ms(opposing_speeds)
        await self.sleep_ms(scheduled)
        return scheduled

    async def sleep_ms(self, duration_ms: float) -> None:
        """
        Pausable, cancellable sleep.

        Time spent paused does not count towards the duration.

        Raises:
            OperationCancelled: the token was cancelled before or during the sleep
        """
        self.token.raise_if_cancelled()
        remaining = duration_ms / 1000.0

        loop = asyncio.get_running_loop()
        wake = asyncio.Event()
        self._wake = wake
        self.token.add_callback(wake.set)
        try:
            if remaining <= 0 and not self._paused:
                # Still yield so other tasks (UI, cancel) get a turn
                await asyncio.sleep(0)

            while True:
                self.token.raise_if_cancelled()
                if self._paused:
                    wake.clear()
                    await wake.wait()
                    continue
                if remaining <= 0:
                    break

                wake.clear()
                started = loop.time()
                try:
                    await asyncio.wait_for(wake.wait(), timeout=remaining)
                except asyncio.TimeoutError:
                    remaining = 0
                else:
                    # Woken early by pause or cancel
                    remaining -= loop.time() - started
        finally:
            self.token.remove_callback(wake.set)
            self._wake = None

        self.token.raise_if_cancelled()

    def _signal(self) -> None:
        if self._wake is not None:
            self._wake.set()
