"""
Run orchestrator - sequences battle sessions across waves or floors.

One orchestrator per run. It owns the active session, folds every
action and log entry into run statistics and objectives, waits a
transition delay between encounters and ends the run on defeat, after
the last encounter, on a configuration error or on cancellation.

Usage:
    run = RunOrchestrator(StagePlan(stage), player_stats, catalog, rng=random.Random(1))
    run.on_action(render_action)
    result = await run.run()
    grant_rewards(result)
"""

from __future__ import annotations

import logging
import random
import time
from enum import Enum
from typing import Callable

from engine.core.cancellation import CancellationToken
from engine.core.config import EngineConfig
from engine.core.errors import ConfigurationError, OperationCancelled
from engine.core.events import BattleEvent, Event, EventBus, RunEvent
from autobattle.battle import (
    DEFAULT_RULES,
    PLAYER_ID,
    BattleAction,
    BattleLogEntry,
    BattleOutcome,
    BattleRules,
    BattleSession,
    BattleState,
    Combatant,
    LogType,
    TurnScheduler,
)
from autobattle.components import CombatantStats
from autobattle.dungeon.catalog import MonsterCatalog
from autobattle.dungeon.encounters import EncounterPlan, EncounterSpec
from autobattle.dungeon.statistics import RunEndReason, RunResult, RunStatistics
from autobattle.progression import Objective, ObjectiveTracker

logger = logging.getLogger(__name__)


class RunPhase(str, Enum):
    """Run state machine."""
    INITIALIZING = "initializing"
    SPAWN_ENCOUNTER = "spawn_encounter"
    RUNNING_BATTLE = "running_battle"
    VICTORY = "victory"
    DEFEAT = "defeat"
    RUN_COMPLETE = "run_complete"


class RunOrchestrator:
    """
    Drives one run from the first encounter to RUN_COMPLETE.

    Exactly one session is active at a time. Speed and pause requests
    apply to the active session and carry over to the next one.
    """

    def __init__(
        self,
        plan: EncounterPlan,
        player_stats: CombatantStats,
        catalog: MonsterCatalog,
        *,
        player_name: str = "Player",
        config: EngineConfig | None = None,
        rules: BattleRules = DEFAULT_RULES,
        rng: random.Random | None = None,
        objectives: list[Objective] | tuple[Objective, ...] | None = None,
        events: EventBus | None = None,
        token: CancellationToken | None = None,
        run_id: str = "run",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.plan = plan
        self.catalog = catalog
        self.run_id = run_id
        self.config = config or EngineConfig()
        self.rules = rules
        self.rng = rng or random.Random()
        self.events = events or EventBus()
        self.token = token or CancellationToken(run_id)
        self.clock = clock

        self._player_stats = player_stats
        self._player = Combatant.from_stats(PLAYER_ID, player_name, player_stats)
        self._tracker = ObjectiveTracker(
            objectives if objectives is not None else plan.objectives,
            boss_id=plan.boss_id,
        )
        self._statistics = RunStatistics()

        # Paces transitions and remembers speed/pause between sessions
        self._pacer = TurnScheduler(self.config, self.token)
        self._phase = RunPhase.INITIALIZING
        self._session: BattleSession | None = None
        self._cleared = 0
        self._started_at: float | None = None
        self._result: RunResult | None = None
        self._internal: list[tuple[Enum, Callable[[Event], None]]] = []
        self._external: list[tuple[Enum, Callable[[Event], None]]] = []

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def phase(self) -> RunPhase:
        return self._phase

    @property
    def active_session(self) -> BattleSession | None:
        return self._session

    @property
    def statistics(self) -> RunStatistics:
        return self._statistics.snapshot()

    @property
    def objectives(self) -> tuple[Objective, ...]:
        return self._tracker.snapshot()

    @property
    def result(self) -> RunResult | None:
        return self._result

    @property
    def encounters_cleared(self) -> int:
        return self._cleared

    def get_state(self) -> BattleState | None:
        """Snapshot of the active battle, if any."""
        return self._session.get_state() if self._session else None

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    def set_speed(self, multiplier: int) -> None:
        self._pacer.set_speed(multiplier)
        if self._session is not None:
            self._session.set_speed(multiplier)

    def pause(self) -> None:
        self._pacer.pause()
        if self._session is not None:
            self._session.pause()

    def resume(self) -> None:
        self._pacer.resume()
        if self._session is not None:
            self._session.resume()

    def cancel(self) -> None:
        """Abort the run; the active session is cancelled with it."""
        self.token.cancel()

    def on_action(self, callback: Callable[[BattleAction], None]) -> None:
        self._listen_battle(BattleEvent.ACTION_RESOLVED, lambda event: callback(event["action"]))

    def on_state_change(self, callback: Callable[[BattleState], None]) -> None:
        self._listen_battle(BattleEvent.STATE_CHANGED, lambda event: callback(event["state"]))

    def on_log(self, callback: Callable[[BattleLogEntry], None]) -> None:
        self._listen_battle(BattleEvent.LOG_APPENDED, lambda event: callback(event["entry"]))

    def on_run_event(self, callback: Callable[[Event], None]) -> None:
        """Receive every RunEvent of this run."""
        def handler(event: Event) -> None:
            if event.get("run") is self:
                callback(event)

        for event_type in RunEvent:
            self.events.subscribe(event_type, handler, weak=False)
            self._external.append((event_type, handler))

    def detach(self) -> None:
        """Remove every callback registered through this orchestrator."""
        for event_type, handler in self._external:
            self.events.unsubscribe(event_type, handler)
        self._external.clear()

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    async def run(self) -> RunResult:
        """
        Run every encounter of the plan.

        Never raises for configuration errors or cancellation; both end
        the run with success=False and a distinguishable reason.
        """
        if self._result is not None:
            return self._result

        self._started_at = self.clock()
        self._attach()
        logger.info(f"Run {self.run_id} started")
        try:
            index = 0
            self._set_phase(RunPhase.SPAWN_ENCOUNTER)
            spec = self.plan.encounter(index, self.rng)
            while spec is not None:
                self.token.raise_if_cancelled()
                session = self._spawn(spec)

                self._set_phase(RunPhase.RUNNING_BATTLE)
                self.events.publish(RunEvent.ENCOUNTER_STARTED, run=self, encounter=spec, session=session)
                state = await session.run()
                session.token.detach()
                self._stamp_elapsed()

                if session.cancelled or self.token.cancelled:
                    return self._finish(RunEndReason.CANCELLED)

                self.events.publish(RunEvent.ENCOUNTER_ENDED, run=self, encounter=spec, state=state)
                if state.outcome is BattleOutcome.DEFEAT:
                    self._set_phase(RunPhase.DEFEAT)
                    return self._finish(RunEndReason.DEFEATED)

                self._set_phase(RunPhase.VICTORY)
                self._record_cleared(state)

                index += 1
                self._set_phase(RunPhase.SPAWN_ENCOUNTER)
                spec = self.plan.encounter(index, self.rng)
                if spec is not None and self.config.transition_delay_ms > 0:
                    await self._pacer.sleep_ms(self.config.transition_delay_ms / self._pacer.speed)

            return self._finish(RunEndReason.CLEARED)
        except ConfigurationError as e:
            logger.error(f"Run {self.run_id}: cannot start encounter: {e}")
            return self._finish(RunEndReason.CONFIGURATION_ERROR, error=str(e))
        except OperationCancelled:
            return self._finish(RunEndReason.CANCELLED)
        finally:
            self._detach_internal()

    def _spawn(self, spec: EncounterSpec) -> BattleSession:
        if not spec.spawns:
            raise ConfigurationError(f"Encounter {spec.label!r} has no enemies")

        enemies = [self.catalog.spawn(spawn, i) for i, spawn in enumerate(spec.spawns)]
        session_id = f"{self.run_id}:{spec.index + 1}"
        self._session = BattleSession(
            self._player,
            enemies,
            config=self.config,
            rules=self.rules,
            rng=self.rng,
            events=self.events,
            token=self.token.child(session_id),
            speed=self._pacer.speed,
            paused=self._pacer.paused,
            session_id=session_id,
        )
        logger.info(f"Run {self.run_id}: spawning {spec.label} ({len(enemies)} enemies)")
        return self._session

    def _record_cleared(self, state: BattleState) -> None:
        self._cleared += 1
        self._statistics.encounters_cleared = self._cleared
        self._announce(self._tracker.record_encounter_cleared(self._cleared))

        if self.config.carry_over_health:
            self._player = state.player.cleared()
        else:
            self._player = Combatant.from_stats(PLAYER_ID, state.player.name, self._player_stats)

    def _finish(self, reason: RunEndReason, error: str | None = None) -> RunResult:
        self._stamp_elapsed()
        self._set_phase(RunPhase.RUN_COMPLETE)
        self._result = RunResult(
            success=reason is RunEndReason.CLEARED,
            statistics=self._statistics.snapshot(),
            objectives=self._tracker.snapshot(),
            reason=reason,
            encounters_cleared=self._cleared,
            error=error,
        )
        logger.info(
            f"Run {self.run_id} complete: {reason.value}, "
            f"{self._cleared} encounters cleared, "
            f"{self._statistics.monsters_defeated} monsters defeated"
        )
        self.events.publish(RunEvent.RUN_COMPLETED, run=self, result=self._result)
        return self._result

    def _set_phase(self, phase: RunPhase) -> None:
        if phase is self._phase:
            return
        previous, self._phase = self._phase, phase
        logger.debug(f"Run {self.run_id}: {previous.value} -> {phase.value}")
        self.events.publish(RunEvent.PHASE_CHANGED, run=self, phase=phase, previous=previous)

    def _stamp_elapsed(self) -> None:
        if self._started_at is None:
            return
        self._statistics.elapsed_seconds = self.clock() - self._started_at
        self._announce(self._tracker.record_elapsed(self._statistics.elapsed_seconds))

    # ------------------------------------------------------------------
    # Folding session output
    # ------------------------------------------------------------------

    def _attach(self) -> None:
        # Higher priority so run bookkeeping is current before UI callbacks run
        for event_type, handler in (
            (BattleEvent.ACTION_RESOLVED, self._on_action),
            (BattleEvent.LOG_APPENDED, self._on_log),
            (BattleEvent.STATE_CHANGED, self._on_state_changed),
        ):
            self.events.subscribe(event_type, handler, priority=10, weak=False)
            self._internal.append((event_type, handler))

    def _detach_internal(self) -> None:
        for event_type, handler in self._internal:
            self.events.unsubscribe(event_type, handler)
        self._internal.clear()

    def _on_action(self, event: Event) -> None:
        if event.get("session") is not self._session:
            return
        self._statistics.record_action(event["action"])

    def _on_state_changed(self, event: Event) -> None:
        # Survive-time objectives can complete in the middle of a battle
        if event.get("session") is self._session:
            self._stamp_elapsed()

    def _on_log(self, event: Event) -> None:
        session = event.get("session")
        if session is None or session is not self._session:
            return

        entry: BattleLogEntry = event["entry"]
        self._statistics.record_log(entry)
        if entry.type is LogType.ENEMY_DEFEATED and entry.combatant_id is not None:
            enemy = session.get_state().get_combatant(entry.combatant_id)
            if enemy is None:
                logger.warning(f"Defeat entry for unknown combatant {entry.combatant_id!r}")
                return
            self._announce(self._tracker.record_defeat(enemy.template_id, enemy.is_boss))

    def _announce(self, completed: list[Objective]) -> None:
        for objective in completed:
            self.events.publish(RunEvent.OBJECTIVE_COMPLETED, run=self, objective=objective)

    def _listen_battle(self, event_type: BattleEvent, deliver: Callable[[Event], None]) -> None:
        def handler(event: Event) -> None:
            if self._session is not None and event.get("session") is self._session:
                deliver(event)

        self.events.subscribe(event_type, handler, weak=False)
        self._external.append((event_type, handler))
