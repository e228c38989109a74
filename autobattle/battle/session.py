"""
Battle session - one player against one or more enemies.

The session owns the only BattleState of its encounter and replaces it
wholesale after each tick. Collaborators read snapshots through
get_state() or the event callbacks; the only changes they may request
are speed, pause and cancellation.

Usage:
    session = BattleSession(player, [slime, bat], rng=random.Random(7))
    session.on_action(lambda action: print(action.message))
    final = await session.run()
    if final.outcome is BattleOutcome.VICTORY:
        ...
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Sequence

from engine.core.cancellation import CancellationToken
from engine.core.config import EngineConfig
from engine.core.errors import ConfigurationError, OperationCancelled
from engine.core.events import BattleEvent, Event, EventBus
from autobattle.battle.actions import BattleAction
from autobattle.battle.combatant import Combatant
from autobattle.battle.log import RECENT_LOG_SIZE, BattleLogEntry, LogType
from autobattle.battle.resolver import AttackResolution, apply_delta, poison_tick, resolve_attack
from autobattle.battle.rules import DEFAULT_RULES, BattleRules
from autobattle.battle.scheduler import TickKind, TurnScheduler
from autobattle.components import describe

logger = logging.getLogger(__name__)


class BattleOutcome(str, Enum):
    """Terminal flag of a battle."""
    ACTIVE = "active"
    VICTORY = "victory"
    DEFEAT = "defeat"


@dataclass(frozen=True)
class BattleState:
    """
    Immutable snapshot of one encounter.

    Defeated enemies stay in `enemies` (at 0 health) so a renderer can
    show them as defeated.
    """
    player: Combatant
    enemies: tuple[Combatant, ...]
    log: tuple[BattleLogEntry, ...] = ()
    tick: int = 0
    speed: int = 1
    paused: bool = False
    outcome: BattleOutcome = BattleOutcome.ACTIVE

    @property
    def is_over(self) -> bool:
        return self.outcome is not BattleOutcome.ACTIVE

    @property
    def living_enemies(self) -> tuple[Combatant, ...]:
        return tuple(e for e in self.enemies if e.is_alive)

    def get_combatant(self, combatant_id: str) -> Combatant | None:
        if combatant_id == self.player.combatant_id:
            return self.player
        for enemy in self.enemies:
            if enemy.combatant_id == combatant_id:
                return enemy
        return None

    def recent_log(self, count: int = RECENT_LOG_SIZE) -> tuple[BattleLogEntry, ...]:
        return self.log[-count:] if count > 0 else ()


@dataclass
class _PendingEntry:
    type: LogType
    message: str
    action: BattleAction | None = None
    combatant_id: str | None = None
    reward: int | str | None = None


@dataclass
class _TickDraft:
    """Working copy of one tick. Discarded unless committed."""
    tick: int
    player: Combatant
    enemies: list[Combatant]
    outcome: BattleOutcome = BattleOutcome.ACTIVE
    actions: list[BattleAction] = field(default_factory=list)
    entries: list[_PendingEntry] = field(default_factory=list)

    def get(self, combatant_id: str) -> Combatant | None:
        if combatant_id == self.player.combatant_id:
            return self.player
        for enemy in self.enemies:
            if enemy.combatant_id == combatant_id:
                return enemy
        return None

    def put(self, combatant: Combatant) -> None:
        if combatant.combatant_id == self.player.combatant_id:
            self.player = combatant
            return
        for i, enemy in enumerate(self.enemies):
            if enemy.combatant_id == combatant.combatant_id:
                self.enemies[i] = combatant
                return
        logger.warning(f"Ignoring update for unknown combatant {combatant.combatant_id!r}")

    def log(self, entry_type: LogType, message: str, **kwargs) -> None:
        self.entries.append(_PendingEntry(entry_type, message, **kwargs))


class BattleSession:
    """
    Runs one encounter to victory, defeat or cancellation.

    Ticks are strictly sequential: wait, check token, resolve, check
    token, commit. A cancelled tick is dropped without touching state.
    """

    def __init__(
        self,
        player: Combatant,
        enemies: Sequence[Combatant],
        *,
        config: EngineConfig | None = None,
        rules: BattleRules = DEFAULT_RULES,
        rng: random.Random | None = None,
        events: EventBus | None = None,
        token: CancellationToken | None = None,
        speed: int | None = None,
        paused: bool = False,
        session_id: str = "battle",
    ):
        if not enemies:
            raise ConfigurationError("A battle needs at least one enemy")
        ids = [player.combatant_id, *(e.combatant_id for e in enemies)]
        if len(set(ids)) != len(ids):
            raise ConfigurationError(f"Duplicate combatant ids: {ids}")

        self.session_id = session_id
        self.config = config or EngineConfig()
        self.rules = rules
        self.rng = rng or random.Random()
        self.events = events or EventBus()
        self.token = token or CancellationToken(session_id)
        self.scheduler = TurnScheduler(self.config, self.token, speed=speed)
        if paused:
            self.scheduler.pause()

        self._state = BattleState(
            player=player,
            enemies=tuple(enemies),
            speed=self.scheduler.speed,
            paused=self.scheduler.paused,
        )
        self._sequence = 0
        self._started = False
        self._subscriptions: list[tuple[BattleEvent, Callable[[Event], None]]] = []

    # ------------------------------------------------------------------
    # Snapshot and control surface
    # ------------------------------------------------------------------

    def get_state(self) -> BattleState:
        return self._state

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def set_speed(self, multiplier: int) -> None:
        """Change the speed multiplier (1, 2 or 3) for the next wait."""
        self.scheduler.set_speed(multiplier)
        self._replace_state(speed=multiplier)

    def pause(self) -> None:
        self.scheduler.pause()
        self._replace_state(paused=True)

    def resume(self) -> None:
        self.scheduler.resume()
        self._replace_state(paused=False)

    def cancel(self) -> None:
        """Stop the loop; the last committed snapshot stays authoritative."""
        self.token.cancel()

    def on_action(self, callback: Callable[[BattleAction], None]) -> None:
        self._listen(BattleEvent.ACTION_RESOLVED, lambda event: callback(event["action"]))

    def on_state_change(self, callback: Callable[[BattleState], None]) -> None:
        self._listen(BattleEvent.STATE_CHANGED, lambda event: callback(event["state"]))

    def on_log(self, callback: Callable[[BattleLogEntry], None]) -> None:
        self._listen(BattleEvent.LOG_APPENDED, lambda event: callback(event["entry"]))

    def detach(self) -> None:
        """Remove every callback registered through this session."""
        for event_type, handler in self._subscriptions:
            self.events.unsubscribe(event_type, handler)
        self._subscriptions.clear()

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def start(self) -> BattleState:
        """Seed the log with the battle start entries (idempotent)."""
        if self._started:
            return self._state
        self._started = True

        state = self._state
        draft = _TickDraft(tick=0, player=state.player, enemies=list(state.enemies))
        names = ", ".join(e.name for e in state.enemies)
        draft.log(LogType.START, f"Battle start! {state.player.name} vs {names}")
        for combatant in (state.player, *state.enemies):
            draft.log(LogType.STATUS, _describe_combatant(combatant), combatant_id=combatant.combatant_id)

        logger.info(f"Battle {self.session_id} started: {state.player.name} vs {names}")
        self._commit(draft)
        self.events.publish(BattleEvent.BATTLE_STARTED, session=self, state=self._state)
        return self._state

    def step(self) -> BattleState:
        """Resolve and commit exactly one tick, without waiting."""
        if not self._started:
            self.start()
        if self._state.is_over or self.token.cancelled:
            return self._state

        draft = self._resolve_tick(self._state.tick + 1)
        self._commit(draft)
        return self._state

    async def run(self) -> BattleState:
        """
        Run until victory, defeat or cancellation.

        Returns:
            The final committed snapshot (never raises on cancellation)
        """
        self.start()
        try:
            if self.config.battle_start_delay_ms > 0:
                await self.scheduler.sleep_ms(self.config.battle_start_delay_ms / self.scheduler.speed)

            while not self._state.is_over:
                tick = self._state.tick + 1
                await self.scheduler.wait(self._opposing_speeds(TickKind.for_tick(tick)))
                self.token.raise_if_cancelled()
                draft = self._resolve_tick(tick)
                self.token.raise_if_cancelled()
                self._commit(draft)
        except OperationCancelled:
            logger.info(f"Battle {self.session_id} cancelled after tick {self._state.tick}")

        return self._state

    def _opposing_speeds(self, kind: TickKind) -> list[float]:
        if kind is TickKind.PLAYER:
            return [e.stats.speed for e in self._state.living_enemies]
        return [self._state.player.stats.speed]

    # ------------------------------------------------------------------
    # Tick resolution
    # ------------------------------------------------------------------

    def _resolve_tick(self, tick: int) -> _TickDraft:
        state = self._state
        draft = _TickDraft(tick=tick, player=state.player, enemies=list(state.enemies))

        if TickKind.for_tick(tick) is TickKind.PLAYER:
            self._apply_poison(draft)
            if draft.player.is_alive:
                self._player_turn(draft)
        else:
            self._enemy_turn(draft)

        self._check_terminal(draft)
        return draft

    def _apply_poison(self, draft: _TickDraft) -> None:
        for combatant in [draft.player, *draft.enemies]:
            if not combatant.is_alive or combatant.poison <= 0:
                continue
            damage, remaining = poison_tick(combatant, self.rules)
            updated = combatant.damaged(damage).with_status(poison=remaining)
            draft.put(updated)
            draft.log(
                LogType.STATUS,
                f"{combatant.name} takes {damage} poison damage.",
                combatant_id=combatant.combatant_id,
            )
            if not updated.is_alive and not updated.is_player:
                self._enemy_defeated(draft, updated)

    def _player_turn(self, draft: _TickDraft) -> None:
        player = draft.player
        if player.frozen:
            draft.put(player.with_status(frozen=False))
            draft.log(LogType.STATUS, f"{player.name} is frozen and cannot move!", combatant_id=player.combatant_id)
            return

        targets = [e for e in draft.enemies if e.is_alive]
        if not targets:
            return
        target = targets[0] if len(targets) == 1 else self.rng.choice(targets)

        resolution = resolve_attack(player, target, self.rng, draft.tick, self.rules)
        self._apply_resolution(draft, resolution)

    def _enemy_turn(self, draft: _TickDraft) -> None:
        start_health = draft.player.health
        incoming = 0
        attackers = 0

        for attacker_id in [e.combatant_id for e in draft.enemies if e.is_alive]:
            enemy = draft.get(attacker_id)
            if enemy is None or not enemy.is_alive:
                continue
            if enemy.frozen:
                draft.put(enemy.with_status(frozen=False))
                draft.log(LogType.STATUS, f"{enemy.name} is frozen and cannot move!", combatant_id=attacker_id)
                continue

            # Damage is applied once at the end; resolve against the running total
            target = draft.player.with_health(start_health - incoming)
            if not target.is_alive:
                break

            resolution = resolve_attack(enemy, target, self.rng, draft.tick, self.rules)
            incoming += resolution.action.damage
            attackers += 1
            deferred = replace(resolution.defender_delta, health_change=0)
            self._apply_resolution(draft, replace(resolution, defender_delta=deferred))

        if incoming:
            draft.put(draft.player.damaged(incoming))
            if attackers > 1:
                draft.log(
                    LogType.STATUS,
                    f"{draft.player.name} takes {incoming} total damage from {attackers} enemies.",
                    combatant_id=draft.player.combatant_id,
                )

    def _apply_resolution(self, draft: _TickDraft, resolution: AttackResolution) -> None:
        action = resolution.action
        attacker = draft.get(action.attacker_id)
        defender = draft.get(action.target_id)
        if attacker is None or defender is None:
            logger.warning(
                f"Ignoring action {action.attacker_id!r} -> {action.target_id!r}: unknown combatant"
            )
            return

        defender_after = apply_delta(defender, resolution.defender_delta)
        draft.put(defender_after)
        attacker_after = apply_delta(draft.get(action.attacker_id), resolution.attacker_delta)
        draft.put(attacker_after)

        draft.actions.append(action)
        draft.log(_entry_type(action), action.message, action=action, combatant_id=action.attacker_id)
        if action.healed:
            draft.log(
                LogType.HEAL,
                f"{attacker.name} recovers {action.healed} health.",
                action=action,
                combatant_id=action.attacker_id,
            )

        if defender.is_alive and not defender_after.is_alive and not defender_after.is_player:
            self._enemy_defeated(draft, defender_after)
        if attacker.is_alive and not attacker_after.is_alive and not attacker_after.is_player:
            self._enemy_defeated(draft, attacker_after)

    def _enemy_defeated(self, draft: _TickDraft, enemy: Combatant) -> None:
        draft.log(LogType.ENEMY_DEFEATED, f"{enemy.name} was defeated!", combatant_id=enemy.combatant_id)
        if enemy.gold_reward > 0:
            draft.log(
                LogType.GOLD,
                f"Obtained {enemy.gold_reward} gold.",
                combatant_id=enemy.combatant_id,
                reward=enemy.gold_reward,
            )
        for drop in enemy.drops:
            if self.rng.random() < drop.chance:
                draft.log(
                    LogType.ITEM,
                    f"Obtained {drop.item_id}.",
                    combatant_id=enemy.combatant_id,
                    reward=drop.item_id,
                )

    def _check_terminal(self, draft: _TickDraft) -> None:
        if not draft.player.is_alive:
            draft.outcome = BattleOutcome.DEFEAT
            draft.log(LogType.DEFEAT, f"{draft.player.name} was defeated after {draft.tick} ticks.")
        elif not any(e.is_alive for e in draft.enemies):
            draft.outcome = BattleOutcome.VICTORY
            draft.log(LogType.VICTORY, f"Victory! All enemies defeated in {draft.tick} ticks.")

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def _commit(self, draft: _TickDraft) -> None:
        if self.token.cancelled:
            logger.debug(f"Battle {self.session_id}: discarding tick {draft.tick}")
            return

        entries = []
        for pending in draft.entries:
            self._sequence += 1
            entries.append(BattleLogEntry(
                sequence=self._sequence,
                type=pending.type,
                message=pending.message,
                action=pending.action,
                combatant_id=pending.combatant_id,
                reward=pending.reward,
            ))

        self._state = replace(
            self._state,
            player=draft.player,
            enemies=tuple(draft.enemies),
            log=self._state.log + tuple(entries),
            tick=draft.tick,
            outcome=draft.outcome,
        )

        for action in draft.actions:
            self.events.publish(BattleEvent.ACTION_RESOLVED, session=self, action=action)
        for entry in entries:
            self.events.publish(BattleEvent.LOG_APPENDED, session=self, entry=entry)
        self.events.publish(BattleEvent.STATE_CHANGED, session=self, state=self._state)

        if self._state.is_over:
            logger.info(f"Battle {self.session_id} ended: {self._state.outcome.value} at tick {draft.tick}")
            self.events.publish(BattleEvent.BATTLE_ENDED, session=self, state=self._state)

    def _replace_state(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        self.events.publish(BattleEvent.STATE_CHANGED, session=self, state=self._state)

    def _listen(self, event_type: BattleEvent, deliver: Callable[[Event], None]) -> None:
        def handler(event: Event) -> None:
            if event.get("session") is self:
                deliver(event)

        self.events.subscribe(event_type, handler, weak=False)
        self._subscriptions.append((event_type, handler))


def _entry_type(action: BattleAction) -> LogType:
    if action.missed:
        return LogType.MISS
    if action.critical:
        return LogType.CRITICAL
    return LogType.ATTACK


def _describe_combatant(combatant: Combatant) -> str:
    stats = combatant.stats
    text = (
        f"{combatant.name} (Lv.{stats.level}) HP {combatant.health}/{stats.max_health} "
        f"ATK {stats.attack} DEF {stats.defense} SPD {stats.speed:g}"
    )
    if stats.element is not None:
        text += f" <{stats.element.value}>"
    if stats.abilities:
        text += " [" + ", ".join(describe(a) for a in stats.abilities) + "]"
    return text
