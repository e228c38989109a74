import asyncio
import random

import pytest

from autobattle.battle import (
    BattleOutcome,
    BattleSession,
    Drop,
    LogType,
    TickKind,
)
from autobattle.components import Freeze
from engine.core.config import EngineConfig
from engine.core.errors import ConfigurationError
from engine.core.events import BattleEvent


def run_to_end(session, limit=500):
    state = session.start()
    for _ in range(limit):
        if state.is_over:
            break
        state = session.step()
    return state


def test_start_seeds_log(hero, make_combatant, fast_config):
    session = BattleSession(hero, [make_combatant("enemy-0"), make_combatant("enemy-1")], config=fast_config)

    state = session.start()

    assert [e.type for e in state.log] == [LogType.START, LogType.STATUS, LogType.STATUS, LogType.STATUS]
    assert state.tick == 0
    assert state.outcome is BattleOutcome.ACTIVE
    # Idempotent
    assert session.start() is state


def test_requires_enemies(hero):
    with pytest.raises(ConfigurationError):
        BattleSession(hero, [])


def test_rejects_duplicate_ids(hero, make_combatant):
    with pytest.raises(ConfigurationError):
        BattleSession(hero, [make_combatant("enemy-0"), make_combatant("enemy-0")])


def test_health_bounds_hold_every_tick(make_combatant, fast_config):
    for seed in range(20):
        player = make_combatant("player", max_health=120, attack=18, defense=4,
                                abilities=["doubleStrike", "lifeDrain"])
        enemies = [
            make_combatant("enemy-0", max_health=60, attack=12, abilities=["poison", "freeze"]),
            make_combatant("enemy-1", max_health=70, attack=10, defense=6, abilities=["lavaArmor", "curse"]),
        ]
        session = BattleSession(player, enemies, config=fast_config, rng=random.Random(seed))
        states = []
        session.on_state_change(states.append)

        run_to_end(session)

        assert states
        for state in states:
            for combatant in (state.player, *state.enemies):
                assert 0 <= combatant.health <= combatant.max_health


def test_termination_bound(make_combatant, fast_config):
    for seed in range(20):
        player = make_combatant("player", max_health=1000, attack=20, defense=0)
        enemy = make_combatant("enemy-0", max_health=100, attack=0, defense=0)
        session = BattleSession(player, [enemy], config=fast_config, rng=random.Random(seed))

        state = run_to_end(session)

        assert state.outcome is BattleOutcome.VICTORY
        player_ticks = (state.tick + 1) // 2
        assert player_ticks <= 10


def test_single_encounter_victory(hero, make_combatant, fast_config):
    enemy = make_combatant("enemy-0", "Dummy", max_health=80, attack=10, defense=5)
    session = BattleSession(hero, [enemy], config=fast_config, rng=random.Random(3))

    state = run_to_end(session)

    assert state.outcome is BattleOutcome.VICTORY
    assert state.log[-1].type is LogType.VICTORY
    assert [e.type for e in state.log].count(LogType.ENEMY_DEFEATED) == 1
    # Defeated enemy stays in state for rendering
    assert state.enemies[0].health == 0


def test_defeat(make_combatant, fast_config):
    player = make_combatant("player", max_health=20, attack=1)
    enemy = make_combatant("enemy-0", max_health=1000, attack=200)
    session = BattleSession(player, [enemy], config=fast_config, rng=random.Random(0))

    state = run_to_end(session)

    assert state.outcome is BattleOutcome.DEFEAT
    assert state.player.health == 0
    assert state.log[-1].type is LogType.DEFEAT


def test_player_acts_on_odd_ticks(hero, make_combatant, fast_config):
    session = BattleSession(hero, [make_combatant("enemy-0", max_health=10_000)], config=fast_config, rng=random.Random(1))
    actions = []
    session.on_action(actions.append)

    session.start()
    for _ in range(6):
        session.step()

    for action in actions:
        kind = TickKind.for_tick(action.tick)
        if action.attacker_id == "player":
            assert kind is TickKind.PLAYER
        else:
            assert kind is TickKind.ENEMIES


def test_defeated_enemy_is_never_targeted_again(make_combatant, fast_config):
    for seed in range(10):
        player = make_combatant("player", max_health=5000, attack=25)
        enemies = [
            make_combatant("enemy-0", max_health=5, attack=5),
            make_combatant("enemy-1", max_health=300, attack=5),
            make_combatant("enemy-2", max_health=300, attack=5),
        ]
        session = BattleSession(player, enemies, config=fast_config, rng=random.Random(seed))
        actions = []
        dead_after_tick = {}
        session.on_action(actions.append)
        session.on_state_change(
            lambda s: dead_after_tick.__setitem__(s.tick, {e.combatant_id for e in s.enemies if not e.is_alive})
        )

        state = run_to_end(session)

        assert state.outcome is BattleOutcome.VICTORY
        assert dead_after_tick[state.tick] == {"enemy-0", "enemy-1", "enemy-2"}
        for action in actions:
            dead = dead_after_tick.get(action.tick - 1, set())
            assert action.target_id not in dead
            assert action.attacker_id not in dead


def test_enemy_damage_is_summed_once(make_combatant, fast_config):
    player = make_combatant("player", max_health=1000, attack=1)
    enemies = [make_combatant(f"enemy-{i}", max_health=1000, attack=15) for i in range(3)]
    session = BattleSession(player, enemies, config=fast_config, rng=random.Random(5))
    actions = []
    session.on_action(actions.append)

    session.start()
    session.step()
    before = session.get_state().player.health
    session.step()
    after = session.get_state()

    enemy_actions = [a for a in actions if a.tick == 2]
    assert len(enemy_actions) == 3
    assert before - after.player.health == sum(a.damage for a in enemy_actions)
    assert any(e.type is LogType.STATUS and "total damage" in e.message for e in after.log)


def test_frozen_player_skips_turn(make_combatant, fast_config):
    player = make_combatant("player", max_health=100, attack=20, frozen=True)
    session = BattleSession(player, [make_combatant("enemy-0", max_health=500)], config=fast_config)
    actions = []
    session.on_action(actions.append)

    session.start()
    state = session.step()

    assert actions == []
    assert not state.player.frozen
    assert state.log[-1].type is LogType.STATUS


def test_frozen_enemy_skips_turn(hero, make_combatant, fast_config):
    enemy = make_combatant("enemy-0", max_health=500, frozen=True)
    session = BattleSession(hero, [enemy], config=fast_config, rng=random.Random(2))
    actions = []
    session.on_action(actions.append)

    session.start()
    session.step()
    state = session.step()

    assert [a.attacker_id for a in actions] == ["player"]
    assert not state.enemies[0].frozen


def test_poison_decays_on_player_ticks(make_combatant, fast_config):
    player = make_combatant("player", max_health=500, attack=1, poison=10)
    enemy = make_combatant("enemy-0", max_health=10_000, attack=0)
    session = BattleSession(player, [enemy], config=fast_config, rng=random.Random(4))

    session.start()
    stacks = []
    for _ in range(12):
        state = session.step()
        if TickKind.for_tick(state.tick) is TickKind.PLAYER:
            stacks.append(state.player.poison)

    assert stacks == [8, 6, 4, 2, 0, 0]
    poison_entries = [e for e in session.get_state().log if "poison damage" in e.message]
    assert len(poison_entries) == 5


def test_rewards_logged_on_defeat(hero, make_combatant, fast_config):
    enemy = make_combatant("enemy-0", max_health=1, attack=1, gold_reward=12,
                           drops=[Drop("gem", 1.0), Drop("never", 0.0)])
    session = BattleSession(hero, [enemy], config=fast_config, rng=random.Random(0))

    state = run_to_end(session)
    types = [e.type for e in state.log]

    assert types[-4:] == [LogType.ENEMY_DEFEATED, LogType.GOLD, LogType.ITEM, LogType.VICTORY]
    assert state.log[-3].reward == 12
    assert state.log[-2].reward == "gem"


def test_log_sequence_and_timestamps(hero, make_combatant, fast_config):
    session = BattleSession(hero, [make_combatant("enemy-0")], config=fast_config, rng=random.Random(8))
    state = run_to_end(session)

    sequences = [e.sequence for e in state.log]
    timestamps = [e.timestamp for e in state.log]
    assert sequences == sorted(set(sequences))
    assert timestamps == sorted(timestamps)
    assert len(state.recent_log()) == min(20, len(state.log))


def test_callbacks_and_events(hero, make_combatant, fast_config, event_bus):
    session = BattleSession(hero, [make_combatant("enemy-0")], config=fast_config, events=event_bus)
    other = BattleSession(hero, [make_combatant("enemy-0")], config=fast_config, events=event_bus)
    entries, ended = [], []
    session.on_log(entries.append)
    event_bus.subscribe(BattleEvent.BATTLE_ENDED, lambda e: ended.append(e["state"]), weak=False)

    run_to_end(session)
    other.start()

    assert [e.sequence for e in entries] == [e.sequence for e in session.get_state().log]
    assert len(ended) == 1

    session.detach()
    assert event_bus.handler_count(BattleEvent.LOG_APPENDED) == 0


def test_failing_callback_does_not_break_battle(hero, make_combatant, fast_config):
    session = BattleSession(hero, [make_combatant("enemy-0")], config=fast_config, rng=random.Random(1))

    def broken(action):
        raise RuntimeError("render failed")

    session.on_action(broken)
    state = run_to_end(session)

    assert state.is_over


def test_speed_and_pause_in_snapshot(hero, make_combatant):
    session = BattleSession(hero, [make_combatant("enemy-0")])
    session.set_speed(2)
    session.pause()

    state = session.get_state()
    assert state.speed == 2
    assert state.paused

    session.resume()
    assert not session.get_state().paused
    with pytest.raises(ValueError):
        session.set_speed(5)


def test_get_combatant(hero, make_combatant):
    state = BattleSession(hero, [make_combatant("enemy-0")]).get_state()
    assert state.get_combatant("player") is state.player
    assert state.get_combatant("enemy-0") is state.enemies[0]
    assert state.get_combatant("enemy-9") is None


@pytest.mark.asyncio
async def test_run_to_completion(hero, make_combatant, fast_config):
    session = BattleSession(hero, [make_combatant("enemy-0", max_health=80, attack=10, defense=5)],
                            config=fast_config, rng=random.Random(11))

    state = await asyncio.wait_for(session.run(), timeout=5.0)

    assert state.outcome is BattleOutcome.VICTORY


@pytest.mark.asyncio
async def test_speed_does_not_change_outcome(make_combatant, fast_config):
    results = []
    for speed in (1, 3):
        player = make_combatant("player", max_health=150, attack=22, abilities=[Freeze()])
        enemies = [make_combatant("enemy-0", max_health=90), make_combatant("enemy-1", max_health=90)]
        session = BattleSession(player, enemies, config=fast_config, rng=random.Random(21), speed=speed)
        actions = []
        session.on_action(actions.append)
        state = await session.run()
        results.append((state.outcome, state.tick, actions))

    assert results[0] == results[1]


@pytest.mark.asyncio
async def test_cancel_mid_wait_keeps_last_snapshot(hero, make_combatant):
    config = EngineConfig(base_interval_ms=200, min_wait_ms=0)
    session = BattleSession(hero, [make_combatant("enemy-0", max_health=5000)], config=config,
                            rng=random.Random(6), speed=3)

    task = asyncio.create_task(session.run())
    await asyncio.sleep(0.15)
    snapshot = session.get_state()
    session.cancel()
    final = await asyncio.wait_for(task, timeout=1.0)

    assert session.cancelled
    assert final is snapshot
    assert final.outcome is BattleOutcome.ACTIVE
    # No further commits after cancellation
    session.step()
    assert session.get_state() is snapshot


@pytest.mark.asyncio
async def test_pause_stops_ticks(hero, make_combatant):
    config = EngineConfig(base_interval_ms=20, min_wait_ms=0)
    session = BattleSession(hero, [make_combatant("enemy-0", max_health=5000)], config=config, rng=random.Random(6))

    task = asyncio.create_task(session.run())
    await asyncio.sleep(0.05)
    session.pause()
    await asyncio.sleep(0.03)
    paused_tick = session.get_state().tick
    await asyncio.sleep(0.1)

    assert session.get_state().tick == paused_tick

    session.resume()
    await asyncio.sleep(0.1)
    assert session.get_state().tick > paused_tick

    session.cancel()
    await asyncio.wait_for(task, timeout=1.0)
