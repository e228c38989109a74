from autobattle.battle import BattleAction, BattleLogEntry, LogType
from autobattle.components import AbilityKind
from autobattle.dungeon import RunEndReason, RunResult, RunStatistics
from autobattle.progression import Objective, ObjectiveType


def test_player_damage_and_reflection():
    stats = RunStatistics()

    stats.record_action(BattleAction(tick=1, attacker_id="player", target_id="enemy-0",
                                     base_damage=30, damage=25, reflected=7))

    assert stats.damage_dealt == 25
    assert stats.damage_taken == 7


def test_enemy_damage_and_reflection():
    stats = RunStatistics()

    stats.record_action(BattleAction(tick=2, attacker_id="enemy-1", target_id="player",
                                     base_damage=12, damage=9, reflected=3))

    assert stats.damage_taken == 9
    assert stats.damage_dealt == 3
    assert stats.skills_used == 0


def test_double_strike_is_combo():
    stats = RunStatistics()

    stats.record_action(BattleAction(tick=1, attacker_id="player", target_id="enemy-0",
                                     base_damage=20, damage=30, ability=AbilityKind.DOUBLE_STRIKE,
                                     ability_value=10))
    stats.record_action(BattleAction(tick=3, attacker_id="player", target_id="enemy-0",
                                     base_damage=20, damage=0, missed=True))

    assert stats.combo_damage == 30
    assert stats.damage_dealt == 30
    assert stats.skills_used == 1


def test_rewards_from_log():
    stats = RunStatistics()

    for entry in (
        BattleLogEntry(1, LogType.ENEMY_DEFEATED, "Slime was defeated!", combatant_id="enemy-0"),
        BattleLogEntry(2, LogType.GOLD, "Obtained 5 gold.", reward=5),
        BattleLogEntry(3, LogType.ITEM, "Obtained jelly.", reward="jelly"),
        BattleLogEntry(4, LogType.ATTACK, "Slime attacks."),
    ):
        stats.record_log(entry)

    assert stats.monsters_defeated == 1
    assert stats.gold_obtained == 5
    assert stats.items_obtained == ["jelly"]


def test_snapshot_is_independent():
    stats = RunStatistics(items_obtained=["jelly"])
    copy = stats.snapshot()
    stats.items_obtained.append("crown")
    assert copy.items_obtained == ["jelly"]


def test_result_objectives_completed():
    done = Objective(id="a", type=ObjectiveType.CLEAR_WAVES, completed=True)
    open_ = Objective(id="b", type=ObjectiveType.SURVIVE_TIME, target=60)

    assert RunResult(True, RunStatistics(), (done,), RunEndReason.CLEARED).objectives_completed
    assert not RunResult(True, RunStatistics(), (done, open_), RunEndReason.CLEARED).objectives_completed
