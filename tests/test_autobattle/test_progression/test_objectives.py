import pytest

from autobattle.progression import Objective, ObjectiveTracker, ObjectiveType
from engine.core.errors import ConfigurationError


def test_objective_progress():
    objective = Objective(id="kill", type=ObjectiveType.DEFEAT_MONSTERS, target=3)

    assert objective.progress == 0.0
    assert not objective.update_progress()
    assert objective.update_progress(5)
    assert objective.current == 3
    assert objective.completed
    assert objective.progress == 1.0
    # Complete objectives ignore further progress
    assert not objective.update_progress()


def test_set_progress_never_decreases():
    objective = Objective(id="time", type=ObjectiveType.SURVIVE_TIME, target=60)

    objective.set_progress(30)
    objective.set_progress(10)

    assert objective.current == 30


def test_from_dict():
    objective = Objective.from_dict({"id": "o", "type": "defeat_boss", "target_id": "ogre"})

    assert objective.type is ObjectiveType.DEFEAT_BOSS
    assert objective.target == 1
    assert objective.target_id == "ogre"


@pytest.mark.parametrize("record", [
    {"type": "collect_items"},
    {"id": "o"},
    {"type": "clear_waves", "target": 0},
    {"type": "clear_waves", "target": "three"},
    {"type": "clear_waves", "target": None},
])
def test_from_dict_rejects(record):
    with pytest.raises(ConfigurationError):
        Objective.from_dict(record)


def test_defeat_monsters_filter():
    tracker = ObjectiveTracker([
        Objective(id="any", type=ObjectiveType.DEFEAT_MONSTERS, target=2),
        Objective(id="slimes", type=ObjectiveType.DEFEAT_MONSTERS, target=1, target_id="slime"),
    ])

    assert tracker.record_defeat("bat") == []
    completed = tracker.record_defeat("slime")

    assert sorted(o.id for o in completed) == ["any", "slimes"]
    assert tracker.all_completed


def test_defeat_boss_by_id():
    tracker = ObjectiveTracker([Objective(id="boss", type=ObjectiveType.DEFEAT_BOSS)], boss_id="ogre")

    # Other bosses do not count when a boss id is known
    assert tracker.record_defeat("lich", is_boss=True) == []
    assert [o.id for o in tracker.record_defeat("ogre")] == ["boss"]


def test_defeat_boss_by_flag():
    tracker = ObjectiveTracker([Objective(id="boss", type=ObjectiveType.DEFEAT_BOSS)])

    assert tracker.record_defeat("slime") == []
    assert tracker.record_defeat("anything", is_boss=True)


def test_time_and_waves():
    tracker = ObjectiveTracker([
        Objective(id="time", type=ObjectiveType.SURVIVE_TIME, target=60),
        Objective(id="waves", type=ObjectiveType.CLEAR_WAVES, target=2),
    ])

    assert tracker.record_elapsed(59.9) == []
    assert [o.id for o in tracker.record_elapsed(61)] == ["time"]
    assert tracker.record_encounter_cleared(1) == []
    assert [o.id for o in tracker.record_encounter_cleared(2)] == ["waves"]


def test_tracker_copies_objectives():
    source = Objective(id="kill", type=ObjectiveType.DEFEAT_MONSTERS, target=1)
    tracker = ObjectiveTracker([source])

    tracker.record_defeat("slime")
    snapshot = tracker.snapshot()
    snapshot[0].current = 0

    assert not source.completed
    assert tracker.objectives[0].completed
