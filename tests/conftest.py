import os
import random
import sys

import pytest

# Ensure engine modules can be imported
sys.path.append(os.getcwd())


class ScriptedRandom(random.Random):
    """
    Random whose random()/randint() return queued values first.

    Falls back to a seeded stream once the queue runs dry.
    """

    def __init__(self, randoms=(), ints=(), seed=0):
        super().__init__(seed)
        self._randoms = list(randoms)
        self._ints = list(ints)

    def random(self):
        if self._randoms:
            return self._randoms.pop(0)
        return super().random()

    def randint(self, a, b):
        if self._ints:
            return self._ints.pop(0)
        return super().randint(a, b)


@pytest.fixture
def scripted_random():
    """Factory for ScriptedRandom."""
    return ScriptedRandom


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    from engine.core.events import EventBus
    return EventBus()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def fast_config():
    """No waits at all, so battles run as fast as the loop allows."""
    from engine.core.config import EngineConfig
    return EngineConfig(base_interval_ms=0, min_wait_ms=0, transition_delay_ms=0)


@pytest.fixture
def make_combatant():
    """Factory: make_combatant("enemy-0", max_health=80, attack=10, ...)."""
    from autobattle.battle import Combatant
    from autobattle.components import CombatantStats

    def factory(combatant_id="enemy-0", name=None, *, health=None, poison=0, frozen=False,
                cursed=False, template_id=None, is_boss=False, gold_reward=0, drops=(), **stats):
        stats.setdefault("max_health", 100)
        stats.setdefault("attack", 10)
        combatant_stats = CombatantStats(**stats)
        return Combatant(
            combatant_id=combatant_id,
            name=name or combatant_id,
            stats=combatant_stats,
            health=combatant_stats.health if health is None else health,
            frozen=frozen,
            cursed=cursed,
            poison=poison,
            template_id=template_id,
            is_boss=is_boss,
            gold_reward=gold_reward,
            drops=tuple(drops),
        )

    return factory


@pytest.fixture
def hero(make_combatant):
    return make_combatant("player", "Hero", max_health=150, attack=30, defense=10)


@pytest.fixture
def catalog():
    from autobattle.dungeon import MonsterCatalog, MonsterTemplate

    return MonsterCatalog([
        MonsterTemplate(id="dummy", name="Training Dummy", health=80, attack=10, defense=5, gold_reward=3),
        MonsterTemplate(id="slime", name="Slime", health=30, attack=6, defense=1, speed=0.8),
        MonsterTemplate(id="ogre", name="Ogre", tier="boss", health=120, attack=14, defense=6),
        MonsterTemplate(id="brute", name="Brute", health=500, attack=200, defense=50),
    ])


@pytest.fixture(scope="session")
def bundled_db():
    from autobattle.dungeon import default_database
    return default_database()
