"""
Battle data components.

Exports:
- CombatantStats: immutable combat numbers
- Element, ELEMENT_AFFINITY: elemental matchups
- Special ability variants and parse_ability
"""

from autobattle.components.abilities import (
    AbilityKind,
    SpecialAbility,
    DoubleStrike,
    LifeDrain,
    Freeze,
    Poison,
    Curse,
    DamageReflect,
    parse_ability,
    is_offensive,
    describe,
)
from autobattle.components.elements import ELEMENT_AFFINITY, Element
from autobattle.components.stats import CombatantStats

__all__ = [
    "AbilityKind",
    "SpecialAbility",
    "DoubleStrike",
    "LifeDrain",
    "Freeze",
    "Poison",
    "Curse",
    "DamageReflect",
    "parse_ability",
    "is_offensive",
    "describe",
    "Element",
    "ELEMENT_AFFINITY",
    "CombatantStats",
]
