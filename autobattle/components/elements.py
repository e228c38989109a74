"""
Elemental affinities.

An attack whose element is strong against the defender's element deals
more damage, a weak matchup deals less. Combatants without an element
are always neutral.
"""

from __future__ import annotations

from enum import Enum


class Element(str, Enum):
    PHYSICAL = "physical"
    FIRE = "fire"
    ICE = "ice"
    THUNDER = "thunder"
    WATER = "water"
    EARTH = "earth"
    NATURE = "nature"
    LIGHT = "light"
    DARK = "dark"
    ARCANE = "arcane"


STRONG = 1.5
WEAK = 0.5

# (attacker, defender) -> damage multiplier; missing pairs are neutral
ELEMENT_AFFINITY: dict[tuple[Element, Element], float] = {
    (Element.FIRE, Element.ICE): STRONG,
    (Element.FIRE, Element.NATURE): STRONG,
    (Element.FIRE, Element.WATER): WEAK,
    (Element.ICE, Element.NATURE): STRONG,
    (Element.ICE, Element.FIRE): WEAK,
    (Element.ICE, Element.THUNDER): WEAK,
    (Element.THUNDER, Element.WATER): STRONG,
    (Element.THUNDER, Element.EARTH): STRONG,
    (Element.THUNDER, Element.ICE): WEAK,
    (Element.NATURE, Element.WATER): STRONG,
    (Element.NATURE, Element.EARTH): WEAK,
    (Element.NATURE, Element.FIRE): WEAK,
    (Element.LIGHT, Element.DARK): STRONG,
    (Element.DARK, Element.LIGHT): STRONG,
}
