"""
Special abilities.

A closed set of variants, each a frozen dataclass carrying its own
payload. Offensive abilities may trigger when their owner attacks;
DamageReflect is passive and triggers when its owner is hit.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, ClassVar, Mapping, Union

from engine.core.errors import ConfigurationError



class AbilityKind(str, Enum):
    """Ability tags as they appear in data files."""
    DOUBLE_STRIKE = "doubleStrike"
    LIFE_DRAIN = "lifeDrain"
    FREEZE = "freeze"
    POISON = "poison"
    CURSE = "curse"
    DAMAGE_REFLECT = "lavaArmor"


@dataclass(frozen=True)
class DoubleStrike:
    """Adds a second hit worth `ratio` of the first."""
    kind: ClassVar[AbilityKind] = AbilityKind.DOUBLE_STRIKE
    ratio: float = 0.7


@dataclass(frozen=True)
class LifeDrain:
    """Heals the attacker by `ratio` of the damage dealt."""
    kind: ClassVar[AbilityKind] = AbilityKind.LIFE_DRAIN
    ratio: float = 0.5


@dataclass(frozen=True)
class Freeze:
    """Defender skips its next action."""
    kind: ClassVar[AbilityKind] = AbilityKind.FREEZE


@dataclass(frozen=True)
class Poison:
    """Damage over time; the stack starts at `ratio` of the attacker's attack."""
    kind: ClassVar[AbilityKind] = AbilityKind.POISON
    ratio: float = 0.5


@dataclass(frozen=True)
class Curse:
    """Defender's outgoing damage is reduced for the rest of the encounter."""
    kind: ClassVar[AbilityKind] = AbilityKind.CURSE


@dataclass(frozen=True)
class DamageReflect:
    """Passive: reflects `ratio` of damage taken back at the attacker."""
    kind: ClassVar[AbilityKind] = AbilityKind.DAMAGE_REFLECT
    ratio: float = 0.3


SpecialAbility = Union[DoubleStrike, LifeDrain, Freeze, Poison, Curse, DamageReflect]

ABILITY_TYPES: dict[AbilityKind, type] = {
    cls.kind: cls
    for cls in (DoubleStrike, LifeDrain, Freeze, Poison, Curse, DamageReflect)
}

OFFENSIVE_TYPES = (DoubleStrike, LifeDrain, Freeze, Poison, Curse)


def is_offensive(ability: SpecialAbility) -> bool:
    """Check if the ability triggers on its owner's attack."""
    return isinstance(ability, OFFENSIVE_TYPES)


def parse_ability(value: Any) -> SpecialAbility:
    """
    Convert a data-file value into an ability variant.

    Accepts a variant instance, a tag string ("doubleStrike") or a
    mapping with a "kind" tag plus payload overrides.

    Raises:
        ConfigurationError: unknown tag or payload field
    """
    if isinstance(value, tuple(ABILITY_TYPES.values())):
        return value

    payload: dict[str, Any] = {}
    if isinstance(value, str):
        tag = value
    elif isinstance(value, Mapping) and "kind" in value:
        tag = value["kind"]
        payload = {k: v for k, v in value.items() if k != "kind"}
    else:
        raise ConfigurationError(f"Cannot parse special ability from {value!r}")

    try:
        kind = AbilityKind(tag)
    except ValueError:
        raise ConfigurationError(f"Unknown special ability: {tag!r}") from None

    cls = ABILITY_TYPES[kind]
    allowed = {f.name for f in fields(cls)}
    unknown = set(payload) - allowed
    if unknown:
        raise ConfigurationError(f"Unknown fields for {kind.value}: {sorted(unknown)}")

    return cls(**payload)


def describe(ability: SpecialAbility) -> str:
    """Short human-readable label used in battle log entries."""
    if isinstance(ability, DoubleStrike):
        return "Double Strike"
    if isinstance(ability, LifeDrain):
        return "Life Drain"
    if isinstance(ability, Freeze):
        return "Freeze"
    if isinstance(ability, Poison):
        return "Poison"
    if isinstance(ability, Curse):
        return "Curse"
    if isinstance(ability, DamageReflect):
        return "Lava Armor"
    raise TypeError(f"Unknown ability variant: {ability!r}")
