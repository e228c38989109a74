"""
Damage and effect resolution for a single attack.

Everything here is pure: inputs are never mutated and all randomness
comes from the random.Random passed in. Draw order is fixed (evasion,
variance, critical, ability trigger, ability choice, reflect), so a
seeded generator always yields the same BattleAction. Elemental affinity
is a table lookup and draws nothing.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from autobattle.battle.actions import BattleAction
from autobattle.battle.combatant import Combatant
from autobattle.battle.rules import DEFAULT_RULES, BattleRules
from autobattle.components import (
    Curse,
    DamageReflect,
    DoubleStrike,
    Freeze,
    LifeDrain,
    Poison,
    SpecialAbility,
    describe,
    is_offensive,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusDelta:
    """
    Change to apply to one combatant.

    None means "leave as is" for the status fields.
    """
    health_change: int = 0
    frozen: bool | None = None
    cursed: bool | None = None
    poison: int | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.health_change == 0
            and self.frozen is None
            and self.cursed is None
            and self.poison is None
        )


@dataclass(frozen=True)
class AttackResolution:
    """Result of resolve_attack: the action plus what it does to both sides."""
    action: BattleAction
    attacker_delta: StatusDelta
    defender_delta: StatusDelta


def apply_delta(combatant: Combatant, delta: StatusDelta) -> Combatant:
    """Return the combatant with a delta applied (health clamped)."""
    if delta.is_empty:
        return combatant

    updated = combatant
    if delta.health_change < 0:
        updated = updated.damaged(-delta.health_change)
    elif delta.health_change > 0:
        updated = updated.healed(delta.health_change)

    return updated.with_status(frozen=delta.frozen, cursed=delta.cursed, poison=delta.poison)


def mitigate(damage: int, defense: int, rules: BattleRules = DEFAULT_RULES) -> int:
    """Subtract the defender's share of defense, never below the floor."""
    return max(rules.min_damage, damage - int(defense * rules.defense_factor))


def poison_tick(combatant: Combatant, rules: BattleRules = DEFAULT_RULES) -> tuple[int, int]:
    """
    Apply one round of poison.

    Returns:
        (damage, remaining stack); the stack decays after it hits and
        never goes negative
    """
    if combatant.poison <= 0:
        return 0, 0
    return combatant.poison, max(0, combatant.poison - rules.poison_decay)


def resolve_attack(
    attacker: Combatant,
    defender: Combatant,
    rng: random.Random,
    tick: int = 0,
    rules: BattleRules = DEFAULT_RULES,
) -> AttackResolution:
    """
    Resolve one attack.

    Args:
        attacker: Combatant snapshot that attacks
        defender: Combatant snapshot that is hit
        rng: Source of randomness
        tick: Scheduler tick, copied onto the action
        rules: Combat constants

    Returns:
        AttackResolution with the action and both status deltas
    """
    # Evasion
    if defender.stats.evasion > 0 and rng.random() < defender.stats.evasion:
        action = BattleAction(
            tick=tick,
            attacker_id=attacker.combatant_id,
            target_id=defender.combatant_id,
            base_damage=0,
            damage=0,
            missed=True,
            message=f"{defender.name} dodged {attacker.name}'s attack!",
        )
        return AttackResolution(action, StatusDelta(), StatusDelta())

    base_damage = max(
        rules.min_damage,
        attacker.stats.attack + rng.randint(rules.variance_low, rules.variance_high),
    )
    damage = mitigate(base_damage, defender.stats.defense, rules)

    if attacker.cursed:
        damage = max(rules.min_damage, int(damage * rules.curse_multiplier))

    critical = rng.random() < attacker.stats.critical_chance
    if critical:
        damage = int(damage * rules.critical_multiplier)

    element_multiplier = rules.affinity(attacker.stats.element, defender.stats.element)
    if element_multiplier != 1.0:
        damage = max(rules.min_damage, int(damage * element_multiplier))

    ability = _roll_ability(attacker, rng, rules)

    total = damage
    ability_value = 0
    healed = 0
    defender_frozen: bool | None = None
    defender_cursed: bool | None = None
    defender_poison: int | None = None

    if ability is None:
        pass
    elif isinstance(ability, DoubleStrike):
        ability_value = int(damage * ability.ratio)
        total = damage + ability_value
    elif isinstance(ability, LifeDrain):
        ability_value = int(damage * ability.ratio)
        healed = min(ability_value, attacker.max_health - attacker.health)
    elif isinstance(ability, Freeze):
        defender_frozen = True
    elif isinstance(ability, Poison):
        ability_value = int(attacker.stats.attack * ability.ratio)
        defender_poison = ability_value
    elif isinstance(ability, Curse):
        defender_cursed = True
    else:
        raise TypeError(f"Unhandled offensive ability: {ability!r}")

    reflected = 0
    reflect = _reflect_ability(defender)
    if reflect is not None and defender.health - total > 0 and rng.random() < rules.reflect_chance:
        reflected = int(total * reflect.ratio)

    action = BattleAction(
        tick=tick,
        attacker_id=attacker.combatant_id,
        target_id=defender.combatant_id,
        base_damage=base_damage,
        damage=total,
        critical=critical,
        ability=ability.kind if ability is not None else None,
        ability_value=ability_value,
        healed=healed,
        reflected=reflected,
        element_multiplier=element_multiplier,
        message=_describe_attack(
            attacker, defender, total, critical, element_multiplier, ability, ability_value, reflected
        ),
    )

    attacker_delta = StatusDelta(health_change=healed - reflected)
    defender_delta = StatusDelta(
        health_change=-total,
        frozen=defender_frozen,
        cursed=defender_cursed,
        poison=defender_poison,
    )
    logger.debug(f"tick {tick}: {action.message}")
    return AttackResolution(action, attacker_delta, defender_delta)


def _roll_ability(attacker: Combatant, rng: random.Random, rules: BattleRules) -> SpecialAbility | None:
    offensive = [a for a in attacker.stats.abilities if is_offensive(a)]
    if not offensive or rng.random() >= rules.special_chance:
        return None
    if len(offensive) == 1:
        return offensive[0]
    return rng.choice(offensive)


def _reflect_ability(defender: Combatant) -> DamageReflect | None:
    for ability in defender.stats.abilities:
        if isinstance(ability, DamageReflect):
            return ability
    return None


def _describe_attack(
    attacker: Combatant,
    defender: Combatant,
    damage: int,
    critical: bool,
    element_multiplier: float,
    ability: SpecialAbility | None,
    ability_value: int,
    reflected: int,
) -> str:
    if critical:
        parts = [f"{attacker.name} lands a critical hit on {defender.name} for {damage} damage!"]
    else:
        parts = [f"{attacker.name} attacks {defender.name} for {damage} damage."]

    if element_multiplier > 1.0:
        parts.append("It's super effective!")
    elif element_multiplier < 1.0:
        parts.append("It's not very effective...")

    if isinstance(ability, DoubleStrike):
        parts.append(f"{describe(ability)}! {ability_value} extra damage.")
    elif isinstance(ability, LifeDrain):
        parts.append(f"{describe(ability)}! {attacker.name} recovers {ability_value} health.")
    elif isinstance(ability, Freeze):
        parts.append(f"{describe(ability)}! {defender.name} will skip a turn.")
    elif isinstance(ability, Poison):
        parts.append(f"{describe(ability)}! {defender.name} is poisoned ({ability_value}).")
    elif isinstance(ability, Curse):
        parts.append(f"{describe(ability)}! {defender.name}'s attacks are weakened.")

    if reflected:
        parts.append(f"Lava Armor reflects {reflected} damage to {attacker.name}!")
    return " ".join(parts)
