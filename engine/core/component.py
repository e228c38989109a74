"""
Component base class for immutable data models.

Components are pure data containers. Battle logic never edits them in
place: a changed value is a new instance, so a snapshot handed to a
renderer can never be mutated behind its back.

Usage:
    class Stats(Component):
        attack: int
        defense: int = 0

    stats = Stats(attack=10)
    stronger = stats.evolve(attack=12)   # validated copy
"""

from __future__ import annotations

from typing import Any, ClassVar, TypeVar

from pydantic import BaseModel, ConfigDict

C = TypeVar("C", bound="Component")


class Component(BaseModel):
    """
    Base class for all data components.

    Pydantic gives us:
    - Automatic validation
    - JSON serialization
    - Type hints
    - Default values

    Instances are frozen. Use evolve() to derive a changed copy.
    """

    model_config = ConfigDict(
        # Allow arbitrary types (ability dataclasses, enums)
        arbitrary_types_allowed=True,
        # Snapshots are immutable
        frozen=True,
        # Catch typos in data files
        extra='forbid',
    )

    # Class variable: component type name (used for serialization)
    _type_name: ClassVar[str] = ""

    @classmethod
    def get_type_name(cls) -> str:
        """Get the component type name for serialization."""
        return cls._type_name or cls.__name__

    def evolve(self: C, **changes: Any) -> C:
        """Return a re-validated copy with the given fields replaced."""
        values = dict(self)
        values.update(changes)
        return type(self).model_validate(values)


# Registry of component types for deserialization
_component_registry: dict[str, type[Component]] = {}


def register_component(cls: type[C]) -> type[C]:
    """
    Decorator to register a component type.

    Usage:
        @register_component
        class MonsterTemplate(Component):
            id: str
    """
    type_name = cls.get_type_name()
    _component_registry[type_name] = cls
    return cls


def get_component_type(type_name: str) -> type[Component] | None:
    """Get component class by type name."""
    return _component_registry.get(type_name)


def get_all_component_types() -> dict[str, type[Component]]:
    """Get all registered component types."""
    return _component_registry.copy()
