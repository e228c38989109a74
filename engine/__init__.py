"""
Engine infrastructure.

Reusable pieces the battle simulation is built on: immutable data
components, a typed event bus, configuration, cancellation tokens and
the JSON database loader.
"""

__version__ = "0.1.0"

from engine.core import (
    Component,
    register_component,
    EventBus,
    Event,
    BattleEvent,
    RunEvent,
    EngineConfig,
    CancellationToken,
    EngineError,
    ConfigurationError,
    OperationCancelled,
)
from engine.resources import Database

__all__ = [
    "Component",
    "register_component",
    "EventBus",
    "Event",
    "BattleEvent",
    "RunEvent",
    "EngineConfig",
    "CancellationToken",
    "EngineError",
    "ConfigurationError",
    "OperationCancelled",
    "Database",
]
