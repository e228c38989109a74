"""
Core engine module.

Exports:
- Component, register_component: immutable data component base
- EventBus, Event, BattleEvent, RunEvent: event system
- EngineConfig: timing configuration
- CancellationToken: cooperative cancellation
- EngineError, ConfigurationError, OperationCancelled: error taxonomy
"""

from engine.core.errors import EngineError, ConfigurationError, OperationCancelled
from engine.core.component import Component, register_component, get_component_type
from engine.core.events import EventBus, Event, BattleEvent, RunEvent
from engine.core.config import EngineConfig, SPEED_MULTIPLIERS
from engine.core.cancellation import CancellationToken

__all__ = [
    # Errors
    "EngineError",
    "ConfigurationError",
    "OperationCancelled",
    # Data
    "Component",
    "register_component",
    "get_component_type",
    # Events
    "EventBus",
    "Event",
    "BattleEvent",
    "RunEvent",
    # Config
    "EngineConfig",
    "SPEED_MULTIPLIERS",
    # Async
    "CancellationToken",
]
