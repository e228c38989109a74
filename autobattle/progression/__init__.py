"""
Progression module.

Exports:
- Objective, ObjectiveType, ObjectiveTracker: run objectives
"""

from autobattle.progression.objectives import Objective, ObjectiveTracker, ObjectiveType

__all__ = [
    "Objective",
    "ObjectiveTracker",
    "ObjectiveType",
]
