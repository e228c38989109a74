"""
Engine error taxonomy.

- ConfigurationError: static data or settings are missing/malformed.
  Fatal to whatever was being set up, never to an already-running loop.
- OperationCancelled: raised at a suspension point whose token was
  cancelled. Not a failure; callers discard the in-flight work.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for engine errors."""


class ConfigurationError(EngineError, ValueError):
    """Static data or configuration is missing or malformed."""


class OperationCancelled(EngineError):
    """A cancellable wait was aborted through its token."""
