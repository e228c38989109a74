"""
Cancellation tokens for cooperative async loops.

A token is handed to every suspension point. Cancelling it wakes any
registered waiter so the loop can discard its in-flight work instead of
relying on a captured "aborted" flag.

Usage:
    token = CancellationToken()
    child = token.child()        # cancelled together with its parent

    token.add_callback(lambda: print("stopped"))
    token.cancel()
    child.raise_if_cancelled()   # raises OperationCancelled
"""

from __future__ import annotations

import logging
from typing import Callable

from engine.core.errors import OperationCancelled

logger = logging.getLogger(__name__)


CancelCallback = Callable[[], None]


class CancellationToken:
    """
    One-shot cancellation signal.

    Features:
    - Idempotent cancel()
    - Callbacks fired once on cancellation (immediately if already cancelled)
    - Child tokens that follow their parent
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._cancelled = False
        self._callbacks: list[CancelCallback] = []
        self._parent: CancellationToken | None = None

    @property
    def cancelled(self) -> bool:
        """Check if the token has been cancelled."""
        return self._cancelled

    def cancel(self) -> None:
        """Cancel the token and fire its callbacks."""
        if self._cancelled:
            return
        self._cancelled = True
        logger.debug(f"Token cancelled: {self.name or id(self)}")

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception(f"Cancellation callback failed for {self.name or id(self)}")

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelled if the token has been cancelled."""
        if self._cancelled:
            raise OperationCancelled(self.name or "cancelled")

    def add_callback(self, callback: CancelCallback) -> None:
        """
        Register a callback for cancellation.

        Runs immediately when the token is already cancelled.
        """
        if self._cancelled:
            callback()
            return
        self._callbacks.append(callback)

    def remove_callback(self, callback: CancelCallback) -> None:
        """Unregister a callback (no-op if unknown)."""
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def child(self, name: str = "") -> CancellationToken:
        """Create a token that is cancelled when this one is."""
        child = CancellationToken(name)
        child._parent = self
        self.add_callback(child.cancel)
        return child

    def detach(self) -> None:
        """Stop following the parent; call once a child's work is done."""
        if self._parent is not None:
            self._parent.remove_callback(self.cancel)
            self._parent = None

    @property
    def callback_count(self) -> int:
        """Callbacks still waiting for cancellation."""
        return len(self._callbacks)

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"CancellationToken({self.name!r}, {state})"
