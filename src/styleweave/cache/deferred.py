"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/deferred.py.
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum


class EntryState(str, Enum):
    """Settlement state of one deferred CSS artifact."""

    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class EntryAlreadySettledError(RuntimeError):
    """Raised when a deferred entry is settled a second time."""


class DeferredEntry:
    """
    Single-assignment cell for one not-yet-ready CSS artifact.

    One writer (the transform run that created the entry) settles it with
    `settle` or `fail`; any number of readers suspend on `wait`. Waiting
    tasks can be cancelled freely, the entry itself is never cancelled.
    """

    __slots__ = ("key", "created_at", "_state", "_value", "_error", "_settled")

    def __init__(self, key: str) -> None:
        self.key = key
        self.created_at = time.time()
        self._state = EntryState.PENDING
        self._value: str | None = None
        self._error: BaseException | None = None
        self._settled = asyncio.Event()

    @property
    def state(self) -> EntryState:
        return self._state

    @property
    def done(self) -> bool:
        return self._state is not EntryState.PENDING

    @property
    def value(self) -> str:
        """Resolved value; raises when pending or rejected."""
        if self._state is EntryState.PENDING:
            raise RuntimeError(f"Entry '{self.key}' is still pending")
        if self._error is not None:
            raise self._error
        if self._value is None:
            raise RuntimeError(f"Entry '{self.key}' settled without a value")
        return self._value

    @property
    def error(self) -> BaseException | None:
        return self._error

    def settle(self, value: str) -> None:
        """Transition pending -> resolved."""
        self._ensure_pending()
        self._value = value
        self._state = EntryState.RESOLVED
        self._settled.set()

    def fail(self, error: BaseException) -> None:
        """Transition pending -> rejected."""
        self._ensure_pending()
        self._error = error
        self._state = EntryState.REJECTED
        self._settled.set()

    async def wait(self) -> str:
        """Suspend the calling task until settled, then return or raise."""
        await self._settled.wait()
        return self.value

    def _ensure_pending(self) -> None:
        if self._state is not EntryState.PENDING:
            raise EntryAlreadySettledError(
                f"Entry '{self.key}' already {self._state.value}"
            )

    def __repr__(self) -> str:
        return f"DeferredEntry(key={self.key!r}, state={self._state.value})"
