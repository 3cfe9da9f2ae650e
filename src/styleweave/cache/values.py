"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/values.py.
"""

from __future__ import annotations

from threading import Lock
from typing import Any


class ValueCache:
    """Per-file record of the last statically evaluated export values."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        self._lock = Lock()

    def record(self, file_id: str) -> dict[str, Any]:
        """Live export record for `file_id`, created on first access."""
        with self._lock:
            return self._records.setdefault(file_id, {})

    def peek(self, file_id: str) -> dict[str, Any] | None:
        with self._lock:
            row = self._records.get(file_id)
            return dict(row) if row is not None else None

    def has_record(self, file_id: str) -> bool:
        """True once `file_id` was loaded as a dependency, even if nothing evaluated."""
        with self._lock:
            return file_id in self._records

    def clear(self, file_id: str) -> dict[str, Any]:
        """Drop the record for `file_id` and return what it held."""
        with self._lock:
            return self._records.pop(file_id, None) or {}

    def files(self) -> list[str]:
        with self._lock:
            return sorted(self._records)
