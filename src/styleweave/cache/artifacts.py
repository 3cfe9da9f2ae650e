"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/artifacts.py.
"""

from __future__ import annotations

from threading import Lock

from .deferred import DeferredEntry, EntryState


def artifact_key(file_id: str, css_extension: str) -> str:
    """Artifact key of the CSS generated for `file_id`."""
    return f"{file_id}.{css_extension}"


def source_file_for_key(key: str, css_extension: str) -> str:
    """Inverse of `artifact_key`; keys without the suffix pass through."""
    suffix = f".{css_extension}"
    if key.endswith(suffix):
        return key[: -len(suffix)]
    return key


class ArtifactCache:
    """
    Keyed collection of deferred CSS entries, at most one per key.

    Mutations hold a lock and never suspend, so a check-then-create can not
    interleave with another transform run.
    """

    def __init__(self) -> None:
        self._entries: dict[str, DeferredEntry] = {}
        self._lock = Lock()

    def get_or_create(self, key: str) -> tuple[DeferredEntry, bool]:
        """
        Return the live entry for `key` and whether it was just created.

        Pending and resolved entries are reused. A rejected entry is
        replaced so the next transform run can produce CSS again.
        """
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None and existing.state is not EntryState.REJECTED:
                return existing, False
            entry = DeferredEntry(key)
            self._entries[key] = entry
            return entry, True

    def get(self, key: str) -> DeferredEntry | None:
        with self._lock:
            return self._entries.get(key)

    def delete(self, key: str) -> DeferredEntry | None:
        """Remove the entry regardless of its state."""
        with self._lock:
            return self._entries.pop(key, None)

    def delete_if(self, key: str, entry: DeferredEntry) -> bool:
        """Remove `key` only while it still maps to `entry`."""
        with self._lock:
            if self._entries.get(key) is not entry:
                return False
            del self._entries[key]
            return True

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
