"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: engine/classnames.py.
"""

from __future__ import annotations

import random
import secrets
import string

_ALPHABET = string.ascii_lowercase + string.digits


class ClassNameGenerator:
    """
    Generate `name-xxxxxx` class names.

    Names are stable for one `(seed, file, name)` triple, so re-running a
    transform yields the same identifiers. Without a seed a random one is
    drawn once per generator.
    """

    def __init__(self, seed: str | None = None, *, length: int = 6) -> None:
        if length <= 0:
            raise ValueError("length must be positive")
        self.seed = seed if seed is not None else secrets.token_hex(8)
        self._length = length

    def generate(self, file_id: str, name: str) -> str:
        rng = random.Random(f"{self.seed}\x00{file_id}\x00{name}")
        suffix = "".join(rng.choice(_ALPHABET) for _ in range(self._length))
        return f"{name}-{suffix}"
