"""Maglev consistent-hash lookup table.

Each backend gets a permutation of table slots derived from two hashes of
its name (offset and skip); backends take turns claiming their next
preferred free slot until the table is full. Lookups hash the key into the
table, so a key keeps mapping to the same backend as long as the backend
set is unchanged, and removing a backend only moves the keys it owned.
"""

from __future__ import annotations

import hashlib


def _hash(value: str, salt: bytes) -> int:
    digest = hashlib.blake2b(value.encode("utf-8"), digest_size=8, key=salt).digest()
    return int.from_bytes(digest, "big")


_OFFSET_SALT = b"maglev-offset"
_SKIP_SALT = b"maglev-skip"
_LOOKUP_SALT = b"maglev-lookup"


def is_prime(n: int) -> bool:
    if n < 2:
        return False
    if n % 2 == 0:
        return n == 2
    i = 3
    while i * i <= n:
        if n % i == 0:
            return False
        i += 2
    return True


def next_prime(n: int) -> int:
    """Smallest prime greater than or equal to ``n``."""
    while not is_prime(n):
        n += 1
    return n


class MaglevTable:
    """Lookup table mapping arbitrary keys onto a fixed set of backends."""

    def __init__(self, backends: list[str], size: int) -> None:
        if not backends:
            raise ValueError("maglev table requires at least one backend")
        if not is_prime(size):
            raise ValueError(f"maglev table size must be prime, got {size}")
        if size < len(backends):
            raise ValueError(f"maglev table size {size} is smaller than backend count {len(backends)}")

        self._backends = list(backends)
        self._size = size
        self._table = self._populate()

    @property
    def size(self) -> int:
        return self._size

    def _populate(self) -> list[int]:
        m = self._size
        offsets = [_hash(b, _OFFSET_SALT) % m for b in self._backends]
        # m is prime, so any skip in [1, m-1] visits every slot.
        skips = [_hash(b, _SKIP_SALT) % (m - 1) + 1 for b in self._backends]
        next_index = [0] * len(self._backends)
        table = [-1] * m
        filled = 0

        while True:
            for i in range(len(self._backends)):
                slot = (offsets[i] + next_index[i] * skips[i]) % m
                while table[slot] >= 0:
                    next_index[i] += 1
                    slot = (offsets[i] + next_index[i] * skips[i]) % m
                table[slot] = i
                next_index[i] += 1
                filled += 1
                if filled == m:
                    return table

    def get(self, key: str) -> str:
        return self._backends[self._table[_hash(key, _LOOKUP_SALT) % self._size]]


__all__ = ["MaglevTable", "is_prime", "next_prime"]
