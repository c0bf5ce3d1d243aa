"""Deterministic uniform random source.

A 32-bit xorshift generator (shifts 13, 17, 5) normalised by ``0xFFFFFFFF``.
One stream is threaded through a whole simulation run; it is not safe to share
between concurrent consumers.
"""
from __future__ import annotations

from typing import Callable

import numpy as np

_MASK32 = 0xFFFFFFFF

DEFAULT_SEED = 2463534242
"""Replacement state for a zero seed (zero is an absorbing state of xorshift)."""


class XorShift32:
    """Reproducible uniform stream over unsigned 32-bit state.

    Parameters
    ----------
    seed : int, optional
        Integer seed. Only the low 32 bits are used. ``None`` seeds the stream
        from the platform entropy source, so the stream is not reproducible.

    Examples
    --------
    >>> source = XorShift32(12345)
    >>> u = source()
    >>> 0.0 <= u <= 1.0
    True
    """

    def __init__(self, seed: int | None = None):
        if seed is None:
            seed = int(np.random.default_rng().integers(1, _MASK32, endpoint=True))
        state = int(seed) & _MASK32
        if state == 0:
            state = DEFAULT_SEED
        self.seed = seed
        self._state = state

    @property
    def state(self) -> int:
        """Current internal state."""
        return self._state

    def next_uint32(self) -> int:
        """Advance the generator and return the new 32-bit state."""
        x = self._state
        x ^= (x << 13) & _MASK32
        x ^= x >> 17
        x ^= (x << 5) & _MASK32
        self._state = x
        return x

    def random(self) -> float:
        """Return the next uniform value."""
        return self.next_uint32() / _MASK32

    __call__ = random

    def __repr__(self):
        return f"XorShift32(seed={self.seed!r}, state={self._state})"


def make_source(seed: int | None = None) -> Callable[[], float]:
    """Return a callable producing successive uniform values for ``seed``."""
    return XorShift32(seed)
