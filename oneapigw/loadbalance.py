"""Load-balancing strategies for choosing among equivalent services."""

from __future__ import annotations

import random
import threading
from datetime import datetime
from typing import Callable

FIRST = "first"
RANDOM = "random"
RAND = "rand"
ROUND_ROBIN = "round_robin"
RR = "rr"
HASH = "hash"

_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193
_UINT32_MASK = 0xFFFFFFFF


def _fnv1a_32(data: bytes) -> int:
    value = _FNV_OFFSET
    for byte in data:
        value ^= byte
        value = (value * _FNV_PRIME) & _UINT32_MASK
    return value


def _format_timestamp(moment: datetime) -> str:
    """Format to millisecond precision, dropping trailing zeros of the fraction."""
    base = moment.strftime("%Y-%m-%d %H:%M:%S")
    fraction = f"{moment.microsecond // 1000:03d}".rstrip("0")
    return f"{base}.{fraction}" if fraction else base


class LoadBalancer:
    """Picks an index among ``length`` candidates according to a strategy."""

    def __init__(
        self,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._rng = rng or random.Random()
        self._clock = clock or datetime.now
        self._rng_lock = threading.Lock()
        self._counter_lock = threading.Lock()
        self._counters: dict[str, int] = {}

    def index(self, strategy: str, key: str, length: int) -> int:
        """Return an index in ``range(length)`` chosen by ``strategy``."""
        name = strategy.lower()
        if name == FIRST:
            return 0
        if length <= 0:
            raise ValueError(f"cannot choose among {length} candidates")
        if name in (ROUND_ROBIN, RR):
            return self._round_robin(key, length)
        if name == HASH:
            return self._hash(key, length)
        return self._random(length)

    def _random(self, length: int) -> int:
        with self._rng_lock:
            return self._rng.randrange(length)

    def _round_robin(self, key: str, length: int) -> int:
        with self._counter_lock:
            counter = (self._counters.get(key, 0) + 1) & _UINT32_MASK
            self._counters[key] = counter
        return counter % length

    def _hash(self, key: str, length: int) -> int:
        stamped = key + _format_timestamp(self._clock())
        return _fnv1a_32(stamped.encode("utf-8")) % length


_DEFAULT_BALANCER = LoadBalancer()


def get_lb_index(strategy: str, key: str, length: int) -> int:
    """Choose an index using the shared default balancer."""
    return _DEFAULT_BALANCER.index(strategy, key, length)