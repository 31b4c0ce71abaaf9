import threading
import time
from collections import OrderedDict
from typing import Callable, Protocol

DAY_SECONDS = 24 * 60 * 60


class CounterStore(Protocol):
    def get(self, key: str) -> int: ...

    def incr(self, key: str) -> int: ...


class MemoryCounterStore:
    """Process-local counters with TTL expiry and a bound on tracked keys.

    Least recently updated keys are evicted first once ``max_keys`` is reached, so sustained
    traffic from many clients cannot grow memory without limit.
    """

    def __init__(self, ttl_seconds: float = 2 * DAY_SECONDS, max_keys: int = 10000, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_keys = max_keys
        self._clock = clock
        self._counts: OrderedDict[str, tuple[int, float]] = OrderedDict()
        self._lock = threading.Lock()

    def _purge(self, now: float) -> None:
        # Stops at the first live entry; expired entries behind it are dropped on lookup.
        while self._counts:
            key, (_, expires_at) = next(iter(self._counts.items()))
            if expires_at > now and len(self._counts) <= self.max_keys:
                break
            del self._counts[key]

    def _live(self, key: str, now: float) -> tuple[int, float] | None:
        entry = self._counts.get(key)
        if entry is not None and entry[1] <= now:
            del self._counts[key]
            return None
        return entry

    def get(self, key: str) -> int:
        with self._lock:
            now = self._clock()
            self._purge(now)
            entry = self._live(key, now)
            return entry[0] if entry else 0

    def incr(self, key: str) -> int:
        with self._lock:
            now = self._clock()
            count, expires_at = self._live(key, now) or (0, now + self.ttl_seconds)
            self._counts.pop(key, None)
            self._counts[key] = (count + 1, expires_at)
            self._purge(now)
            return count + 1

    def __len__(self) -> int:
        return len(self._counts)


class RateLimiter:
    """Per-client daily quota backed by a :class:`CounterStore`. ``limit <= 0`` disables it."""

    def __init__(self, store: CounterStore, limit: int) -> None:
        self.store = store
        self.limit = limit

    @property
    def enabled(self) -> bool:
        return self.limit > 0

    @staticmethod
    def key(client_id: str, day_key: str) -> str:
        return f"{client_id}:{day_key}"

    def allowed(self, client_id: str, day_key: str) -> bool:
        if not self.enabled:
            return True
        return self.store.get(self.key(client_id, day_key)) < self.limit

    def record(self, client_id: str, day_key: str) -> int:
        if not self.enabled:
            return 0
        return self.store.incr(self.key(client_id, day_key))
