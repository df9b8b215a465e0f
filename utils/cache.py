from threading import Lock
from time import monotonic
from typing import Any, Callable


class TTLCache:
    """
    Small in-memory cache for upstream search payloads:
      - TTLCache(default_ttl=300, enabled=True, max_entries=512)
      - get_or_set(namespace, key, max_age_seconds, producer_callable)
      - get(key) / set(key, value, ttl)
    Expired entries are swept on every write; past max_entries the oldest
    entry is evicted.
    """
    def __init__(
        self,
        default_ttl: float = 300.0,
        enabled: bool = True,
        max_entries: int = 512,
    ):
        self._enabled = enabled
        self._default_ttl = default_ttl
        self._max_entries = max(1, max_entries)
        self._store: dict[str, tuple[Any, float]] = {}
        self._lock = Lock()

    def _now(self) -> float:
        return monotonic()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def get(self, full_key: str) -> Any | None:
        with self._lock:
            rec = self._store.get(full_key)
            if not rec:
                return None
            val, exp = rec
            if exp < self._now():
                self._store.pop(full_key, None)
                return None
            return val

    def _sweep(self, now: float) -> None:
        expired = [k for k, (_, exp) in self._store.items() if exp < now]
        for k in expired:
            del self._store[k]

    def set(self, full_key: str, value: Any, ttl: float | None = None):
        ttl = self._default_ttl if ttl is None else ttl
        now = self._now()
        with self._lock:
            self._sweep(now)
            if ttl <= 0:
                return
            # re-insert so dict order stays oldest-first
            self._store.pop(full_key, None)
            while len(self._store) >= self._max_entries:
                del self._store[next(iter(self._store))]
            self._store[full_key] = (value, now + ttl)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def get_or_set(
        self, ns: str, key: str, max_age: float | None, producer: Callable[[], Any]
    ):
        full_key = f"{ns}:{key}"
        if not self._enabled:
            return producer()
        val = self.get(full_key)
        if val is not None:
            return val
        val = producer()
        self.set(full_key, val, max_age)
        return val


# shared cache for upstream responses
cache = TTLCache()
