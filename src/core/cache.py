from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Tuple

from core.logging import get_logger

logger = get_logger("core.cache")


@dataclass(frozen=True)
class CacheEntry:
    key: str
    created_at: float
    fixtures: Tuple[Any, ...]


class ResultCache:
    """
    Cache in memoria dell'ultimo aggregato per chiave (tipicamente la data).

    - scadenza lazy: una entry con now - created_at > ttl e' trattata come miss
    - nessun merge: una entry scaduta viene sostituita interamente
    - get_or_compute: un solo ricalcolo in volo per chiave; le richieste
      concorrenti sulla stessa chiave attendono lo stesso future
    """

    def __init__(self, ttl_seconds: float = 900.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._inflight: Dict[str, asyncio.Future] = {}
        self._hits = 0
        self._misses = 0

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        if self._clock() - entry.created_at > self._ttl:
            self._misses += 1
            return None
        self._hits += 1
        return entry

    def put(self, key: str, fixtures: Iterable[Any]) -> CacheEntry:
        entry = CacheEntry(key=key, created_at=self._clock(), fixtures=tuple(fixtures))
        self._entries[key] = entry
        return entry

    def invalidate(self, key: Optional[str] = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    async def get_or_compute(
        self,
        key: str,
        factory: Callable[[], Awaitable[Iterable[Any]]],
    ) -> CacheEntry:
        entry = self.get(key)
        if entry is not None:
            return entry

        pending = self._inflight.get(key)
        if pending is not None:
            logger.debug("cache_coalesced", extra={"cache_key": key})
            return await asyncio.shield(pending)

        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        self._inflight[key] = future
        try:
            fixtures = await factory()
            entry = self.put(key, fixtures)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            # l'errore va a tutti i waiter, nulla viene memorizzato
            future.set_exception(exc)
            # evita "exception was never retrieved" se nessuno attende
            future.exception()
            raise
        else:
            future.set_result(entry)
            return entry
        finally:
            self._inflight.pop(key, None)

    def stats(self) -> Dict[str, Any]:
        return {
            "entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "in_flight": len(self._inflight),
            "ttl_seconds": self._ttl,
        }


__all__ = ["CacheEntry", "ResultCache"]
