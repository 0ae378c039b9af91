from __future__ import annotations

import asyncio
import random
import time
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

from core.config import Settings, get_settings
from core.logging import get_logger
from .exceptions import MalformedPayload, ProviderRejected, ProviderUnreachable, RateLimitError

log = get_logger(__name__)

_RETRIABLE_STATUS = (500, 502, 503, 504)


async def _sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


class AsyncHttpClient:
    """
    Client HTTP asincrono condiviso da tutti i provider upstream (httpx).
    Gestisce rate limit (429), errori transitori (5xx, rete, timeout) con retry
    e backoff esponenziale, e limita le chiamate concorrenti con un semaforo.

    Gli errori finali sono tradotti nella tassonomia dei provider:
      - ProviderUnreachable: rete/timeout persistenti
      - RateLimitError / ProviderRejected: status non 2xx
      - MalformedPayload: corpo non JSON (solo get_json)

    Telemetria per chiamata da request_with_stats / get_json_with_stats:
      attempts, retries, latency_ms, last_status
    get_stats() riporta l'ultima chiamata conclusa (con richieste concorrenti
    puo' riferirsi a un'altra chiamata) piu' i totali del client.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        settings: Optional[Settings] = None,
        semaphore: Optional[asyncio.Semaphore] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._timeout = self._settings.http_timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self._timeout,
            headers={"User-Agent": self._settings.http_user_agent},
            follow_redirects=True,
        )
        self._semaphore = semaphore or asyncio.Semaphore(self._settings.max_concurrent_requests)
        self._max_attempts = self._settings.http_max_attempts
        self._base = self._settings.http_backoff_base
        self._factor = self._settings.http_backoff_factor
        self._jitter = self._settings.http_backoff_jitter

        self._last_attempts: int = 0
        self._last_retries: int = 0
        self._last_latency_ms: float = 0.0
        self._last_status: Optional[int] = None
        self._total_requests: int = 0
        self._total_failures: int = 0

    def _compute_delay(self, attempt: int) -> float:
        # attempt parte da 1
        delay = self._base * (self._factor ** (attempt - 1))
        if self._jitter > 0:
            delay *= random.uniform(1 - self._jitter, 1 + self._jitter)
        return delay

    def _record(self, attempt: int, start: float, status: Optional[int]) -> Dict[str, Any]:
        self._last_attempts = attempt
        self._last_retries = attempt - 1
        self._last_latency_ms = (time.perf_counter() - start) * 1000
        self._last_status = status
        return {
            "attempts": attempt,
            "retries": attempt - 1,
            "latency_ms": round(self._last_latency_ms, 2),
            "last_status": status,
        }

    async def request_with_stats(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        max_attempts: Optional[int] = None,
    ) -> Tuple[httpx.Response, Dict[str, Any]]:
        """Come request(), ma ritorna anche la telemetria di questa singola chiamata."""
        attempts_allowed = max(1, max_attempts or self._max_attempts)
        log.debug("GET %s params=%s", url, params)
        start = time.perf_counter()
        self._total_requests += 1
        status: Optional[int] = None

        for attempt in range(1, attempts_allowed + 1):
            try:
                async with self._semaphore:
                    resp = await self._client.get(
                        url,
                        params=params,
                        headers=headers,
                        timeout=self._timeout,
                    )
            except httpx.RequestError as e:
                reason = f"network:{e.__class__.__name__}"
                if attempt == attempts_allowed:
                    self._record(attempt, start, None)
                    self._total_failures += 1
                    raise ProviderUnreachable(
                        f"Errore di rete persistente dopo {attempt} tentativi su {url}: {e!r}"
                    ) from e
                wait = self._compute_delay(attempt)
                log.warning("retry attempt=%s wait=%.2fs reason=%s", attempt, wait, reason)
                await _sleep(wait)
                continue

            status = resp.status_code

            if 200 <= status < 300:
                return resp, self._record(attempt, start, status)

            if status == 429:
                if attempt == attempts_allowed:
                    self._record(attempt, start, status)
                    self._total_failures += 1
                    raise RateLimitError(f"Rate limit dopo {attempt} tentativi (429) su {url}", status)
                wait = self._compute_delay(attempt)
                retry_after = resp.headers.get("Retry-After")
                if retry_after:
                    try:
                        wait = max(wait, float(retry_after))
                    except ValueError:
                        pass
                log.warning("retry attempt=%s wait=%.2fs reason=rate_limit", attempt, wait)
                await _sleep(wait)
                continue

            if status in _RETRIABLE_STATUS and attempt < attempts_allowed:
                wait = self._compute_delay(attempt)
                log.warning("retry attempt=%s wait=%.2fs reason=http_%s", attempt, wait, status)
                await _sleep(wait)
                continue

            # 4xx non recuperabili o 5xx persistente
            self._record(attempt, start, status)
            self._total_failures += 1
            raise ProviderRejected(
                f"Richiesta fallita status={status} dopo {attempt} tentativi su {url}: {resp.text[:200]!r}",
                status,
            )

        # Non dovrebbe mai arrivare qui
        self._record(attempts_allowed, start, status)
        raise ProviderUnreachable(f"Fallimento imprevisto url={url} last_status={status}")

    async def request(self, url: str, **kwargs: Any) -> httpx.Response:
        resp, _ = await self.request_with_stats(url, **kwargs)
        return resp

    async def get_json_with_stats(self, url: str, **kwargs: Any) -> Tuple[Any, Dict[str, Any]]:
        resp, stats = await self.request_with_stats(url, **kwargs)
        try:
            return resp.json(), stats
        except ValueError as e:
            raise MalformedPayload(f"Risposta non JSON status={resp.status_code} url={url}") from e

    async def get_json(self, url: str, **kwargs: Any) -> Any:
        payload, _ = await self.get_json_with_stats(url, **kwargs)
        return payload

    async def get_text(self, url: str, **kwargs: Any) -> str:
        resp = await self.request(url, **kwargs)
        return resp.text

    def get_stats(self) -> Dict[str, Any]:
        return {
            "attempts": self._last_attempts,
            "retries": self._last_retries,
            "latency_ms": round(self._last_latency_ms, 2),
            "last_status": self._last_status,
            "total_requests": self._total_requests,
            "total_failures": self._total_failures,
        }

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["AsyncHttpClient"]
