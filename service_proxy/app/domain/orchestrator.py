"""
Per-request orchestration pipeline for the proxy.

For every logical request the orchestrator decides, in order:

1. serve from the fresh cache (``HIT``);
2. reject without an outbound call when the endpoint's breaker is open
   (``BLOCKED``);
3. wait for the request budget and a jittered pacing slot;
4. issue exactly one outbound call and classify its outcome;
5. update cache and breaker state, answering with the live payload
   (``MISS``), the stale fallback (``STALE``) or a 503 (``UNAVAILABLE``).

Nothing is retried within a request. Every state write that follows the
outbound call happens synchronously after it returns, so a cancelled
request never leaves a half-applied outcome behind.
"""

import json
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence, TYPE_CHECKING

from shared.circuit_breaker import CircuitBreaker
from shared.errors import (
    BlockingPageDetected,
    BreakerOpen,
    EmptyResponse,
    ErrorResponse,
    NetworkFailure,
    ParseFailure,
    ProxyError,
    UpstreamHttpError,
)
from shared.logging import get_logger, set_endpoint_context
from ..adapters import UpstreamClient, UpstreamResponse
from ..caching import CacheStore, RequestCoalescer, make_cache_key
from ..pacing import DelayScheduler
from .routes import ProxyRequest

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


# Case-sensitive substrings that mark an HTML bot-check page.
BLOCKING_MARKERS = (
    "captcha",
    "cf-browser-verification",
    "Access Denied",
    "Just a moment...",
    "Attention Required",
    "Request blocked",
)


def _reject_constant(name: str) -> float:
    raise ValueError(f"Non-finite number not allowed: {name}")


def _finite_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {literal}")
    return value


class CacheStatus(str, Enum):
    """Terminal state of one proxied request."""
    HIT = "HIT"
    MISS = "MISS"
    STALE = "STALE"
    BLOCKED = "BLOCKED"
    UNAVAILABLE = "UNAVAILABLE"


@dataclass
class ProxyOutcome:
    """What the HTTP layer should send back.

    ``payload`` holds JSON-serializable content. ``raw_body`` is set instead
    when the upstream answered successfully with something that is not JSON.
    """
    status: CacheStatus
    http_status: int
    payload: Any = None
    raw_body: Optional[bytes] = None
    content_type: Optional[str] = None
    retry_after: Optional[int] = None

    @property
    def is_raw(self) -> bool:
        return self.raw_body is not None


class ProxyOrchestrator:
    """Composes cache, breaker, pacing and upstream client per request."""

    def __init__(self,
                 cache: CacheStore,
                 breaker: CircuitBreaker,
                 scheduler: DelayScheduler,
                 upstream: UpstreamClient,
                 *,
                 retry_after: int = 30,
                 blocking_markers: Sequence[str] = BLOCKING_MARKERS,
                 coalescer: Optional[RequestCoalescer] = None,
                 metrics: Optional["MetricsCollector"] = None):
        self.cache = cache
        self.breaker = breaker
        self.scheduler = scheduler
        self.upstream = upstream
        self.retry_after = retry_after
        self.blocking_markers = tuple(blocking_markers)
        self.coalescer = coalescer
        self.metrics = metrics
        self.logger = get_logger("proxy.orchestrator")

    async def handle(self, request: ProxyRequest) -> ProxyOutcome:
        """Run the pipeline for one inbound request."""
        set_endpoint_context(request.endpoint)
        key = make_cache_key(request.path, request.params)

        fresh = self.cache.get_fresh(key)
        if fresh is not None:
            return self._finish(request, key, ProxyOutcome(CacheStatus.HIT, 200, payload=fresh))

        if self.breaker.is_open(request.endpoint):
            rejection = BreakerOpen(request.endpoint)
            self.logger.warning("Circuit open, rejecting without upstream call", cache_key=key)
            return self._finish(request, key, ProxyOutcome(
                CacheStatus.BLOCKED,
                rejection.status_code,
                payload=rejection.to_response().to_content(),
            ))

        if self.coalescer is not None:
            outcome = await self.coalescer.run(key, lambda: self._fetch_and_classify(request, key))
        else:
            outcome = await self._fetch_and_classify(request, key)
        return self._finish(request, key, outcome)

    async def _fetch_and_classify(self, request: ProxyRequest, key: str) -> ProxyOutcome:
        await self.scheduler.wait_for_budget()
        await self.scheduler.await_slot()

        started = time.perf_counter()
        try:
            response = await self.upstream.fetch(request.path, request.params)
        except NetworkFailure as exc:
            return self._on_failure(request, key, exc, "network_failure", started)
        finally:
            self.scheduler.tick()

        return self._classify(request, key, response, started)

    def _classify(self, request: ProxyRequest, key: str,
                  response: UpstreamResponse, started: float) -> ProxyOutcome:
        if response.status_code >= 400:
            exc = UpstreamHttpError(
                response.status_code,
                details={"body": response.text[:200]},
            )
            return self._on_failure(request, key, exc, "http_error", started)

        marker = self._find_blocking_marker(response)
        if marker is not None:
            self.cache.invalidate(key)
            return self._on_failure(request, key, BlockingPageDetected(marker), "blocking_page", started)

        if not response.body.strip():
            return self._on_failure(request, key, EmptyResponse(), "empty", started)

        try:
            payload = self._parse(response)
        except ParseFailure as exc:
            # Upstream is healthy, the body just is not JSON: pass it through uncached.
            self.breaker.record_success(request.endpoint)
            self._record_upstream(request, "unparseable", started)
            self.logger.warning(
                "Upstream body not JSON, returning raw",
                code=exc.code,
                cache_key=key,
                content_type=response.content_type
            )
            return ProxyOutcome(
                CacheStatus.MISS,
                response.status_code,
                raw_body=response.body,
                content_type=response.content_type or "text/plain",
            )

        if payload is None:
            return self._on_failure(request, key, EmptyResponse(), "empty", started)

        self.breaker.record_success(request.endpoint)
        self.cache.put(key, payload)
        self._record_upstream(request, "success", started)
        return ProxyOutcome(CacheStatus.MISS, 200, payload=payload)

    def _find_blocking_marker(self, response: UpstreamResponse) -> Optional[str]:
        if "text/html" not in response.content_type.lower():
            return None
        text = response.text
        for marker in self.blocking_markers:
            if marker in text:
                return marker
        return None

    @staticmethod
    def _parse(response: UpstreamResponse) -> Any:
        try:
            return json.loads(response.body, parse_constant=_reject_constant, parse_float=_finite_float)
        except ValueError as exc:
            raise ParseFailure(details={"error": str(exc)}) from exc

    def _on_failure(self, request: ProxyRequest, key: str, exc: ProxyError,
                    result: str, started: float) -> ProxyOutcome:
        """Count the failure and answer with the stale value or a 503."""
        self.breaker.record_failure(request.endpoint)
        self._record_upstream(request, result, started)
        self.logger.warning(
            "Upstream call failed",
            code=exc.code,
            message=exc.message,
            cache_key=key
        )

        stale = self.cache.get_stale(key)
        if stale is not None:
            return ProxyOutcome(CacheStatus.STALE, 200, payload=stale)

        body = ErrorResponse(error="Temporarily unavailable", retry_after=self.retry_after)
        return ProxyOutcome(
            CacheStatus.UNAVAILABLE,
            503,
            payload=body.to_content(),
            retry_after=self.retry_after,
        )

    def _record_upstream(self, request: ProxyRequest, result: str, started: float) -> None:
        if self.metrics is not None:
            self.metrics.record_upstream_call(request.endpoint, result, time.perf_counter() - started)

    def _finish(self, request: ProxyRequest, key: str, outcome: ProxyOutcome) -> ProxyOutcome:
        if self.metrics is not None:
            self.metrics.record_cache_outcome(request.endpoint, outcome.status.value)
        self.logger.info(
            "Proxy request served",
            cache_key=key,
            outcome=outcome.status.value,
            status_code=outcome.http_status
        )
        return outcome
