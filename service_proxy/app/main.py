"""
Odds proxy service.
"""

import asyncio
import random
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from fastapi import Path, Request, Response
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.circuit_breaker import CircuitBreaker
from .adapters import UpstreamClient
from .caching import CacheStore, RequestCoalescer
from .domain import routes
from .domain.orchestrator import ProxyOrchestrator, ProxyOutcome
from .identity import IdentityRotator
from .pacing import DelayScheduler, RequestBudget
from .session import CookieJar
from .settings import ProxySettings


class ProxyService(BaseService):
    """Proxy service implementation.

    Owns one instance of every stateful component; nothing lives at module
    level, so tests can build isolated services with fake clocks and sleeps.
    """

    def __init__(self,
                 settings: Optional[ProxySettings] = None,
                 *,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 rng: Optional[random.Random] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        settings = settings if settings is not None else ProxySettings()
        super().__init__("proxy", config=settings)
        self.settings = settings

        self.identity_rotator = IdentityRotator(rng=rng)
        self.cookie_jar = CookieJar()
        self.cache = CacheStore(
            fresh_ttl=settings.fresh_ttl_seconds,
            stale_ttl=settings.stale_ttl_seconds,
            clock=clock,
        )
        self.breaker = CircuitBreaker(
            failure_threshold=settings.breaker_failure_threshold,
            cooldown_seconds=settings.breaker_cooldown_seconds,
            name="upstream",
            clock=clock,
            on_trip=self.metrics.record_breaker_trip,
        )
        self.budget = RequestBudget(
            cap=settings.hourly_request_cap,
            window_seconds=settings.budget_window_seconds,
            clock=clock,
        )
        self.scheduler = DelayScheduler(
            self.budget,
            min_delay=settings.min_delay_seconds,
            max_delay=settings.max_delay_seconds,
            distracted_probability=settings.distracted_probability,
            distracted_range=(settings.distracted_min_seconds, settings.distracted_max_seconds),
            budget_cooldown=settings.budget_cooldown_seconds,
            sleep=sleep,
            rng=rng,
            metrics=self.metrics,
        )
        self.upstream_client = UpstreamClient(
            settings.upstream_base_url,
            self.identity_rotator,
            self.cookie_jar,
            timeout=settings.upstream_timeout_seconds,
            max_body_bytes=settings.upstream_max_body_bytes,
            brand_header=settings.brand_header_value,
            accept_language=settings.accept_language,
            transport=transport,
        )
        self.orchestrator = ProxyOrchestrator(
            self.cache,
            self.breaker,
            self.scheduler,
            self.upstream_client,
            retry_after=settings.retry_after_seconds,
            coalescer=RequestCoalescer() if settings.coalesce_requests else None,
            metrics=self.metrics,
        )

        self._setup_proxy_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.proxy_service = self

    async def _health_details(self) -> Dict[str, Any]:
        return {"requestsThisHour": self.scheduler.requests_this_window}

    def _query_params(self, request: Request) -> Dict[str, Any]:
        """Inbound query parameters; repeated names become lists."""
        params: Dict[str, Any] = {}
        for name in request.query_params.keys():
            values = request.query_params.getlist(name)
            params[name] = values if len(values) > 1 else values[0]
        return params

    def _respond(self, outcome: ProxyOutcome) -> Response:
        headers = {"X-Cache": outcome.status.value}
        if outcome.retry_after is not None:
            headers["Retry-After"] = str(outcome.retry_after)

        if outcome.is_raw:
            return Response(
                content=outcome.raw_body,
                status_code=outcome.http_status,
                media_type=outcome.content_type,
                headers=headers,
            )
        return JSONResponse(content=outcome.payload, status_code=outcome.http_status, headers=headers)

    def _setup_proxy_routes(self):
        """Set up proxied sportsbook routes."""

        @self.app.get("/api/v1/status")
        async def proxy_status():
            """Breaker, cache, session and budget state."""
            return {
                "service": self.service_name,
                "upstream": self.settings.upstream_base_url,
                "breakers": self.breaker.get_all_states(),
                "cache": self.cache.stats(),
                "cookies": {
                    "count": len(self.cookie_jar),
                    "names": sorted(self.cookie_jar.snapshot()),
                },
                "budget": {
                    "requestsThisHour": self.scheduler.requests_this_window,
                    "cap": self.budget.cap,
                    "windowSeconds": self.budget.window_seconds,
                },
            }

        @self.app.get(routes.SEASONS_ACTUAL_PATH)
        async def seasons_actual(request: Request):
            """Currently running virtual seasons."""
            proxy_request = routes.seasons_actual(self._query_params(request))
            return self._respond(await self.orchestrator.handle(proxy_request))

        @self.app.get("/api/sportsbook/virtual/v2/events/list/by-round/{round_id}")
        async def events_by_round(
            request: Request,
            round_id: str = Path(..., pattern=r"^[A-Za-z0-9_-]+$"),
        ):
            """Events of one virtual round (``page`` defaults to ``upcoming``)."""
            proxy_request = routes.events_by_round(round_id, self._query_params(request))
            return self._respond(await self.orchestrator.handle(proxy_request))

        @self.app.get("/proxy/{path:path}")
        async def generic_proxy(path: str, request: Request):
            """Any upstream path under the allowed prefix."""
            proxy_request = routes.generic(
                path,
                self._query_params(request),
                self.settings.upstream_allowed_prefix,
            )
            return self._respond(await self.orchestrator.handle(proxy_request))


def create_app(settings: Optional[ProxySettings] = None, **kwargs):
    """Create FastAPI application."""
    service = ProxyService(settings, **kwargs)
    return service.app


if __name__ == "__main__":
    service = ProxyService()
    service.run()
