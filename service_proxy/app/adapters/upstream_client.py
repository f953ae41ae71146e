"""
Upstream sportsbook client for the proxy.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import httpx

from shared.logging import get_logger
from shared.errors import NetworkFailure
from ..identity import IdentityRotator
from ..session import CookieJar


@dataclass
class UpstreamResponse:
    """A fully read upstream response."""
    status_code: int
    headers: httpx.Headers
    body: bytes

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class UpstreamClient:
    """Issues disguised GET requests against the upstream host."""

    def __init__(self,
                 base_url: str,
                 identity_rotator: IdentityRotator,
                 cookie_jar: CookieJar,
                 timeout: float = 15.0,
                 max_body_bytes: int = 5 * 1024 * 1024,
                 brand_header: Optional[str] = "betpawa-zambia",
                 accept_language: str = "en-US,en;q=0.9",
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip('/')
        self.identity_rotator = identity_rotator
        self.cookie_jar = cookie_jar
        self.timeout = timeout
        self.max_body_bytes = max_body_bytes
        self.brand_header = brand_header
        self.accept_language = accept_language
        self.logger = get_logger("proxy.upstream_client")
        self._transport = transport

    def build_headers(self) -> Dict[str, str]:
        """Outbound headers for one call: rotated identity plus the jar's cookies."""
        identity = self.identity_rotator.next_identity()
        headers = {
            "User-Agent": identity.user_agent,
            "Accept": "application/json, text/plain, */*",
            "Accept-Language": self.accept_language,
            "Referer": f"{self.base_url}/",
            "Origin": self.base_url,
        }
        if self.brand_header:
            headers["X-Pawa-Brand"] = self.brand_header
        if identity.viewport:
            headers["Viewport-Width"] = identity.viewport
        self.cookie_jar.apply(headers)
        return headers

    async def fetch(self, path: str, params: Optional[Mapping[str, Any]] = None) -> UpstreamResponse:
        """GET ``path`` from the upstream host.

        Raises:
            NetworkFailure: connection errors, timeouts, oversized bodies
        """
        try:
            return await asyncio.wait_for(self._request(path, params), timeout=self.timeout)
        except asyncio.TimeoutError:
            self.logger.warning("Upstream request timed out", path=path, timeout=self.timeout)
            raise NetworkFailure(
                f"Upstream request timed out after {self.timeout}s",
                timed_out=True,
                details={"path": path}
            )
        except httpx.TimeoutException as exc:
            self.logger.warning("Upstream request timed out", path=path, error=str(exc))
            raise NetworkFailure(
                f"Upstream request timed out: {exc}",
                timed_out=True,
                details={"path": path}
            )
        except httpx.HTTPError as exc:
            self.logger.error("Upstream transport error", path=path, error=str(exc))
            raise NetworkFailure(
                f"Upstream transport error: {exc}",
                details={"path": path}
            )

    async def _request(self, path: str, params: Optional[Mapping[str, Any]]) -> UpstreamResponse:
        headers = self.build_headers()
        query = {name: value for name, value in (params or {}).items() if value is not None}

        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            async with client.stream("GET", path, params=query, headers=headers) as response:
                self.cookie_jar.absorb(response.headers)

                chunks = []
                received = 0
                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if received > self.max_body_bytes:
                        raise NetworkFailure(
                            "Upstream response body too large",
                            details={"path": path, "limit": self.max_body_bytes}
                        )
                    chunks.append(chunk)

        self.logger.debug(
            "Upstream response received",
            path=path,
            status_code=response.status_code,
            bytes=received
        )
        return UpstreamResponse(
            status_code=response.status_code,
            headers=response.headers,
            body=b"".join(chunks),
        )
