"""
Environment-driven settings for the odds proxy.
"""

from typing import Optional

from pydantic import Field

from shared.config import ServiceConfig


class ProxySettings(ServiceConfig):
    """Proxy configuration; every field can be set through ``PROXY_<NAME>``."""

    port: int = Field(default=3000)

    # Upstream
    upstream_base_url: str = Field(default="https://www.betpawa.zm")
    upstream_timeout_seconds: float = Field(default=15.0)
    upstream_max_body_bytes: int = Field(default=5 * 1024 * 1024)
    upstream_allowed_prefix: str = Field(default="/api/sportsbook/")
    brand_header_value: str = Field(default="betpawa-zambia")
    accept_language: str = Field(default="en-US,en;q=0.9")

    # Cache
    fresh_ttl_seconds: float = Field(default=30.0)
    stale_ttl_seconds: float = Field(default=300.0)
    coalesce_requests: bool = Field(default=False)

    # Circuit breaker
    breaker_failure_threshold: int = Field(default=3)
    breaker_cooldown_seconds: float = Field(default=120.0)

    # Pacing
    min_delay_seconds: float = Field(default=2.0)
    max_delay_seconds: float = Field(default=5.0)
    distracted_probability: float = Field(default=0.15)
    distracted_min_seconds: float = Field(default=5.0)
    distracted_max_seconds: float = Field(default=8.0)

    # Request budget
    hourly_request_cap: int = Field(default=25)
    budget_window_seconds: float = Field(default=3600.0)
    budget_cooldown_seconds: float = Field(default=60.0)

    # Hint returned with 503 responses that have no stale fallback
    retry_after_seconds: int = Field(default=30)

    def __init__(self, service_name: str = "proxy", port: Optional[int] = None, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)
