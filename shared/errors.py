"""
Shared error handling for the odds proxy.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Caller-facing error body.

    Every failure surfaced to an inbound caller is JSON with an ``error``
    field; ``retryAfter`` and ``details`` are only present when set.
    """

    model_config = ConfigDict(populate_by_name=True)

    error: str
    retry_after: Optional[int] = Field(default=None, alias="retryAfter")
    details: Optional[str] = None

    def to_content(self) -> Dict[str, Any]:
        """Serialize for a JSONResponse."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ProxyError(Exception):
    """Base exception for the proxy service."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=self.message)


class NetworkFailure(ProxyError):
    """Connection failure, timeout or unreadable upstream response."""

    status_code = 503

    def __init__(self, message: str = "Upstream unreachable", timed_out: bool = False,
                 details: Optional[Dict[str, Any]] = None):
        self.timed_out = timed_out
        super().__init__("NETWORK_FAILURE", message, details)


class UpstreamHttpError(ProxyError):
    """Upstream answered with a status code of 400 or above."""

    status_code = 503

    def __init__(self, upstream_status: int, message: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.upstream_status = upstream_status
        super().__init__(
            "UPSTREAM_HTTP_ERROR",
            message or f"Upstream returned status {upstream_status}",
            details,
        )


class BlockingPageDetected(ProxyError):
    """Upstream served an HTML bot-check page instead of data."""

    status_code = 503

    def __init__(self, marker: str, details: Optional[Dict[str, Any]] = None):
        self.marker = marker
        super().__init__("BLOCKING_PAGE_DETECTED", f"Blocking marker found: {marker}", details)


class ParseFailure(ProxyError):
    """Successful upstream response whose body is not JSON."""

    status_code = 502

    def __init__(self, message: str = "Upstream body is not valid JSON",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("PARSE_FAILURE", message, details)


class BudgetExceeded(ProxyError):
    """Hourly outbound budget used up; callers wait instead of failing."""

    status_code = 429

    def __init__(self, used: int, cap: int):
        self.used = used
        self.cap = cap
        super().__init__(
            "BUDGET_EXCEEDED",
            "Hourly request budget exceeded",
            {"used": used, "cap": cap},
        )


class BreakerOpen(ProxyError):
    """Circuit breaker rejected the call before any outbound attempt."""

    status_code = 503

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        super().__init__(
            "BREAKER_OPEN",
            "Service temporarily unavailable",
            {"endpoint": endpoint},
        )


class EndpointNotFound(ProxyError):
    """Inbound path does not map to a proxied upstream endpoint."""

    status_code = 404

    def __init__(self, path: str):
        super().__init__("ENDPOINT_NOT_FOUND", "Unknown endpoint", {"path": path})


class EmptyResponse(ProxyError):
    """Successful upstream status with an empty or ``null`` body."""

    status_code = 503

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__("EMPTY_RESPONSE", "Empty response", details)
