"""
Mapping of inbound routes onto upstream endpoints.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from shared.errors import EndpointNotFound

SEASONS_ACTUAL_PATH = "/api/sportsbook/virtual/v1/seasons/list/actual"
EVENTS_BY_ROUND_TEMPLATE = "/api/sportsbook/virtual/v2/events/list/by-round/{round_id}"
DEFAULT_EVENTS_PAGE = "upcoming"


@dataclass(frozen=True)
class ProxyRequest:
    """One logical request to proxy.

    ``endpoint`` is the breaker key (the endpoint template); ``path`` and
    ``params`` describe the concrete upstream call and form the cache key.
    """
    endpoint: str
    path: str
    params: Dict[str, Any] = field(default_factory=dict)


def seasons_actual(params: Optional[Mapping[str, Any]] = None) -> ProxyRequest:
    return ProxyRequest(endpoint=SEASONS_ACTUAL_PATH, path=SEASONS_ACTUAL_PATH, params=dict(params or {}))


def events_by_round(round_id: str, params: Optional[Mapping[str, Any]] = None) -> ProxyRequest:
    """Events for one virtual round; ``page`` defaults to ``upcoming``."""
    query = dict(params or {})
    if not query.get("page"):
        query["page"] = DEFAULT_EVENTS_PAGE
    return ProxyRequest(
        endpoint=EVENTS_BY_ROUND_TEMPLATE,
        path=EVENTS_BY_ROUND_TEMPLATE.format(round_id=round_id),
        params=query,
    )


def generic(path: str, params: Optional[Mapping[str, Any]], allowed_prefix: str) -> ProxyRequest:
    """Proxy an arbitrary upstream path under ``allowed_prefix``.

    Raises:
        EndpointNotFound: path escapes the prefix or contains dot segments
    """
    normalized = "/" + path.lstrip("/")
    segments = normalized.split("/")
    if any(segment in (".", "..") for segment in segments) or not normalized.startswith(allowed_prefix):
        raise EndpointNotFound(normalized)
    return ProxyRequest(endpoint=normalized, path=normalized, params=dict(params or {}))
