"""
Adapters package for the proxy service.

Contains the HTTP client wrapper for the upstream sportsbook host. The
adapter encapsulates:

- Base URL, timeouts and body size bounds
- Outbound identity and cookie headers
- Mapping transport errors onto shared errors

It does not classify responses; that is the orchestrator's job.
"""

from .upstream_client import UpstreamClient, UpstreamResponse

__all__ = [
    "UpstreamClient",
    "UpstreamResponse",
]
