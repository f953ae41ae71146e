"""
Domain logic for the proxy service.

Includes the per-request orchestration pipeline and the table that maps
inbound routes onto upstream endpoints.
"""

from .orchestrator import CacheStatus, ProxyOrchestrator, ProxyOutcome, BLOCKING_MARKERS
from .routes import ProxyRequest, SEASONS_ACTUAL_PATH, EVENTS_BY_ROUND_TEMPLATE

__all__ = [
    "CacheStatus",
    "ProxyOrchestrator",
    "ProxyOutcome",
    "BLOCKING_MARKERS",
    "ProxyRequest",
    "SEASONS_ACTUAL_PATH",
    "EVENTS_BY_ROUND_TEMPLATE",
]
