"""
Outbound pacing package.

Holds the delay scheduler that spaces upstream calls with human-like
jitter and the hourly request budget that applies backpressure once the
cap is reached.
"""

from .delay_scheduler import DelayScheduler, RequestBudget

__all__ = [
    "DelayScheduler",
    "RequestBudget",
]
