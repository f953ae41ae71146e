"""
Outbound identity rotation.

Each upstream call presents a randomly chosen browser identity so that
consecutive calls do not share a trivially fingerprintable header set.
"""

from .rotator import Identity, IdentityRotator, USER_AGENTS, VIEWPORTS

__all__ = [
    "Identity",
    "IdentityRotator",
    "USER_AGENTS",
    "VIEWPORTS",
]
