"""
User-agent and viewport rotation for outbound calls.
"""

import random
from dataclasses import dataclass
from typing import Optional, Sequence

USER_AGENTS = (
    # Desktop
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0",
    # Mobile
    "Mozilla/5.0 (Linux; Android 13; SM-A536B) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.6099.144 Mobile Safari/537.36",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_2 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Mobile/15E148 Safari/604.1",
)

VIEWPORTS = (
    "1920x1080",
    "1366x768",
    "1440x900",
    "1536x864",
    "1280x720",
    "412x915",
    "390x844",
)


@dataclass(frozen=True)
class Identity:
    """Client-identifying attributes for a single outbound call."""
    user_agent: str
    viewport: Optional[str] = None


class IdentityRotator:
    """Picks a user agent and a viewport independently, uniformly at random.

    Holds no per-call state, so one instance is shared by concurrent calls.
    """

    def __init__(self,
                 user_agents: Sequence[str] = USER_AGENTS,
                 viewports: Sequence[str] = VIEWPORTS,
                 rng: Optional[random.Random] = None):
        if not user_agents:
            raise ValueError("user_agents must not be empty")
        self.user_agents = tuple(user_agents)
        self.viewports = tuple(viewports)
        self._rng = rng or random.Random()

    def next_identity(self) -> Identity:
        viewport = self._rng.choice(self.viewports) if self.viewports else None
        return Identity(user_agent=self._rng.choice(self.user_agents), viewport=viewport)
