"""
Process-wide cookie jar for outbound calls.
"""

from typing import Any, Dict, MutableMapping

import httpx

from shared.logging import get_logger


class CookieJar:
    """Latest value per cookie name, shared across all endpoints.

    Writes are last-write-wins with no isolation between concurrent calls;
    entries never expire and are only replaced by a newer ``Set-Cookie``.
    """

    def __init__(self):
        self._cookies: Dict[str, str] = {}
        self.logger = get_logger("proxy.cookie_jar")

    def apply(self, headers: MutableMapping[str, str]) -> MutableMapping[str, str]:
        """Set the ``Cookie`` header from the jar; a no-op while empty."""
        if self._cookies:
            headers["Cookie"] = "; ".join(f"{name}={value}" for name, value in self._cookies.items())
        return headers

    def absorb(self, headers: Any) -> int:
        """Store the leading ``name=value`` of every ``Set-Cookie`` header.

        Args:
            headers: Response headers; anything ``httpx.Headers`` accepts

        Returns:
            Number of cookies stored or overwritten
        """
        stored = 0
        for raw in httpx.Headers(headers).get_list("set-cookie"):
            pair = raw.split(";", 1)[0].strip()
            name, sep, value = pair.partition("=")
            name = name.strip()
            if not sep or not name:
                self.logger.debug("Skipping malformed Set-Cookie", header=raw)
                continue
            self._cookies[name] = value.strip()
            stored += 1
        return stored

    def snapshot(self) -> Dict[str, str]:
        return dict(self._cookies)

    def __len__(self) -> int:
        return len(self._cookies)
