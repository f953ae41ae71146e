"""
Upstream session continuity.

A single cookie jar is shared by every outbound call so the proxy looks
like one browser session to the upstream.
"""

from .cookie_jar import CookieJar

__all__ = ["CookieJar"]
