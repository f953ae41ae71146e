"""
Deterministic cache keys for proxied requests.
"""

from typing import Any, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import urlencode


def _flatten(params: Mapping[str, Any]) -> Iterable[Tuple[str, str]]:
    for name, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            for item in value:
                if item is not None:
                    yield str(name), str(item)
        else:
            yield str(name), str(value)


def make_cache_key(path: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Build ``<path>?<params>`` with parameters in sorted order.

    Identical logical requests map to the same key whatever order their
    query parameters arrived in. ``None`` values are dropped.
    """
    pairs: List[Tuple[str, str]] = sorted(_flatten(params or {}))
    if not pairs:
        return path
    return f"{path}?{urlencode(pairs)}"
