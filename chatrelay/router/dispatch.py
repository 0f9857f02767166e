from __future__ import annotations

from typing import Optional, Sequence


def select_endpoint(endpoints: Sequence[str], requested: Optional[str] = None) -> str:
    """
    Pick the backend for one request.

    The requested endpoint wins only when it is an exact member of the
    configured list; anything else falls back to the first (default) entry.
    """
    if not endpoints:
        raise ValueError("endpoint list must not be empty")

    if requested and requested in endpoints:
        return requested
    return endpoints[0]
