"""Clock: the production time source injected into services.

Invariants:
    - Always returns a timezone-aware UTC datetime
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
