"""
api/limiter.py -- slowapi rate limiter construction.

create_app() builds one Limiter per app, stores it on app.state.limiter for
SlowAPIMiddleware, and hands the same instance to api/routes/auth.py so the
login route's @limiter.limit() counts against that app's store. Two apps in
one process never share counters or the enabled switch.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

LOGIN_RATE_LIMIT = "10/minute"


def create_limiter(enabled: bool = True) -> Limiter:
    """In-memory limiter keyed on client IP."""
    return Limiter(key_func=get_remote_address, storage_uri="memory://", enabled=enabled)
