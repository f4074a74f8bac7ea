"""Rate limiter instance for SlowAPI.

Shared so main (app.state.limiter) and route modules use the same instance.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

WRITE_ENDPOINT_LIMIT = "120/minute"
ADMIN_ENDPOINT_LIMIT = "30/minute"

limit_writes = limiter.limit(WRITE_ENDPOINT_LIMIT)
limit_admin = limiter.limit(ADMIN_ENDPOINT_LIMIT)
