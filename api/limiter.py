"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in api/main.py (to mount as middleware) and in
api/routes/v1/auth.py (to apply per-route limits with @limiter.limit()).

A single shared instance means every route counts against the same in-memory
store. One instance per module would give each its own counters and the limits
would never trigger.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Password login is the only brute-force target; bcrypt makes each guess slow,
# this caps how many guesses one client gets.
LOGIN_RATE_LIMIT = "10/minute"

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
