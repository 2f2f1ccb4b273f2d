# Per-user conversation context
#
# +---------------------+
# |    Rate limiter     |   (fixed window, one record per owner key)
# |---------------------|
# | Request count       |
# | Window reset time   |
# +---------------------+
#
# +---------------------+
# |   Session store     |   (single slot per owner key, TTL bound)
# |---------------------|
# | Pending intent      |
# | Vessel identifier   |
# | Fetched vessel data |
# +---------------------+
#
#    \    /
#     \  /
#      \/
# +------------------------------+
# |        Dialogue router       |   (new query or follow-up reply)
# +------------------------------+

from .owner_key import normalize_owner_key, mask_owner_key
from .memory.session_store import SessionStore
from .state.rate_limiter import RateLimiter
from .sweeper import SessionSweeper

__all__ = [
    "normalize_owner_key",
    "mask_owner_key",
    "SessionStore",
    "RateLimiter",
    "SessionSweeper",
]
