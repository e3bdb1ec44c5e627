# app/security/rate_limiting.py
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Storage and enablement come from RATELIMIT_STORAGE_URI / RATELIMIT_ENABLED
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "200 per hour"]
)

AUTH_LIMIT = "10 per minute"
WRITE_LIMIT = "30 per minute"
