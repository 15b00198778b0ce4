from flask import current_app

from .security.rate_limit import RateLimiter
from .services.data import SupabaseData
from .services.identity import SupabaseAuth

identity = SupabaseAuth()
data = SupabaseData()
rate_limiter = RateLimiter()


# Accessors resolve through app.extensions so tests can swap in fakes.
def get_identity():
    return current_app.extensions["polly_identity"]


def get_data():
    return current_app.extensions["polly_data"]


def get_rate_limiter() -> RateLimiter:
    return current_app.extensions["polly_rate_limiter"]
