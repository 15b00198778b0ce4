from .session import AuthSession, AuthUser  # noqa: F401
from .poll import Poll, Vote  # noqa: F401

__all__ = [
    "AuthSession",
    "AuthUser",
    "Poll",
    "Vote",
]
