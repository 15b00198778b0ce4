from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class AuthUser:
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict) -> "AuthUser":
        return cls(
            id=payload["id"],
            email=payload.get("email"),
            user_metadata=payload.get("user_metadata") or {},
        )


@dataclass
class AuthSession:
    """Access/refresh token pair held by the identity service."""

    access_token: str
    refresh_token: Optional[str]
    user_id: str
    expires_at: Optional[int] = None
    user: Optional[AuthUser] = None

    def is_expired(self, now: float, leeway: int = 0) -> bool:
        if self.expires_at is None:
            return False
        return now + leeway >= self.expires_at
