import logging

import jwt

from ..models.session import AuthSession, AuthUser
from .supabase import SupabaseClient, SupabaseError

logger = logging.getLogger(__name__)

JWT_AUDIENCE = "authenticated"


class SupabaseAuth(SupabaseClient):
    """Identity service: thin wrapper over the GoTrue REST endpoints."""

    extension_name = "polly_identity"

    def __init__(self, *args, jwt_secret: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.jwt_secret = jwt_secret

    def init_app(self, app):
        super().init_app(app)
        self.jwt_secret = app.config.get("SUPABASE_JWT_SECRET")

    @staticmethod
    def _session_from_payload(payload: dict) -> AuthSession:
        user = AuthUser.from_payload(payload["user"]) if payload.get("user") else None
        return AuthSession(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            user_id=user.id if user else "",
            expires_at=payload.get("expires_at"),
            user=user,
        )

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        payload = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return self._session_from_payload(payload)

    def sign_up(self, email: str, password: str, data: dict | None = None):
        """
        Returns ``(user, session)``. ``session`` is None when the project
        requires email confirmation before the first login.
        """
        payload = self._request(
            "POST",
            "/auth/v1/signup",
            json={"email": email, "password": password, "data": data or {}},
        )
        if payload.get("access_token"):
            session = self._session_from_payload(payload)
            return session.user, session
        return AuthUser.from_payload(payload), None

    def sign_out(self, access_token: str) -> None:
        self._request("POST", "/auth/v1/logout", access_token=access_token)

    def get_user(self, access_token: str) -> AuthUser:
        """Server-side check of the access token."""
        payload = self._request("GET", "/auth/v1/user", access_token=access_token)
        return AuthUser.from_payload(payload)

    def refresh_session(self, refresh_token: str) -> AuthSession:
        payload = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return self._session_from_payload(payload)

    def session_from_tokens(self, access_token: str, refresh_token: str | None) -> AuthSession | None:
        """
        Build a session from cookie tokens without a network call. The
        signature is only checked when ``SUPABASE_JWT_SECRET`` is configured;
        expiry is left to the caller.
        """
        try:
            if self.jwt_secret:
                claims = jwt.decode(
                    access_token,
                    self.jwt_secret,
                    algorithms=["HS256"],
                    audience=JWT_AUDIENCE,
                    options={"verify_exp": False},
                )
            else:
                claims = jwt.decode(access_token, options={"verify_signature": False})
        except jwt.InvalidTokenError as e:
            logger.info("Discarding unreadable access token: %s", e)
            return None

        user_id = claims.get("sub")
        if not user_id:
            return None
        return AuthSession(
            access_token=access_token,
            refresh_token=refresh_token,
            user_id=str(user_id),
            expires_at=claims.get("exp"),
        )


__all__ = ["SupabaseAuth", "SupabaseError"]
