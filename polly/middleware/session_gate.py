"""
Request gate: refreshes the caller's session on every request and sends
anonymous callers on protected paths to the login page.
"""
import re
import time
from dataclasses import dataclass
from urllib.parse import urlencode

from flask import current_app, g, redirect, request

from ..extensions import get_identity
from ..models.session import AuthSession
from ..services.supabase import SupabaseError
from ..utils.cookies import (
    CookieMutation,
    apply_cookie_mutations,
    queue_cookie_mutations,
    session_cookie_mutations,
)

# Refresh slightly before the access token actually expires.
EXPIRY_MARGIN_SECONDS = 10

# Paths the gate never touches: assets, docs and the auth pages themselves.
GATE_EXCLUDED_RE = re.compile(
    r"^/(?:static/|favicon\.ico|login|register|auth|api/public|apidocs|apispec|flasgger_static)"
)
# Gated (the session is refreshed) but open to anonymous callers.
ANONYMOUS_PATHS = frozenset({"/", "/api/csrf", "/health"})
IMAGE_PATH_RE = re.compile(r"\.(?:svg|png|jpg|jpeg|gif|webp)$")


@dataclass
class SessionState:
    session: AuthSession | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    @property
    def user_id(self) -> str | None:
        return self.session.user_id if self.session else None


def is_gate_excluded(path: str) -> bool:
    return bool(GATE_EXCLUDED_RE.match(path) or IMAGE_PATH_RE.search(path))


def allows_anonymous(path: str) -> bool:
    return (path.rstrip("/") or "/") in ANONYMOUS_PATHS


def is_public_path(path: str) -> bool:
    """True when ``path`` can be served without a login."""
    return is_gate_excluded(path) or allows_anonymous(path)


def login_redirect_url(path: str) -> str:
    login_path = current_app.config.get("LOGIN_PATH", "/login")
    return f"{login_path}?{urlencode({'redirectTo': path})}"


def refresh_session(cookies, identity=None, now: float | None = None) -> tuple[SessionState, list[CookieMutation]]:
    """
    Resolve the session carried by ``cookies``.

    Returns the session state plus the cookie writes the caller must put on
    its response: new tokens after a refresh, or deletions once the stored
    tokens stop working. Nothing is written here.
    """
    identity = identity or get_identity()
    now = time.time() if now is None else now
    cfg = current_app.config

    access_token = cookies.get(cfg["SESSION_ACCESS_COOKIE"])
    refresh_token = cookies.get(cfg["SESSION_REFRESH_COOKIE"])
    if not access_token and not refresh_token:
        return SessionState(), []

    session = identity.session_from_tokens(access_token, refresh_token) if access_token else None
    if session and not session.is_expired(now, leeway=EXPIRY_MARGIN_SECONDS):
        return SessionState(session), []

    if refresh_token:
        try:
            refreshed = identity.refresh_session(refresh_token)
        except SupabaseError as e:
            current_app.logger.info("Session refresh failed: %s", e.message)
        else:
            return SessionState(refreshed), session_cookie_mutations(refreshed)

    return SessionState(), session_cookie_mutations(None)


def current_session() -> AuthSession | None:
    """The caller's session, resolved once per request."""
    if "auth_session" not in g:
        identity = get_identity()
        if not identity.is_configured:
            g.auth_session = None
        else:
            state, mutations = refresh_session(request.cookies, identity)
            queue_cookie_mutations(mutations)
            g.auth_session = state.session
    return g.auth_session


def set_current_session(session: AuthSession | None) -> None:
    """Replace the request's session (login/logout) and stage its cookies."""
    g.auth_session = session
    queue_cookie_mutations(session_cookie_mutations(session))


def init_session_gate(app):
    @app.before_request
    def _gate_request():
        if not get_identity().is_configured:
            # Fail open: without configuration nothing can be checked.
            app.logger.error("Supabase environment variables are missing")
            return None

        if is_gate_excluded(request.path):
            return None

        # Resolving the session refreshes it and stages any rotated cookies.
        if current_session() is None and not allows_anonymous(request.path):
            app.logger.info("Redirecting anonymous request path=%s", request.path)
            return redirect(login_redirect_url(request.path))
        return None

    @app.after_request
    def _write_session_cookies(response):
        return apply_cookie_mutations(response, g.pop("cookie_mutations", []))
