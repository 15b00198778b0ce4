"""
Anti-forgery tokens stored in an httpOnly cookie.

``issue_token`` is the only place a token is created; pages that embed a
token get it through ``csrf_token()`` which reuses the stored value, so every
token handed to a client is also the one the server will compare against.
"""
import hmac
import logging
import secrets

from flask import current_app, g, request

from ..utils.cookies import CookieMutation, queue_cookie_mutations

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
HEADER_NAME = "X-CSRF-Token"
FORM_FIELD = "csrf_token"


def _cookie_name() -> str:
    return current_app.config.get("CSRF_COOKIE_NAME", "csrf_token")


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def issue_token() -> str:
    """Create a fresh token and store it for this client, replacing any prior one."""
    token = generate_token()
    cfg = current_app.config
    queue_cookie_mutations([
        CookieMutation(
            _cookie_name(),
            token,
            {
                "httponly": True,
                "secure": bool(cfg.get("CSRF_COOKIE_SECURE")),
                "samesite": "Strict",
                "path": "/",
                "max_age": cfg.get("CSRF_TTL_SECONDS", 3600),
            },
        )
    ])
    # Later reads in this request must see the rotated value.
    g.csrf_issued_token = token
    return token


def peek_token() -> str | None:
    issued = g.get("csrf_issued_token")
    if issued:
        return issued
    return request.cookies.get(_cookie_name())


def validate_token(submitted) -> bool:
    stored = peek_token()
    if not stored or not submitted or not isinstance(submitted, str):
        return False
    # compare_digest never short-circuits on the first differing byte.
    valid = hmac.compare_digest(submitted.encode("utf-8"), stored.encode("utf-8"))
    if not valid:
        logger.warning("CSRF token mismatch path=%s", request.path)
    return valid


def csrf_token() -> str:
    """Token to render into a page; issues one only when none is stored."""
    return peek_token() or issue_token()


def submitted_token(payload) -> tuple[bool, str | None]:
    """
    Returns ``(present, token)`` for a submission. A token counts as present
    when the form field exists (even empty) or the header was sent.
    """
    if payload is not None and FORM_FIELD in payload:
        value = payload.get(FORM_FIELD)
        if isinstance(value, list):
            value = value[0] if value else ""
        return True, value
    if HEADER_NAME in request.headers:
        return True, request.headers.get(HEADER_NAME)
    return False, None


def init_csrf(app):
    app.add_template_global(csrf_token, "csrf_token")
