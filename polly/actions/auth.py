from flask import current_app

from . import action_result
from ..errors import AuthorizationError, CsrfError, ExternalServiceError, RateLimitError, ValidationError
from ..extensions import get_identity, get_rate_limiter
from ..middleware.session_gate import current_session, set_current_session
from ..security.csrf import issue_token, submitted_token, validate_token
from ..security.rate_limit import LOGIN, REGISTER
from ..security.sanitize import sanitize_input, validate_email
from ..services.supabase import SupabaseError

CSRF_FAILED = "Invalid or expired form submission. Please try again."
LOGIN_THROTTLED = "Too many login attempts. Please try again later."
REGISTER_THROTTLED = "Registration is temporarily unavailable. Please try again later."
INVALID_EMAIL = "Invalid email format"
INVALID_NAME = "Name is required and must be at least 2 characters"
# Identity-service failures never reach the caller verbatim (account enumeration).
LOGIN_FAILED = "Invalid email or password"
REGISTER_FAILED = "Registration failed. Please try again with a different email."


def normalize_email(email) -> str:
    return (email or "").strip().lower()


def _check_csrf(payload) -> None:
    present, token = submitted_token(payload)
    if present and not validate_token(token):
        raise CsrfError(CSRF_FAILED)


def _register_rate_key(email: str) -> str:
    if current_app.config.get("REGISTER_RATE_LIMIT_SCOPE") == "email":
        return f"register_{normalize_email(email)}"
    return "register_global"


@action_result()
def login(payload):
    payload = payload or {}
    _check_csrf(payload)

    raw_email = payload.get("email") or ""
    if not get_rate_limiter().admit_policy(f"login_{normalize_email(raw_email)}", LOGIN):
        raise RateLimitError(LOGIN_THROTTLED)

    email = validate_email(raw_email)
    if not email:
        raise ValidationError(INVALID_EMAIL)

    try:
        # Passwords are passed through untouched; escaping would change them.
        session = get_identity().sign_in_with_password(email, payload.get("password") or "")
    except SupabaseError as e:
        current_app.logger.info("Login failed status=%s", e.status)
        raise ExternalServiceError(LOGIN_FAILED, code="UNAUTHENTICATED") from e

    set_current_session(session)
    issue_token()
    return {}


@action_result()
def register(payload):
    payload = payload or {}
    _check_csrf(payload)

    raw_email = payload.get("email") or ""
    if not get_rate_limiter().admit_policy(_register_rate_key(raw_email), REGISTER):
        raise RateLimitError(REGISTER_THROTTLED)

    name = sanitize_input(payload.get("name"))
    email = validate_email(raw_email)
    if not email:
        raise ValidationError(INVALID_EMAIL)
    if len(name) < 2:
        raise ValidationError(INVALID_NAME)

    try:
        _, session = get_identity().sign_up(email, payload.get("password") or "", {"name": name})
    except SupabaseError as e:
        current_app.logger.info("Registration failed status=%s", e.status)
        raise ExternalServiceError(REGISTER_FAILED) from e

    if session is not None:
        set_current_session(session)
    issue_token()
    return {"confirmation_required": session is None}


@action_result()
def logout():
    session = current_session()
    try:
        if session is not None:
            get_identity().sign_out(session.access_token)
    except SupabaseError as e:
        raise ExternalServiceError(e.message) from e
    finally:
        set_current_session(None)
    return {}


def require_user(message: str):
    """
    The verified user behind the request's session, plus that session.
    Raises ``AuthorizationError`` when nobody is logged in.
    """
    session = current_session()
    if session is None:
        raise AuthorizationError(message, code="UNAUTHENTICATED")
    try:
        user = get_identity().get_user(session.access_token)
    except SupabaseError as e:
        raise ExternalServiceError(e.message, code="UNAUTHENTICATED") from e
    return user, session


def get_current_user():
    session = current_session()
    if session is None:
        return None
    try:
        return get_identity().get_user(session.access_token)
    except SupabaseError as e:
        current_app.logger.info("Could not load current user: %s", e.message)
        return None


def get_session():
    return current_session()
