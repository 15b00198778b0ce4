from flask import Blueprint
from flasgger import swag_from

from ...actions import auth as auth_actions
from ...errors import status_for
from ...schemas.auth import (
    LoginSchema,
    PasswordCheckSchema,
    PasswordStrengthSchema,
    RegisterSchema,
    UserSchema,
)
from ...security.passwords import is_valid_password, password_strength
from ...utils.validation import request_payload, validate_or_abort

auth_bp = Blueprint("auth", __name__)

login_schema = LoginSchema()
register_schema = RegisterSchema()
password_check_schema = PasswordCheckSchema()
password_strength_schema = PasswordStrengthSchema()
user_schema = UserSchema()

_FORM_PARAMS = [
    {"in": "formData", "name": "email", "type": "string", "required": True},
    {"in": "formData", "name": "password", "type": "string", "required": True},
    {"in": "formData", "name": "csrf_token", "type": "string", "required": False},
]


@auth_bp.post("/login")
@swag_from({
    "tags": ["Auth"],
    "summary": "Log in with email and password",
    "description": "Validates the CSRF token (when sent), applies the login rate limit "
                   "and starts a session. Failures never reveal which part was wrong.",
    "consumes": ["application/x-www-form-urlencoded", "application/json"],
    "parameters": _FORM_PARAMS,
    "responses": {
        200: {"description": "Logged in, session cookies set"},
        400: {"description": "Invalid email format"},
        401: {"description": "Invalid email or password"},
        403: {"description": "CSRF token rejected"},
        429: {"description": "Too many login attempts"},
    },
})
def login():
    payload = validate_or_abort(login_schema, request_payload())
    result = auth_actions.login(payload)
    return result, status_for(result)


@auth_bp.post("/register")
@swag_from({
    "tags": ["Auth"],
    "summary": "Register a user",
    "consumes": ["application/x-www-form-urlencoded", "application/json"],
    "parameters": _FORM_PARAMS + [
        {"in": "formData", "name": "name", "type": "string", "required": True},
    ],
    "responses": {
        201: {"description": "User registered"},
        400: {"description": "Validation error"},
        403: {"description": "CSRF token rejected"},
        429: {"description": "Registration temporarily unavailable"},
        502: {"description": "Registration failed"},
    },
})
def register():
    payload = validate_or_abort(register_schema, request_payload())
    result = auth_actions.register(payload)
    return result, status_for(result, success_status=201)


@auth_bp.post("/logout")
@swag_from({
    "tags": ["Auth"],
    "summary": "Log out and clear the session cookies",
    "responses": {200: {"description": "Logged out"}, 502: {"description": "Identity service error"}},
})
def logout():
    result = auth_actions.logout()
    return result, status_for(result)


@auth_bp.get("/me")
@swag_from({
    "tags": ["Auth"],
    "summary": "Current user",
    "responses": {200: {"description": "User profile"}, 401: {"description": "Not authenticated"}},
})
def me():
    user = auth_actions.get_current_user()
    if user is None:
        return {"user": None, "error": "Not authenticated"}, 401
    return {"user": user_schema.dump(user), "error": None}, 200


@auth_bp.post("/password-strength")
@swag_from({
    "tags": ["Auth"],
    "summary": "Password policy feedback for the registration form",
    "description": "At least 8 characters with upper case, lower case, digit and special "
                   "character. Advisory only; registration does not re-check it.",
    "responses": {200: {"description": "Validity and weak/medium/strong label"}},
})
def check_password():
    payload = validate_or_abort(password_check_schema, request_payload())
    password = payload["password"]
    return password_strength_schema.dump({
        "valid": is_valid_password(password),
        "strength": password_strength(password),
    }), 200
