import re

MIN_LENGTH = 8
SPECIAL_CHARS = '!@#$%^&*(),.?":{}|<>'

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"\d")
_SPECIAL = re.compile("[" + re.escape(SPECIAL_CHARS) + "]")

STRENGTH_WEAK = "weak"
STRENGTH_MEDIUM = "medium"
STRENGTH_STRONG = "strong"


def is_valid_password(password: str | None) -> bool:
    password = password or ""
    return (
        len(password) >= MIN_LENGTH
        and bool(_UPPER.search(password))
        and bool(_LOWER.search(password))
        and bool(_DIGIT.search(password))
        and bool(_SPECIAL.search(password))
    )


def password_strength(password: str | None) -> str:
    """
    Feedback label for a registration form. Only ``is_valid_password``
    decides whether a password is acceptable.
    """
    password = password or ""
    if not password:
        return ""
    if is_valid_password(password):
        return STRENGTH_STRONG

    has_letter = bool(_UPPER.search(password) or _LOWER.search(password))
    if len(password) >= 6 and has_letter and _DIGIT.search(password):
        return STRENGTH_MEDIUM
    return STRENGTH_WEAK
