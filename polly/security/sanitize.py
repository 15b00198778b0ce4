import re

_HTML_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#039;",
})

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def sanitize_input(value) -> str:
    """
    Escape HTML special characters in user supplied text.

    Not idempotent: an already escaped "&amp;" becomes "&amp;amp;".
    """
    if not value:
        return ""
    return str(value).translate(_HTML_ESCAPES)


def validate_email(value) -> str:
    """Return the sanitized email when it looks like local@domain.tld, else ""."""
    if not value or not isinstance(value, str):
        return ""
    if not EMAIL_RE.fullmatch(value):
        return ""
    return sanitize_input(value)
