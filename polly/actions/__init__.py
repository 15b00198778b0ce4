from copy import deepcopy
from functools import wraps

from flask import current_app

from ..errors import ActionError


def action_result(**defaults):
    """
    Turn an action that raises ``ActionError`` into one that always returns a
    result mapping: ``{"error": None, ...}`` on success, or
    ``{"error": message, "code": code, **defaults}`` on failure.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                result = fn(*args, **kwargs) or {}
            except ActionError as e:
                current_app.logger.info("%s rejected: %s (%s)", fn.__name__, e.message, e.code)
                return {**deepcopy(defaults), "error": e.message, "code": e.code}
            return {**deepcopy(defaults), **result, "error": None}
        return wrapper
    return decorator
