from dataclasses import dataclass, field
from typing import Iterable

from flask import current_app, g


@dataclass
class CookieMutation:
    """A cookie write (or deletion when ``value`` is None) to apply to a response."""

    name: str
    value: str | None
    options: dict = field(default_factory=dict)

    def apply(self, response) -> None:
        if self.value is None:
            response.delete_cookie(
                self.name,
                path=self.options.get("path", "/"),
                secure=self.options.get("secure", False),
                httponly=self.options.get("httponly", False),
                samesite=self.options.get("samesite"),
            )
        else:
            response.set_cookie(self.name, self.value, **self.options)


def apply_cookie_mutations(response, mutations: Iterable[CookieMutation]):
    for mutation in mutations:
        mutation.apply(response)
    return response


def queue_cookie_mutations(mutations: Iterable[CookieMutation]) -> None:
    """Stage mutations for the after_request hook of the session gate."""
    pending = g.setdefault("cookie_mutations", [])
    pending.extend(mutations)


def session_cookie_options() -> dict:
    cfg = current_app.config
    return {
        "httponly": True,
        "secure": bool(cfg.get("SESSION_COOKIE_SECURE")),
        "samesite": "Lax",
        "path": "/",
        "max_age": cfg["SESSION_COOKIE_MAX_AGE"],
    }


def session_cookie_mutations(session) -> list[CookieMutation]:
    """Cookies carrying ``session``'s tokens, or clearing them for None."""
    cfg = current_app.config
    options = session_cookie_options()
    if session is None:
        options.pop("max_age")
        return [
            CookieMutation(cfg["SESSION_ACCESS_COOKIE"], None, options),
            CookieMutation(cfg["SESSION_REFRESH_COOKIE"], None, options),
        ]

    mutations = [CookieMutation(cfg["SESSION_ACCESS_COOKIE"], session.access_token, options)]
    if session.refresh_token:
        mutations.append(CookieMutation(cfg["SESSION_REFRESH_COOKIE"], session.refresh_token, options))
    return mutations
