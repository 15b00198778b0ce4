import logging

import requests

logger = logging.getLogger(__name__)


class SupabaseError(Exception):
    def __init__(self, message: str, status: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


class NotConfiguredError(SupabaseError):
    pass


def _error_message(response) -> tuple[str, str | None]:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason or "Request failed", None
    if not isinstance(body, dict):
        return str(body), None
    message = (
        body.get("msg")
        or body.get("message")
        or body.get("error_description")
        or body.get("error")
        or "Request failed"
    )
    return str(message), body.get("code") or body.get("error_code")


class SupabaseClient:
    """
    Shared HTTP plumbing for the Supabase REST APIs. Configured from the app
    (``SUPABASE_URL``, ``SUPABASE_ANON_KEY``) and registered under
    ``app.extensions[extension_name]``.
    """

    extension_name = "polly_supabase"

    def __init__(self, url: str | None = None, anon_key: str | None = None,
                 timeout: float | None = None, http=None):
        self.url = (url or "").rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout
        self.http = http or requests.Session()

    def init_app(self, app):
        self.url = (app.config.get("SUPABASE_URL") or "").rstrip("/")
        self.anon_key = app.config.get("SUPABASE_ANON_KEY")
        self.timeout = app.config.get("SUPABASE_TIMEOUT_SECONDS")
        app.extensions[self.extension_name] = self

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.anon_key)

    def _headers(self, access_token: str | None = None, extra: dict | None = None) -> dict:
        headers = {
            "apikey": self.anon_key or "",
            "Authorization": f"Bearer {access_token or self.anon_key}",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(self, method: str, path: str, *, access_token: str | None = None,
                 params=None, json=None, headers: dict | None = None):
        if not self.is_configured:
            raise NotConfiguredError("Supabase is not configured")

        try:
            response = self.http.request(
                method,
                f"{self.url}{path}",
                params=params,
                json=json,
                headers=self._headers(access_token, headers),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.exception("Supabase request failed: %s %s", method, path)
            raise SupabaseError(str(e)) from e

        if response.status_code >= 400:
            message, code = _error_message(response)
            raise SupabaseError(message, status=response.status_code, code=code)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()
