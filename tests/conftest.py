import pytest

from polly import create_app
from polly.config import TestingConfig
from polly.security.rate_limit import RateLimiter

from fakes import FakeClock, FakeIdentity, FakePollStore

ACCESS_COOKIE = TestingConfig.SESSION_ACCESS_COOKIE
REFRESH_COOKIE = TestingConfig.SESSION_REFRESH_COOKIE


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def store():
    return FakePollStore()


@pytest.fixture
def limiter(clock):
    return RateLimiter(clock=clock)


@pytest.fixture
def app(identity, store, limiter):
    app = create_app(TestingConfig)
    app.extensions["polly_identity"] = identity
    app.extensions["polly_data"] = store
    app.extensions["polly_rate_limiter"] = limiter
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def alice(identity):
    return identity.add_user("alice@example.com", "Alice-pass1!", "Alice")


@pytest.fixture
def bob(identity):
    return identity.add_user("bob@example.com", "Bob-pass1!", "Bob")


@pytest.fixture
def login_as(identity):
    """Put a live session for ``user`` on ``client``; returns the session."""
    def _login(client, user):
        session = identity.issue_session(user)
        client.set_cookie(ACCESS_COOKIE, session.access_token)
        client.set_cookie(REFRESH_COOKIE, session.refresh_token)
        return session
    return _login


@pytest.fixture
def request_ctx(app, identity):
    """
    Request context for calling actions directly. ``user`` gets a fresh
    session cookie; ``cookies`` adds raw cookies (e.g. a stored CSRF token).
    """
    def _ctx(path="/", user=None, cookies=None, **kwargs):
        jar = dict(cookies or {})
        if user is not None:
            jar[ACCESS_COOKIE] = identity.issue_session(user).access_token
        headers = dict(kwargs.pop("headers", {}))
        if jar:
            headers["Cookie"] = "; ".join(f"{name}={value}" for name, value in jar.items())
        return app.test_request_context(path, headers=headers, **kwargs)
    return _ctx
