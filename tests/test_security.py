import time

from jose import jwt
from starlette.requests import Request

from app.core.config import settings
from app.core.security import SessionIdentityProvider, client_address, resolve_identity

SECRET = "unit-secret"


def _request(headers=None, client=("10.0.0.1", 5000)) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "POST", "path": "/", "headers": raw, "client": client})


def _token(secret=SECRET, **claims):
    body = {"sub": "u-1", "aud": "authenticated", "exp": int(time.time()) + 60}
    body.update(claims)
    return jwt.encode(body, secret, algorithm="HS256")


def _provider(secret=SECRET):
    return SessionIdentityProvider(secret, "authenticated", "sb-access-token")


def test_bearer_token_resolves_user():
    ident = _provider().resolve(_request({"Authorization": f"Bearer {_token()}"}))
    assert ident is not None
    assert ident.kind == "user"
    assert ident.value == "u-1"
    assert ident.authenticated
    assert not ident.premium


def test_cookie_token_resolves_user():
    ident = _provider().resolve(_request({"Cookie": f"sb-access-token={_token()}"}))
    assert ident is not None and ident.value == "u-1"


def test_premium_flag_from_app_metadata():
    token = _token(app_metadata={"premium": True})
    assert _provider().resolve(_request({"Authorization": f"Bearer {token}"})).premium
    token = _token(app_metadata={"plan": "premium"})
    assert _provider().resolve(_request({"Authorization": f"Bearer {token}"})).premium


def test_invalid_tokens_are_anonymous():
    bad_sig = _token(secret="other")
    expired = _token(exp=int(time.time()) - 60)
    wrong_aud = _token(aud="anon")
    for token in (bad_sig, expired, wrong_aud, "garbage"):
        assert _provider().resolve(_request({"Authorization": f"Bearer {token}"})) is None


def test_no_secret_means_no_sessions():
    assert _provider(secret=None).resolve(_request({"Authorization": f"Bearer {_token()}"})) is None


def test_identity_priority():
    provider = _provider()
    user_req = _request({"Authorization": f"Bearer {_token()}"})
    assert resolve_identity(provider, user_req, "guest-9").kind == "user"
    guest = resolve_identity(provider, _request(), "guest-9")
    assert (guest.kind, guest.value) == ("guest", "guest-9")
    by_ip = resolve_identity(provider, _request(), None)
    assert (by_ip.kind, by_ip.value) == ("ip", "10.0.0.1")


def test_forwarded_for_only_when_trusted(monkeypatch):
    req = _request({"X-Forwarded-For": "203.0.113.7, 10.0.0.2"})
    monkeypatch.setattr(settings, "trust_forwarded_for", False)
    assert client_address(req) == "10.0.0.1"
    monkeypatch.setattr(settings, "trust_forwarded_for", True)
    assert client_address(req) == "203.0.113.7"
