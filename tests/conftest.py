import time

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.core.rate_limit import limiter
from app.core.security import SessionIdentityProvider
from app.main import create_app
from app.services.captcha_service import CaptchaResult
from app.services.reading_repository import ReadingRepository

SESSION_SECRET = "test-session-secret"
GENERATED_TEXT = "Las cartas indican un periodo de crecimiento."

# per-IP request limits are exercised by slowapi itself, not by these tests
limiter.enabled = False


class FakeGenerator:
    def __init__(self, text: str = GENERATED_TEXT):
        self.text = text
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.text


class FakeCaptcha:
    def __init__(self, result: CaptchaResult | None = None):
        self.result = result or CaptchaResult(success=True, score=0.9)
        self.calls: list[tuple[str, str | None]] = []

    def verify(self, token, remote_ip=None):
        self.calls.append((token, remote_ip))
        return self.result


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def captcha():
    return FakeCaptcha()


@pytest.fixture
def repo():
    return ReadingRepository()


@pytest.fixture
def app(generator, captcha, repo):
    application = create_app()
    application.state.generator = generator
    application.state.captcha_verifier = captcha
    application.state.reading_repo = repo
    application.state.identity_provider = SessionIdentityProvider(
        SESSION_SECRET, "authenticated", "sb-access-token"
    )
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_token():
    def _make(sub: str = "user-1", premium: bool = False, secret: str = SESSION_SECRET, **extra) -> str:
        claims = {
            "sub": sub,
            "aud": "authenticated",
            "exp": int(time.time()) + 3600,
            "app_metadata": {"premium": premium},
        }
        claims.update(extra)
        return jwt.encode(claims, secret, algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(make_token):
    def _headers(sub: str = "user-1", premium: bool = False) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(sub=sub, premium=premium)}"}

    return _headers
