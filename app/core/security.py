import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from jose import JWTError, jwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from app.core.config import settings

logger = logging.getLogger(__name__)

IDENTITY_USER = "user"
IDENTITY_GUEST = "guest"
IDENTITY_IP = "ip"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request, call_next):
        response: Response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("X-XSS-Protection", "0")
        return response


@dataclass(frozen=True)
class Identity:
    """Who a reading belongs to: a signed-in user, a guest browser or an address."""

    kind: str
    value: str
    premium: bool = False

    @property
    def authenticated(self) -> bool:
        return self.kind == IDENTITY_USER


def client_address(request: Request) -> Optional[str]:
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    return request.client.host if request.client else None


def _is_premium(claims: dict) -> bool:
    meta = claims.get("app_metadata") or {}
    if not isinstance(meta, dict):
        return False
    return bool(meta.get("premium")) or meta.get("plan") == "premium"


class SessionIdentityProvider:
    """Resolves the signed-in user from an HS256 session token.

    The token is read from ``Authorization: Bearer`` first, then from the
    session cookie. Anything that does not verify is treated as anonymous.
    """

    def __init__(self, secret: str | None, audience: str | None, cookie_name: str):
        self._secret = secret
        self._audience = audience
        self._cookie_name = cookie_name

    def _token_from(self, request: Request) -> Optional[str]:
        auth = request.headers.get("authorization", "")
        scheme, _, token = auth.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
        return request.cookies.get(self._cookie_name) or None

    def resolve(self, request: Request) -> Optional[Identity]:
        token = self._token_from(request)
        if not token or not self._secret:
            return None
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=["HS256"],
                audience=self._audience,
                options={"verify_aud": bool(self._audience)},
            )
        except JWTError as err:
            logger.info("Ignoring invalid session token: %s", err)
            return None
        sub = claims.get("sub")
        if not sub:
            return None
        return Identity(kind=IDENTITY_USER, value=str(sub), premium=_is_premium(claims))


def resolve_identity(
    provider: SessionIdentityProvider, request: Request, guest_id: Optional[str]
) -> Identity:
    """Session user, then client guest id, then network address."""
    user = provider.resolve(request)
    if user is not None:
        return user
    if guest_id:
        return Identity(kind=IDENTITY_GUEST, value=guest_id)
    return Identity(kind=IDENTITY_IP, value=client_address(request) or "unknown")
