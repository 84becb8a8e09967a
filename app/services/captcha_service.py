from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass
class CaptchaResult:
    success: bool
    score: float = 0.0
    error_codes: list[str] = field(default_factory=list)


class RecaptchaVerifier:
    """reCAPTCHA v3 token check against Google's siteverify endpoint.

    Never raises: transport problems and unexpected payloads come back as an
    unsuccessful result so the caller can reject the request.
    """

    def __init__(
        self,
        secret: str | None,
        verify_url: str,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._secret = secret
        self._verify_url = verify_url
        self._timeout = timeout
        self._transport = transport

    def verify(self, token: str, remote_ip: Optional[str] = None) -> CaptchaResult:
        if not self._secret:
            logger.error("RECAPTCHA_SECRET is not configured; rejecting token")
            return CaptchaResult(success=False, error_codes=["missing-input-secret"])
        form = {"secret": self._secret, "response": token}
        if remote_ip:
            form["remoteip"] = remote_ip
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                resp = client.post(self._verify_url, data=form)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as err:
            logger.warning("reCAPTCHA verification call failed: %s", err)
            return CaptchaResult(success=False, error_codes=["verification-unavailable"])
        if not isinstance(data, dict):
            return CaptchaResult(success=False, error_codes=["malformed-response"])
        try:
            score = float(data.get("score") or 0.0)
        except (TypeError, ValueError):
            score = 0.0
        codes = data.get("error-codes") or []
        return CaptchaResult(
            success=data.get("success") is True,
            score=score,
            error_codes=[str(c) for c in codes] if isinstance(codes, list) else [],
        )
