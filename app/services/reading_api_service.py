from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol
from zoneinfo import ZoneInfo

from app.core.errors import (
    AbuseSuspected,
    ClientInputError,
    QuotaExceeded,
    UpstreamDataUnavailable,
)
from app.core.security import IDENTITY_GUEST, IDENTITY_USER, Identity
from app.schemas.reading import (
    GenerateReadingRequest,
    GenerateReadingResponse,
    ReadingCreate,
    ReadingRecord,
)
from app.services.captcha_service import CaptchaResult
from app.services.card_store import CardStore
from app.services.interpret_service import assemble_cards, build_prompt
from app.services.reading_types import get_reading_type, required_card_count

logger = logging.getLogger(__name__)


class CaptchaVerifier(Protocol):
    def verify(self, token: str, remote_ip: Optional[str] = None) -> CaptchaResult: ...


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...


class ReadingStore(Protocol):
    def create(self, record: ReadingRecord) -> ReadingRecord: ...

    def count_since(self, identity: Identity, since: datetime) -> int: ...


@dataclass
class ReadingContext:
    identity: Identity
    client_ip: Optional[str]
    card_store: CardStore
    repo: ReadingStore
    captcha: CaptchaVerifier
    generator: TextGenerator
    min_captcha_score: float = 0.5
    daily_free_readings: int = 1
    quota_timezone: Optional[str] = None
    now: Optional[datetime] = None


def start_of_local_day(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> datetime:
    """Midnight of the current day, timezone-aware.

    Uses ``tz_name`` when given, otherwise the server's local zone.
    """
    if now is None:
        now = datetime.now(ZoneInfo(tz_name)) if tz_name else datetime.now().astimezone()
    elif now.tzinfo is None:
        now = now.astimezone()
    if tz_name:
        now = now.astimezone(ZoneInfo(tz_name))
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def _log_suspect(ctx: ReadingContext, reason: str) -> None:
    logger.warning(
        "Suspect reading request rejected: %s (identity=%s:%s ip=%s)",
        reason,
        ctx.identity.kind,
        ctx.identity.value,
        ctx.client_ip,
        extra={
            "event": "suspect_reading_request",
            "reason": reason,
            "identity": ctx.identity.value,
            "identity_kind": ctx.identity.kind,
            "client_ip": ctx.client_ip,
        },
    )


def check_captcha(ctx: ReadingContext, token: Optional[str]) -> None:
    if ctx.identity.authenticated:
        return
    if not token:
        _log_suspect(ctx, "missing_captcha_token")
        raise ClientInputError()
    result = ctx.captcha.verify(token, ctx.client_ip)
    if not result.success:
        _log_suspect(ctx, f"captcha_failed:{','.join(result.error_codes) or 'unknown'}")
        raise AbuseSuspected()
    if result.score < ctx.min_captcha_score:
        _log_suspect(ctx, f"captcha_low_score:{result.score:.2f}")
        raise AbuseSuspected()


def check_daily_quota(ctx: ReadingContext) -> None:
    # check-then-act: two concurrent requests may both pass before either is saved
    if ctx.identity.premium:
        return
    since = start_of_local_day(ctx.now, ctx.quota_timezone)
    used = ctx.repo.count_since(ctx.identity, since)
    if used >= ctx.daily_free_readings:
        _log_suspect(ctx, f"daily_quota_exceeded:{used}")
        raise QuotaExceeded()


def generate_reading(ctx: ReadingContext, payload: GenerateReadingRequest) -> GenerateReadingResponse:
    check_captcha(ctx, payload.recaptcha_token)
    check_daily_quota(ctx)

    count = required_card_count(payload.type)
    config = get_reading_type(payload.type)
    selected = payload.cards[:count]
    if len(payload.cards) > count:
        logger.info("Truncated %d cards to %d for type %s", len(payload.cards), count, payload.type)

    try:
        cards_by_id = ctx.card_store.get_many(sel.id for sel in selected)
    except Exception as err:
        logger.exception("Card lookup failed for ids %s", [sel.id for sel in selected])
        raise UpstreamDataUnavailable() from err
    missing = [sel.id for sel in selected if sel.id not in cards_by_id]
    if missing:
        logger.info("Dropping unknown card ids from reading: %s", missing)

    positioned = assemble_cards(selected, cards_by_id, config)
    prompt = build_prompt(payload.question, payload.type, config, positioned)
    logger.debug("Prompt for %s reading:\n%s", payload.type, prompt)
    interpretation = ctx.generator.generate(prompt)

    return GenerateReadingResponse(
        cards=[p.card for p in positioned],
        interpretation=interpretation,
        type=payload.type,
        question=payload.question,
    )


def save_reading(repo: ReadingStore, identity: Identity, client_ip: Optional[str], payload: ReadingCreate) -> ReadingRecord:
    record = ReadingRecord(
        question=payload.question,
        reading_type=payload.reading_type,
        cards=payload.cards,
        interpretation=payload.interpretation,
        user_id=identity.value if identity.kind == IDENTITY_USER else None,
        guest_id=identity.value if identity.kind == IDENTITY_GUEST else None,
        client_ip=client_ip,
    )
    return repo.create(record)
