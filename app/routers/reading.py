from fastapi import APIRouter, Request

from app.core.config import settings
from app.core.deps import (
    get_captcha_verifier,
    get_card_store,
    get_generator,
    get_identity_provider,
    get_reading_repo,
)
from app.core.rate_limit import limiter
from app.core.security import client_address, resolve_identity
from app.schemas.reading import (
    GenerateReadingRequest,
    GenerateReadingResponse,
    ReadingTypeInfo,
    ReadingTypesResponse,
)
from app.services.reading_api_service import ReadingContext, generate_reading
from app.services.reading_types import READING_TYPES

router = APIRouter(prefix="/api/reading", tags=["reading"])


@router.post("/generate", response_model=GenerateReadingResponse)
@limiter.limit(settings.rate_limit_reading_post)
def generate(request: Request, payload: GenerateReadingRequest):
    client_ip = client_address(request)
    identity = resolve_identity(get_identity_provider(request), request, payload.guest_id)
    ctx = ReadingContext(
        identity=identity,
        client_ip=client_ip,
        card_store=get_card_store(request),
        repo=get_reading_repo(request),
        captcha=get_captcha_verifier(request),
        generator=get_generator(request),
        min_captcha_score=settings.recaptcha_min_score,
        daily_free_readings=settings.daily_free_readings,
        quota_timezone=settings.quota_timezone,
    )
    return generate_reading(ctx, payload)


@router.get("/types", response_model=ReadingTypesResponse)
@limiter.limit(settings.rate_limit_cards)
def list_reading_types(request: Request):
    items = [
        ReadingTypeInfo(
            code=c.code,
            label=c.label,
            count=c.count,
            positions=list(c.layout),
            instructions=c.instructions,
        )
        for c in READING_TYPES.values()
    ]
    return ReadingTypesResponse(items=items)
