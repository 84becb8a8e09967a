from fastapi import APIRouter, Request, status

from app.core.config import settings
from app.core.deps import get_identity_provider, get_reading_repo
from app.core.errors import NotAuthenticated, ReadingNotFound
from app.core.rate_limit import limiter
from app.core.security import Identity, client_address, resolve_identity
from app.schemas.reading import (
    ReadingCreate,
    ReadingHistoryResponse,
    ReadingRecord,
    ReadingSummary,
)
from app.services.reading_api_service import save_reading

router = APIRouter(prefix="/api/readings", tags=["readings"])


def _require_user(request: Request) -> Identity:
    user = get_identity_provider(request).resolve(request)
    if user is None:
        raise NotAuthenticated()
    return user


@router.post("", response_model=ReadingRecord, status_code=status.HTTP_201_CREATED, response_model_exclude={"client_ip"})
@router.post("/", response_model=ReadingRecord, status_code=status.HTTP_201_CREATED, response_model_exclude={"client_ip"}, include_in_schema=False)
@limiter.limit(settings.rate_limit_reading_post)
def create_reading(request: Request, payload: ReadingCreate):
    client_ip = client_address(request)
    identity = resolve_identity(get_identity_provider(request), request, (payload.guest_id or "").strip() or None)
    return save_reading(get_reading_repo(request), identity, client_ip, payload)


@router.get("", response_model=ReadingHistoryResponse)
@router.get("/", response_model=ReadingHistoryResponse, include_in_schema=False)
@limiter.limit(settings.rate_limit_cards)
def list_readings(request: Request):
    user = _require_user(request)
    records = get_reading_repo(request).list_for_user(user.value)
    items = [
        ReadingSummary(id=r.id, question=r.question, reading_type=r.reading_type, created_at=r.created_at)
        for r in records
    ]
    return ReadingHistoryResponse(total=len(items), items=items)


@router.get("/{reading_id}", response_model=ReadingRecord, response_model_exclude={"client_ip"})
@limiter.limit(settings.rate_limit_cards)
def get_reading(request: Request, reading_id: str):
    user = _require_user(request)
    found = get_reading_repo(request).get_for_user(reading_id, user.value)
    if found is None:
        raise ReadingNotFound()
    return found
