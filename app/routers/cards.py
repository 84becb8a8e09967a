from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from app.core.config import settings
from app.core.deps import get_card_store
from app.core.rate_limit import limiter
from app.schemas.cards import Card, CardsResponse

router = APIRouter(prefix="/cards", tags=["cards"])


@router.get("/", response_model=CardsResponse)
@limiter.limit(settings.rate_limit_cards)
def list_cards(request: Request):
    store = get_card_store(request)
    # ETag handling
    etag = getattr(store, "etag", None)
    inm = request.headers.get("if-none-match")
    if etag and inm == etag:
        return Response(status_code=304)
    items = [c.model_dump() for c in store.all()]
    resp = JSONResponse(content={"total": len(items), "items": items})
    if etag:
        resp.headers["ETag"] = etag
        resp.headers["Cache-Control"] = "public, max-age=3600"
    return resp


@router.get("/{card_id}", response_model=Card)
@limiter.limit(settings.rate_limit_cards)
def get_card(request: Request, card_id: int):
    card = get_card_store(request).get(card_id)
    if card is None:
        raise HTTPException(status_code=404, detail="card not found")
    return card
