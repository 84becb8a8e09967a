from typing import Optional

from pydantic import BaseModel


class Card(BaseModel):
    id: int
    name: str
    arcana: Optional[str] = None
    image_url: Optional[str] = None
    keywords_upright: str = ""
    keywords_reversed: str = ""
    interpretation_upright: str = ""
    interpretation_reversed: str = ""


class CardsResponse(BaseModel):
    total: int
    items: list[Card]
