from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Orientation(str, Enum):
    UPRIGHT = "upright"
    REVERSED = "reversed"


# Display labels used in prompts and responses
ORIENTATION_LABELS = MappingProxyType(
    {
        Orientation.UPRIGHT: "Al derecho",
        Orientation.REVERSED: "Invertida",
    }
)


class SelectedCard(BaseModel):
    id: int
    orientation: Orientation = Orientation.UPRIGHT


class GenerateReadingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    question: Optional[str] = None
    cards: List[SelectedCard] = Field(default_factory=list)
    recaptcha_token: Optional[str] = Field(default=None, alias="recaptchaToken")
    guest_id: Optional[str] = None

    @field_validator("recaptcha_token", "guest_id")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        # the web client sends "" when it has no token or guest id
        if v is None:
            return None
        v = v.strip()
        return v or None


class CardInterpretation(BaseModel):
    name: str
    orientation: str = Field(description="Al derecho | Invertida")
    keywords: str
    interpretation: str


class GenerateReadingResponse(BaseModel):
    cards: list[CardInterpretation]
    interpretation: str
    type: str
    question: Optional[str] = None


class ReadingTypeInfo(BaseModel):
    code: str
    label: str
    count: int
    positions: list[str]
    instructions: str


class ReadingTypesResponse(BaseModel):
    items: list[ReadingTypeInfo]


class ReadingCreate(BaseModel):
    """Finished reading submitted by the client for the history page."""

    question: Optional[str] = None
    reading_type: str = Field(max_length=256)
    cards: list[CardInterpretation] = Field(default_factory=list, max_length=78)
    interpretation: str = Field(default="", max_length=20000)
    guest_id: Optional[str] = Field(default=None, max_length=128)


class ReadingRecord(BaseModel):
    id: Optional[str] = None
    question: Optional[str] = None
    reading_type: str
    cards: list[CardInterpretation]
    interpretation: str
    user_id: Optional[str] = None
    guest_id: Optional[str] = None
    client_ip: Optional[str] = None
    created_at: Optional[datetime] = None


class ReadingSummary(BaseModel):
    id: str
    question: Optional[str] = None
    reading_type: str
    created_at: datetime


class ReadingHistoryResponse(BaseModel):
    total: int
    items: list[ReadingSummary]
