from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import google.generativeai as genai

from app.schemas.cards import Card
from app.schemas.reading import ORIENTATION_LABELS, CardInterpretation, Orientation, SelectedCard
from app.services.reading_types import DEFAULT_INSTRUCTIONS, ReadingTypeConfig

logger = logging.getLogger(__name__)

FALLBACK_INTERPRETATION = "No interpretation available"
CLOSING_INSTRUCTION = (
    "Redacta una conclusión general para esta tirada, integrando los significados "
    "de las cartas y la pregunta."
)


@dataclass(frozen=True)
class PositionedCard:
    position: Optional[str]
    card: CardInterpretation


def interpret_card(card: Card, orientation: Orientation) -> CardInterpretation:
    if orientation is Orientation.REVERSED:
        keywords, text = card.keywords_reversed, card.interpretation_reversed
    else:
        keywords, text = card.keywords_upright, card.interpretation_upright
    return CardInterpretation(
        name=card.name,
        orientation=ORIENTATION_LABELS[orientation],
        keywords=keywords,
        interpretation=text,
    )


def assemble_cards(
    selected: Sequence[SelectedCard],
    cards_by_id: dict[int, Card],
    config: Optional[ReadingTypeConfig],
) -> list[PositionedCard]:
    """Pair each selection with its card data and layout position.

    Selections whose card is missing from ``cards_by_id`` are skipped; the
    position label still follows the submission index so later cards keep
    their place in the layout.
    """
    out: list[PositionedCard] = []
    for index, sel in enumerate(selected):
        card = cards_by_id.get(sel.id)
        if card is None:
            continue
        label = config.position_label(index) if config else None
        out.append(PositionedCard(position=label, card=interpret_card(card, sel.orientation)))
    return out


def _card_line(item: PositionedCard) -> str:
    c = item.card
    prefix = f"{item.position}: " if item.position else ""
    return (
        f"- {prefix}{c.name} ({c.orientation}): keywords: {c.keywords}. "
        f"Interpretación: {c.interpretation}"
    )


def build_prompt(
    question: Optional[str],
    reading_type: str,
    config: Optional[ReadingTypeConfig],
    cards: Sequence[PositionedCard],
) -> str:
    label = config.label if config else reading_type
    instructions = config.instructions if config else DEFAULT_INSTRUCTIONS
    lines = [
        f'Cartas seleccionadas para la pregunta: "{question or ""}"',
        f"Tipo de tirada: {label}",
        *(_card_line(c) for c in cards),
        instructions,
        CLOSING_INSTRUCTION,
    ]
    return "\n".join(lines)


class GeminiGenerator:
    """Sends prompts to Gemini; every failure degrades to the fallback text."""

    def __init__(
        self,
        api_key: str | None,
        model: str,
        temperature: float = 0.7,
        max_output_tokens: int = 1024,
        timeout: float = 20.0,
    ):
        self._api_key = api_key
        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._timeout = timeout

    def generate(self, prompt: str) -> str:
        if not self._api_key:
            logger.warning("GEMINI_API_KEY not set; returning fallback interpretation")
            return FALLBACK_INTERPRETATION
        try:
            genai.configure(api_key=self._api_key)
            model_obj = genai.GenerativeModel(self._model)
            rsp = model_obj.generate_content(
                prompt,
                generation_config={
                    "temperature": self._temperature,
                    "max_output_tokens": self._max_output_tokens,
                },
                request_options={"timeout": self._timeout},
            )
            # .text raises ValueError when the candidate is blocked or empty
            text = (rsp.text or "").strip()
        except Exception:
            logger.exception("Gemini generation failed")
            return FALLBACK_INTERPRETATION
        if not text:
            logger.warning("Gemini returned an empty interpretation")
            return FALLBACK_INTERPRETATION
        return text
