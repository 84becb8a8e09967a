from __future__ import annotations

import hashlib
import json
import logging
import threading
from pathlib import Path
from typing import Iterable, Protocol

import psycopg
from psycopg.rows import dict_row

from app.schemas.cards import Card

logger = logging.getLogger(__name__)

CARD_COLUMNS = (
    "id, name, arcana, image_url, keywords_upright, keywords_reversed, "
    "interpretation_upright, interpretation_reversed"
)


class CardStore(Protocol):
    def all(self) -> list[Card]: ...

    def get(self, card_id: int) -> Card | None: ...

    def get_many(self, card_ids: Iterable[int]) -> dict[int, Card]: ...


class JsonCardStore:
    """Card reference data read from a bundled JSON list."""

    def __init__(self, data_path: str):
        self._data_path = Path(data_path)
        self._cards: list[Card] = []
        self._by_id: dict[int, Card] = {}
        self._etag: str | None = None
        self._lock = threading.Lock()

    @property
    def cards(self) -> list[Card]:
        if not self._cards:
            self.load()
        return self._cards

    @property
    def etag(self) -> str | None:
        return self._etag

    def load(self) -> None:
        with self._data_path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, list):
            raise ValueError("Card data json must be a list")
        cards = [Card(**c) for c in raw]
        with self._lock:
            self._cards = cards
            self._by_id = {c.id: c for c in cards}
            self._etag = self._compute_etag()
        logger.info("Loaded %d cards from %s", len(cards), self._data_path)

    def _compute_etag(self) -> str:
        h = hashlib.sha1()
        h.update(",".join(str(c.id) for c in self._cards).encode())
        h.update(str(self._data_path.stat().st_mtime_ns).encode())
        return f'W/"{h.hexdigest()}"'

    def all(self) -> list[Card]:
        return list(self.cards)

    def get(self, card_id: int) -> Card | None:
        if not self._cards:
            self.load()
        return self._by_id.get(card_id)

    def get_many(self, card_ids: Iterable[int]) -> dict[int, Card]:
        if not self._cards:
            self.load()
        wanted = set(card_ids)
        return {cid: card for cid, card in self._by_id.items() if cid in wanted}


class PostgresCardStore:
    """Card reference data from the ``tarot_cards`` table."""

    etag = None

    def __init__(self, db_url: str) -> None:
        self._db_url = db_url

    def _fetch(self, sql: str, params: tuple = ()) -> list[Card]:
        with psycopg.connect(self._db_url, row_factory=dict_row) as conn, conn.cursor() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [Card(**{k: v for k, v in row.items() if v is not None}) for row in rows]

    def all(self) -> list[Card]:
        return self._fetch(f"SELECT {CARD_COLUMNS} FROM tarot_cards ORDER BY id")

    def get(self, card_id: int) -> Card | None:
        found = self._fetch(f"SELECT {CARD_COLUMNS} FROM tarot_cards WHERE id=%s", (card_id,))
        return found[0] if found else None

    def get_many(self, card_ids: Iterable[int]) -> dict[int, Card]:
        ids = sorted(set(card_ids))
        if not ids:
            return {}
        cards = self._fetch(
            f"SELECT {CARD_COLUMNS} FROM tarot_cards WHERE id = ANY(%s)", (ids,)
        )
        return {c.id: c for c in cards}
