from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone

import psycopg
from psycopg.types.json import Jsonb

from app.core.security import IDENTITY_GUEST, IDENTITY_IP, IDENTITY_USER, Identity
from app.schemas.reading import CardInterpretation, ReadingRecord

# identity kind -> column a reading is matched on for the daily quota
_IDENTITY_COLUMNS = {
    IDENTITY_USER: "user_id",
    IDENTITY_GUEST: "guest_id",
    IDENTITY_IP: "client_ip",
}


def _matches(record: ReadingRecord, identity: Identity) -> bool:
    return getattr(record, _IDENTITY_COLUMNS[identity.kind]) == identity.value


class ReadingRepository:
    """In-memory reading history. Thread-safe for simple use cases."""

    def __init__(self) -> None:
        self._store: dict[str, ReadingRecord] = {}
        self._lock = threading.Lock()

    def create(self, record: ReadingRecord) -> ReadingRecord:
        record.id = str(uuid.uuid4())
        if record.created_at is None:
            record.created_at = datetime.now(timezone.utc)
        with self._lock:
            self._store[record.id] = record
        return record

    def count_since(self, identity: Identity, since: datetime) -> int:
        with self._lock:
            return sum(
                1
                for r in self._store.values()
                if r.created_at is not None and r.created_at >= since and _matches(r, identity)
            )

    def list_for_user(self, user_id: str) -> list[ReadingRecord]:
        with self._lock:
            found = [r for r in self._store.values() if r.user_id == user_id]
        return sorted(found, key=lambda r: r.created_at, reverse=True)

    def get_for_user(self, reading_id: str, user_id: str) -> ReadingRecord | None:
        with self._lock:
            found = self._store.get(reading_id)
        if found is None or found.user_id != user_id:
            return None
        return found


class PostgresReadingRepository:
    def __init__(self, db_url: str) -> None:
        self._db_url = db_url
        self._init_schema()

    def _init_schema(self) -> None:
        ddl_readings = """
        CREATE TABLE IF NOT EXISTS readings (
            id UUID PRIMARY KEY,
            question TEXT,
            reading_type TEXT NOT NULL,
            cards_drawn JSONB NOT NULL,
            interpretation TEXT NOT NULL,
            user_id TEXT,
            guest_id TEXT,
            client_ip TEXT,
            created_at TIMESTAMPTZ DEFAULT NOW()
        );
        """
        ddl_indexes = [
            "CREATE INDEX IF NOT EXISTS readings_user_created ON readings (user_id, created_at)",
            "CREATE INDEX IF NOT EXISTS readings_guest_created ON readings (guest_id, created_at)",
            "CREATE INDEX IF NOT EXISTS readings_ip_created ON readings (client_ip, created_at)",
        ]
        with psycopg.connect(self._db_url) as conn:
            with conn.cursor() as cur:
                cur.execute(ddl_readings)
                for stmt in ddl_indexes:
                    cur.execute(stmt)
            conn.commit()

    def create(self, record: ReadingRecord) -> ReadingRecord:
        rid = str(uuid.uuid4())
        with psycopg.connect(self._db_url) as conn, conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO readings (id, question, reading_type, cards_drawn, interpretation, user_id, guest_id, client_ip)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING created_at
                """,
                (
                    rid,
                    record.question,
                    record.reading_type,
                    Jsonb([c.model_dump() for c in record.cards]),
                    record.interpretation,
                    record.user_id,
                    record.guest_id,
                    record.client_ip,
                ),
            )
            (created_at,) = cur.fetchone()
            conn.commit()
        record.id = rid
        record.created_at = created_at
        return record

    def count_since(self, identity: Identity, since: datetime) -> int:
        column = _IDENTITY_COLUMNS[identity.kind]
        with psycopg.connect(self._db_url) as conn, conn.cursor() as cur:
            cur.execute(
                f"SELECT COUNT(*) FROM readings WHERE {column}=%s AND created_at >= %s",
                (identity.value, since),
            )
            (count,) = cur.fetchone()
        return int(count)

    @staticmethod
    def _to_record(row) -> ReadingRecord:
        rid, question, reading_type, cards, interpretation, user_id, guest_id, client_ip, created_at = row
        return ReadingRecord(
            id=str(rid),
            question=question,
            reading_type=reading_type,
            cards=[CardInterpretation(**c) for c in (cards if isinstance(cards, list) else [])],
            interpretation=interpretation,
            user_id=user_id,
            guest_id=guest_id,
            client_ip=client_ip,
            created_at=created_at,
        )

    def list_for_user(self, user_id: str) -> list[ReadingRecord]:
        with psycopg.connect(self._db_url) as conn, conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, question, reading_type, cards_drawn, interpretation, user_id, guest_id, client_ip, created_at
                FROM readings WHERE user_id=%s ORDER BY created_at DESC
                """,
                (user_id,),
            )
            rows = cur.fetchall()
        return [self._to_record(r) for r in rows]

    def get_for_user(self, reading_id: str, user_id: str) -> ReadingRecord | None:
        try:
            uuid.UUID(reading_id)
        except ValueError:
            return None
        with psycopg.connect(self._db_url) as conn, conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, question, reading_type, cards_drawn, interpretation, user_id, guest_id, client_ip, created_at
                FROM readings WHERE id=%s AND user_id=%s
                """,
                (reading_id, user_id),
            )
            row = cur.fetchone()
        return self._to_record(row) if row else None
