from datetime import datetime, timezone

import pytest

from app.core.errors import QuotaExceeded
from app.core.security import Identity
from app.schemas.reading import ReadingCreate
from app.services.reading_api_service import ReadingContext, check_daily_quota, save_reading


class CountingStore:
    """Only what the handler needs from a reading store."""

    def __init__(self, used=0):
        self.used = used
        self.queries = []
        self.created = []

    def create(self, record):
        self.created.append(record)
        return record

    def count_since(self, identity, since):
        self.queries.append((identity, since))
        return self.used


def _ctx(store, identity):
    return ReadingContext(
        identity=identity,
        client_ip="10.0.0.1",
        card_store=None,
        repo=store,
        captcha=None,
        generator=None,
        quota_timezone="UTC",
        now=datetime(2024, 5, 1, 15, 0, tzinfo=timezone.utc),
    )


def test_quota_counts_from_local_midnight():
    store = CountingStore(used=0)
    identity = Identity("guest", "g-1")
    check_daily_quota(_ctx(store, identity))
    assert store.queries == [(identity, datetime(2024, 5, 1, tzinfo=timezone.utc))]


def test_quota_rejects_when_allowance_used():
    store = CountingStore(used=1)
    with pytest.raises(QuotaExceeded):
        check_daily_quota(_ctx(store, Identity("user", "u-1")))


def test_premium_quota_never_queries_store():
    store = CountingStore(used=9)
    check_daily_quota(_ctx(store, Identity("user", "u-1", premium=True)))
    assert store.queries == []


def test_save_reading_records_owner_and_address():
    store = CountingStore()
    payload = ReadingCreate(reading_type="single", interpretation="texto")
    record = save_reading(store, Identity("guest", "g-1"), "10.0.0.1", payload)
    assert store.created == [record]
    assert record.guest_id == "g-1"
    assert record.user_id is None
    assert record.client_ip == "10.0.0.1"
