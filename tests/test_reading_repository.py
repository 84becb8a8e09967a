from datetime import datetime, timedelta, timezone

from app.core.security import Identity
from app.schemas.reading import ReadingRecord
from app.services.reading_api_service import start_of_local_day
from app.services.reading_repository import ReadingRepository


def _record(**fields):
    base = {"reading_type": "three_card", "cards": [], "interpretation": "texto"}
    base.update(fields)
    return ReadingRecord(**base)


def test_create_assigns_id_and_timestamp():
    repo = ReadingRepository()
    rec = repo.create(_record(user_id="u"))
    assert rec.id
    assert rec.created_at is not None


def test_count_since_matches_identity_kind():
    repo = ReadingRepository()
    now = datetime.now(timezone.utc)
    repo.create(_record(user_id="u", created_at=now))
    repo.create(_record(guest_id="g", created_at=now))
    repo.create(_record(guest_id="g", client_ip="1.2.3.4", created_at=now))
    repo.create(_record(user_id="u", created_at=now - timedelta(days=3)))
    since = now - timedelta(hours=1)
    assert repo.count_since(Identity("user", "u"), since) == 1
    assert repo.count_since(Identity("guest", "g"), since) == 2
    assert repo.count_since(Identity("ip", "1.2.3.4"), since) == 1
    assert repo.count_since(Identity("ip", "9.9.9.9"), since) == 0


def test_history_is_newest_first_and_scoped_to_user():
    repo = ReadingRepository()
    now = datetime.now(timezone.utc)
    old = repo.create(_record(user_id="u", created_at=now - timedelta(hours=2)))
    new = repo.create(_record(user_id="u", created_at=now))
    repo.create(_record(user_id="other", created_at=now))
    assert [r.id for r in repo.list_for_user("u")] == [new.id, old.id]
    assert repo.get_for_user(old.id, "u").id == old.id
    assert repo.get_for_user(old.id, "other") is None
    assert repo.get_for_user("missing", "u") is None


def test_start_of_local_day_in_named_zone():
    # 20:30 at UTC-6 is already the next day in UTC
    now = datetime(2024, 3, 9, 20, 30, tzinfo=timezone(timedelta(hours=-6)))
    midnight = start_of_local_day(now, "UTC")
    assert midnight.isoformat() == "2024-03-10T00:00:00+00:00"


def test_start_of_local_day_defaults_to_server_zone():
    midnight = start_of_local_day()
    assert midnight.tzinfo is not None
    assert (midnight.hour, midnight.minute, midnight.second) == (0, 0, 0)
    assert midnight <= datetime.now(timezone.utc)
