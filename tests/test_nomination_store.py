from datetime import date, datetime, timezone
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.exc import OperationalError

from hero_models import Nomination
from nomination_store import NominationStore, NominationStoreError


def build_store() -> NominationStore:
    return NominationStore(db_url="sqlite:///:memory:")


def _nomination(recipients, channel="C1", when=datetime(2026, 10, 5, 12, tzinfo=timezone.utc), text="thanks"):
    return Nomination(recipients=recipients, message=text, channel=channel, submitted_at=when)


def test_save_expands_one_record_per_recipient():
    store = build_store()
    store.save(_nomination(["U1", "U2"], text="great work on the release"))

    records = store.find_records_for_channel_in_current_month("C1", date(2026, 10, 19))

    assert [record.username for record in records] == ["U1", "U2"]
    assert all(record.message == "great work on the release" for record in records)
    assert records[0].timestamp == datetime(2026, 10, 5, 12, tzinfo=timezone.utc)


def test_records_are_limited_to_channel_and_month():
    store = build_store()
    store.save(_nomination(["U1"], when=datetime(2026, 9, 30, 23, 59, tzinfo=timezone.utc)))
    store.save(_nomination(["U2"], when=datetime(2026, 10, 1, 0, 0, tzinfo=timezone.utc)))
    store.save(_nomination(["U3"], channel="C2", when=datetime(2026, 10, 2, tzinfo=timezone.utc)))
    store.save(_nomination(["U4"], when=datetime(2026, 11, 1, tzinfo=timezone.utc)))

    records = store.find_records_for_channel_in_current_month("C1", date(2026, 10, 31))

    assert [record.username for record in records] == ["U2"]


def test_records_come_back_in_submission_order():
    store = build_store()
    store.save(_nomination(["U9"], when=datetime(2026, 10, 10, tzinfo=timezone.utc)))
    store.save(_nomination(["U1", "U2"], when=datetime(2026, 10, 3, tzinfo=timezone.utc)))

    records = store.find_records_for_channel_in_current_month("C1", date(2026, 10, 19))

    assert [record.username for record in records] == ["U1", "U2", "U9"]


def test_find_all_regroups_nominations():
    store = build_store()
    first = _nomination(["U1", "U2"], text="release")
    second = _nomination(["U3"], channel="C2", when=datetime(2026, 10, 6, tzinfo=timezone.utc), text="on-call")
    store.save(first)
    store.save(second)

    assert store.find_all() == [first, second]


def test_save_failure_propagates_and_rolls_back():
    store = build_store()
    session = MagicMock()
    session.commit.side_effect = OperationalError("INSERT", {}, Exception("disk I/O error"))
    store.SessionLocal = lambda: session

    with pytest.raises(NominationStoreError):
        store.save(_nomination(["U1"]))

    session.rollback.assert_called_once()
    session.close.assert_called_once()


def test_month_bounds_follow_requested_timezone():
    store = build_store()
    tokyo = ZoneInfo("Asia/Tokyo")
    # 1 November 08:00 in Tokyo
    store.save(_nomination(["U1"], when=datetime(2026, 10, 31, 23, tzinfo=timezone.utc)))
    # 31 October 23:00 in Tokyo
    store.save(_nomination(["U2"], when=datetime(2026, 10, 31, 14, tzinfo=timezone.utc)))

    november = store.find_records_for_channel_in_current_month("C1", date(2026, 11, 27), tz=tokyo)
    october = store.find_records_for_channel_in_current_month("C1", date(2026, 10, 27), tz=tokyo)

    assert [record.username for record in november] == ["U1"]
    assert [record.username for record in october] == ["U2"]
