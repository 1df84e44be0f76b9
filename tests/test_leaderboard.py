from datetime import datetime, timedelta, timezone

from hero_models import NominationRecord
from leaderboard import group_by_hero, rank, total_votes

START = datetime(2026, 10, 1, 9, tzinfo=timezone.utc)


def _records(usernames, channel="C1"):
    return [
        NominationRecord(
            username=username,
            message=f"vote {index}",
            channel=channel,
            timestamp=START + timedelta(minutes=index),
        )
        for index, username in enumerate(usernames)
    ]


def test_rank_orders_by_vote_count_with_stable_ties():
    records = _records(["A", "B", "C", "A", "B", "C", "C"])

    ranking = rank("C1", records)

    assert list(ranking) == ["C", "A", "B"]
    assert [len(votes) for votes in ranking.values()] == [3, 2, 2]


def test_tie_goes_to_hero_seen_first():
    records = _records(["B", "A", "A", "B", "D"])

    ranking = rank("C1", records)

    assert list(ranking) == ["B", "A", "D"]


def test_rank_keeps_every_record():
    records = _records(["A", "B", "A", "C", "B", "A"])

    ranking = rank("C1", records)

    assert total_votes(ranking) == len(records)
    assert [record.message for record in ranking["A"]] == ["vote 0", "vote 2", "vote 5"]


def test_rank_counts_every_fetched_record():
    records = _records(["A", "B"]) + _records(["B", "B"], channel="C2")

    ranking = rank("C1", records)

    assert list(ranking) == ["B", "A"]
    assert total_votes(ranking) == len(records)


def test_rank_empty():
    assert rank("C1", []) == {}


def test_group_by_hero_first_seen_order():
    grouped = group_by_hero(_records(["Z", "A", "Z"]))

    assert list(grouped) == ["Z", "A"]
