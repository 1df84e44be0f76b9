"""Ranking of the month's heroes by number of votes."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from hero_models import NominationRecord

logger = logging.getLogger(__name__)

Ranking = Dict[str, List[NominationRecord]]


def group_by_hero(records: Iterable[NominationRecord]) -> Ranking:
    """Group records by username, keeping heroes in first-seen order."""
    grouped: Ranking = {}
    for record in records:
        grouped.setdefault(record.username, []).append(record)
    return grouped


def rank(channel: str, period_records: Iterable[NominationRecord]) -> Ranking:
    """
    Order heroes by vote count, most votes first.

    ``period_records`` are the channel's votes for the period as fetched from
    the store; every record ends up in the ranking. Ties keep first-seen
    order: ``sorted`` is stable and there is no secondary key, so the hero
    whose first vote came earlier stays ahead.
    """
    grouped = group_by_hero(period_records)
    ordered = sorted(grouped.items(), key=lambda item: len(item[1]), reverse=True)

    logger.debug(
        "leaderboard_ranked",
        extra={"channel": channel, "hero_count": len(ordered), "vote_count": total_votes(grouped)},
    )
    return dict(ordered)


def total_votes(ranking: Ranking) -> int:
    return sum(len(records) for records in ranking.values())
