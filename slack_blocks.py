"""
Slack Block Kit builders for the heroes of the month leaderboard.
Provides composable functions to build the leaderboard message.
"""

from datetime import date
from typing import Any, Dict, List

from leaderboard import Ranking, total_votes

MAX_SECTION_FIELDS = 10
HERO_EMOJI = "\U0001F9B8"


def _mrkdwn(text: str) -> Dict[str, Any]:
    return {"type": "mrkdwn", "text": text}


def _plain_text(text: str) -> Dict[str, Any]:
    return {"type": "plain_text", "text": text}


# strftime("%B") follows the process locale; the header is always English.
_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def month_name(today: date) -> str:
    return _MONTH_NAMES[today.month - 1]


def build_header_block(text: str) -> Dict[str, Any]:
    return {
        "type": "header",
        "text": {
            "type": "plain_text",
            "text": text,
            "emoji": True,
        },
    }


def build_divider_block() -> Dict[str, Any]:
    return {"type": "divider"}


def build_section_block(fields: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Build a section block; Slack rejects sections with more than 10 fields."""
    if len(fields) > MAX_SECTION_FIELDS:
        raise ValueError(f"section blocks hold at most {MAX_SECTION_FIELDS} fields, got {len(fields)}")
    return {"type": "section", "fields": list(fields)}


def build_heroes_header(today: date) -> Dict[str, Any]:
    return build_header_block(f"{month_name(today)} heroes of the month {HERO_EMOJI}")


def build_leaderboard_sections(ranking: Ranking) -> List[Dict[str, Any]]:
    """
    Build the leaderboard rows as a sequence of section blocks.

    Only the first section carries the "Hero" / "Vote count" labels. A
    section is flushed once it holds 10 fields and the next hero is about to
    be added, so the first section lists 4 heroes and the following ones 5.
    """
    blocks = []
    fields = [_mrkdwn("*Hero*"), _mrkdwn("*Vote count*")]
    for hero, records in ranking.items():
        if len(fields) >= MAX_SECTION_FIELDS:
            blocks.append(build_section_block(fields))
            fields = []
        fields.append(_mrkdwn(f"<@{hero}>"))
        fields.append(_plain_text(str(len(records))))
    blocks.append(build_section_block(fields))
    return blocks


def build_heroes_leaderboard_blocks(ranking: Ranking, today: date) -> List[Dict[str, Any]]:
    """
    Build complete Slack Block Kit payload for the monthly leaderboard.

    Args:
        ranking: heroes ordered by vote count (see leaderboard.rank)
        today: date used for the month name in the header

    Returns:
        List of Slack blocks: header, divider, leaderboard sections, divider
    """
    blocks = [build_heroes_header(today), build_divider_block()]
    blocks.extend(build_leaderboard_sections(ranking))
    blocks.append(build_divider_block())
    return blocks


def build_leaderboard_fallback_text(ranking: Ranking, today: date) -> str:
    """Notification preview text sent alongside the blocks."""
    heroes = len(ranking)
    votes = total_votes(ranking)
    return (
        f"{month_name(today)} heroes of the month: "
        f"{heroes} hero{'es' if heroes != 1 else ''}, {votes} vote{'s' if votes != 1 else ''}"
    )
