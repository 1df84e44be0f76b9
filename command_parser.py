"""Parsing helpers for the /hero nomination command."""

from __future__ import annotations

import re
from typing import List, Optional

from hero_models import ParsedNomination

# Escaped Slack mentions (<@U123> or <@U123|jane>) and plain @handles.
MENTION_PATTERN = re.compile(
    r"<@(?P<user_id>[^>|\s]+)(?:\|[^>]*)?>"
    r"|(?<![\w<@])@(?P<handle>\w(?:[\w.\-]*\w)?)"
)


def extract_mentions(text: Optional[str]) -> List[str]:
    """Return mentioned user identifiers without markup, first occurrence first."""
    if not text:
        return []

    usernames: List[str] = []
    for match in MENTION_PATTERN.finditer(text):
        username = (match.group("user_id") or match.group("handle") or "").lstrip("@")
        if username and username not in usernames:
            usernames.append(username)
    return usernames


def strip_mentions(text: Optional[str]) -> str:
    if not text:
        return ""
    stripped = MENTION_PATTERN.sub(" ", text)
    lines = [" ".join(line.split()) for line in stripped.splitlines()]
    return "\n".join(line for line in lines if line).strip()


def parse(raw_text: Optional[str]) -> ParsedNomination:
    """
    Split a nomination command into recipients and the reason message.

    "<@U1> <@U2> great work on the release" -> usernames ["U1", "U2"],
    message "great work on the release". Text without mentions is kept
    whole as the message with an empty recipient list.
    """
    return ParsedNomination(
        usernames=extract_mentions(raw_text),
        message=strip_mentions(raw_text),
    )
