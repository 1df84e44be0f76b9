# hero_config.py
"""
Configuration for the Heroes of the Month bot.
"""

import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Slack app credentials
SLACK_HEROES_BOT_TOKEN = os.getenv("SLACK_HEROES_BOT_TOKEN")
SLACK_HEROES_SIGNING_SECRET = os.getenv("SLACK_HEROES_SIGNING_SECRET")

# Persistence
HEROES_DB_URL = os.getenv("HEROES_DB_URL", "sqlite:///./heroes.db")

# Calendar
HEROES_TIMEZONE = os.getenv("HEROES_TIMEZONE", "UTC")
HEROES_SCHEDULE_HOUR = int(os.getenv("HEROES_SCHEDULE_HOUR", "10"))

# Monthly auto reveal job
HEROES_AUTO_REVEAL_CHANNEL_ID = os.getenv("HEROES_AUTO_REVEAL_CHANNEL_ID")
ENABLE_JOB_SCHEDULER = os.getenv("ENABLE_JOB_SCHEDULER", "false").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Validation
try:
    HEROES_TZ = ZoneInfo(HEROES_TIMEZONE)
except ZoneInfoNotFoundError as exc:
    raise ValueError(f"HEROES_TIMEZONE must be a valid IANA zone, got {HEROES_TIMEZONE}") from exc

if not 0 <= HEROES_SCHEDULE_HOUR <= 23:
    raise ValueError(f"HEROES_SCHEDULE_HOUR must be between 0 and 23, got {HEROES_SCHEDULE_HOUR}")


def is_auto_reveal_enabled() -> bool:
    """Check if the monthly leaderboard job should be registered."""
    return ENABLE_JOB_SCHEDULER and bool(HEROES_AUTO_REVEAL_CHANNEL_ID)
