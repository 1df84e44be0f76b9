"""Nomination and leaderboard workflows for the heroes of the month bot."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone, tzinfo
from typing import Callable, List, Optional, Protocol, Sequence

import command_parser
from hero_config import HEROES_SCHEDULE_HOUR, HEROES_TZ
from hero_models import DeliveryOutcome, DeliveryStatus, Nomination, NominationRecord, ParsedNomination
from heroes_date_util import (
    heroes_leaderboard_available_from,
    is_allowed_to_reveal_heroes_leaderboard,
    last_friday_at_ten,
    to_epoch_seconds,
)
from leaderboard import rank
from slack_blocks import build_heroes_leaderboard_blocks, build_leaderboard_fallback_text
from slack_service import SlackResult, SlackTransportError

logger = logging.getLogger(__name__)

__all__ = [
    "EmptyNominationError",
    "RecognitionService",
    "heroes_leaderboard_available_from",
    "is_allowed_to_reveal_heroes_leaderboard",
]


class EmptyNominationError(ValueError):
    """A nomination command did not mention anybody."""


class NominationRepository(Protocol):
    def save(self, nomination: Nomination) -> Nomination: ...

    def find_records_for_channel_in_current_month(
        self, channel: str, today: date, tz: tzinfo = ...
    ) -> List[NominationRecord]: ...

    def find_all(self) -> List[Nomination]: ...


class ChatClient(Protocol):
    def post_message(self, channel: str, blocks: Optional[list] = None, text: str = "") -> SlackResult: ...

    def schedule_message(self, channel: str, text: str, post_at: int) -> SlackResult: ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecognitionService:
    def __init__(
        self,
        store: NominationRepository,
        slack_client: ChatClient,
        *,
        clock: Callable[[], datetime] = _utc_now,
        tz=HEROES_TZ,
        schedule_hour: int = HEROES_SCHEDULE_HOUR,
    ) -> None:
        self.store = store
        self.slack_client = slack_client
        self._clock = clock
        self._tz = tz
        self._schedule_hour = schedule_hour

    # --------------------------------------------------
    def today(self) -> date:
        return self._clock().astimezone(self._tz).date()

    def is_reveal_allowed(self) -> bool:
        return is_allowed_to_reveal_heroes_leaderboard(self.today())

    def available_from(self) -> date:
        return heroes_leaderboard_available_from(self.today())

    def heroes(self) -> List[Nomination]:
        return self.store.find_all()

    # --------------------------------------------------
    # Nomination path
    # --------------------------------------------------
    def handle_nomination(self, raw_command_text: str, channel: str) -> List[DeliveryOutcome]:
        """
        Parse a /hero command and submit it.

        Raises:
            EmptyNominationError: no user was mentioned; nothing is stored
            NominationStoreError: the nomination could not be saved
        """
        parsed = command_parser.parse(raw_command_text)
        if not parsed.usernames:
            logger.info("nomination_rejected_no_recipients", extra={"channel": channel})
            raise EmptyNominationError("Mention at least one hero, e.g. `/hero @jane thanks for the help`")
        return self.submit_nomination(parsed, channel)

    def submit_nomination(self, parsed: ParsedNomination, channel: str) -> List[DeliveryOutcome]:
        """Save the nomination, then schedule one thank-you DM per hero."""
        nomination = Nomination(
            recipients=parsed.usernames,
            message=parsed.message,
            channel=channel,
            submitted_at=self._clock(),
        )
        # Store failures propagate before anything is scheduled.
        self.store.save(nomination)

        post_at = to_epoch_seconds(last_friday_at_ten(self.today(), hour=self._schedule_hour))
        return [self._schedule_acknowledgement(user, nomination.message, post_at) for user in nomination.recipients]

    def _schedule_acknowledgement(self, user: str, text: str, post_at: int) -> DeliveryOutcome:
        try:
            result = self.slack_client.schedule_message(user, text, post_at)
        except SlackTransportError as exc:
            logger.error("schedule_message_transport_failed", exc_info=True, extra={"user": user})
            return DeliveryOutcome(target=user, status=DeliveryStatus.TRANSPORT_ERROR, error=str(exc))

        if not result.ok:
            logger.error("schedule_message_rejected", extra={"user": user, "reason": result.error})
            return DeliveryOutcome(target=user, status=DeliveryStatus.REJECTED, error=result.error)

        logger.info(
            "schedule_message_created",
            extra={"user": user, "scheduled_message_id": result.scheduled_message_id, "post_at": post_at},
        )
        return DeliveryOutcome(
            target=user,
            status=DeliveryStatus.DELIVERED,
            message_id=result.scheduled_message_id,
        )

    # --------------------------------------------------
    # Reveal path
    # --------------------------------------------------
    def handle_reveal_request(self, channel: str) -> DeliveryOutcome:
        return self.reveal_leaderboard(channel)

    def reveal_leaderboard(self, channel: str) -> DeliveryOutcome:
        """Post this month's leaderboard to ``channel``. Delivery failures are logged, not raised."""
        today = self.today()
        records: Sequence[NominationRecord] = self.store.find_records_for_channel_in_current_month(
            channel, today, tz=self._tz
        )
        ranking = rank(channel, records)
        blocks = build_heroes_leaderboard_blocks(ranking, today)
        fallback_text = build_leaderboard_fallback_text(ranking, today)

        try:
            result = self.slack_client.post_message(channel, blocks=blocks, text=fallback_text)
        except SlackTransportError as exc:
            logger.error("leaderboard_post_transport_failed", exc_info=True, extra={"channel": channel})
            return DeliveryOutcome(target=channel, status=DeliveryStatus.TRANSPORT_ERROR, error=str(exc))

        if not result.ok:
            logger.error("leaderboard_post_rejected", extra={"channel": channel, "reason": result.error})
            return DeliveryOutcome(target=channel, status=DeliveryStatus.REJECTED, error=result.error)

        logger.info(
            "leaderboard_posted",
            extra={"channel": channel, "hero_count": len(ranking), "vote_count": len(records)},
        )
        return DeliveryOutcome(target=channel, status=DeliveryStatus.DELIVERED, message_id=result.ts)
