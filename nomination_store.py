# nomination_store.py
"""
Persistent store for hero nominations.
One row is written per nominated hero, grouped by the nomination it came from.
"""

import logging
import uuid
from collections import OrderedDict
from datetime import date, datetime, time, timezone, tzinfo
from typing import List, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    create_engine,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from hero_config import HEROES_DB_URL
from hero_models import Nomination, NominationRecord
from heroes_date_util import month_bounds

logger = logging.getLogger(__name__)

Base = declarative_base()


class NominationStoreError(RuntimeError):
    """Raised when a nomination cannot be written or read."""


class DBHeroVote(Base):
    """Database model for a single vote (one nominated hero of one nomination)."""

    __tablename__ = "hero_votes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nomination_id = Column(String(36), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    username = Column(String(255), nullable=False, index=True)
    message = Column(Text, nullable=False, default="")
    channel = Column(String(255), nullable=False)
    submitted_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_channel_submitted_at", "channel", "submitted_at"),
    )


def _to_db_datetime(value: datetime) -> datetime:
    # Stored as naive UTC so SQLite and Postgres compare the same way.
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_db_datetime(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class NominationStore:
    """
    SQLAlchemy-backed nomination repository.

    Database errors are re-raised as NominationStoreError.
    """

    def __init__(self, db_url: Optional[str] = None):
        """
        Args:
            db_url: Database connection URL (defaults to HEROES_DB_URL)
        """
        if not db_url:
            db_url = HEROES_DB_URL

        self.engine = create_engine(db_url, echo=False, future=True)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False, future=True)

        Base.metadata.create_all(self.engine)

        logger.info("nomination_store_initialized", extra={"db_url": self.engine.url.render_as_string(hide_password=True)})

    def _get_session(self) -> Session:
        return self.SessionLocal()

    def save(self, nomination: Nomination) -> Nomination:
        """
        Persist a nomination, one row per recipient, in a single transaction.

        Raises:
            NominationStoreError: if the write fails (the transaction is rolled back)
        """
        nomination_id = str(uuid.uuid4())
        submitted_at = _to_db_datetime(nomination.submitted_at)

        session = self._get_session()
        try:
            for position, username in enumerate(nomination.recipients):
                session.add(
                    DBHeroVote(
                        nomination_id=nomination_id,
                        position=position,
                        username=username,
                        message=nomination.message,
                        channel=nomination.channel,
                        submitted_at=submitted_at,
                    )
                )
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error(
                "nomination_save_failed",
                exc_info=True,
                extra={"channel": nomination.channel, "recipients": nomination.recipients},
            )
            raise NominationStoreError(f"Failed to save nomination for channel {nomination.channel}") from exc
        finally:
            session.close()

        logger.info(
            "nomination_saved",
            extra={
                "nomination_id": nomination_id,
                "channel": nomination.channel,
                "recipient_count": len(nomination.recipients),
            },
        )
        return nomination

    def find_records_for_channel_in_current_month(
        self, channel: str, today: date, tz: tzinfo = timezone.utc
    ) -> List[NominationRecord]:
        """
        All votes cast in ``channel`` during ``today``'s calendar month in zone ``tz``.

        Records come back in submission order (recipients of one nomination
        keep their mention order), which the leaderboard relies on to break ties.
        """
        first_day, next_month = month_bounds(today)
        start = _to_db_datetime(datetime.combine(first_day, time.min, tzinfo=tz))
        end = _to_db_datetime(datetime.combine(next_month, time.min, tzinfo=tz))

        session = self._get_session()
        try:
            rows = (
                session.query(DBHeroVote)
                .filter(
                    DBHeroVote.channel == channel,
                    DBHeroVote.submitted_at >= start,
                    DBHeroVote.submitted_at < end,
                )
                .order_by(DBHeroVote.submitted_at, DBHeroVote.id)
                .all()
            )
            return [
                NominationRecord(
                    username=row.username,
                    message=row.message,
                    channel=row.channel,
                    timestamp=_from_db_datetime(row.submitted_at),
                )
                for row in rows
            ]
        except SQLAlchemyError as exc:
            logger.error("nomination_query_failed", exc_info=True, extra={"channel": channel})
            raise NominationStoreError(f"Failed to load nominations for channel {channel}") from exc
        finally:
            session.close()

    def find_all(self) -> List[Nomination]:
        """Every stored nomination, oldest first."""
        session = self._get_session()
        try:
            rows = session.query(DBHeroVote).order_by(DBHeroVote.submitted_at, DBHeroVote.id).all()
        except SQLAlchemyError as exc:
            logger.error("nomination_query_failed", exc_info=True)
            raise NominationStoreError("Failed to load nominations") from exc
        finally:
            session.close()

        grouped: "OrderedDict[str, List[DBHeroVote]]" = OrderedDict()
        for row in rows:
            grouped.setdefault(row.nomination_id, []).append(row)

        nominations = []
        for votes in grouped.values():
            votes.sort(key=lambda vote: vote.position)
            first = votes[0]
            nominations.append(
                Nomination(
                    recipients=[vote.username for vote in votes],
                    message=first.message,
                    channel=first.channel,
                    submitted_at=_from_db_datetime(first.submitted_at),
                )
            )
        return nominations
