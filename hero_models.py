# hero_models.py
"""
Pydantic models for nominations, per-recipient vote records and delivery results.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ParsedNomination(BaseModel):
    """Structured result of parsing a nomination command."""

    usernames: List[str] = Field(default_factory=list, description="Nominated user ids, first mention first")
    message: str = Field(default="", description="Reason text with mentions stripped")


class Nomination(BaseModel):
    """A single submitted recognition. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    recipients: List[str] = Field(..., description="Nominated user ids in submission order")
    message: str = Field(default="", description="Free text reason")
    channel: str = Field(..., description="Slack channel id the command was issued in")
    submitted_at: datetime = Field(..., description="Submission instant (UTC)")

    @field_validator("recipients")
    @classmethod
    def validate_recipients(cls, v: List[str]) -> List[str]:
        if len(set(v)) != len(v):
            raise ValueError(f"recipients must be unique, got {v}")
        return list(v)


class NominationRecord(BaseModel):
    """One vote for one hero: the per-recipient expansion of a nomination."""

    model_config = ConfigDict(frozen=True)

    username: str
    message: str = ""
    channel: str
    timestamp: datetime


class DeliveryStatus(str, Enum):
    DELIVERED = "delivered"
    REJECTED = "rejected"
    TRANSPORT_ERROR = "transport_error"


class DeliveryOutcome(BaseModel):
    """Result of one outbound Slack call (a post or a scheduled message)."""

    target: str = Field(..., description="Channel or user id the message was addressed to")
    status: DeliveryStatus
    message_id: Optional[str] = Field(None, description="Message ts or scheduled message id")
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == DeliveryStatus.DELIVERED
