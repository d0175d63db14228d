"""
Survey model.

A survey groups candidates, feedback options and voter tokens, and decides
how tokens behave through its token policy.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SurveyStatus(str, Enum):
    """Survey lifecycle status."""

    DRAFT = "draft"  # Being prepared by an admin
    ACTIVE = "active"  # Accepting votes
    CLOSED = "closed"  # Voting ended, results readable


class TokenPolicy(str, Enum):
    """How voter tokens of a survey may be used."""

    MULTI_CANDIDATE = "multi_candidate"  # Vote for many candidates, edit while active
    SINGLE_USE = "single_use"  # Exactly one vote for one candidate, no edits


class Survey(Base):
    """Peer-feedback survey."""

    __tablename__ = "surveys"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        default=SurveyStatus.DRAFT.value,
        index=True,
    )
    # Read at vote time; changing it does not reinterpret existing tokens
    token_policy: Mapped[str] = mapped_column(
        String(20),
        default=TokenPolicy.MULTI_CANDIDATE.value,
    )

    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )

    # Relationships
    candidates = relationship(
        "Candidate",
        back_populates="survey",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    feedback_options = relationship(
        "FeedbackOption",
        back_populates="survey",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def policy(self) -> TokenPolicy:
        try:
            return TokenPolicy(self.token_policy)
        except ValueError:
            return TokenPolicy.MULTI_CANDIDATE

    def accepts_votes(self, now: Optional[datetime] = None) -> bool:
        """Votes are written only while active and, if set, before expiry."""
        if self.status != SurveyStatus.ACTIVE.value:
            return False
        expires_at = as_utc(self.expires_at)
        if expires_at is None:
            return True
        return (now or utcnow()) < expires_at
