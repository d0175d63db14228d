"""
Candidate model.

A candidate is a person being reviewed in one survey. The access token hash
is a plain SHA-256 of the candidate's results token, looked up by equality.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base
from models.survey import utcnow


class Candidate(Base):
    """Person being reviewed in a survey."""

    __tablename__ = "candidates"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    survey_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("surveys.id", ondelete="CASCADE"),
        index=True,
    )

    name: Mapped[str] = mapped_column(String(200))
    employee_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    department: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # SHA-256 hex of the access token (never the plaintext)
    access_token_hash: Mapped[Optional[str]] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    survey = relationship("Survey", back_populates="candidates")
    voter_tokens = relationship(
        "VoterToken",
        back_populates="candidate",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    votes_received = relationship(
        "Vote",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
