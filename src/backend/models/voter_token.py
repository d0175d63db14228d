"""
Voter token model.

A voter token is the instrument a vote is cast with. Its id is the durable
join key for votes; the plaintext is never stored.

Two kinds:
- named tokens (candidate_id set): the owning candidate can review peers
  but never themselves
- bulk tokens (candidate_id NULL): anonymous, minted only for single-use
  surveys
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base
from models.survey import utcnow


class VoterToken(Base):
    """Bearer credential allowing one entity to submit feedback."""

    __tablename__ = "voter_tokens"

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

    # Owner; NULL for anonymous bulk tokens
    candidate_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("candidates.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    # Slow salted hash ("pbkdf2_sha256$iterations$salt$digest")
    token_hash: Mapped[str] = mapped_column(String(255))

    # Keyed HMAC digest used as lookup key; NULL on rows created before it existed
    lookup_hash: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )

    # Single-use state; flips to true once, reset only by regenerate
    is_used: Mapped[bool] = mapped_column(Boolean, default=False)
    used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    candidate = relationship("Candidate", back_populates="voter_tokens")

    __table_args__ = (Index("ix_voter_tokens_survey_candidate", "survey_id", "candidate_id"),)
