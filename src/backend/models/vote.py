"""
Vote model.

One feedback submission per (survey, voter token, candidate).

PRIVACY DESIGN:
- voter_token_id references the instrument, never a person
- the candidate-facing read path never exposes voter_token_id
- option id lists use one explicit storage encoding (OptionIdList)
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base
from db.types import OptionIdList
from models.survey import utcnow


class Vote(Base):
    """Structured feedback about one candidate, cast with one voter token."""

    __tablename__ = "votes"

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
    # Target of the feedback
    candidate_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("candidates.id", ondelete="CASCADE"),
        index=True,
    )
    voter_token_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("voter_tokens.id", ondelete="CASCADE"),
        index=True,
    )

    strength_ids: Mapped[list[str]] = mapped_column(OptionIdList, default=list)
    weakness_ids: Mapped[list[str]] = mapped_column(OptionIdList, default=list)
    feedback_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint(
            "survey_id",
            "voter_token_id",
            "candidate_id",
            name="uq_votes_survey_token_candidate",
        ),
        Index("ix_votes_survey_candidate", "survey_id", "candidate_id"),
    )
