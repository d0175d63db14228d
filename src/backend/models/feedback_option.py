"""Feedback option model (reference data for aggregation)."""

from enum import Enum
from uuid import uuid4

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base


class FeedbackType(str, Enum):
    STRENGTH = "strength"
    WEAKNESS = "weakness"


class FeedbackOption(Base):
    """Curated strength or weakness a voter can select."""

    __tablename__ = "feedback_options"

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

    type: Mapped[str] = mapped_column(String(20))
    option_text: Mapped[str] = mapped_column(String(500))
    display_order: Mapped[int] = mapped_column(Integer, default=0)

    survey = relationship("Survey", back_populates="feedback_options")
