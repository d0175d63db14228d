"""
Survey repository for database operations.

Surveys and their feedback options are reference data for the voting core;
creating and editing them happens elsewhere.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.feedback_option import FeedbackOption
from models.survey import Survey


class SurveyRepository:
    """Repository for survey database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, survey_id: str) -> Optional[Survey]:
        """Get a survey by ID."""
        result = await self.db.execute(select(Survey).where(Survey.id == survey_id))
        return result.scalar_one_or_none()

    async def list_feedback_options(self, survey_id: str) -> list[FeedbackOption]:
        """Get the survey's feedback options in display order."""
        result = await self.db.execute(
            select(FeedbackOption)
            .where(FeedbackOption.survey_id == survey_id)
            .order_by(FeedbackOption.display_order.asc(), FeedbackOption.id.asc())
        )
        return list(result.scalars().all())
