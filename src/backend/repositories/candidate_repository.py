"""
Candidate repository for database operations.
"""

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.candidate import Candidate


class CandidateRepository:
    """Repository for candidate database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, candidate_id: str) -> Optional[Candidate]:
        result = await self.db.execute(select(Candidate).where(Candidate.id == candidate_id))
        return result.scalar_one_or_none()

    async def get_in_survey(self, candidate_id: str, survey_id: str) -> Optional[Candidate]:
        """Get a candidate only if it belongs to the given survey."""
        result = await self.db.execute(
            select(Candidate).where(
                Candidate.id == candidate_id,
                Candidate.survey_id == survey_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_access_token_hash(
        self,
        token_hash: str,
        survey_id: Optional[str] = None,
    ) -> Optional[Candidate]:
        """Indexed equality lookup on the candidate access token hash."""
        query = select(Candidate).where(Candidate.access_token_hash == token_hash)
        if survey_id is not None:
            query = query.where(Candidate.survey_id == survey_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def set_access_token_hash(self, candidate_id: str, token_hash: str) -> None:
        await self.db.execute(
            update(Candidate)
            .where(Candidate.id == candidate_id)
            .values(access_token_hash=token_hash)
            .execution_options(synchronize_session=False)
        )
