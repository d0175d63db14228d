"""
Vote repository for database operations.

Implements the (survey, voter token, candidate) keyed vote ledger.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.vote import Vote

_UPSERT_KEY = ["survey_id", "voter_token_id", "candidate_id"]


class VoteRepository:
    """Repository for vote database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _insert(self):
        """Dialect specific INSERT construct supporting ON CONFLICT."""
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise NotImplementedError(f"Vote upsert is not supported on {dialect}")
        return insert

    async def exists_for_token(self, survey_id: str, voter_token_id: str) -> bool:
        """Check whether a token has cast any vote in the survey."""
        result = await self.db.execute(
            select(func.count(Vote.id)).where(
                Vote.survey_id == survey_id,
                Vote.voter_token_id == voter_token_id,
            )
        )
        count = result.scalar() or 0
        return count > 0

    async def upsert(
        self,
        survey_id: str,
        candidate_id: str,
        voter_token_id: str,
        strength_ids: list[str],
        weakness_ids: list[str],
        feedback_text: Optional[str],
    ) -> str:
        """
        Insert the vote for (survey, token, candidate) or overwrite it.

        On conflict the option lists, feedback text and updated_at are
        replaced; id and created_at stay. Returns the vote id.
        """
        now = datetime.now(timezone.utc)
        insert = self._insert()
        stmt = insert(Vote).values(
            id=str(uuid4()),
            survey_id=survey_id,
            candidate_id=candidate_id,
            voter_token_id=voter_token_id,
            strength_ids=strength_ids,
            weakness_ids=weakness_ids,
            feedback_text=feedback_text,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=_UPSERT_KEY,
            set_={
                "strength_ids": stmt.excluded.strength_ids,
                "weakness_ids": stmt.excluded.weakness_ids,
                "feedback_text": stmt.excluded.feedback_text,
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(Vote.id)

        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def list_by_token(self, survey_id: str, voter_token_id: str) -> list[Vote]:
        """Votes cast with one token (the voter's own view)."""
        result = await self.db.execute(
            select(Vote)
            .where(
                Vote.survey_id == survey_id,
                Vote.voter_token_id == voter_token_id,
            )
            .order_by(Vote.created_at.asc(), Vote.id.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_for_candidate(self, survey_id: str, candidate_id: str) -> list[Vote]:
        """Votes received by a candidate, oldest first."""
        result = await self.db.execute(
            select(Vote)
            .where(
                Vote.survey_id == survey_id,
                Vote.candidate_id == candidate_id,
            )
            .order_by(Vote.created_at.asc(), Vote.id.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())
