"""
Voter token repository for database operations.

Holds the single-use compare-and-set: a token flips from unused to used
only through mark_used, conditioned on it still being unused.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.vote import Vote
from models.voter_token import VoterToken


class VoterTokenRepository:
    """Repository for voter token database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _get_rowcount(self, result: Any) -> int:
        """Safely get rowcount from result."""
        return getattr(result, "rowcount", 0) or 0

    async def lock(self, token_id: str) -> Optional[VoterToken]:
        """
        Load a token row with a row-level lock (SELECT ... FOR UPDATE).

        Held until the surrounding transaction ends. SQLite has no row locks
        and serializes writers on the database file instead.
        """
        result = await self.db.execute(
            select(VoterToken)
            .where(VoterToken.id == token_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by_lookup(
        self,
        lookup_hash: str,
        survey_id: Optional[str] = None,
    ) -> list[VoterToken]:
        """Rows whose HMAC lookup digest matches, optionally scoped to a survey."""
        query = select(VoterToken).where(VoterToken.lookup_hash == lookup_hash)
        if survey_id is not None:
            query = query.where(VoterToken.survey_id == survey_id)
        result = await self.db.execute(query.order_by(VoterToken.created_at.asc()))
        return list(result.scalars().all())

    async def list_unindexed(self, survey_id: Optional[str] = None) -> list[VoterToken]:
        """Rows without a lookup digest; these can only be verified by scanning."""
        query = select(VoterToken).where(VoterToken.lookup_hash.is_(None))
        if survey_id is not None:
            query = query.where(VoterToken.survey_id == survey_id)
        result = await self.db.execute(query.order_by(VoterToken.created_at.asc()))
        return list(result.scalars().all())

    async def list_by_survey(self, survey_id: str) -> list[VoterToken]:
        result = await self.db.execute(
            select(VoterToken)
            .where(VoterToken.survey_id == survey_id)
            .order_by(VoterToken.created_at.desc())
        )
        return list(result.scalars().all())

    async def latest_for_candidate(self, survey_id: str, candidate_id: str) -> Optional[VoterToken]:
        result = await self.db.execute(
            select(VoterToken)
            .where(
                VoterToken.survey_id == survey_id,
                VoterToken.candidate_id == candidate_id,
            )
            .order_by(VoterToken.created_at.desc())
            .limit(1)
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        survey_id: str,
        token_hash: str,
        lookup_hash: str,
        candidate_id: Optional[str] = None,
    ) -> VoterToken:
        token = VoterToken(
            survey_id=survey_id,
            candidate_id=candidate_id,
            token_hash=token_hash,
            lookup_hash=lookup_hash,
            is_used=False,
        )
        self.db.add(token)
        await self.db.flush()
        return token

    async def rotate(self, token: VoterToken, token_hash: str, lookup_hash: str) -> VoterToken:
        """Replace the secret in place; the id (and vote history) is kept."""
        token.token_hash = token_hash
        token.lookup_hash = lookup_hash
        token.is_used = False
        token.used_at = None
        await self.db.flush()
        return token

    async def delete_unused_duplicates(self, survey_id: str, candidate_id: str, keep_id: str) -> int:
        """
        Remove a candidate's other unused tokens, keeping keep_id.

        Tokens with votes are kept whatever their is_used flag says;
        multi-candidate tokens never flip it.
        """
        result = await self.db.execute(
            delete(VoterToken)
            .where(
                VoterToken.survey_id == survey_id,
                VoterToken.candidate_id == candidate_id,
                VoterToken.id != keep_id,
                VoterToken.is_used == False,  # noqa: E712
                VoterToken.id.not_in(select(Vote.voter_token_id).where(Vote.survey_id == survey_id)),
            )
            .execution_options(synchronize_session=False)
        )
        return self._get_rowcount(result)

    async def mark_used(self, token_id: str) -> bool:
        """
        Compare-and-set is_used from false to true.

        Returns:
            True if this call flipped the flag, False if the token was
            already used (lost a race to another submission).
        """
        result = await self.db.execute(
            update(VoterToken)
            .where(
                VoterToken.id == token_id,
                VoterToken.is_used == False,  # noqa: E712
            )
            .values(is_used=True, used_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return self._get_rowcount(result) == 1
