"""
Token administration service.

Issues, rotates and lists voter tokens and candidate access tokens for
admins. Plaintext tokens leave this module exactly once, in the return value
of the call that minted them; only hashes are persisted.
"""

import asyncio
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import (
    BulkTokensNotAllowedError,
    CandidateNotFoundError,
    SurveyNotFoundError,
    TokenCountOutOfRangeError,
)
from core.security import (
    compute_token_lookup,
    generate_candidate_token,
    generate_voter_token,
    hash_candidate_token,
    hash_voter_token,
)
from models.candidate import Candidate
from models.survey import Survey, TokenPolicy
from repositories.candidate_repository import CandidateRepository
from repositories.survey_repository import SurveyRepository
from repositories.voter_token_repository import VoterTokenRepository
from schemas.converters import voter_token_model_to_state
from schemas.token import (
    BulkTokensResponse,
    IssuedAccessToken,
    IssuedToken,
    SurveyTokensResponse,
)

logger = structlog.get_logger(__name__)


async def _new_voter_secret() -> tuple[str, str, str]:
    """Return (plaintext, slow hash, lookup digest) for a fresh voter token."""
    plaintext = generate_voter_token()
    token_hash = await asyncio.to_thread(hash_voter_token, plaintext)
    return plaintext, token_hash, compute_token_lookup(plaintext)


class TokenService:
    """Admin operations over the token lifecycle."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.surveys = SurveyRepository(db)
        self.candidates = CandidateRepository(db)
        self.tokens = VoterTokenRepository(db)

    async def _get_survey(self, survey_id: str) -> Survey:
        survey = await self.surveys.get_by_id(survey_id)
        if survey is None:
            raise SurveyNotFoundError()
        return survey

    async def _get_candidate(self, survey_id: str, candidate_id: str) -> Candidate:
        await self._get_survey(survey_id)
        candidate = await self.candidates.get_in_survey(candidate_id, survey_id)
        if candidate is None:
            raise CandidateNotFoundError()
        return candidate

    async def issue_candidate_voter_token(self, survey_id: str, candidate_id: str) -> IssuedToken:
        """Mint an additional voter token owned by a candidate."""
        await self._get_candidate(survey_id, candidate_id)
        plaintext, token_hash, lookup_hash = await _new_voter_secret()

        try:
            token = await self.tokens.create(survey_id, token_hash, lookup_hash, candidate_id=candidate_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("voter_token_issued", survey_id=survey_id, candidate_id=candidate_id)
        return IssuedToken(id=token.id, token=plaintext, survey_id=survey_id, candidate_id=candidate_id)

    async def regenerate_candidate_voter_token(self, survey_id: str, candidate_id: str) -> IssuedToken:
        """
        Rotate a candidate's voter token in place.

        The most recent token keeps its id, so votes already cast with it stay
        linked; it gets a new secret and returns to unused. The candidate's
        other unused tokens are removed. A token is created if none exists.
        """
        await self._get_candidate(survey_id, candidate_id)
        plaintext, token_hash, lookup_hash = await _new_voter_secret()

        try:
            token = await self.tokens.latest_for_candidate(survey_id, candidate_id)
            if token is None:
                token = await self.tokens.create(
                    survey_id, token_hash, lookup_hash, candidate_id=candidate_id
                )
                removed = 0
            else:
                token = await self.tokens.rotate(token, token_hash, lookup_hash)
                removed = await self.tokens.delete_unused_duplicates(survey_id, candidate_id, token.id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "voter_token_regenerated",
            survey_id=survey_id,
            candidate_id=candidate_id,
            duplicates_removed=removed,
        )
        return IssuedToken(id=token.id, token=plaintext, survey_id=survey_id, candidate_id=candidate_id)

    async def mint_bulk_tokens(self, survey_id: str, count: int) -> BulkTokensResponse:
        """Mint anonymous single-use voter tokens."""
        survey = await self._get_survey(survey_id)
        if survey.policy is not TokenPolicy.SINGLE_USE:
            raise BulkTokensNotAllowedError()
        if count < 1 or count > settings.BULK_TOKEN_MAX:
            raise TokenCountOutOfRangeError(f"Count must be between 1 and {settings.BULK_TOKEN_MAX}")

        minted = [await _new_voter_secret() for _ in range(count)]

        issued = []
        try:
            for plaintext, token_hash, lookup_hash in minted:
                token = await self.tokens.create(survey_id, token_hash, lookup_hash)
                issued.append(IssuedToken(id=token.id, token=plaintext, survey_id=survey_id))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("bulk_voter_tokens_minted", survey_id=survey_id, count=count)
        return BulkTokensResponse(survey_id=survey_id, tokens=issued)

    async def issue_candidate_access_token(self, survey_id: str, candidate_id: str) -> IssuedAccessToken:
        """(Re)issue the token a candidate reads their results with."""
        await self._get_candidate(survey_id, candidate_id)
        plaintext = generate_candidate_token()

        try:
            await self.candidates.set_access_token_hash(candidate_id, hash_candidate_token(plaintext))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("candidate_access_token_issued", survey_id=survey_id, candidate_id=candidate_id)
        return IssuedAccessToken(candidate_id=candidate_id, survey_id=survey_id, token=plaintext)

    async def list_survey_tokens(
        self,
        survey_id: str,
        candidate_id: Optional[str] = None,
    ) -> SurveyTokensResponse:
        """Token states of a survey, newest first, without secrets."""
        await self._get_survey(survey_id)
        tokens = await self.tokens.list_by_survey(survey_id)
        if candidate_id is not None:
            tokens = [token for token in tokens if token.candidate_id == candidate_id]
        return SurveyTokensResponse(
            survey_id=survey_id,
            tokens=[voter_token_model_to_state(token) for token in tokens],
        )
