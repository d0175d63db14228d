"""
Token resolution service.

Maps a presented plaintext token to the record it stands for and produces
an immutable context value that later operations receive explicitly.

Voter tokens are stored with a slow salted hash, which cannot be looked up
directly. Each row also carries a keyed HMAC digest of the plaintext: the
digest narrows the search to (practically) one row, whose slow hash is then
verified. Rows created without a digest are verified by scanning them with
the slow hash, first match wins.
"""

import asyncio
from dataclasses import dataclass
from typing import Iterable, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import (
    InvalidTokenError,
    NotCandidateTokenError,
    SurveyNotFoundError,
    TokenAlreadyUsedError,
)
from core.security import compute_token_lookup, hash_candidate_token, verify_voter_token
from models.survey import TokenPolicy
from models.voter_token import VoterToken
from repositories.candidate_repository import CandidateRepository
from repositories.survey_repository import SurveyRepository
from repositories.voter_token_repository import VoterTokenRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ResolvedVoterToken:
    """Authorization context of a resolved voter token."""

    voter_token_id: str
    survey_id: str
    owner_candidate_id: Optional[str]
    is_used: bool
    policy: TokenPolicy


@dataclass(frozen=True)
class ResolvedCandidate:
    """Identity of a candidate resolved from a results-capable token."""

    candidate_id: str
    survey_id: str


def ensure_vote_eligible(resolved: ResolvedVoterToken) -> ResolvedVoterToken:
    """
    Policy gate shared by submission, status and own-votes paths.

    Raises:
        TokenAlreadyUsedError: single-use token that has already voted.
    """
    if resolved.policy is TokenPolicy.SINGLE_USE and resolved.is_used:
        logger.info(
            "voter_token_already_used",
            survey_id=resolved.survey_id,
            voter_token_id=resolved.voter_token_id,
        )
        raise TokenAlreadyUsedError()
    return resolved


def _first_match(plaintext: str, rows: Iterable[VoterToken]) -> Optional[VoterToken]:
    for row in rows:
        if verify_voter_token(plaintext, row.token_hash):
            return row
    return None


class TokenResolver:
    """Resolves voter, candidate and results tokens."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tokens = VoterTokenRepository(db)
        self.candidates = CandidateRepository(db)
        self.surveys = SurveyRepository(db)

    async def _match_voter_token(
        self,
        plaintext: str,
        survey_id: Optional[str] = None,
    ) -> Optional[VoterToken]:
        """Find the voter token row matching a plaintext, optionally within a survey."""
        if not plaintext:
            return None

        indexed = await self.tokens.find_by_lookup(compute_token_lookup(plaintext), survey_id)
        # PBKDF2 is CPU bound; keep it off the event loop
        match = await asyncio.to_thread(_first_match, plaintext, indexed)
        if match is not None:
            return match

        unindexed = await self.tokens.list_unindexed(survey_id)
        if not unindexed:
            return None
        return await asyncio.to_thread(_first_match, plaintext, unindexed)

    async def resolve_voter_token(self, plaintext: str, survey_id: str) -> ResolvedVoterToken:
        """
        Resolve a voter token within a survey.

        Raises:
            InvalidTokenError: no token row of the survey matches.
            SurveyNotFoundError: the survey does not exist.
        """
        row = await self._match_voter_token(plaintext, survey_id)
        if row is None:
            logger.info("voter_token_invalid", survey_id=survey_id)
            raise InvalidTokenError()

        survey = await self.surveys.get_by_id(survey_id)
        if survey is None:
            raise SurveyNotFoundError()

        return ResolvedVoterToken(
            voter_token_id=row.id,
            survey_id=row.survey_id,
            owner_candidate_id=row.candidate_id,
            is_used=bool(row.is_used),
            policy=survey.policy,
        )

    async def resolve_eligible_voter_token(self, plaintext: str, survey_id: str) -> ResolvedVoterToken:
        """Resolve a voter token and apply the single-use policy gate."""
        return ensure_vote_eligible(await self.resolve_voter_token(plaintext, survey_id))

    async def resolve_candidate_token(
        self,
        plaintext: str,
        survey_id: Optional[str] = None,
    ) -> ResolvedCandidate:
        """
        Resolve a candidate access token by indexed hash equality.

        Raises:
            InvalidTokenError: no candidate carries this access token.
        """
        if not plaintext:
            raise InvalidTokenError("Invalid candidate token")

        candidate = await self.candidates.get_by_access_token_hash(
            hash_candidate_token(plaintext),
            survey_id,
        )
        if candidate is None:
            raise InvalidTokenError("Invalid candidate token")

        return ResolvedCandidate(candidate_id=candidate.id, survey_id=candidate.survey_id)

    async def resolve_results_token(self, plaintext: str) -> ResolvedCandidate:
        """
        Resolve a token allowed to read a candidate's own results.

        Accepts a candidate access token, or a voter token owned by a
        candidate.

        Raises:
            NotCandidateTokenError: a voter token matched but it is anonymous.
            InvalidTokenError: nothing matched.
        """
        try:
            return await self.resolve_candidate_token(plaintext)
        except InvalidTokenError:
            pass

        row = await self._match_voter_token(plaintext)
        if row is None:
            raise InvalidTokenError("Invalid token")

        if row.candidate_id is None:
            logger.info("results_requested_with_vote_only_token", survey_id=row.survey_id)
            raise NotCandidateTokenError()

        return ResolvedCandidate(candidate_id=row.candidate_id, survey_id=row.survey_id)
