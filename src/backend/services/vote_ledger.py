"""
Vote ledger service.

Records feedback votes keyed by (survey, voter token, target candidate).

Single-use enforcement happens in two steps inside one transaction: an
advisory check for an existing vote, then a compare-and-set on the token's
is_used flag. Only the compare-and-set is authoritative; a submission that
loses the race rolls back with ConcurrentConflictError.
"""

from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import (
    CandidateNotFoundError,
    ConcurrentConflictError,
    InvalidTokenError,
    SurveyNotActiveError,
    SurveyNotFoundError,
    TokenAlreadyUsedError,
)
from db.types import normalize_id_array
from models.survey import TokenPolicy
from repositories.candidate_repository import CandidateRepository
from repositories.survey_repository import SurveyRepository
from repositories.vote_repository import VoteRepository
from repositories.voter_token_repository import VoterTokenRepository
from schemas.converters import candidate_model_to_summary, vote_model_to_own_vote
from schemas.vote import MyVotesResponse, VoteStatus
from services.self_vote_guard import assert_not_self_vote
from services.token_resolver import ResolvedVoterToken

logger = structlog.get_logger(__name__)


def _clean_option_ids(value: Any) -> list[str]:
    """Normalize and de-duplicate option ids, keeping first occurrence order."""
    return list(dict.fromkeys(normalize_id_array(value)))


def _clean_feedback_text(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    stripped = text.strip()
    return stripped or None


class VoteLedger:
    """Submission and per-token reads of feedback votes."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.surveys = SurveyRepository(db)
        self.candidates = CandidateRepository(db)
        self.tokens = VoterTokenRepository(db)
        self.votes = VoteRepository(db)

    async def submit_vote(
        self,
        resolved: ResolvedVoterToken,
        candidate_id: str,
        strength_ids: Any,
        weakness_ids: Any,
        feedback_text: Optional[str] = None,
    ) -> str:
        """
        Cast or edit a vote for a candidate.

        Returns:
            The id of the inserted or updated vote row.

        Raises:
            SurveyNotFoundError, SurveyNotActiveError, CandidateNotFoundError,
            SelfVoteForbiddenError, InvalidTokenError, TokenAlreadyUsedError,
            ConcurrentConflictError
        """
        survey_id = resolved.survey_id

        survey = await self.surveys.get_by_id(survey_id)
        if survey is None:
            raise SurveyNotFoundError()
        if not survey.accepts_votes():
            raise SurveyNotActiveError()

        candidate = await self.candidates.get_in_survey(candidate_id, survey_id)
        if candidate is None:
            raise CandidateNotFoundError()

        assert_not_self_vote(resolved, candidate_id)

        strengths = _clean_option_ids(strength_ids)
        weaknesses = _clean_option_ids(weakness_ids)
        text = _clean_feedback_text(feedback_text)
        single_use = resolved.policy is TokenPolicy.SINGLE_USE

        try:
            token = await self.tokens.lock(resolved.voter_token_id)
            if token is None or token.survey_id != survey_id:
                raise InvalidTokenError()

            if single_use and await self.votes.exists_for_token(survey_id, token.id):
                raise TokenAlreadyUsedError()

            vote_id = await self.votes.upsert(
                survey_id=survey_id,
                candidate_id=candidate_id,
                voter_token_id=token.id,
                strength_ids=strengths,
                weakness_ids=weaknesses,
                feedback_text=text,
            )

            if single_use and not await self.tokens.mark_used(token.id):
                raise ConcurrentConflictError()

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "vote_recorded",
            survey_id=survey_id,
            candidate_id=candidate_id,
            policy=resolved.policy.value,
            strengths=len(strengths),
            weaknesses=len(weaknesses),
        )
        return vote_id

    async def get_vote_status(self, resolved: ResolvedVoterToken) -> VoteStatus:
        """Which candidates this token has reviewed, and who owns it."""
        votes = await self.votes.list_by_token(resolved.survey_id, resolved.voter_token_id)

        owner = None
        if resolved.owner_candidate_id is not None:
            candidate = await self.candidates.get_by_id(resolved.owner_candidate_id)
            if candidate is not None:
                owner = candidate_model_to_summary(candidate)

        return VoteStatus(
            valid=True,
            voted_candidate_ids=list(dict.fromkeys(vote.candidate_id for vote in votes)),
            token_owner=owner,
        )

    async def get_my_votes(self, resolved: ResolvedVoterToken) -> MyVotesResponse:
        """Votes cast with this token, oldest first."""
        votes = await self.votes.list_by_token(resolved.survey_id, resolved.voter_token_id)
        return MyVotesResponse(votes=[vote_model_to_own_vote(vote) for vote in votes])
