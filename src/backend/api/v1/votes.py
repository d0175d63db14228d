"""
Vote endpoints.

Token-authenticated feedback submission and results. A token is sent as
`Authorization: Bearer <token>` or, as a fallback, in the body field `token`.

Business errors (VotingError) propagate to the application exception
handler, which renders them as {"error": <code>, "detail": <message>}.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import bearer_token, require_token
from core.exceptions import CandidateNotFoundError
from db.session import get_db
from repositories.candidate_repository import CandidateRepository
from schemas.converters import candidate_model_to_summary
from schemas.results import CandidateResults, ResultsSummary, ResultsTokenRequest
from schemas.vote import MyVotesResponse, VoteCreate, VoteResponse, VoterTokenRequest, VoteStatus
from services.aggregator import Aggregator
from services.token_resolver import ResolvedCandidate, TokenResolver
from services.vote_ledger import VoteLedger

router = APIRouter()


async def _candidate_results(db: AsyncSession, resolved: ResolvedCandidate) -> CandidateResults:
    candidate = await CandidateRepository(db).get_in_survey(resolved.candidate_id, resolved.survey_id)
    if candidate is None:
        raise CandidateNotFoundError()

    aggregate = await Aggregator(db).aggregate_for_candidate(resolved.survey_id, resolved.candidate_id)
    return CandidateResults(
        candidate=candidate_model_to_summary(candidate),
        candidate_id=resolved.candidate_id,
        survey_id=resolved.survey_id,
        total_votes=aggregate.total_votes,
        summary=ResultsSummary(strengths=aggregate.strengths, weaknesses=aggregate.weaknesses),
        comments=aggregate.comments,
    )


@router.post("", response_model=VoteResponse, status_code=status.HTTP_201_CREATED)
async def submit_vote(
    vote_data: VoteCreate,
    header_token: Annotated[Optional[str], Depends(bearer_token)],
    db: AsyncSession = Depends(get_db),
) -> VoteResponse:
    """
    Submit feedback about one candidate.

    Under multi_candidate policy a second submission for the same candidate
    edits the existing vote. Under single_use policy the token is closed
    after its first vote.
    """
    token = require_token(header_token, vote_data.token)
    resolved = await TokenResolver(db).resolve_eligible_voter_token(token, vote_data.survey_id)

    vote_id = await VoteLedger(db).submit_vote(
        resolved,
        candidate_id=vote_data.candidate_id,
        strength_ids=vote_data.strength_ids,
        weakness_ids=vote_data.weakness_ids,
        feedback_text=vote_data.feedback_text,
    )

    return VoteResponse(success=True, message="Feedback submitted successfully", vote_id=vote_id)


@router.post("/status", response_model=VoteStatus)
async def check_vote_status(
    request_data: VoterTokenRequest,
    header_token: Annotated[Optional[str], Depends(bearer_token)],
    db: AsyncSession = Depends(get_db),
) -> VoteStatus:
    """Validate a voter token and list the candidates it has reviewed."""
    token = require_token(header_token, request_data.token)
    resolved = await TokenResolver(db).resolve_eligible_voter_token(token, request_data.survey_id)
    return await VoteLedger(db).get_vote_status(resolved)


@router.post("/mine", response_model=MyVotesResponse)
async def get_my_votes(
    request_data: VoterTokenRequest,
    header_token: Annotated[Optional[str], Depends(bearer_token)],
    db: AsyncSession = Depends(get_db),
) -> MyVotesResponse:
    """Votes previously cast with this token (to highlight or edit them)."""
    token = require_token(header_token, request_data.token)
    resolved = await TokenResolver(db).resolve_eligible_voter_token(token, request_data.survey_id)
    return await VoteLedger(db).get_my_votes(resolved)


@router.get("/results/{survey_id}", response_model=CandidateResults)
async def get_survey_results(
    survey_id: str,
    header_token: Annotated[Optional[str], Depends(bearer_token)],
    db: AsyncSession = Depends(get_db),
) -> CandidateResults:
    """Aggregated feedback for the candidate owning the access token."""
    token = require_token(header_token)
    resolved = await TokenResolver(db).resolve_candidate_token(token, survey_id)
    return await _candidate_results(db, resolved)


@router.post("/results/my", response_model=CandidateResults)
async def get_my_results(
    request_data: ResultsTokenRequest,
    header_token: Annotated[Optional[str], Depends(bearer_token)],
    db: AsyncSession = Depends(get_db),
) -> CandidateResults:
    """
    Aggregated feedback, located by token alone.

    Accepts a candidate access token or a candidate-owned voter token.
    Anonymous voter tokens are rejected as vote-only.
    """
    token = require_token(header_token, request_data.token)
    resolved = await TokenResolver(db).resolve_results_token(token)
    return await _candidate_results(db, resolved)
