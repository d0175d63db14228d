"""
Admin endpoints for token management.

All endpoints require an admin JWT. Plaintext tokens are returned only by
the call that mints them.
"""

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_admin
from db.session import get_db
from schemas.token import (
    BulkTokenRequest,
    BulkTokensResponse,
    CandidateTokenRequest,
    IssuedAccessToken,
    IssuedToken,
    SurveyTokensResponse,
)
from services.token_service import TokenService

router = APIRouter()

AdminPayload = Annotated[dict[str, Any], Depends(get_current_admin)]


@router.post("/tokens/candidate", response_model=IssuedToken, status_code=status.HTTP_201_CREATED)
async def issue_candidate_token(
    request_data: CandidateTokenRequest,
    _admin: AdminPayload,
    db: AsyncSession = Depends(get_db),
) -> IssuedToken:
    """Mint an additional voter token owned by a candidate."""
    return await TokenService(db).issue_candidate_voter_token(request_data.survey_id, request_data.candidate_id)


@router.post("/tokens/regenerate", response_model=IssuedToken)
async def regenerate_candidate_token(
    request_data: CandidateTokenRequest,
    _admin: AdminPayload,
    db: AsyncSession = Depends(get_db),
) -> IssuedToken:
    """
    Rotate a candidate's voter token.

    The token keeps its id and returns to unused; the old plaintext stops
    working. Votes already cast stay in place.
    """
    return await TokenService(db).regenerate_candidate_voter_token(
        request_data.survey_id, request_data.candidate_id
    )


@router.post("/tokens/bulk", response_model=BulkTokensResponse, status_code=status.HTTP_201_CREATED)
async def mint_bulk_tokens(
    request_data: BulkTokenRequest,
    _admin: AdminPayload,
    db: AsyncSession = Depends(get_db),
) -> BulkTokensResponse:
    """Mint anonymous tokens for a single-use survey."""
    return await TokenService(db).mint_bulk_tokens(request_data.survey_id, request_data.count)


@router.post("/tokens/access", response_model=IssuedAccessToken)
async def issue_access_token(
    request_data: CandidateTokenRequest,
    _admin: AdminPayload,
    db: AsyncSession = Depends(get_db),
) -> IssuedAccessToken:
    """(Re)issue a candidate's results access token."""
    return await TokenService(db).issue_candidate_access_token(request_data.survey_id, request_data.candidate_id)


@router.get("/surveys/{survey_id}/tokens", response_model=SurveyTokensResponse)
async def list_survey_tokens(
    survey_id: str,
    _admin: AdminPayload,
    candidate_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
) -> SurveyTokensResponse:
    """Token states of a survey (never hashes or plaintexts)."""
    return await TokenService(db).list_survey_tokens(survey_id, candidate_id)
