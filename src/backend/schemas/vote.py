"""
Vote-related Pydantic schemas.

These schemas handle token-authenticated feedback submission. The token may
arrive in the Authorization header or, as a fallback, in the body.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class VoteCreate(BaseModel):
    """Schema for submitting feedback about one candidate."""

    survey_id: str
    candidate_id: str
    strength_ids: list[str] = Field(default_factory=list)
    weakness_ids: list[str] = Field(default_factory=list)
    feedback_text: Optional[str] = Field(None, max_length=5000)
    token: Optional[str] = Field(None, description="Voter token (if not sent as Bearer)")


class VoteResponse(BaseModel):
    """Response after successfully submitting a vote."""

    success: bool
    message: str
    vote_id: str


class VoterTokenRequest(BaseModel):
    """Body for status and own-votes lookups."""

    survey_id: str
    token: Optional[str] = None


class CandidateSummary(BaseModel):
    """Public candidate identity (used for token owner and results headers)."""

    id: str
    name: Optional[str] = None
    employee_id: Optional[str] = None
    department: Optional[str] = None


class VoteStatus(BaseModel):
    """Which candidates this token has already reviewed (without revealing content)."""

    valid: bool
    voted_candidate_ids: list[str]
    token_owner: Optional[CandidateSummary] = None


class OwnVote(BaseModel):
    """A vote as seen by the token that cast it (for highlight / edit)."""

    candidate_id: str
    strength_ids: list[str]
    weakness_ids: list[str]
    feedback_text: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MyVotesResponse(BaseModel):
    votes: list[OwnVote]
