"""
Admin token management schemas.

Plaintext tokens appear only in issuance responses, exactly once.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CandidateTokenRequest(BaseModel):
    survey_id: str
    candidate_id: str


class BulkTokenRequest(BaseModel):
    survey_id: str
    count: int = Field(..., ge=1)


class IssuedToken(BaseModel):
    """Freshly minted voter token (plaintext shown once)."""

    id: str
    token: str
    survey_id: str
    candidate_id: Optional[str] = None


class BulkTokensResponse(BaseModel):
    survey_id: str
    tokens: list[IssuedToken]


class IssuedAccessToken(BaseModel):
    """Freshly issued candidate access token (plaintext shown once)."""

    candidate_id: str
    survey_id: str
    token: str


class TokenState(BaseModel):
    """Lifecycle state of a voter token, without any secret material."""

    id: str
    candidate_id: Optional[str] = None
    is_used: bool
    used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class SurveyTokensResponse(BaseModel):
    survey_id: str
    tokens: list[TokenState]
