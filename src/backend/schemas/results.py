"""
Candidate results schemas.

Aggregated, anonymized feedback. Nothing here identifies a voter token.
"""

from typing import Optional

from pydantic import BaseModel, Field

from schemas.vote import CandidateSummary


class OptionCount(BaseModel):
    """How many votes selected one feedback option."""

    id: str
    text: str
    count: int


class ResultsSummary(BaseModel):
    strengths: list[OptionCount] = Field(default_factory=list)
    weaknesses: list[OptionCount] = Field(default_factory=list)


class CandidateAggregate(BaseModel):
    """Aggregator output for one candidate."""

    total_votes: int
    strengths: list[OptionCount] = Field(default_factory=list)
    weaknesses: list[OptionCount] = Field(default_factory=list)
    comments: list[str] = Field(default_factory=list)


class ResultsTokenRequest(BaseModel):
    """Body for token-only results lookup."""

    token: Optional[str] = None


class CandidateResults(BaseModel):
    """Results payload returned to a candidate."""

    candidate: CandidateSummary
    candidate_id: str
    survey_id: str
    total_votes: int
    summary: ResultsSummary
    comments: list[str]
