"""Schemas module initialization."""

from schemas.results import CandidateAggregate, CandidateResults, OptionCount, ResultsSummary
from schemas.token import BulkTokensResponse, IssuedAccessToken, IssuedToken, TokenState
from schemas.vote import CandidateSummary, MyVotesResponse, OwnVote, VoteCreate, VoteResponse, VoteStatus

__all__ = [
    "VoteCreate",
    "VoteResponse",
    "VoteStatus",
    "OwnVote",
    "MyVotesResponse",
    "CandidateSummary",
    "OptionCount",
    "ResultsSummary",
    "CandidateAggregate",
    "CandidateResults",
    "IssuedToken",
    "IssuedAccessToken",
    "BulkTokensResponse",
    "TokenState",
]
