"""
Schema converter functions.

Centralized helper functions for converting SQLAlchemy models to Pydantic schemas.
These are the single source of truth for model-to-schema conversions.
"""

from typing import TYPE_CHECKING

from schemas.token import TokenState
from schemas.vote import CandidateSummary, OwnVote

if TYPE_CHECKING:
    from models.candidate import Candidate
    from models.vote import Vote
    from models.voter_token import VoterToken


def candidate_model_to_summary(candidate: "Candidate") -> CandidateSummary:
    """Convert a Candidate model to its public summary."""
    return CandidateSummary(
        id=str(candidate.id),
        name=candidate.name,
        employee_id=candidate.employee_id,
        department=candidate.department,
    )


def vote_model_to_own_vote(vote: "Vote") -> OwnVote:
    """Convert a Vote model to the voter's own view of it."""
    return OwnVote(
        candidate_id=str(vote.candidate_id),
        strength_ids=list(vote.strength_ids or []),
        weakness_ids=list(vote.weakness_ids or []),
        feedback_text=vote.feedback_text,
        created_at=vote.created_at,
        updated_at=vote.updated_at,
    )


def voter_token_model_to_state(token: "VoterToken") -> TokenState:
    """Convert a VoterToken model to a secret-free state record."""
    return TokenState(
        id=str(token.id),
        candidate_id=token.candidate_id,
        is_used=bool(token.is_used),
        used_at=token.used_at,
        created_at=token.created_at,
    )
