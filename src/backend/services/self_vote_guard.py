"""
Self-vote guard.

A candidate-owned voter token may review anyone in its survey except the
candidate it belongs to.
"""

import structlog

from core.exceptions import SelfVoteForbiddenError
from services.token_resolver import ResolvedVoterToken

logger = structlog.get_logger(__name__)


def assert_not_self_vote(resolved: ResolvedVoterToken, target_candidate_id: str) -> None:
    """
    Reject a vote whose target is the token's own candidate.

    The owner is the one captured when the token was resolved, never
    re-read from storage.

    Raises:
        SelfVoteForbiddenError: owner and target are the same candidate.
    """
    if resolved.owner_candidate_id is not None and resolved.owner_candidate_id == target_candidate_id:
        logger.warning(
            "self_vote_rejected",
            survey_id=resolved.survey_id,
            candidate_id=target_candidate_id,
        )
        raise SelfVoteForbiddenError()
