"""
Tests for the self-vote guard.
"""

import pytest


def _resolved(owner: str | None, policy: str = "multi_candidate"):
    from models.survey import TokenPolicy
    from services.token_resolver import ResolvedVoterToken

    return ResolvedVoterToken(
        voter_token_id="tok-1",
        survey_id="survey-1",
        owner_candidate_id=owner,
        is_used=False,
        policy=TokenPolicy(policy),
    )


@pytest.mark.unit
class TestAssertNotSelfVote:
    @pytest.mark.parametrize("policy", ["multi_candidate", "single_use"])
    def test_owner_cannot_vote_for_self(self, policy: str) -> None:
        from core.exceptions import SelfVoteForbiddenError
        from services.self_vote_guard import assert_not_self_vote

        with pytest.raises(SelfVoteForbiddenError):
            assert_not_self_vote(_resolved("cand-x", policy), "cand-x")

    def test_owner_can_vote_for_peer(self) -> None:
        from services.self_vote_guard import assert_not_self_vote

        assert_not_self_vote(_resolved("cand-x"), "cand-y")

    def test_anonymous_token_has_no_self(self) -> None:
        from services.self_vote_guard import assert_not_self_vote

        assert_not_self_vote(_resolved(None), "cand-x")
