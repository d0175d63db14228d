"""
Tests for vote submission and per-token reads.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select, update


async def _resolve(session_factory, plaintext: str, survey_id: str):
    from services.token_resolver import TokenResolver

    async with session_factory() as session:
        return await TokenResolver(session).resolve_voter_token(plaintext, survey_id)


async def _count_votes(session_factory, **filters) -> int:
    from models import Vote

    query = select(func.count(Vote.id))
    for name, value in filters.items():
        query = query.where(getattr(Vote, name) == value)
    async with session_factory() as session:
        return (await session.execute(query)).scalar() or 0


@pytest.mark.integration
class TestMultiCandidatePolicy:
    async def test_submit_then_edit_keeps_one_row(self, seed_survey, session_factory) -> None:
        from models import Vote
        from services.vote_ledger import VoteLedger

        seeded = await seed_survey()
        opt1, opt2 = seeded.strength_option_ids[:2]
        target = seeded.candidate_ids["yara"]
        resolved = await _resolve(session_factory, seeded.voter_tokens["xavier"], seeded.survey_id)

        async with session_factory() as session:
            first_id = await VoteLedger(session).submit_vote(resolved, target, [opt1], [])
        async with session_factory() as session:
            second_id = await VoteLedger(session).submit_vote(resolved, target, [opt1, opt2], [], "Great")

        assert first_id == second_id
        assert await _count_votes(
            session_factory,
            survey_id=seeded.survey_id,
            voter_token_id=resolved.voter_token_id,
            candidate_id=target,
        ) == 1

        async with session_factory() as session:
            vote = (await session.execute(select(Vote).where(Vote.id == first_id))).scalar_one()
        assert vote.strength_ids == [opt1, opt2]
        assert vote.feedback_text == "Great"

    async def test_one_token_reviews_several_candidates(self, seed_survey, session_factory) -> None:
        from services.vote_ledger import VoteLedger

        seeded = await seed_survey()
        resolved = await _resolve(session_factory, seeded.voter_tokens["xavier"], seeded.survey_id)

        async with session_factory() as session:
            ledger = VoteLedger(session)
            await ledger.submit_vote(resolved, seeded.candidate_ids["yara"], [], [])
            await ledger.submit_vote(resolved, seeded.candidate_ids["zane"], [], [])

        assert await _count_votes(session_factory, voter_token_id=resolved.voter_token_id) == 2

    async def test_option_ids_are_deduplicated_and_blank_text_dropped(
        self, seed_survey, session_factory
    ) -> None:
        from services.vote_ledger import VoteLedger

        seeded = await seed_survey()
        opt1, opt2 = seeded.strength_option_ids[:2]
        resolved = await _resolve(session_factory, seeded.voter_tokens["xavier"], seeded.survey_id)

        async with session_factory() as session:
            ledger = VoteLedger(session)
            await ledger.submit_vote(resolved, seeded.candidate_ids["yara"], [opt2, opt1, opt2], "", "   ")
            mine = await ledger.get_my_votes(resolved)

        assert mine.votes[0].strength_ids == [opt2, opt1]
        assert mine.votes[0].weakness_ids == []
        assert mine.votes[0].feedback_text is None


@pytest.mark.integration
class TestSingleUsePolicy:
    async def test_second_vote_is_rejected(self, seed_survey, session_factory) -> None:
        from core.exceptions import TokenAlreadyUsedError
        from models import VoterToken
        from services.vote_ledger import VoteLedger

        seeded = await seed_survey(policy="single_use", anonymous=1)
        plaintext = seeded.anonymous_tokens[0]
        resolved = await _resolve(session_factory, plaintext, seeded.survey_id)

        async with session_factory() as session:
            await VoteLedger(session).submit_vote(resolved, seeded.candidate_ids["yara"], [], [])

        async with session_factory() as session:
            token = await session.get(VoterToken, resolved.voter_token_id)
            assert token.is_used is True
            assert token.used_at is not None

        # Fresh resolution sees the token closed
        fresh = await _resolve(session_factory, plaintext, seeded.survey_id)
        assert fresh.is_used is True

        # A stale context still cannot vote again
        async with session_factory() as session:
            with pytest.raises(TokenAlreadyUsedError):
                await VoteLedger(session).submit_vote(resolved, seeded.candidate_ids["zane"], [], [])

        assert await _count_votes(session_factory, voter_token_id=resolved.voter_token_id) == 1

    async def test_same_candidate_cannot_be_edited(self, seed_survey, session_factory) -> None:
        from core.exceptions import TokenAlreadyUsedError
        from services.vote_ledger import VoteLedger

        seeded = await seed_survey(policy="single_use", anonymous=1)
        resolved = await _resolve(session_factory, seeded.anonymous_tokens[0], seeded.survey_id)
        target = seeded.candidate_ids["yara"]

        async with session_factory() as session:
            await VoteLedger(session).submit_vote(resolved, target, ["a"], [])
        async with session_factory() as session:
            with pytest.raises(TokenAlreadyUsedError):
                await VoteLedger(session).submit_vote(resolved, target, ["b"], [])

    async def test_lost_compare_and_set_rolls_back(self, seed_survey, session_factory) -> None:
        from core.exceptions import ConcurrentConflictError
        from models import VoterToken
        from services.vote_ledger import VoteLedger

        seeded = await seed_survey(policy="single_use", anonymous=1)
        resolved = await _resolve(session_factory, seeded.anonymous_tokens[0], seeded.survey_id)

        # Token closed by someone else after resolution, no vote row yet
        async with session_factory() as session:
            await session.execute(
                update(VoterToken).where(VoterToken.id == resolved.voter_token_id).values(is_used=True)
            )
            await session.commit()

        async with session_factory() as session:
            with pytest.raises(ConcurrentConflictError):
                await VoteLedger(session).submit_vote(resolved, seeded.candidate_ids["yara"], ["a"], [])

        assert await _count_votes(session_factory, voter_token_id=resolved.voter_token_id) == 0

    async def test_concurrent_submissions_produce_one_vote(self, seed_survey, session_factory) -> None:
        from core.exceptions import TokenAlreadyUsedError
        from services.vote_ledger import VoteLedger

        seeded = await seed_survey(policy="single_use", anonymous=1)
        resolved = await _resolve(session_factory, seeded.anonymous_tokens[0], seeded.survey_id)

        async def submit(candidate_id: str) -> str:
            async with session_factory() as session:
                return await VoteLedger(session).submit_vote(resolved, candidate_id, [], [])

        results = await asyncio.gather(
            submit(seeded.candidate_ids["yara"]),
            submit(seeded.candidate_ids["zane"]),
            return_exceptions=True,
        )

        successes = [result for result in results if isinstance(result, str)]
        failures = [result for result in results if isinstance(result, BaseException)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], TokenAlreadyUsedError)
        assert await _count_votes(session_factory, voter_token_id=resolved.voter_token_id) == 1


@pytest.mark.integration
class TestPreconditions:
    @pytest.mark.parametrize("policy", ["multi_candidate", "single_use"])
    async def test_self_vote_is_forbidden(self, seed_survey, session_factory, policy: str) -> None:
        from core.exceptions import SelfVoteForbiddenError
        from services.vote_ledger import VoteLedger

        seeded = await seed_survey(policy=policy)
        resolved = await _resolve(session_factory, seeded.voter_tokens["xavier"], seeded.survey_id)

        async with session_factory() as session:
            with pytest.raises(SelfVoteForbiddenError):
                await VoteLedger(session).submit_vote(resolved, seeded.candidate_ids["xavier"], [], [])

        assert await _count_votes(session_factory, voter_token_id=resolved.voter_token_id) == 0

    @pytest.mark.parametrize("status", ["draft", "closed"])
    async def test_inactive_survey(self, seed_survey, session_factory, status: str) -> None:
        from core.exceptions import SurveyNotActiveError
        from services.vote_ledger import VoteLedger

        seeded = await seed_survey(status=status)
        resolved = await _resolve(session_factory, seeded.voter_tokens["xavier"], seeded.survey_id)

        async with session_factory() as session:
            with pytest.raises(SurveyNotActiveError):
                await VoteLedger(session).submit_vote(resolved, seeded.candidate_ids["yara"], [], [])

    async def test_expired_survey(self, seed_survey, session_factory) -> None:
        from core.exceptions import SurveyNotActiveError
        from services.vote_ledger import VoteLedger

        seeded = await seed_survey(expires_at=datetime.now(timezone.utc) - timedelta(hours=1))
        resolved = await _resolve(session_factory, seeded.voter_tokens["xavier"], seeded.survey_id)

        async with session_factory() as session:
            with pytest.raises(SurveyNotActiveError):
                await VoteLedger(session).submit_vote(resolved, seeded.candidate_ids["yara"], [], [])

    async def test_candidate_from_another_survey(self, seed_survey, session_factory) -> None:
        from core.exceptions import CandidateNotFoundError
        from services.vote_ledger import VoteLedger

        seeded = await seed_survey()
        other = await seed_survey()
        resolved = await _resolve(session_factory, seeded.voter_tokens["xavier"], seeded.survey_id)

        async with session_factory() as session:
            with pytest.raises(CandidateNotFoundError):
                await VoteLedger(session).submit_vote(resolved, other.candidate_ids["yara"], [], [])


@pytest.mark.integration
class TestTokenReads:
    async def test_status_lists_voted_candidates_and_owner(self, seed_survey, session_factory) -> None:
        from services.vote_ledger import VoteLedger

        seeded = await seed_survey()
        resolved = await _resolve(session_factory, seeded.voter_tokens["xavier"], seeded.survey_id)

        async with session_factory() as session:
            ledger = VoteLedger(session)
            before = await ledger.get_vote_status(resolved)
            await ledger.submit_vote(resolved, seeded.candidate_ids["zane"], [], [])
            after = await ledger.get_vote_status(resolved)

        assert before.valid is True
        assert before.voted_candidate_ids == []
        assert after.voted_candidate_ids == [seeded.candidate_ids["zane"]]
        assert after.token_owner is not None
        assert after.token_owner.id == seeded.candidate_ids["xavier"]
        assert after.token_owner.name == "Xavier"

    async def test_anonymous_token_has_no_owner(self, seed_survey, session_factory) -> None:
        from services.vote_ledger import VoteLedger

        seeded = await seed_survey(policy="single_use", anonymous=1)
        resolved = await _resolve(session_factory, seeded.anonymous_tokens[0], seeded.survey_id)

        async with session_factory() as session:
            status = await VoteLedger(session).get_vote_status(resolved)

        assert status.token_owner is None

    async def test_my_votes_only_include_this_token(self, seed_survey, session_factory) -> None:
        from services.vote_ledger import VoteLedger

        seeded = await seed_survey()
        mine = await _resolve(session_factory, seeded.voter_tokens["xavier"], seeded.survey_id)
        theirs = await _resolve(session_factory, seeded.voter_tokens["yara"], seeded.survey_id)

        async with session_factory() as session:
            ledger = VoteLedger(session)
            await ledger.submit_vote(mine, seeded.candidate_ids["zane"], ["a"], [], "Solid")
            await ledger.submit_vote(theirs, seeded.candidate_ids["zane"], ["b"], [])
            response = await ledger.get_my_votes(mine)

        assert len(response.votes) == 1
        assert response.votes[0].candidate_id == seeded.candidate_ids["zane"]
        assert response.votes[0].strength_ids == ["a"]
        assert response.votes[0].feedback_text == "Solid"
