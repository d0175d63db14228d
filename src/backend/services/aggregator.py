"""
Results aggregation service.

Turns the votes received by one candidate into per-option counts and a list
of free-text comments. Nothing in the output identifies a voter token.
"""

from collections.abc import Iterable, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from db.types import normalize_id_array
from models.feedback_option import FeedbackOption
from models.vote import Vote
from repositories.survey_repository import SurveyRepository
from repositories.vote_repository import VoteRepository
from schemas.results import CandidateAggregate, OptionCount

logger = structlog.get_logger(__name__)


def _count_ids(values: Iterable[object]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for value in values:
        for option_id in normalize_id_array(value):
            counts[option_id] = counts.get(option_id, 0) + 1
    return counts


def _ranked(counts: dict[str, int], text_by_id: dict[str, str]) -> list[OptionCount]:
    # sorted() is stable: equal counts keep first-seen order
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [
        OptionCount(id=option_id, text=text_by_id.get(option_id, option_id), count=count)
        for option_id, count in ranked
    ]


def aggregate_votes(votes: Sequence[Vote], options: Iterable[FeedbackOption]) -> CandidateAggregate:
    """
    Aggregate vote rows against the survey's feedback options.

    Options deleted after votes were cast are reported under their raw id.
    """
    text_by_id = {str(option.id): option.option_text for option in options}

    strengths = _count_ids(vote.strength_ids for vote in votes)
    weaknesses = _count_ids(vote.weakness_ids for vote in votes)

    comments = []
    for vote in votes:
        text = (vote.feedback_text or "").strip()
        if text:
            comments.append(text)

    return CandidateAggregate(
        total_votes=len(votes),
        strengths=_ranked(strengths, text_by_id),
        weaknesses=_ranked(weaknesses, text_by_id),
        comments=comments,
    )


class Aggregator:
    """Loads a candidate's votes and aggregates them."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.votes = VoteRepository(db)
        self.surveys = SurveyRepository(db)

    async def aggregate_for_candidate(self, survey_id: str, candidate_id: str) -> CandidateAggregate:
        votes = await self.votes.list_for_candidate(survey_id, candidate_id)
        options = await self.surveys.list_feedback_options(survey_id)
        aggregate = aggregate_votes(votes, options)
        logger.debug(
            "candidate_results_aggregated",
            survey_id=survey_id,
            candidate_id=candidate_id,
            total_votes=aggregate.total_votes,
        )
        return aggregate
