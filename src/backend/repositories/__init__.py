"""Repository modules for database access."""

from repositories.candidate_repository import CandidateRepository
from repositories.survey_repository import SurveyRepository
from repositories.vote_repository import VoteRepository
from repositories.voter_token_repository import VoterTokenRepository

__all__ = [
    "CandidateRepository",
    "SurveyRepository",
    "VoteRepository",
    "VoterTokenRepository",
]
