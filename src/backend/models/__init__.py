"""Database models module."""

from models.survey import Survey, SurveyStatus, TokenPolicy
from models.candidate import Candidate
from models.feedback_option import FeedbackOption, FeedbackType
from models.voter_token import VoterToken
from models.vote import Vote

__all__ = [
    "Survey",
    "SurveyStatus",
    "TokenPolicy",
    "Candidate",
    "FeedbackOption",
    "FeedbackType",
    "VoterToken",
    "Vote",
]
