"""
Business error taxonomy for token resolution and vote submission.

Every error here is an expected, user-facing condition. The API layer turns
them into structured JSON responses; none of them is retried server side.
"""

from fastapi import status


class VotingError(Exception):
    """Base exception for voting operations."""

    code = "voting_error"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Request could not be processed"
    retryable = False

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self) -> dict:
        body = {"error": self.code, "detail": self.message}
        if self.retryable:
            body["retryable"] = True
        return body


class MissingTokenError(VotingError):
    """No token was presented."""

    code = "missing_token"
    message = "Missing token"


class InvalidTokenError(VotingError):
    """Token does not resolve to any known token record."""

    code = "invalid_token"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Invalid token for this survey"


class TokenAlreadyUsedError(VotingError):
    """Token resolved but its single-use policy has closed it."""

    code = "token_already_used"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Token already used"


class ConcurrentConflictError(TokenAlreadyUsedError):
    """
    Lost the compare-and-set on the voter token to a concurrent submission.

    Reported like TokenAlreadyUsedError. A single client retry is safe: it
    either succeeds or resolves to TokenAlreadyUsedError.
    """

    status_code = status.HTTP_409_CONFLICT
    retryable = True


class NotCandidateTokenError(VotingError):
    """Token resolved as a vote-only token where a candidate identity was required."""

    code = "not_candidate_token"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Only candidate tokens can view feedback results. This token is for voting only."


class SelfVoteForbiddenError(VotingError):
    """Token owner tried to vote for themselves."""

    code = "self_vote_forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    message = "You cannot vote for yourself"


class SurveyNotFoundError(VotingError):
    code = "survey_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Survey not found"


class SurveyNotActiveError(VotingError):
    code = "survey_not_active"
    status_code = status.HTTP_409_CONFLICT
    message = "Survey is not accepting votes"


class CandidateNotFoundError(VotingError):
    code = "candidate_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Candidate not found"


class BulkTokensNotAllowedError(VotingError):
    code = "bulk_tokens_not_allowed"
    message = "Bulk tokens are only allowed for single-use surveys"


class TokenCountOutOfRangeError(VotingError):
    code = "invalid_token_count"
    message = "Token count is out of range"
