"""Review pool exception hierarchy.

Every rejection raised by the core is a ReviewError subclass carrying a
closed ErrorKind and a stable numeric code.
"""

from __future__ import annotations

from typing import Any

from .types import ErrorCode, ErrorKind


class ReviewError(Exception):
    """Base exception for all review pool errors."""

    kind: ErrorKind = ErrorKind.INVALID_STATE
    code: ErrorCode = ErrorCode.INVALID_TRANSITION

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "code": int(self.code),
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# AUTHORIZATION / LOOKUP
# =============================================================================


class NotAuthorizedError(ReviewError):
    """Caller is not allowed to perform this action."""

    kind = ErrorKind.AUTHORIZATION
    code = ErrorCode.NOT_AUTHORIZED


class InvalidPoolError(ReviewError):
    """Pool does not exist."""

    kind = ErrorKind.NOT_FOUND
    code = ErrorCode.INVALID_POOL


class NoDisputeError(ReviewError):
    """Pool has no open dispute."""

    kind = ErrorKind.NOT_FOUND
    code = ErrorCode.NO_DISPUTE


# =============================================================================
# TEMPORAL
# =============================================================================


class VotingClosedError(ReviewError):
    """Pool is not open or the tick is outside its voting window."""

    kind = ErrorKind.TEMPORAL_VIOLATION
    code = ErrorCode.VOTING_CLOSED


class InvalidTimestampError(ReviewError):
    """Dispute window has elapsed."""

    kind = ErrorKind.TEMPORAL_VIOLATION
    code = ErrorCode.INVALID_TIMESTAMP


# =============================================================================
# DUPLICATE ACTIONS
# =============================================================================


class AlreadyVotedError(ReviewError):
    """Reviewer already voted in this pool."""

    kind = ErrorKind.DUPLICATE_ACTION
    code = ErrorCode.ALREADY_VOTED


class DuplicatePoolError(ReviewError):
    """A pool with this id already exists."""

    kind = ErrorKind.DUPLICATE_ACTION
    code = ErrorCode.DUPLICATE_POOL


class DisputeAlreadyExistsError(ReviewError):
    """Pool already has a dispute; a pool is disputed at most once."""

    kind = ErrorKind.DUPLICATE_ACTION
    code = ErrorCode.DISPUTE_ALREADY_EXISTS


class DisputeVoteAlreadyCastError(ReviewError):
    """Reviewer already voted on this dispute."""

    kind = ErrorKind.DUPLICATE_ACTION
    code = ErrorCode.DISPUTE_VOTE_ALREADY_CAST


# =============================================================================
# VALIDATION
# =============================================================================


class InvalidScoreError(ReviewError):
    """Score is outside the accepted range."""

    kind = ErrorKind.VALIDATION_VIOLATION
    code = ErrorCode.INVALID_SCORE


class InvalidFeedbackError(ReviewError):
    """Feedback is not text."""

    kind = ErrorKind.VALIDATION_VIOLATION
    code = ErrorCode.INVALID_FEEDBACK


class MaxFeedbackLengthError(ReviewError):
    """Feedback exceeds the maximum length."""

    kind = ErrorKind.VALIDATION_VIOLATION
    code = ErrorCode.MAX_FEEDBACK_LENGTH


class FeedbackListFullError(ReviewError):
    """Pool's feedback journal is at capacity."""

    kind = ErrorKind.VALIDATION_VIOLATION
    code = ErrorCode.FEEDBACK_LIST_FULL


class InvalidPoolParametersError(ReviewError):
    """Pool duration or required vote count is invalid."""

    kind = ErrorKind.VALIDATION_VIOLATION
    code = ErrorCode.INVALID_POOL_PARAMETERS


class InvalidReasonError(ReviewError):
    """Dispute reason is not text or is too long."""

    kind = ErrorKind.VALIDATION_VIOLATION
    code = ErrorCode.INVALID_REASON


class InvalidFeeError(ReviewError):
    """Voting fee must be a non-negative integer."""

    kind = ErrorKind.VALIDATION_VIOLATION
    code = ErrorCode.INVALID_FEE


# =============================================================================
# WEIGHT / STATE
# =============================================================================


class InsufficientReputationError(ReviewError):
    """Reviewer's reputation is below the admission threshold."""

    kind = ErrorKind.INSUFFICIENT_WEIGHT
    code = ErrorCode.INSUFFICIENT_REPUTATION


class InvalidWeightError(ReviewError):
    """Pool has no counted weight, so no consensus exists."""

    kind = ErrorKind.ZERO_WEIGHT
    code = ErrorCode.INVALID_WEIGHT


class DisputeAlreadyResolvedError(ReviewError):
    """Dispute has already been resolved."""

    kind = ErrorKind.ALREADY_RESOLVED
    code = ErrorCode.DISPUTE_ALREADY_RESOLVED


class PoolNotReadyError(ReviewError):
    """Pool must be closed before it can be disputed."""

    kind = ErrorKind.INVALID_STATE
    code = ErrorCode.POOL_NOT_READY


class MinimumVotesNotMetError(ReviewError):
    """Pool has not reached the quorum required to close."""

    kind = ErrorKind.INVALID_STATE
    code = ErrorCode.MINIMUM_VOTES_NOT_MET


class InvalidTransitionError(ReviewError):
    """A lifecycle transition outside the status graph was attempted."""

    kind = ErrorKind.INVALID_STATE
    code = ErrorCode.INVALID_TRANSITION
