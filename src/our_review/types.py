"""Type definitions and enums for review pools."""

from enum import IntEnum, StrEnum


class PoolStatus(StrEnum):
    """Lifecycle status of a review pool."""

    OPEN = "open"  # Accepting votes
    CLOSED = "closed"  # Voting over, dispute window running
    DISPUTED = "disputed"  # Dispute opened, arbitration in progress
    RESOLVED = "resolved"  # Dispute rejected, consensus stands
    DISPUTED_UPHELD = "disputed-upheld"  # Dispute upheld, consensus nullified


class DisputeState(StrEnum):
    """Derived state of a pool's dispute."""

    NONE = "none"
    OPEN = "open"
    UPHELD = "upheld"
    REJECTED = "rejected"


class ErrorKind(StrEnum):
    """Closed classification of every rejection the core can produce."""

    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    TEMPORAL_VIOLATION = "temporal_violation"
    DUPLICATE_ACTION = "duplicate_action"
    VALIDATION_VIOLATION = "validation_violation"
    INSUFFICIENT_WEIGHT = "insufficient_weight"
    ALREADY_RESOLVED = "already_resolved"
    ZERO_WEIGHT = "zero_weight"
    INVALID_STATE = "invalid_state"


class ErrorCode(IntEnum):
    """Stable numeric error codes."""

    NOT_AUTHORIZED = 100
    INVALID_POOL = 101
    VOTING_CLOSED = 102
    ALREADY_VOTED = 103
    INVALID_SCORE = 104
    INVALID_FEEDBACK = 105
    INSUFFICIENT_REPUTATION = 106
    DISPUTE_ALREADY_RESOLVED = 107
    NO_DISPUTE = 108
    INVALID_WEIGHT = 109
    POOL_NOT_READY = 110
    MINIMUM_VOTES_NOT_MET = 111
    INVALID_TIMESTAMP = 112
    MAX_FEEDBACK_LENGTH = 113
    DUPLICATE_POOL = 114
    DISPUTE_ALREADY_EXISTS = 115
    DISPUTE_VOTE_ALREADY_CAST = 116
    FEEDBACK_LIST_FULL = 117
    INVALID_POOL_PARAMETERS = 118
    INVALID_REASON = 119
    INVALID_FEE = 120
    INVALID_TRANSITION = 199


class EventType(StrEnum):
    """Events emitted after a mutation commits."""

    POOL_CREATED = "pool_created"
    VOTE_SUBMITTED = "vote_submitted"
    VOTING_CLOSED = "voting_closed"
    DISPUTE_INITIATED = "dispute_initiated"
    DISPUTE_VOTE_CAST = "dispute_vote_cast"
    DISPUTE_RESOLVED = "dispute_resolved"
    VOTING_FEE_UPDATED = "voting_fee_updated"
