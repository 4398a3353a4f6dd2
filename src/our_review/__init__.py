"""Reputation-weighted review pools with dispute arbitration.

Computes a consensus score for peer-reviewed submissions and arbitrates
disagreement about it through a bounded dispute process.

Key concepts:
- Pool: the review unit for one submission, with a voting window
- Weight: the reviewer's reputation, multiplied into their score
- Consensus score: floor-divided weighted average of admitted votes
- Dispute: a weighted re-vote by the pool's reviewers that nullifies
  the consensus when upheld

Guarantees:
- At most one vote per reviewer per pool, and one dispute per pool
- Rejected operations leave no partial state
- A resolved dispute's outcome never changes
"""

# Components
from .clock import LogicalClock
from .config import (
    DEFAULT_REVIEW_SETTINGS,
    ReviewConfigProtocol,
    ReviewSettings,
    clear_config_cache,
    get_config,
)
from .consensus import ConsensusAccumulator

# Constants
from .constants import (
    DEFAULT_VOTING_FEE,
    DISPUTE_WINDOW,
    MAX_FEEDBACK_ENTRIES,
    MAX_FEEDBACK_LEN,
    MAX_SCORE,
    MIN_REPUTATION_THRESHOLD,
    MIN_SCORE,
    MIN_VOTES_REQUIRED,
    RESOLUTION_GRACE,
)
from .disputes import DisputeArbitration
from .events import EventBus, ReviewEvent

# Exceptions
from .exceptions import (
    AlreadyVotedError,
    DisputeAlreadyExistsError,
    DisputeAlreadyResolvedError,
    DisputeVoteAlreadyCastError,
    DuplicatePoolError,
    FeedbackListFullError,
    InsufficientReputationError,
    InvalidFeeError,
    InvalidFeedbackError,
    InvalidPoolError,
    InvalidPoolParametersError,
    InvalidReasonError,
    InvalidScoreError,
    InvalidTimestampError,
    InvalidTransitionError,
    InvalidWeightError,
    MaxFeedbackLengthError,
    MinimumVotesNotMetError,
    NoDisputeError,
    NotAuthorizedError,
    PoolNotReadyError,
    ReviewError,
    VotingClosedError,
)
from .feedback import FeedbackJournal
from .ledger import VoteKey, VoteLedger
from .lifecycle import PoolLifecycle

# Data classes
from .models import Dispute, Pool, Vote
from .reputation import ReputationOracle, StaticReputationOracle
from .results import Result

# Types (enums)
from .types import DisputeState, ErrorCode, ErrorKind, EventType, PoolStatus

# Engine
from .voting import ReviewVoting

__all__ = [
    # Constants
    "MIN_SCORE",
    "MAX_SCORE",
    "MIN_REPUTATION_THRESHOLD",
    "MAX_FEEDBACK_LEN",
    "MAX_FEEDBACK_ENTRIES",
    "MIN_VOTES_REQUIRED",
    "DISPUTE_WINDOW",
    "RESOLUTION_GRACE",
    "DEFAULT_VOTING_FEE",
    # Configuration
    "ReviewConfigProtocol",
    "ReviewSettings",
    "DEFAULT_REVIEW_SETTINGS",
    "get_config",
    "clear_config_cache",
    # Exceptions
    "ReviewError",
    "NotAuthorizedError",
    "InvalidPoolError",
    "NoDisputeError",
    "VotingClosedError",
    "InvalidTimestampError",
    "AlreadyVotedError",
    "DuplicatePoolError",
    "DisputeAlreadyExistsError",
    "DisputeVoteAlreadyCastError",
    "InvalidScoreError",
    "InvalidFeedbackError",
    "MaxFeedbackLengthError",
    "FeedbackListFullError",
    "InvalidPoolParametersError",
    "InvalidReasonError",
    "InvalidFeeError",
    "InsufficientReputationError",
    "InvalidWeightError",
    "DisputeAlreadyResolvedError",
    "PoolNotReadyError",
    "MinimumVotesNotMetError",
    "InvalidTransitionError",
    # Types
    "PoolStatus",
    "DisputeState",
    "ErrorKind",
    "ErrorCode",
    "EventType",
    # Data classes
    "Pool",
    "Vote",
    "Dispute",
    "VoteKey",
    "Result",
    "ReviewEvent",
    # Components
    "LogicalClock",
    "ReputationOracle",
    "StaticReputationOracle",
    "VoteLedger",
    "ConsensusAccumulator",
    "FeedbackJournal",
    "PoolLifecycle",
    "DisputeArbitration",
    "EventBus",
    "ReviewVoting",
]
