"""Data classes for review pools, votes and disputes."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from .types import DisputeState, PoolStatus


@dataclass
class Pool:
    """The review unit for one submission.

    Holds the running consensus aggregates and lifecycle status. Pools
    are never deleted; they are the audit trail of a review.
    """

    pool_id: int
    submission_id: int

    # Voting window (ticks, inclusive)
    start_tick: int
    end_tick: int

    # Informational; closing is gated by the configured fixed quorum
    required_votes: int

    # Participation count, never reset
    current_votes: int = 0

    status: PoolStatus = PoolStatus.OPEN

    # Consensus aggregates, zeroed only when a dispute is upheld
    total_weighted_score: int = 0
    total_weight: int = 0

    # Dispute tracking
    dispute_flag: bool = False
    dispute_resolution_tick: int | None = None

    def copy(self) -> Pool:
        """Return a detached copy for read-only callers."""
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "pool_id": self.pool_id,
            "submission_id": self.submission_id,
            "start_tick": self.start_tick,
            "end_tick": self.end_tick,
            "required_votes": self.required_votes,
            "current_votes": self.current_votes,
            "status": self.status.value,
            "total_weighted_score": self.total_weighted_score,
            "total_weight": self.total_weight,
            "dispute_flag": self.dispute_flag,
            "dispute_resolution_tick": self.dispute_resolution_tick,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Pool:
        """Create from dictionary."""
        return cls(
            pool_id=data["pool_id"],
            submission_id=data["submission_id"],
            start_tick=data["start_tick"],
            end_tick=data["end_tick"],
            required_votes=data["required_votes"],
            current_votes=data.get("current_votes", 0),
            status=PoolStatus(data.get("status", "open")),
            total_weighted_score=data.get("total_weighted_score", 0),
            total_weight=data.get("total_weight", 0),
            dispute_flag=data.get("dispute_flag", False),
            dispute_resolution_tick=data.get("dispute_resolution_tick"),
        )


@dataclass(frozen=True)
class Vote:
    """A reviewer's vote in one pool. Written once, never changed."""

    score: int
    feedback: str
    reputation_weight: int  # Snapshot at submission time
    timestamp: int  # Tick at submission

    @property
    def weighted_score(self) -> int:
        return self.score * self.reputation_weight

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "score": self.score,
            "feedback": self.feedback,
            "reputation_weight": self.reputation_weight,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Vote:
        """Create from dictionary."""
        return cls(
            score=data["score"],
            feedback=data.get("feedback", ""),
            reputation_weight=data["reputation_weight"],
            timestamp=data["timestamp"],
        )


@dataclass
class Dispute:
    """A challenge to a closed pool's consensus.

    At most one exists per pool. Once resolved, the outcome is fixed.
    """

    initiator: str
    reason: str

    # Weighted tallies
    votes_for: int = 0
    votes_against: int = 0

    resolved: bool = False
    outcome: bool | None = None  # True = upheld

    @property
    def state(self) -> DisputeState:
        if not self.resolved:
            return DisputeState.OPEN
        return DisputeState.UPHELD if self.outcome else DisputeState.REJECTED

    def copy(self) -> Dispute:
        """Return a detached copy for read-only callers."""
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "initiator": self.initiator,
            "reason": self.reason,
            "votes_for": self.votes_for,
            "votes_against": self.votes_against,
            "resolved": self.resolved,
            "outcome": self.outcome,
            "state": self.state.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Dispute:
        """Create from dictionary."""
        return cls(
            initiator=data["initiator"],
            reason=data.get("reason", ""),
            votes_for=data.get("votes_for", 0),
            votes_against=data.get("votes_against", 0),
            resolved=data.get("resolved", False),
            outcome=data.get("outcome"),
        )
