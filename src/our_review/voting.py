"""Review voting engine.

ReviewVoting is the boundary surface of the review core: pool creation,
weighted vote admission, closing, and dispute initiation, voting and
resolution. Every mutating operation validates fully before touching
state, so a rejected call leaves no partial effect. Mutations on a pool
are serialized by a per-pool lock.

Example:
    voting = ReviewVoting(ReviewSettings(owner="deployer"), oracle, clock)
    pool_id = voting.create_pool("deployer", submission_id=100, duration=1000, required_votes=3)
    voting.submit_vote("reviewer1", pool_id, 80, "Great content!")
    voting.get_consensus_score(pool_id)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from typing import Any

from .clock import LogicalClock
from .config import ReviewSettings
from .consensus import ConsensusAccumulator
from .disputes import DisputeArbitration
from .events import EventBus, ReviewEvent
from .exceptions import (
    AlreadyVotedError,
    DisputeAlreadyResolvedError,
    DuplicatePoolError,
    FeedbackListFullError,
    InsufficientReputationError,
    InvalidFeeError,
    InvalidFeedbackError,
    InvalidPoolError,
    InvalidReasonError,
    InvalidScoreError,
    InvalidTimestampError,
    MaxFeedbackLengthError,
    MinimumVotesNotMetError,
    NoDisputeError,
    NotAuthorizedError,
    PoolNotReadyError,
    ReviewError,
    VotingClosedError,
)
from .feedback import FeedbackJournal
from .ledger import VoteLedger
from .lifecycle import PoolLifecycle
from .models import Dispute, Pool, Vote
from .reputation import ReputationOracle
from .types import EventType, PoolStatus

logger = logging.getLogger(__name__)


class ReviewVoting:
    """Reputation-weighted review pools with dispute arbitration.

    Args:
        config: Engine settings; the owner identity lives here
        oracle: Reputation lookup, consulted at vote and dispute-vote time
        clock: Logical clock read for every window check
        events: Event bus; built from config.event_signing_key when omitted
    """

    def __init__(
        self,
        config: ReviewSettings,
        oracle: ReputationOracle,
        clock: LogicalClock,
        events: EventBus | None = None,
    ):
        self.config = config
        self.oracle = oracle
        self.clock = clock
        self.events = events or EventBus.from_hex_key(config.event_signing_key)

        self.voting_fee = config.voting_fee
        self.lifecycle = PoolLifecycle(config)
        self.accumulator = ConsensusAccumulator()
        self.ledger = VoteLedger()
        self.feedback = FeedbackJournal(config.max_feedback_entries)
        self.disputes = DisputeArbitration()

        self._pools: dict[int, Pool] = {}
        self._next_pool_id = 1
        self._pool_locks: dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _existing_lock(self, pool_id: int) -> threading.Lock | None:
        with self._registry_lock:
            return self._pool_locks.get(pool_id)

    def _lock_for(self, pool_id: int) -> threading.Lock:
        """The pool's lock; locks exist only for registered pools.

        Raises:
            InvalidPoolError: If the pool does not exist
        """
        lock = self._existing_lock(pool_id)
        if lock is None:
            raise InvalidPoolError(f"Pool {pool_id} does not exist", {"pool_id": pool_id})
        return lock

    def _dispute_lock(self, pool_id: int) -> threading.Lock:
        """The lock of a disputed pool.

        Raises:
            NoDisputeError: If the pool has no dispute
        """
        if self.disputes.get(pool_id) is None:
            raise NoDisputeError(f"Pool {pool_id} has no dispute", {"pool_id": pool_id})
        return self._lock_for(pool_id)

    def _register(self, pool: Pool) -> None:
        # Caller holds the registry lock
        self._pools[pool.pool_id] = pool
        self._pool_locks[pool.pool_id] = threading.Lock()
        self._next_pool_id = max(self._next_pool_id, pool.pool_id + 1)

    def _require_pool(self, pool_id: int) -> Pool:
        pool = self._pools.get(pool_id)
        if pool is None:
            raise InvalidPoolError(f"Pool {pool_id} does not exist", {"pool_id": pool_id})
        return pool

    def _require_owner(self, caller: str, action: str) -> None:
        if caller != self.config.owner:
            raise NotAuthorizedError(f"Only the owner may {action}", {"caller": caller})

    @contextmanager
    def _operation(self, name: str, caller: str, pool_id: int | None = None) -> Iterator[None]:
        """Log rejections of a boundary operation and let them propagate."""
        try:
            yield
        except ReviewError as e:
            logger.warning(f"{name} rejected for {caller} on pool {pool_id}: [{int(e.code)}] {e.message}")
            raise

    def _emit(self, event_type: EventType, pool_id: int | None, actor: str, tick: int, **payload: Any) -> None:
        self.events.emit(ReviewEvent(event_type=event_type, pool_id=pool_id, actor=actor, tick=tick, payload=payload))

    # =========================================================================
    # POOL LIFECYCLE
    # =========================================================================

    def create_pool(
        self,
        caller: str,
        submission_id: int,
        duration: int,
        required_votes: int,
        pool_id: int | None = None,
    ) -> int:
        """Open a review pool for a submission.

        Args:
            caller: Must be the configured owner
            submission_id: Opaque reference to the submission under review
            duration: Length of the voting window in ticks
            required_votes: Pool's configured quorum (informational)
            pool_id: Explicit id; the next sequential id when None

        Returns:
            The pool id

        Raises:
            NotAuthorizedError: If caller is not the owner
            InvalidPoolParametersError: If pool_id is not a positive integer, or
                duration or required_votes is negative
            DuplicatePoolError: If pool_id is already taken
        """
        with self._operation("create_pool", caller, pool_id):
            self._require_owner(caller, "create pools")
            with self._registry_lock:
                if pool_id is None:
                    pool_id = self._next_pool_id
                now = self.clock.now
                pool = self.lifecycle.create(pool_id, submission_id, duration, required_votes, now)
                if pool_id in self._pools:
                    raise DuplicatePoolError(f"Pool {pool_id} already exists", {"pool_id": pool_id})
                self._register(pool)

        logger.info(f"Pool {pool_id} created for submission {submission_id}: ticks {pool.start_tick}-{pool.end_tick}")
        self._emit(
            EventType.POOL_CREATED,
            pool_id,
            caller,
            now,
            submission_id=submission_id,
            start_tick=pool.start_tick,
            end_tick=pool.end_tick,
            required_votes=required_votes,
        )
        return pool_id

    def close_voting(self, caller: str, pool_id: int) -> bool:
        """Close a pool's voting once quorum is met.

        The owner may close at any time; anyone else only after end_tick.

        Raises:
            InvalidPoolError: If the pool does not exist
            NotAuthorizedError: If a non-owner closes before end_tick
            VotingClosedError: If the pool is not open
            MinimumVotesNotMetError: If fewer than min_votes_required votes were cast
        """
        with self._operation("close_voting", caller, pool_id), self._lock_for(pool_id):
            pool = self._require_pool(pool_id)
            now = self.clock.now
            if not self.lifecycle.may_close(caller, pool, now):
                raise NotAuthorizedError(
                    f"Only the owner may close pool {pool_id} before tick {pool.end_tick}",
                    {"pool_id": pool_id, "caller": caller, "end_tick": pool.end_tick},
                )
            if pool.status != PoolStatus.OPEN:
                raise VotingClosedError(f"Pool {pool_id} is {pool.status.value}", {"pool_id": pool_id})
            if pool.current_votes < self.config.min_votes_required:
                raise MinimumVotesNotMetError(
                    f"Pool {pool_id} has {pool.current_votes} of {self.config.min_votes_required} required votes",
                    {"current_votes": pool.current_votes, "required": self.config.min_votes_required},
                )

            self.lifecycle.transition(pool, PoolStatus.CLOSED)
            current_votes = pool.current_votes

        self._emit(EventType.VOTING_CLOSED, pool_id, caller, now, current_votes=current_votes)
        return True

    # =========================================================================
    # VOTING
    # =========================================================================

    def submit_vote(self, caller: str, pool_id: int, score: int, feedback: str) -> bool:
        """Cast a reputation-weighted vote in an open pool.

        Raises:
            InvalidPoolError: If the pool does not exist
            VotingClosedError: If the pool is not open or now is outside its window
            AlreadyVotedError: If caller already voted in this pool
            InvalidScoreError: If score is outside [min_score, max_score]
            InvalidFeedbackError: If feedback is not text
            MaxFeedbackLengthError: If feedback is too long
            FeedbackListFullError: If the pool's feedback journal is full
            InsufficientReputationError: If caller's reputation is below threshold
        """
        config = self.config
        with self._operation("submit_vote", caller, pool_id), self._lock_for(pool_id):
            pool = self._require_pool(pool_id)
            now = self.clock.now
            if not self.lifecycle.voting_open(pool, now):
                raise VotingClosedError(
                    f"Voting on pool {pool_id} is closed at tick {now}",
                    {"pool_id": pool_id, "status": pool.status.value, "tick": now},
                )
            if self.ledger.has_voted(pool_id, caller):
                raise AlreadyVotedError(
                    f"{caller} already voted in pool {pool_id}",
                    {"pool_id": pool_id, "reviewer": caller},
                )
            if isinstance(score, bool) or not isinstance(score, int) or not config.min_score <= score <= config.max_score:
                raise InvalidScoreError(
                    f"Score must be between {config.min_score} and {config.max_score}, got {score!r}",
                    {"score": score},
                )
            if not isinstance(feedback, str):
                raise InvalidFeedbackError("Feedback must be text", {"type": type(feedback).__name__})
            if len(feedback) > config.max_feedback_len:
                raise MaxFeedbackLengthError(
                    f"Feedback is {len(feedback)} characters, maximum is {config.max_feedback_len}",
                    {"length": len(feedback), "max": config.max_feedback_len},
                )
            if not self.feedback.has_room(pool_id):
                raise FeedbackListFullError(
                    f"Feedback list for pool {pool_id} is full",
                    {"pool_id": pool_id, "capacity": self.feedback.capacity},
                )
            reputation = self.oracle.get_reputation(caller)
            if reputation < config.min_reputation_threshold:
                raise InsufficientReputationError(
                    f"{caller} has reputation {reputation}, minimum is {config.min_reputation_threshold}",
                    {"reputation": reputation, "required": config.min_reputation_threshold},
                )

            # All checks passed; none of the following can fail
            weighted_score = self.accumulator.accumulate(pool, score, reputation)
            pool.current_votes += 1
            self.ledger.record(
                pool_id,
                caller,
                Vote(score=score, feedback=feedback, reputation_weight=reputation, timestamp=now),
            )
            self.feedback.append(pool_id, feedback)

        self._emit(
            EventType.VOTE_SUBMITTED,
            pool_id,
            caller,
            now,
            score=score,
            reputation_weight=reputation,
            weighted_score=weighted_score,
            voting_fee=self.voting_fee,
        )
        return True

    def get_consensus_score(self, pool_id: int) -> int:
        """Floor-divided reputation-weighted average score.

        Raises:
            InvalidPoolError: If the pool does not exist
            InvalidWeightError: If no weight is counted (no votes, or dispute upheld)
        """
        with self._lock_for(pool_id):
            return self.accumulator.score(self._require_pool(pool_id))

    # =========================================================================
    # DISPUTES
    # =========================================================================

    def initiate_dispute(self, caller: str, pool_id: int, reason: str) -> bool:
        """Dispute a closed pool's consensus within the dispute window.

        Raises:
            InvalidPoolError: If the pool does not exist
            PoolNotReadyError: If the pool is not closed
            InvalidTimestampError: If the dispute window has elapsed
            InvalidReasonError: If reason is not text or too long
            DisputeAlreadyExistsError: If the pool was already disputed
        """
        with self._operation("initiate_dispute", caller, pool_id), self._lock_for(pool_id):
            pool = self._require_pool(pool_id)
            now = self.clock.now
            if pool.status != PoolStatus.CLOSED:
                raise PoolNotReadyError(
                    f"Pool {pool_id} is {pool.status.value}, not closed",
                    {"pool_id": pool_id, "status": pool.status.value},
                )
            if not self.lifecycle.dispute_window_open(pool, now):
                raise InvalidTimestampError(
                    f"Dispute window for pool {pool_id} ended at tick {self.lifecycle.dispute_deadline(pool)}",
                    {"pool_id": pool_id, "tick": now},
                )
            if not isinstance(reason, str) or len(reason) > self.config.max_reason_len:
                raise InvalidReasonError(
                    f"Reason must be text of at most {self.config.max_reason_len} characters",
                    {"pool_id": pool_id},
                )

            self.disputes.open(pool_id, caller, reason)
            pool.dispute_flag = True
            self.lifecycle.transition(pool, PoolStatus.DISPUTED)

        self._emit(EventType.DISPUTE_INITIATED, pool_id, caller, now, reason=reason)
        return True

    def vote_on_dispute(self, caller: str, pool_id: int, support: bool) -> bool:
        """Vote on a pool's open dispute. Only the pool's reviewers may vote, once each.

        Raises:
            NoDisputeError: If the pool has no active dispute
            DisputeAlreadyResolvedError: If the dispute is resolved
            NotAuthorizedError: If caller did not vote in the pool
            DisputeVoteAlreadyCastError: If caller already voted on the dispute
        """
        with self._operation("vote_on_dispute", caller, pool_id), self._dispute_lock(pool_id):
            dispute = self.disputes.get(pool_id)
            if dispute is None:
                raise NoDisputeError(f"Pool {pool_id} has no dispute", {"pool_id": pool_id})
            pool = self._pools.get(pool_id)
            if pool is None or not pool.dispute_flag:
                raise NoDisputeError(f"Pool {pool_id} has no active dispute", {"pool_id": pool_id})
            if dispute.resolved:
                raise DisputeAlreadyResolvedError(
                    f"Dispute on pool {pool_id} is already resolved",
                    {"pool_id": pool_id, "outcome": dispute.outcome},
                )
            if not self.ledger.has_voted(pool_id, caller):
                raise NotAuthorizedError(
                    f"Only reviewers of pool {pool_id} may vote on its dispute",
                    {"pool_id": pool_id, "caller": caller},
                )

            weight = self.oracle.get_reputation(caller)
            self.disputes.cast(pool_id, caller, weight, bool(support))
            now = self.clock.now

        self._emit(EventType.DISPUTE_VOTE_CAST, pool_id, caller, now, support=bool(support), weight=weight)
        return True

    def resolve_dispute(self, caller: str, pool_id: int) -> bool:
        """Resolve a pool's dispute and apply the outcome.

        Upheld disputes nullify the pool's consensus; rejected ones leave it
        standing and clear the dispute flag. The owner may resolve at any
        time; anyone else once the dispute window and grace period lapsed.

        Returns:
            True if the dispute was upheld

        Raises:
            NoDisputeError: If the pool has no dispute
            InvalidPoolError: If the pool does not exist
            NotAuthorizedError: If a non-owner resolves too early
            DisputeAlreadyResolvedError: If the dispute is already resolved
        """
        with self._operation("resolve_dispute", caller, pool_id), self._dispute_lock(pool_id):
            dispute = self.disputes.get(pool_id)
            if dispute is None:
                raise NoDisputeError(f"Pool {pool_id} has no dispute", {"pool_id": pool_id})
            pool = self._require_pool(pool_id)
            now = self.clock.now
            if not self.lifecycle.may_resolve(caller, pool, now):
                raise NotAuthorizedError(
                    f"Only the owner may resolve the dispute on pool {pool_id} yet",
                    {"pool_id": pool_id, "caller": caller, "tick": now},
                )

            upheld = self.disputes.resolve(pool_id)
            pool.dispute_resolution_tick = now
            if upheld:
                self.lifecycle.transition(pool, PoolStatus.DISPUTED_UPHELD)
                self.accumulator.reset(pool)
            else:
                self.lifecycle.transition(pool, PoolStatus.RESOLVED)
                pool.dispute_flag = False

        self._emit(
            EventType.DISPUTE_RESOLVED,
            pool_id,
            caller,
            now,
            upheld=upheld,
            votes_for=dispute.votes_for,
            votes_against=dispute.votes_against,
        )
        return upheld

    # =========================================================================
    # ADMINISTRATION
    # =========================================================================

    def set_voting_fee(self, caller: str, new_fee: int) -> bool:
        """Set the fee reported to the token collaborator for each vote.

        Raises:
            NotAuthorizedError: If caller is not the owner
            InvalidFeeError: If new_fee is not a non-negative integer
        """
        with self._operation("set_voting_fee", caller):
            self._require_owner(caller, "set the voting fee")
            if isinstance(new_fee, bool) or not isinstance(new_fee, int) or new_fee < 0:
                raise InvalidFeeError(f"Voting fee must be a non-negative integer, got {new_fee!r}", {"fee": new_fee})
            with self._registry_lock:
                old_fee, self.voting_fee = self.voting_fee, new_fee

        logger.info(f"Voting fee changed from {old_fee} to {new_fee}")
        self._emit(EventType.VOTING_FEE_UPDATED, None, caller, self.clock.now, old_fee=old_fee, new_fee=new_fee)
        return True

    # =========================================================================
    # READ-ONLY VIEWS
    # =========================================================================

    def get_vote(self, pool_id: int, reviewer: str) -> Vote | None:
        return self.ledger.get(pool_id, reviewer)

    def get_feedback_list(self, pool_id: int) -> list[str]:
        lock = self._existing_lock(pool_id)
        if lock is None:
            return []
        with lock:
            return self.feedback.get(pool_id)

    def get_pool_details(self, pool_id: int) -> Pool | None:
        """Copy of the pool, or None if it does not exist."""
        lock = self._existing_lock(pool_id)
        if lock is None:
            return None
        with lock:
            return self._pools[pool_id].copy()

    def get_dispute_details(self, pool_id: int) -> Dispute | None:
        """Copy of the pool's dispute, or None if it was never disputed."""
        lock = self._existing_lock(pool_id)
        if lock is None:
            return None
        with lock:
            dispute = self.disputes.get(pool_id)
            return dispute.copy() if dispute else None

    def list_pools(self) -> list[Pool]:
        with self._registry_lock:
            return [pool.copy() for pool in self._pools.values()]

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    def snapshot(self) -> dict[str, Any]:
        """Export the full engine state as JSON-serializable data.

        Holds the registry lock and every pool lock, so no operation is
        captured half-applied.
        """
        with self._registry_lock, ExitStack() as stack:
            for pool_id in sorted(self._pool_locks):
                stack.enter_context(self._pool_locks[pool_id])
            return {
                "voting_fee": self.voting_fee,
                "next_pool_id": self._next_pool_id,
                "pools": [pool.to_dict() for pool in self._pools.values()],
                "votes": self.ledger.entries(),
                "feedback": self.feedback.to_dict(),
                "disputes": self.disputes.entries(),
            }

    @classmethod
    def restore(
        cls,
        data: dict[str, Any],
        config: ReviewSettings,
        oracle: ReputationOracle,
        clock: LogicalClock,
        events: EventBus | None = None,
    ) -> ReviewVoting:
        """Rebuild an engine from snapshot() output."""
        voting = cls(config, oracle, clock, events)
        voting.voting_fee = data.get("voting_fee", config.voting_fee)
        for pool_data in data.get("pools", []):
            pool = Pool.from_dict(pool_data)
            if pool.pool_id in voting._pools:
                raise DuplicatePoolError(f"Pool {pool.pool_id} already exists", {"pool_id": pool.pool_id})
            voting._register(pool)
        voting._next_pool_id = data.get("next_pool_id", max(voting._pools, default=0) + 1)
        voting.ledger.load(data.get("votes", []))
        voting.feedback.load(data.get("feedback", {}))
        voting.disputes.load(data.get("disputes", []))
        logger.info(f"Restored {len(voting._pools)} pools and {len(voting.ledger)} votes")
        return voting
