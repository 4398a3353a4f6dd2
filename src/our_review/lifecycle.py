"""Pool lifecycle state machine and temporal windows.

Status graph (no backward edges):

    open -> closed -> disputed -> resolved
                               -> disputed-upheld
"""

from __future__ import annotations

import logging

from .config import ReviewConfigProtocol
from .exceptions import InvalidPoolParametersError, InvalidTransitionError
from .models import Pool
from .types import PoolStatus

logger = logging.getLogger(__name__)


TRANSITIONS: dict[PoolStatus, frozenset[PoolStatus]] = {
    PoolStatus.OPEN: frozenset({PoolStatus.CLOSED}),
    PoolStatus.CLOSED: frozenset({PoolStatus.DISPUTED}),
    PoolStatus.DISPUTED: frozenset({PoolStatus.RESOLVED, PoolStatus.DISPUTED_UPHELD}),
    PoolStatus.RESOLVED: frozenset(),
    PoolStatus.DISPUTED_UPHELD: frozenset(),
}


class PoolLifecycle:
    """Governs pool status transitions and the windows gating them."""

    def __init__(self, config: ReviewConfigProtocol):
        self.config = config

    def create(
        self,
        pool_id: int,
        submission_id: int,
        duration: int,
        required_votes: int,
        now: int,
    ) -> Pool:
        """Build a fresh open pool whose voting window starts now.

        Raises:
            InvalidPoolParametersError: If pool_id is not a positive integer, or
                duration or required_votes is negative
        """
        if isinstance(pool_id, bool) or not isinstance(pool_id, int) or pool_id < 1:
            raise InvalidPoolParametersError(
                f"pool_id must be a positive integer, got {pool_id!r}",
                {"field": "pool_id", "value": pool_id},
            )
        for name, value in (("duration", duration), ("required_votes", required_votes)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidPoolParametersError(
                    f"{name} must be a non-negative integer, got {value!r}",
                    {"field": name, "value": value},
                )

        return Pool(
            pool_id=pool_id,
            submission_id=submission_id,
            start_tick=now,
            end_tick=now + duration,
            required_votes=required_votes,
        )

    def transition(self, pool: Pool, target: PoolStatus) -> None:
        """Move a pool to a new status along the status graph.

        Raises:
            InvalidTransitionError: If the edge does not exist
        """
        if target not in TRANSITIONS[pool.status]:
            raise InvalidTransitionError(
                f"Pool {pool.pool_id} cannot move from {pool.status.value} to {target.value}",
                {"pool_id": pool.pool_id, "from": pool.status.value, "to": target.value},
            )
        logger.info(f"Pool {pool.pool_id}: {pool.status.value} -> {target.value}")
        pool.status = target

    @staticmethod
    def is_terminal(status: PoolStatus) -> bool:
        return not TRANSITIONS[status]

    # -------------------------------------------------------------------------
    # Windows
    # -------------------------------------------------------------------------

    def voting_open(self, pool: Pool, now: int) -> bool:
        """Pool is open and now lies inside [start_tick, end_tick]."""
        return pool.status == PoolStatus.OPEN and pool.start_tick <= now <= pool.end_tick

    def may_close(self, caller: str, pool: Pool, now: int) -> bool:
        """The owner may close early; anyone else only once the window lapsed."""
        return caller == self.config.owner or now > pool.end_tick

    def dispute_deadline(self, pool: Pool) -> int:
        """First tick at which a dispute can no longer be opened."""
        return pool.end_tick + self.config.dispute_window

    def dispute_window_open(self, pool: Pool, now: int) -> bool:
        return now < self.dispute_deadline(pool)

    def may_resolve(self, caller: str, pool: Pool, now: int) -> bool:
        """The owner may resolve any time; others once the grace period after the dispute window lapsed."""
        return caller == self.config.owner or now > self.dispute_deadline(pool) + self.config.resolution_grace
