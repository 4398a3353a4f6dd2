"""Dispute arbitration for closed pools.

A pool can be disputed at most once. Only reviewers who voted in the pool
may vote on its dispute, each at most once, with their current reputation
as weight. Resolution is a strict weighted majority: a tie rejects the
dispute. Once resolved, the outcome never changes.
"""

from __future__ import annotations

import logging
from typing import Any

from .exceptions import (
    DisputeAlreadyExistsError,
    DisputeAlreadyResolvedError,
    DisputeVoteAlreadyCastError,
    NoDisputeError,
)
from .ledger import VoteKey
from .models import Dispute

logger = logging.getLogger(__name__)


class DisputeArbitration:
    """Holds each pool's dispute and tallies its weighted votes."""

    def __init__(self) -> None:
        self._disputes: dict[int, Dispute] = {}
        self._voters: dict[VoteKey, bool] = {}  # (pool, voter) -> support

    def get(self, pool_id: int) -> Dispute | None:
        return self._disputes.get(pool_id)

    def open(self, pool_id: int, initiator: str, reason: str) -> Dispute:
        """Create the pool's dispute with zeroed tallies.

        Raises:
            DisputeAlreadyExistsError: If the pool was already disputed
        """
        if pool_id in self._disputes:
            raise DisputeAlreadyExistsError(
                f"Pool {pool_id} already has a dispute",
                {"pool_id": pool_id},
            )
        dispute = Dispute(initiator=initiator, reason=reason)
        self._disputes[pool_id] = dispute
        logger.info(f"Dispute opened on pool {pool_id} by {initiator}")
        return dispute

    def require_open(self, pool_id: int) -> Dispute:
        """Get the pool's dispute, which must exist and be unresolved.

        Raises:
            NoDisputeError: If the pool has no dispute
            DisputeAlreadyResolvedError: If the dispute is already resolved
        """
        dispute = self._disputes.get(pool_id)
        if dispute is None:
            raise NoDisputeError(f"Pool {pool_id} has no dispute", {"pool_id": pool_id})
        if dispute.resolved:
            raise DisputeAlreadyResolvedError(
                f"Dispute on pool {pool_id} is already resolved",
                {"pool_id": pool_id, "outcome": dispute.outcome},
            )
        return dispute

    def cast(self, pool_id: int, voter: str, weight: int, support: bool) -> Dispute:
        """Add a voter's weight to the for or against tally.

        Eligibility (having voted in the pool) is the caller's concern.

        Raises:
            NoDisputeError: If the pool has no dispute
            DisputeAlreadyResolvedError: If the dispute is already resolved
            DisputeVoteAlreadyCastError: If the voter already voted on it
        """
        dispute = self.require_open(pool_id)
        key = VoteKey(pool_id, voter)
        if key in self._voters:
            raise DisputeVoteAlreadyCastError(
                f"{voter} already voted on the dispute for pool {pool_id}",
                {"pool_id": pool_id, "voter": voter},
            )

        self._voters[key] = support
        if support:
            dispute.votes_for += weight
        else:
            dispute.votes_against += weight

        logger.debug(
            f"Dispute vote on pool {pool_id} by {voter}: support={support} weight={weight} "
            f"(for={dispute.votes_for}, against={dispute.votes_against})"
        )
        return dispute

    def resolve(self, pool_id: int) -> bool:
        """Lock in the dispute's outcome.

        Returns:
            True if the dispute is upheld (strictly more weight for than against)

        Raises:
            NoDisputeError: If the pool has no dispute
            DisputeAlreadyResolvedError: If the dispute is already resolved
        """
        dispute = self.require_open(pool_id)
        upheld = dispute.votes_for > dispute.votes_against
        dispute.resolved = True
        dispute.outcome = upheld

        logger.info(
            f"Dispute on pool {pool_id} {'upheld' if upheld else 'rejected'} "
            f"({dispute.votes_for} for, {dispute.votes_against} against)"
        )
        return upheld

    def entries(self) -> list[dict[str, Any]]:
        """List disputes with their voters, the form load() accepts."""
        return [
            {
                "pool_id": pool_id,
                "dispute": dispute.to_dict(),
                "voters": {key.reviewer: support for key, support in self._voters.items() if key.pool_id == pool_id},
            }
            for pool_id, dispute in self._disputes.items()
        ]

    def load(self, entries: list[dict[str, Any]]) -> None:
        """Restore disputes produced by entries()."""
        for entry in entries:
            pool_id = entry["pool_id"]
            if pool_id in self._disputes:
                raise DisputeAlreadyExistsError(f"Pool {pool_id} already has a dispute", {"pool_id": pool_id})
            self._disputes[pool_id] = Dispute.from_dict(entry["dispute"])
            for voter, support in entry.get("voters", {}).items():
                self._voters[VoteKey(pool_id, voter)] = support
