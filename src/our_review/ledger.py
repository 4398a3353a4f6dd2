"""Vote ledger: the source of truth for who voted in which pool."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .exceptions import AlreadyVotedError
from .models import Vote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoteKey:
    """Composite (pool, reviewer) key."""

    pool_id: int
    reviewer: str

    def __str__(self) -> str:
        return f"{self.pool_id}-{self.reviewer}"


class VoteLedger:
    """Stores at most one Vote per (pool, reviewer).

    A recorded vote is permanent, and its presence is what authorizes a
    reviewer to take part in the pool's dispute.
    """

    def __init__(self) -> None:
        self._votes: dict[VoteKey, Vote] = {}

    def has_voted(self, pool_id: int, reviewer: str) -> bool:
        return VoteKey(pool_id, reviewer) in self._votes

    def get(self, pool_id: int, reviewer: str) -> Vote | None:
        """Get a reviewer's vote, or None if they have not voted."""
        return self._votes.get(VoteKey(pool_id, reviewer))

    def record(self, pool_id: int, reviewer: str, vote: Vote) -> None:
        """Record a vote.

        Raises:
            AlreadyVotedError: If the reviewer already voted in this pool
        """
        key = VoteKey(pool_id, reviewer)
        if key in self._votes:
            raise AlreadyVotedError(
                f"{reviewer} already voted in pool {pool_id}",
                {"pool_id": pool_id, "reviewer": reviewer},
            )
        self._votes[key] = vote
        logger.debug(f"Recorded vote {key}: score={vote.score} weight={vote.reputation_weight}")

    def votes_for_pool(self, pool_id: int) -> dict[str, Vote]:
        """All votes in a pool, keyed by reviewer."""
        return {key.reviewer: vote for key, vote in self._votes.items() if key.pool_id == pool_id}

    def __len__(self) -> int:
        return len(self._votes)

    def load(self, entries: list[dict[str, Any]]) -> None:
        """Restore votes from a list of {pool_id, reviewer, vote} entries."""
        for entry in entries:
            self.record(entry["pool_id"], entry["reviewer"], Vote.from_dict(entry["vote"]))

    def entries(self) -> list[dict[str, Any]]:
        """List votes as {pool_id, reviewer, vote} entries, the form load() accepts."""
        return [
            {"pool_id": key.pool_id, "reviewer": key.reviewer, "vote": vote.to_dict()}
            for key, vote in self._votes.items()
        ]
