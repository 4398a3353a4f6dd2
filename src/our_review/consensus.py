"""Weighted consensus aggregation.

The accumulator keeps the weighted-score sum and the weight sum on the
pool separately, so the score is derived on demand and a pool with no
counted weight reports an error instead of dividing by zero.
"""

from __future__ import annotations

import logging

from .exceptions import InvalidWeightError
from .models import Pool

logger = logging.getLogger(__name__)


class ConsensusAccumulator:
    """Maintains a pool's running weighted sums."""

    def accumulate(self, pool: Pool, score: int, weight: int) -> int:
        """Count one vote toward the pool's consensus.

        Args:
            pool: The pool being voted on
            score: Reviewer's score
            weight: Reviewer's reputation weight

        Returns:
            The weighted score added
        """
        weighted_score = score * weight
        pool.total_weighted_score += weighted_score
        pool.total_weight += weight
        return weighted_score

    def reset(self, pool: Pool) -> None:
        """Discard every counted vote. Participation count is untouched."""
        logger.info(
            f"Resetting consensus for pool {pool.pool_id} "
            f"(weighted={pool.total_weighted_score}, weight={pool.total_weight})"
        )
        pool.total_weighted_score = 0
        pool.total_weight = 0

    def score(self, pool: Pool) -> int:
        """Floor-divided weighted average of all counted votes.

        Raises:
            InvalidWeightError: If no weight has been counted
        """
        if pool.total_weight == 0:
            raise InvalidWeightError(
                f"Pool {pool.pool_id} has no counted weight",
                {"pool_id": pool.pool_id},
            )
        return pool.total_weighted_score // pool.total_weight
