"""Reputation oracle interface.

Reputation computation lives outside this package. The core consumes it
as a pure, synchronous identity -> integer weight lookup that never
fails: unknown identities weigh zero.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Protocol, runtime_checkable


@runtime_checkable
class ReputationOracle(Protocol):
    """Protocol for the reputation lookup the voting engine depends on."""

    def get_reputation(self, identity: str) -> int:
        """Return the identity's integer weight, 0 when unknown."""
        ...


class StaticReputationOracle:
    """In-memory reputation table.

    Suitable for tests and for deployments that sync reputations in from
    the external scoring service.
    """

    def __init__(self, reputations: Mapping[str, int] | None = None) -> None:
        self._reputations: dict[str, int] = dict(reputations or {})
        self._lock = threading.Lock()

    def get_reputation(self, identity: str) -> int:
        with self._lock:
            return self._reputations.get(identity, 0)

    def set_reputation(self, identity: str, weight: int) -> None:
        """Set (or replace) an identity's weight."""
        if weight < 0:
            raise ValueError(f"Reputation weight cannot be negative: {weight}")
        with self._lock:
            self._reputations[identity] = weight

    def __len__(self) -> int:
        with self._lock:
            return len(self._reputations)
