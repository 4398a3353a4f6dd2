"""Append-only, capacity-bounded feedback per pool."""

from __future__ import annotations

from .constants import MAX_FEEDBACK_ENTRIES
from .exceptions import FeedbackListFullError


class FeedbackJournal:
    """Ordered feedback strings per pool, in vote order."""

    def __init__(self, capacity: int = MAX_FEEDBACK_ENTRIES) -> None:
        if capacity < 0:
            raise ValueError(f"Feedback capacity cannot be negative: {capacity}")
        self.capacity = capacity
        self._entries: dict[int, list[str]] = {}

    def has_room(self, pool_id: int) -> bool:
        return len(self._entries.get(pool_id, ())) < self.capacity

    def append(self, pool_id: int, feedback: str) -> None:
        """Append feedback to a pool's journal.

        Raises:
            FeedbackListFullError: If the pool's journal is at capacity
        """
        entries = self._entries.setdefault(pool_id, [])
        if len(entries) >= self.capacity:
            raise FeedbackListFullError(
                f"Feedback list for pool {pool_id} is full ({self.capacity} entries)",
                {"pool_id": pool_id, "capacity": self.capacity},
            )
        entries.append(feedback)

    def get(self, pool_id: int) -> list[str]:
        """Copy of a pool's feedback; empty if none recorded."""
        return list(self._entries.get(pool_id, ()))

    def to_dict(self) -> dict[str, list[str]]:
        return {str(pool_id): list(entries) for pool_id, entries in self._entries.items()}

    def load(self, data: dict[str, list[str]]) -> None:
        """Restore journals produced by to_dict()."""
        for pool_id, entries in data.items():
            for feedback in entries:
                self.append(int(pool_id), feedback)
