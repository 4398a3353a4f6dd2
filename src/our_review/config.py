"""Review pool configuration.

Provides review-specific configuration with env var support. The engine
takes its settings at construction; get_config() is a convenience for
applications that configure through the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from .constants import (
    DEFAULT_VOTING_FEE,
    DISPUTE_WINDOW,
    MAX_FEEDBACK_ENTRIES,
    MAX_FEEDBACK_LEN,
    MAX_REASON_LEN,
    MAX_SCORE,
    MIN_REPUTATION_THRESHOLD,
    MIN_SCORE,
    MIN_VOTES_REQUIRED,
    RESOLUTION_GRACE,
)


@runtime_checkable
class ReviewConfigProtocol(Protocol):
    """Protocol defining what the voting engine reads from its configuration."""

    @property
    def owner(self) -> str:
        """Identity allowed to create pools and administer the engine."""
        ...

    @property
    def min_votes_required(self) -> int:
        """Quorum needed before voting can be closed."""
        ...

    @property
    def dispute_window(self) -> int:
        """Ticks after end_tick during which a dispute may be opened."""
        ...

    @property
    def resolution_grace(self) -> int:
        """Additional ticks before non-owners may force resolution."""
        ...


@dataclass
class ReviewSettings:
    """Concrete review pool configuration.

    Reads from environment variables with OUR_REVIEW_ prefix.
    Can be instantiated directly for testing.
    """

    # Administration
    owner: str = "deployer"
    voting_fee: int = DEFAULT_VOTING_FEE

    # Vote admission
    min_score: int = MIN_SCORE
    max_score: int = MAX_SCORE
    min_reputation_threshold: int = MIN_REPUTATION_THRESHOLD
    max_feedback_len: int = MAX_FEEDBACK_LEN
    max_feedback_entries: int = MAX_FEEDBACK_ENTRIES

    # Quorum and windows
    min_votes_required: int = MIN_VOTES_REQUIRED
    dispute_window: int = DISPUTE_WINDOW
    resolution_grace: int = RESOLUTION_GRACE
    max_reason_len: int = MAX_REASON_LEN

    # Ed25519 private key hex for signing emitted events
    event_signing_key: str | None = None

    @classmethod
    def from_env(cls) -> ReviewSettings:
        """Create settings from environment variables."""
        return cls(
            owner=os.environ.get("OUR_REVIEW_OWNER", "deployer"),
            voting_fee=int(os.environ.get("OUR_REVIEW_VOTING_FEE", str(DEFAULT_VOTING_FEE))),
            min_score=int(os.environ.get("OUR_REVIEW_MIN_SCORE", str(MIN_SCORE))),
            max_score=int(os.environ.get("OUR_REVIEW_MAX_SCORE", str(MAX_SCORE))),
            min_reputation_threshold=int(
                os.environ.get("OUR_REVIEW_MIN_REPUTATION", str(MIN_REPUTATION_THRESHOLD))
            ),
            max_feedback_len=int(os.environ.get("OUR_REVIEW_MAX_FEEDBACK_LEN", str(MAX_FEEDBACK_LEN))),
            max_feedback_entries=int(os.environ.get("OUR_REVIEW_MAX_FEEDBACK_ENTRIES", str(MAX_FEEDBACK_ENTRIES))),
            min_votes_required=int(os.environ.get("OUR_REVIEW_MIN_VOTES", str(MIN_VOTES_REQUIRED))),
            dispute_window=int(os.environ.get("OUR_REVIEW_DISPUTE_WINDOW", str(DISPUTE_WINDOW))),
            resolution_grace=int(os.environ.get("OUR_REVIEW_RESOLUTION_GRACE", str(RESOLUTION_GRACE))),
            max_reason_len=int(os.environ.get("OUR_REVIEW_MAX_REASON_LEN", str(MAX_REASON_LEN))),
            event_signing_key=os.environ.get("OUR_REVIEW_EVENT_SIGNING_KEY") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (without the signing key)."""
        return {
            "owner": self.owner,
            "voting_fee": self.voting_fee,
            "admission": {
                "min_score": self.min_score,
                "max_score": self.max_score,
                "min_reputation_threshold": self.min_reputation_threshold,
                "max_feedback_len": self.max_feedback_len,
                "max_feedback_entries": self.max_feedback_entries,
            },
            "windows": {
                "min_votes_required": self.min_votes_required,
                "dispute_window": self.dispute_window,
                "resolution_grace": self.resolution_grace,
            },
            "disputes": {
                "max_reason_len": self.max_reason_len,
            },
            "event_signing": self.event_signing_key is not None,
        }


# Default configuration
DEFAULT_REVIEW_SETTINGS = ReviewSettings()

_core_settings: ReviewSettings | None = None


def get_config() -> ReviewSettings:
    """Get review settings loaded from the environment.

    Returns:
        ReviewSettings loaded from environment, cached after first call.
    """
    global _core_settings
    if _core_settings is None:
        _core_settings = ReviewSettings.from_env()
    return _core_settings


def clear_config_cache() -> None:
    """Clear the config cache. For testing."""
    global _core_settings
    _core_settings = None
