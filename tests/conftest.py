"""Global test fixtures for our-review test suite."""

from __future__ import annotations

import os
from typing import Any

import pytest

from our_review import (
    EventBus,
    LogicalClock,
    ReviewSettings,
    ReviewVoting,
    StaticReputationOracle,
)

OWNER = "deployer"

# Mirrors the reputations used throughout the scenarios
REPUTATIONS = {
    "reviewer1": 50,
    "reviewer2": 30,
    "reviewer3": 70,
    "newcomer": 5,
}


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "slow: Slow tests (>5s)")


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Any:
    """Remove all OUR_REVIEW_ environment variables."""
    from our_review.config import clear_config_cache

    for key in list(os.environ.keys()):
        if key.startswith("OUR_REVIEW_"):
            monkeypatch.delenv(key, raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def settings() -> ReviewSettings:
    return ReviewSettings(owner=OWNER)


@pytest.fixture
def oracle() -> StaticReputationOracle:
    return StaticReputationOracle(REPUTATIONS)


@pytest.fixture
def clock() -> LogicalClock:
    return LogicalClock(start=1000)


@pytest.fixture
def events() -> EventBus:
    return EventBus()


@pytest.fixture
def voting(settings, oracle, clock, events) -> ReviewVoting:
    return ReviewVoting(settings, oracle, clock, events)


@pytest.fixture
def open_pool(voting) -> int:
    """Pool 1: duration 1000, required_votes 3, no votes yet."""
    return voting.create_pool(OWNER, submission_id=100, duration=1000, required_votes=3, pool_id=1)


@pytest.fixture
def voted_pool(voting, open_pool) -> int:
    """Pool 1 with votes from all three reviewers (80/50, 70/30, 90/70)."""
    voting.submit_vote("reviewer1", open_pool, 80, "A")
    voting.submit_vote("reviewer2", open_pool, 70, "B")
    voting.submit_vote("reviewer3", open_pool, 90, "C")
    return open_pool


@pytest.fixture
def closed_pool(voting, voted_pool) -> int:
    voting.close_voting(OWNER, voted_pool)
    return voted_pool


@pytest.fixture
def disputed_pool(voting, closed_pool) -> int:
    voting.initiate_dispute("reviewer1", closed_pool, "Unfair scoring")
    return closed_pool
