"""Tests for the review pool REST endpoints (server.py)."""

from __future__ import annotations

import pytest
from starlette.testclient import TestClient

from our_review.server import API_V1, IDENTITY_HEADER, create_app

OWNER = "deployer"


def as_identity(identity: str) -> dict[str, str]:
    return {IDENTITY_HEADER: identity}


@pytest.fixture
def client(voting) -> TestClient:
    return TestClient(create_app(voting))


@pytest.fixture
def pool_id(client) -> int:
    response = client.post(
        f"{API_V1}/pools",
        json={"submission_id": 100, "duration": 1000, "required_votes": 3},
        headers=as_identity(OWNER),
    )
    return response.json()["pool_id"]


@pytest.fixture
def reviewed_pool(client, pool_id) -> int:
    for reviewer, score, feedback in (("reviewer1", 80, "A"), ("reviewer2", 70, "B"), ("reviewer3", 90, "C")):
        client.post(
            f"{API_V1}/pools/{pool_id}/votes",
            json={"score": score, "feedback": feedback},
            headers=as_identity(reviewer),
        )
    client.post(f"{API_V1}/pools/{pool_id}/close", headers=as_identity(OWNER))
    return pool_id


# =============================================================================
# POOLS AND VOTES
# =============================================================================


class TestPoolEndpoints:
    """Pool creation and lookup."""

    def test_create_pool(self, client):
        response = client.post(
            f"{API_V1}/pools",
            json={"submission_id": 100, "duration": 1000, "required_votes": 3},
            headers=as_identity(OWNER),
        )

        assert response.status_code == 201
        assert response.json() == {"success": True, "pool_id": 1}

    def test_create_pool_non_owner(self, client):
        response = client.post(
            f"{API_V1}/pools",
            json={"submission_id": 100, "duration": 1000, "required_votes": 3},
            headers=as_identity("reviewer1"),
        )

        assert response.status_code == 403
        error = response.json()["error"]
        assert error["code"] == 100
        assert error["kind"] == "authorization"
        assert error["name"] == "NotAuthorizedError"

    def test_missing_identity(self, client):
        response = client.post(f"{API_V1}/pools", json={"submission_id": 1, "duration": 1, "required_votes": 1})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_MISSING_IDENTITY"

    def test_invalid_json(self, client):
        response = client.post(
            f"{API_V1}/pools",
            content=b"{not json",
            headers={**as_identity(OWNER), "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_INVALID_JSON"

    def test_invalid_utf8_body(self, client):
        response = client.post(
            f"{API_V1}/pools",
            content=b'{"submission_id": "\xff"}',
            headers={**as_identity(OWNER), "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_INVALID_JSON"

    @pytest.mark.parametrize("pool_id", ["x", 1.5, 0])
    def test_invalid_pool_id(self, client, pool_id):
        """A bad explicit id is rejected and nothing is registered."""
        response = client.post(
            f"{API_V1}/pools",
            json={"submission_id": 100, "duration": 1000, "required_votes": 3, "pool_id": pool_id},
            headers=as_identity(OWNER),
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == 118
        assert client.get(f"{API_V1}/pools/1").status_code == 404

    def test_missing_field(self, client):
        response = client.post(f"{API_V1}/pools", json={"submission_id": 1}, headers=as_identity(OWNER))

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_MISSING_FIELD"

    def test_get_pool(self, client, pool_id):
        response = client.get(f"{API_V1}/pools/{pool_id}")

        assert response.status_code == 200
        pool = response.json()["pool"]
        assert pool["status"] == "open"
        assert pool["end_tick"] == 2000
        assert pool["terminal"] is False

    def test_get_missing_pool(self, client):
        response = client.get(f"{API_V1}/pools/99")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND_RESOURCE"


class TestVoteEndpoints:
    """Vote submission, consensus and feedback."""

    def test_submit_and_read_vote(self, client, pool_id):
        response = client.post(
            f"{API_V1}/pools/{pool_id}/votes",
            json={"score": 80, "feedback": "Great content!"},
            headers=as_identity("reviewer1"),
        )
        assert response.status_code == 201
        assert response.json() == {"success": True, "accepted": True}

        vote = client.get(f"{API_V1}/pools/{pool_id}/votes/reviewer1").json()["vote"]
        assert vote == {"score": 80, "feedback": "Great content!", "reputation_weight": 50, "timestamp": 1000}

        consensus = client.get(f"{API_V1}/pools/{pool_id}/consensus").json()
        assert consensus == {"success": True, "consensus_score": 80}

    def test_invalid_score(self, client, pool_id):
        response = client.post(
            f"{API_V1}/pools/{pool_id}/votes",
            json={"score": 150, "feedback": "Invalid"},
            headers=as_identity("reviewer1"),
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == 104

    def test_duplicate_vote_conflict(self, client, pool_id):
        for _ in range(2):
            response = client.post(
                f"{API_V1}/pools/{pool_id}/votes",
                json={"score": 80},
                headers=as_identity("reviewer1"),
            )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == 103

    def test_consensus_without_votes(self, client, pool_id):
        response = client.get(f"{API_V1}/pools/{pool_id}/consensus")

        assert response.status_code == 422
        assert response.json()["error"]["kind"] == "zero_weight"

    def test_feedback(self, client, reviewed_pool):
        response = client.get(f"{API_V1}/pools/{reviewed_pool}/feedback")

        assert response.json() == {"success": True, "feedback": ["A", "B", "C"], "total_count": 3}

    def test_missing_vote(self, client, pool_id):
        assert client.get(f"{API_V1}/pools/{pool_id}/votes/nobody").status_code == 404


# =============================================================================
# DISPUTES AND ADMIN
# =============================================================================


class TestDisputeEndpoints:
    """Dispute initiation, voting and resolution."""

    def test_upheld_dispute_flow(self, client, reviewed_pool):
        response = client.post(
            f"{API_V1}/pools/{reviewed_pool}/dispute",
            json={"reason": "Unfair scoring"},
            headers=as_identity("reviewer1"),
        )
        assert response.status_code == 201

        for reviewer in ("reviewer1", "reviewer3"):
            response = client.post(
                f"{API_V1}/pools/{reviewed_pool}/dispute/votes",
                json={"support": True},
                headers=as_identity(reviewer),
            )
            assert response.status_code == 201

        response = client.post(f"{API_V1}/pools/{reviewed_pool}/dispute/resolve", headers=as_identity(OWNER))
        assert response.json() == {"success": True, "upheld": True}

        dispute = client.get(f"{API_V1}/pools/{reviewed_pool}/dispute").json()["dispute"]
        assert dispute["votes_for"] == 120
        assert dispute["state"] == "upheld"

        pool = client.get(f"{API_V1}/pools/{reviewed_pool}").json()["pool"]
        assert pool["status"] == "disputed-upheld"
        assert pool["terminal"] is True

    def test_outsider_cannot_vote(self, client, reviewed_pool):
        client.post(
            f"{API_V1}/pools/{reviewed_pool}/dispute",
            json={"reason": "Unfair scoring"},
            headers=as_identity("reviewer1"),
        )

        response = client.post(
            f"{API_V1}/pools/{reviewed_pool}/dispute/votes",
            json={"support": True},
            headers=as_identity("outsider"),
        )

        assert response.status_code == 403

    @pytest.mark.parametrize("support", ["false", "true", 0, 1, None])
    def test_support_must_be_boolean(self, client, reviewed_pool, support):
        """Non-boolean support is refused rather than coerced into a vote."""
        client.post(
            f"{API_V1}/pools/{reviewed_pool}/dispute",
            json={"reason": "Unfair scoring"},
            headers=as_identity("reviewer1"),
        )

        response = client.post(
            f"{API_V1}/pools/{reviewed_pool}/dispute/votes",
            json={"support": support},
            headers=as_identity("reviewer3"),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_INVALID_FIELD"
        dispute = client.get(f"{API_V1}/pools/{reviewed_pool}/dispute").json()["dispute"]
        assert dispute["votes_for"] == 0
        assert dispute["votes_against"] == 0

        response = client.post(
            f"{API_V1}/pools/{reviewed_pool}/dispute/votes",
            json={"support": False},
            headers=as_identity("reviewer3"),
        )
        assert response.status_code == 201
        assert client.get(f"{API_V1}/pools/{reviewed_pool}/dispute").json()["dispute"]["votes_against"] == 70

    def test_dispute_open_pool(self, client, pool_id):
        response = client.post(
            f"{API_V1}/pools/{pool_id}/dispute",
            json={"reason": "Too early"},
            headers=as_identity("reviewer1"),
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == 110

    def test_no_dispute(self, client, reviewed_pool):
        assert client.get(f"{API_V1}/pools/{reviewed_pool}/dispute").status_code == 404

        response = client.post(f"{API_V1}/pools/{reviewed_pool}/dispute/resolve", headers=as_identity(OWNER))
        assert response.status_code == 404
        assert response.json()["error"]["code"] == 108


class TestAdminEndpoints:
    """Voting fee administration."""

    def test_set_fee(self, client, voting):
        response = client.post(f"{API_V1}/admin/voting-fee", json={"fee": 250}, headers=as_identity(OWNER))

        assert response.json() == {"success": True, "updated": True}
        assert voting.voting_fee == 250

    def test_set_fee_non_owner(self, client, voting):
        response = client.post(f"{API_V1}/admin/voting-fee", json={"fee": 0}, headers=as_identity("reviewer1"))

        assert response.status_code == 403
        assert voting.voting_fee == 100
