"""REST endpoints for review pools.

Routes:
    POST   /api/v1/pools                              — create_pool_endpoint
    GET    /api/v1/pools/{pool_id}                    — get_pool_endpoint
    POST   /api/v1/pools/{pool_id}/votes              — submit_vote_endpoint
    GET    /api/v1/pools/{pool_id}/votes/{reviewer}   — get_vote_endpoint
    POST   /api/v1/pools/{pool_id}/close              — close_voting_endpoint
    GET    /api/v1/pools/{pool_id}/consensus          — consensus_endpoint
    GET    /api/v1/pools/{pool_id}/feedback           — feedback_endpoint
    POST   /api/v1/pools/{pool_id}/dispute            — initiate_dispute_endpoint
    GET    /api/v1/pools/{pool_id}/dispute            — get_dispute_endpoint
    POST   /api/v1/pools/{pool_id}/dispute/votes      — dispute_vote_endpoint
    POST   /api/v1/pools/{pool_id}/dispute/resolve    — resolve_dispute_endpoint
    POST   /api/v1/admin/voting-fee                   — voting_fee_endpoint

The acting identity is taken from the X-Review-Identity header; verifying
it is the job of the gateway in front of this app.
"""

from __future__ import annotations

import logging
from typing import Any

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .exceptions import ReviewError
from .results import Result
from .types import ErrorKind
from .voting import ReviewVoting

logger = logging.getLogger(__name__)

API_V1 = "/api/v1"
IDENTITY_HEADER = "X-Review-Identity"

# HTTP status for each error kind
ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.DUPLICATE_ACTION: 409,
    ErrorKind.ALREADY_RESOLVED: 409,
    ErrorKind.INVALID_STATE: 409,
    ErrorKind.TEMPORAL_VIOLATION: 422,
    ErrorKind.VALIDATION_VIOLATION: 422,
    ErrorKind.INSUFFICIENT_WEIGHT: 422,
    ErrorKind.ZERO_WEIGHT: 422,
}

VALIDATION_INVALID_JSON = "VALIDATION_INVALID_JSON"
VALIDATION_MISSING_FIELD = "VALIDATION_MISSING_FIELD"
VALIDATION_INVALID_FIELD = "VALIDATION_INVALID_FIELD"
AUTH_MISSING_IDENTITY = "AUTH_MISSING_IDENTITY"
NOT_FOUND_RESOURCE = "NOT_FOUND_RESOURCE"


# =============================================================================
# RESPONSE HELPERS
# =============================================================================


def error_response(code: str, message: str, status_code: int = 400) -> JSONResponse:
    """Create a standardized error response for malformed requests."""
    return JSONResponse(
        {"success": False, "error": {"code": code, "message": message}},
        status_code=status_code,
    )


def review_error_response(error: ReviewError) -> JSONResponse:
    """Map a core rejection to a JSON error response."""
    return JSONResponse(
        {
            "success": False,
            "error": {
                "code": int(error.code),
                "kind": error.kind.value,
                "name": error.__class__.__name__,
                "message": error.message,
            },
        },
        status_code=ERROR_STATUS[error.kind],
    )


def _result_response(result: Result, key: str, status_code: int = 200) -> JSONResponse:
    if result.error is not None:
        return review_error_response(result.error)
    return JSONResponse({"success": True, key: result.value}, status_code=status_code)


def _voting(request: Request) -> ReviewVoting:
    return request.app.state.voting


def _identity(request: Request) -> str | JSONResponse:
    identity = request.headers.get(IDENTITY_HEADER)
    if not identity:
        return error_response(AUTH_MISSING_IDENTITY, f"Missing {IDENTITY_HEADER} header", status_code=401)
    return identity


def _pool_id(request: Request) -> int:
    return request.path_params["pool_id"]


async def _body(request: Request, *fields: str) -> dict[str, Any] | JSONResponse:
    """Parse a JSON object body that must contain the given fields."""
    try:
        body = await request.json()
    except ValueError:
        return error_response(VALIDATION_INVALID_JSON, "Request body must be valid JSON")
    if not isinstance(body, dict):
        return error_response(VALIDATION_INVALID_JSON, "Request body must be a JSON object")
    for name in fields:
        if name not in body:
            return error_response(VALIDATION_MISSING_FIELD, f"Missing required field: {name}")
    return body


# =============================================================================
# POOL ENDPOINTS
# =============================================================================


async def create_pool_endpoint(request: Request) -> JSONResponse:
    """POST /api/v1/pools — Create a review pool (owner only)."""
    caller = _identity(request)
    if isinstance(caller, JSONResponse):
        return caller
    body = await _body(request, "submission_id", "duration", "required_votes")
    if isinstance(body, JSONResponse):
        return body

    result = Result.capture(
        _voting(request).create_pool,
        caller,
        body["submission_id"],
        body["duration"],
        body["required_votes"],
        pool_id=body.get("pool_id"),
    )
    return _result_response(result, "pool_id", status_code=201)


async def get_pool_endpoint(request: Request) -> JSONResponse:
    """GET /api/v1/pools/{pool_id} — Pool details."""
    voting = _voting(request)
    pool = voting.get_pool_details(_pool_id(request))
    if pool is None:
        return error_response(NOT_FOUND_RESOURCE, f"Pool {_pool_id(request)} not found", status_code=404)
    data = pool.to_dict()
    data["terminal"] = voting.lifecycle.is_terminal(pool.status)
    return JSONResponse({"success": True, "pool": data})


async def close_voting_endpoint(request: Request) -> JSONResponse:
    """POST /api/v1/pools/{pool_id}/close — Close voting."""
    caller = _identity(request)
    if isinstance(caller, JSONResponse):
        return caller
    result = Result.capture(_voting(request).close_voting, caller, _pool_id(request))
    return _result_response(result, "closed")


async def consensus_endpoint(request: Request) -> JSONResponse:
    """GET /api/v1/pools/{pool_id}/consensus — Weighted consensus score."""
    result = Result.capture(_voting(request).get_consensus_score, _pool_id(request))
    return _result_response(result, "consensus_score")


async def feedback_endpoint(request: Request) -> JSONResponse:
    """GET /api/v1/pools/{pool_id}/feedback — Feedback in vote order."""
    feedback = _voting(request).get_feedback_list(_pool_id(request))
    return JSONResponse({"success": True, "feedback": feedback, "total_count": len(feedback)})


# =============================================================================
# VOTE ENDPOINTS
# =============================================================================


async def submit_vote_endpoint(request: Request) -> JSONResponse:
    """POST /api/v1/pools/{pool_id}/votes — Submit a vote."""
    caller = _identity(request)
    if isinstance(caller, JSONResponse):
        return caller
    body = await _body(request, "score")
    if isinstance(body, JSONResponse):
        return body

    result = Result.capture(
        _voting(request).submit_vote,
        caller,
        _pool_id(request),
        body["score"],
        body.get("feedback", ""),
    )
    return _result_response(result, "accepted", status_code=201)


async def get_vote_endpoint(request: Request) -> JSONResponse:
    """GET /api/v1/pools/{pool_id}/votes/{reviewer} — A reviewer's vote."""
    vote = _voting(request).get_vote(_pool_id(request), request.path_params["reviewer"])
    if vote is None:
        return error_response(NOT_FOUND_RESOURCE, "Vote not found", status_code=404)
    return JSONResponse({"success": True, "vote": vote.to_dict()})


# =============================================================================
# DISPUTE ENDPOINTS
# =============================================================================


async def initiate_dispute_endpoint(request: Request) -> JSONResponse:
    """POST /api/v1/pools/{pool_id}/dispute — Open a dispute."""
    caller = _identity(request)
    if isinstance(caller, JSONResponse):
        return caller
    body = await _body(request, "reason")
    if isinstance(body, JSONResponse):
        return body

    result = Result.capture(_voting(request).initiate_dispute, caller, _pool_id(request), body["reason"])
    return _result_response(result, "disputed", status_code=201)


async def get_dispute_endpoint(request: Request) -> JSONResponse:
    """GET /api/v1/pools/{pool_id}/dispute — Dispute details."""
    dispute = _voting(request).get_dispute_details(_pool_id(request))
    if dispute is None:
        return error_response(NOT_FOUND_RESOURCE, f"Pool {_pool_id(request)} has no dispute", status_code=404)
    return JSONResponse({"success": True, "dispute": dispute.to_dict()})


async def dispute_vote_endpoint(request: Request) -> JSONResponse:
    """POST /api/v1/pools/{pool_id}/dispute/votes — Vote on a dispute."""
    caller = _identity(request)
    if isinstance(caller, JSONResponse):
        return caller
    body = await _body(request, "support")
    if isinstance(body, JSONResponse):
        return body

    support = body["support"]
    if not isinstance(support, bool):
        return error_response(VALIDATION_INVALID_FIELD, "Field support must be true or false")

    result = Result.capture(_voting(request).vote_on_dispute, caller, _pool_id(request), support)
    return _result_response(result, "accepted", status_code=201)


async def resolve_dispute_endpoint(request: Request) -> JSONResponse:
    """POST /api/v1/pools/{pool_id}/dispute/resolve — Resolve a dispute."""
    caller = _identity(request)
    if isinstance(caller, JSONResponse):
        return caller
    result = Result.capture(_voting(request).resolve_dispute, caller, _pool_id(request))
    return _result_response(result, "upheld")


# =============================================================================
# ADMIN ENDPOINTS
# =============================================================================


async def voting_fee_endpoint(request: Request) -> JSONResponse:
    """POST /api/v1/admin/voting-fee — Set the voting fee (owner only)."""
    caller = _identity(request)
    if isinstance(caller, JSONResponse):
        return caller
    body = await _body(request, "fee")
    if isinstance(body, JSONResponse):
        return body

    result = Result.capture(_voting(request).set_voting_fee, caller, body["fee"])
    return _result_response(result, "updated")


def create_app(voting: ReviewVoting) -> Starlette:
    """Create the Starlette ASGI application around a voting engine."""
    routes = [
        Route(f"{API_V1}/pools", create_pool_endpoint, methods=["POST"]),
        Route(f"{API_V1}/pools/{{pool_id:int}}", get_pool_endpoint, methods=["GET"]),
        Route(f"{API_V1}/pools/{{pool_id:int}}/votes", submit_vote_endpoint, methods=["POST"]),
        Route(f"{API_V1}/pools/{{pool_id:int}}/votes/{{reviewer}}", get_vote_endpoint, methods=["GET"]),
        Route(f"{API_V1}/pools/{{pool_id:int}}/close", close_voting_endpoint, methods=["POST"]),
        Route(f"{API_V1}/pools/{{pool_id:int}}/consensus", consensus_endpoint, methods=["GET"]),
        Route(f"{API_V1}/pools/{{pool_id:int}}/feedback", feedback_endpoint, methods=["GET"]),
        Route(f"{API_V1}/pools/{{pool_id:int}}/dispute", initiate_dispute_endpoint, methods=["POST"]),
        Route(f"{API_V1}/pools/{{pool_id:int}}/dispute", get_dispute_endpoint, methods=["GET"]),
        Route(f"{API_V1}/pools/{{pool_id:int}}/dispute/votes", dispute_vote_endpoint, methods=["POST"]),
        Route(f"{API_V1}/pools/{{pool_id:int}}/dispute/resolve", resolve_dispute_endpoint, methods=["POST"]),
        Route(f"{API_V1}/admin/voting-fee", voting_fee_endpoint, methods=["POST"]),
    ]

    app = Starlette(routes=routes)
    app.state.voting = voting
    logger.info(f"Review API ready with {len(routes)} routes under {API_V1}")
    return app
