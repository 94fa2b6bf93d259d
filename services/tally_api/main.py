"""
FastAPI application for the vote tally API.

Records votes for numeric candidate IDs and reports the current totals.
The tally lives in a VoteStore handed to create_app(), so every app instance
(and every test) owns its own store.
"""
import logging
import socket
import sys
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import APIRouter, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from pydantic import ValidationError
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from services.tally_api.config import settings
from services.tally_api.models import (
    CandidateStatsResponse,
    HealthResponse,
    VoteRequest,
    parse_candidate_id,
)
from services.tally_api.store import CandidateNotFoundError, VoteStore

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Prometheus metrics
votes_recorded = Counter(
    "votes_recorded_total",
    "Total number of votes recorded"
)
vote_errors = Counter(
    "vote_errors_total",
    "Total number of rejected or failed requests",
    ["error_type"]
)
request_duration = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status"]
)
candidates_gauge = Gauge(
    "tally_candidates",
    "Number of candidates with at least one vote"
)

# Rate limiter
limiter = Limiter(key_func=get_remote_address)

router = APIRouter()


def get_store(request: Request) -> VoteStore:
    """Store bound to the application handling the request."""
    return request.app.state.store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger.info(f"{settings.SERVICE_NAME} started successfully")

    yield

    store = app.state.store
    logger.info(
        f"Shutting down {settings.SERVICE_NAME} service: "
        f"{len(store)} candidates, {store.total_votes()} votes discarded"
    )


async def prometheus_middleware(request: Request, call_next):
    """Middleware to track request duration."""
    started = time.perf_counter()
    response = await call_next(request)

    request_duration.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code
    ).observe(time.perf_counter() - started)

    return response


@router.post(
    "/vote",
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "Malformed JSON or invalid candidate_id"},
        405: {"description": "Method not allowed"},
        429: {"description": "Rate limit exceeded"},
        500: {"description": "Request body could not be read"}
    }
)
@limiter.limit(settings.RATE_LIMIT)
async def submit_vote(request: Request) -> Response:
    """
    Submit a vote for a candidate.

    Body: `{"candidate_id": <positive integer>, "passport": <string>}`.
    The passport is accepted but not checked.

    Returns 200 with an empty body once the vote is counted.
    """
    try:
        raw = await request.body()
    except Exception as e:
        vote_errors.labels(error_type="body_read_error").inc()
        logger.error(f"Failed to read vote request body: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to read request body"
        )

    try:
        vote = VoteRequest.model_validate_json(raw)
    except ValidationError as e:
        vote_errors.labels(error_type="validation_error").inc()
        logger.warning(f"Rejected vote: {e.error_count()} validation error(s)")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.errors(include_url=False, include_context=False, include_input=False)
        )

    get_store(request).record_vote(vote.candidate_id)
    votes_recorded.inc()

    return Response(status_code=status.HTTP_200_OK)


@router.get(
    "/stats",
    responses={
        200: {"description": "Full tally, or a single candidate's count"},
        400: {"description": "candidate_id is not a 32-bit unsigned integer"},
        404: {"description": "Candidate has no recorded votes"},
        500: {"description": "Internal server error"}
    }
)
async def get_stats(request: Request) -> Response:
    """
    Get vote statistics.

    - **candidate_id** (optional): restrict the answer to one candidate

    Without candidate_id the whole tally is returned as `{"<id>": votes}`.
    When candidate_id is repeated, the first value is used.
    """
    store = get_store(request)
    values = request.query_params.getlist("candidate_id")
    candidate_id = values[0] if values else None

    if not candidate_id:
        try:
            tally = store.read_all()
            candidates_gauge.set(len(tally))
            return JSONResponse(
                content={str(cid): votes for cid, votes in sorted(tally.items())}
            )
        except Exception as e:
            vote_errors.labels(error_type="internal_error").inc()
            logger.error(f"Error encoding tally: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Internal server error"
            )

    try:
        cid = parse_candidate_id(candidate_id)
    except ValueError as e:
        vote_errors.labels(error_type="invalid_query").inc()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    try:
        votes = store.read_one(cid)
    except CandidateNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )

    try:
        response = CandidateStatsResponse(candidate_id=cid, votes=votes)
        return JSONResponse(content=response.model_dump(mode="json"))
    except Exception as e:
        vote_errors.labels(error_type="internal_error").inc()
        logger.error(f"Error encoding stats for candidate {cid}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Report service status and tally size."""
    store = get_store(request)
    return HealthResponse(
        status="healthy",
        candidates=len(store),
        total_votes=store.total_votes(),
        timestamp=datetime.now(timezone.utc)
    )


@router.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


@router.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "service": settings.SERVICE_NAME,
        "version": settings.API_VERSION,
        "status": "running",
        "endpoints": {
            "submit_vote": "/vote",
            "get_stats": "/stats",
            "get_candidate_stats": "/stats?candidate_id={candidate_id}",
            "health": "/health",
            "metrics": "/metrics"
        }
    }


def create_app(store: Optional[VoteStore] = None) -> FastAPI:
    """
    Build the API around a vote store.

    Args:
        store: Tally to serve; a fresh empty store when omitted

    Returns:
        FastAPI: Configured application
    """
    app = FastAPI(
        title="Vote Tally API",
        description="API for submitting votes and reading candidate totals",
        version=settings.API_VERSION,
        lifespan=lifespan
    )
    app.state.store = store if store is not None else VoteStore()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )
    app.middleware("http")(prometheus_middleware)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.include_router(router)
    return app


app = create_app()


def run():
    """Serve the module-level app, exiting with status 1 if the port cannot be bound."""
    logger.info(f"Starting server on {settings.bind_address}...")

    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((settings.HOST, settings.PORT))
    except OSError as e:
        sock.close()
        logger.critical(f"Failed to start server: {e}")
        sys.exit(1)

    server = uvicorn.Server(
        uvicorn.Config(
            app,
            log_level=logging.getLevelName(settings.log_level).lower()
        )
    )
    server.run(sockets=[sock])


if __name__ == "__main__":
    run()
