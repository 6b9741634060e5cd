"""
Leaderboard Service - Application Factory.

============================================================
RESPONSIBILITY
============================================================
Wires configuration, persistence, external collaborators and
routers into one FastAPI application.

- Domain errors map to one HTTP status each
- Every response uses the {"success": ...} envelope
- Unexpected errors are logged with traceback and answered
  with a generic message

============================================================
USAGE
============================================================
    uvicorn app:create_app --factory

or see run_server.py.

============================================================
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.clock import ClockFactory, ClockProtocol
from core.exceptions import LeaderboardError, TransactionAbortedError, ValidationError
from core.identity import (
    AdminAllowListPolicy,
    IdentityResolver,
    InMemoryIdentityResolver,
    ReviewerPolicy,
)
from database.engine import configure_engine, get_session_factory, initialize_database
from leaderboard.config import LeaderboardConfig, get_config
from leaderboard.profiles import InMemoryProfileDirectory, ProfileDirectory
from leaderboard.router import router as leaderboard_router
from performance_review.router import router as review_router

logger = logging.getLogger(__name__)

VERSION = "1.0.0"
GENERIC_ERROR_MESSAGE = "Internal server error"


# ============================================================
# ERROR HANDLERS
# ============================================================

def _error_response(status_code: int, body: dict) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, **body})


async def handle_leaderboard_error(request: Request, exc: LeaderboardError) -> JSONResponse:
    body = {"error": exc.public_message}
    if isinstance(exc, ValidationError):
        body["details"] = exc.field_errors
    if isinstance(exc, TransactionAbortedError):
        body["retryable"] = True

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}", extra={"error": exc.to_dict()})
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}")
    return _error_response(exc.status_code, body)


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(p) for p in err["loc"] if p not in ("body", "query")) or "body",
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return _error_response(400, {"error": "Invalid request", "details": details})


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _error_response(500, {"error": GENERIC_ERROR_MESSAGE})


# ============================================================
# APPLICATION FACTORY
# ============================================================

def create_app(
    config: Optional[LeaderboardConfig] = None,
    session_factory: Optional[Callable[[], Session]] = None,
    identity_resolver: Optional[IdentityResolver] = None,
    reviewer_policy: Optional[ReviewerPolicy] = None,
    profile_directory: Optional[ProfileDirectory] = None,
    clock: Optional[ClockProtocol] = None,
) -> FastAPI:
    """
    Build the API.

    When no session factory is given, the engine is configured from
    ``config.database_url`` and the tables are created.
    """
    config = config or get_config()

    if session_factory is None:
        configure_engine(config.database_url, echo=config.db_echo)
        initialize_database()
        session_factory = get_session_factory()

    if identity_resolver is None:
        logger.warning("No identity resolver configured, authenticated endpoints will return 401")
        identity_resolver = InMemoryIdentityResolver()

    if not config.admin_emails and reviewer_policy is None:
        logger.warning("ADMIN_EMAILS is empty, nobody can review submissions")

    app = FastAPI(
        title="Verified PnL Leaderboard API",
        description="Submission review and ranked leaderboard",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.session_factory = session_factory
    app.state.identity_resolver = identity_resolver
    app.state.reviewer_policy = reviewer_policy or AdminAllowListPolicy(config.admin_emails)
    app.state.profile_directory = profile_directory or InMemoryProfileDirectory()
    app.state.clock = clock or ClockFactory.get_clock()

    app.add_exception_handler(LeaderboardError, handle_leaderboard_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(review_router)
    app.include_router(leaderboard_router)

    started_at = datetime.utcnow()

    @app.get("/health", tags=["Health"])
    def health_check():
        return {
            "success": True,
            "status": "healthy",
            "version": VERSION,
            "uptime_seconds": (datetime.utcnow() - started_at).total_seconds(),
        }

    logger.info(f"Leaderboard API created: {config.to_dict()}")
    return app
