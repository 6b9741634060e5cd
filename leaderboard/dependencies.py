"""
FastAPI dependencies shared by the leaderboard and review routers.

Collaborators (session factory, identity resolver, reviewer policy,
profile directory, clock, config) are attached to ``app.state`` by
``app.create_app`` and read back here per request.
"""

from typing import Callable, Generator, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from core.clock import ClockProtocol
from core.identity import Identity, IdentityResolver, ReviewerPolicy
from database.engine import get_db_session

from .config import LeaderboardConfig
from .profiles import ProfileDirectory


def get_app_config(request: Request) -> LeaderboardConfig:
    return request.app.state.config


def get_session_factory(request: Request) -> Callable[[], Session]:
    return request.app.state.session_factory


def get_clock(request: Request) -> ClockProtocol:
    return request.app.state.clock


def get_profile_directory(request: Request) -> Optional[ProfileDirectory]:
    return request.app.state.profile_directory


def get_db(
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> Generator[Session, None, None]:
    """Read-only request session."""
    with get_db_session(session_factory) as session:
        yield session


# =============================================================
# AUTH
# =============================================================

def get_session_token(
    authorization: Optional[str] = Header(None),
    x_session_token: Optional[str] = Header(None),
) -> Optional[str]:
    """Bearer token from Authorization, else X-Session-Token."""
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    return x_session_token


def get_current_identity(
    request: Request,
    token: Optional[str] = Depends(get_session_token),
) -> Identity:
    resolver: IdentityResolver = request.app.state.identity_resolver
    return resolver.resolve(token)


def get_reviewer_policy(request: Request) -> ReviewerPolicy:
    return request.app.state.reviewer_policy


def get_reviewer_identity(
    identity: Identity = Depends(get_current_identity),
    policy: ReviewerPolicy = Depends(get_reviewer_policy),
) -> Identity:
    policy.ensure_reviewer(identity)
    return identity
