"""
Core Module - Identity and Reviewer Authorization.

============================================================
RESPONSIBILITY
============================================================
Session issuance and the admin allow-list live outside this
service. The service consumes them through two interfaces:

- IdentityResolver: session token -> Identity
- ReviewerPolicy:   Identity -> allowed to review, or Forbidden

In-memory implementations are provided for development and
tests.

============================================================
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from .exceptions import ForbiddenError, UnauthorizedError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """An authenticated caller."""
    subject_id: str
    email: Optional[str] = None

    @property
    def reviewer_label(self) -> str:
        """Value recorded as ``reviewed_by`` on a submission."""
        return self.email or self.subject_id


# ============================================================
# IDENTITY RESOLUTION
# ============================================================

class IdentityResolver(ABC):
    """Resolves a session token to the caller's identity."""

    @abstractmethod
    def resolve(self, token: Optional[str]) -> Identity:
        """
        Raises:
            UnauthorizedError: token missing, unknown or expired
        """
        pass


class InMemoryIdentityResolver(IdentityResolver):
    """Token table held in memory."""

    def __init__(self, sessions: Optional[Dict[str, Identity]] = None):
        self._sessions: Dict[str, Identity] = dict(sessions or {})

    def register(self, token: str, subject_id: str, email: Optional[str] = None) -> Identity:
        identity = Identity(subject_id=subject_id, email=email)
        self._sessions[token] = identity
        return identity

    def revoke(self, token: str) -> None:
        self._sessions.pop(token, None)

    def resolve(self, token: Optional[str]) -> Identity:
        if not token:
            raise UnauthorizedError()
        identity = self._sessions.get(token)
        if identity is None:
            raise UnauthorizedError(context={"reason": "unknown session"})
        return identity


# ============================================================
# REVIEWER POLICY
# ============================================================

class ReviewerPolicy(ABC):
    """Decides whether an identity may review submissions."""

    @abstractmethod
    def is_reviewer(self, identity: Identity) -> bool:
        pass

    def ensure_reviewer(self, identity: Identity) -> None:
        """
        Raises:
            ForbiddenError: identity is not a reviewer
        """
        if not self.is_reviewer(identity):
            logger.warning(f"Review access denied for subject={identity.subject_id}")
            raise ForbiddenError(context={"subject_id": identity.subject_id})


class AdminAllowListPolicy(ReviewerPolicy):
    """Reviewer if the identity's e-mail is on the allow-list."""

    def __init__(self, admin_emails: Iterable[str]):
        self._admins = frozenset(e.strip().lower() for e in admin_emails if e and e.strip())

    def is_reviewer(self, identity: Identity) -> bool:
        if not identity.email:
            return False
        return identity.email.strip().lower() in self._admins


__all__ = [
    "Identity",
    "IdentityResolver",
    "InMemoryIdentityResolver",
    "ReviewerPolicy",
    "AdminAllowListPolicy",
]
