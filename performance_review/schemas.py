"""
Pydantic Schemas for the Performance Review Workflow.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse
from uuid import UUID

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from leaderboard.types import Exchange, ReviewDecision, SubmissionStatus


MAX_PROOF_TEXT_LENGTH = 2000
MAX_PROOF_LINKS = 10
MAX_REVIEW_NOTE_LENGTH = 1000


# =============================================================
# REQUEST SCHEMAS
# =============================================================

class SubmissionCreate(BaseModel):
    """Self-reported performance figures."""
    exchange: Exchange
    monthly_pnl_pct: float = Field(..., ge=-100, le=1000, allow_inf_nan=False)
    total_pnl_usd: float = Field(..., ge=-1_000_000, le=10_000_000, allow_inf_nan=False)
    win_rate_pct: float = Field(..., ge=0, le=100, allow_inf_nan=False)
    volume_usd: float = Field(..., ge=0, le=100_000_000, allow_inf_nan=False)
    proof_text: Optional[str] = Field(None, max_length=MAX_PROOF_TEXT_LENGTH)
    proof_links: List[str] = Field(default_factory=list, max_length=MAX_PROOF_LINKS)

    @field_validator("proof_links")
    @classmethod
    def check_links(cls, links: List[str]) -> List[str]:
        for link in links:
            parsed = urlparse(link)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValueError(f"Invalid URL: {link}")
        return links


class ReviewRequest(BaseModel):
    """Reviewer's decision on a pending submission."""
    submission_id: UUID
    action: ReviewDecision
    admin_note: Optional[str] = Field(None, max_length=MAX_REVIEW_NOTE_LENGTH)


def field_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    """Flatten a pydantic error into one {field, message} entry per problem."""
    return [
        {
            "field": ".".join(str(part) for part in err["loc"]) or "body",
            "message": err["msg"],
        }
        for err in exc.errors()
    ]


# =============================================================
# RESPONSE SCHEMAS
# =============================================================

class SubmissionResponse(BaseModel):
    id: UUID
    subject_id: str
    exchange: str
    monthly_pnl_pct: float
    total_pnl_usd: float
    win_rate_pct: float
    volume_usd: float
    proof_text: Optional[str] = None
    proof_links: List[str] = []
    status: SubmissionStatus
    reviewer_note: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SubmissionEnvelope(BaseModel):
    success: bool = True
    data: SubmissionResponse
    message: Optional[str] = None


class SubmissionListEnvelope(BaseModel):
    success: bool = True
    data: List[SubmissionResponse]


class ReviewQueueEnvelope(BaseModel):
    """Pending submissions plus per-status counts."""
    success: bool = True
    data: List[SubmissionResponse]
    stats: Dict[str, int]


class ReviewEnvelope(BaseModel):
    success: bool = True
    message: str
    data: Optional[Dict[str, Any]] = None


__all__ = [
    "MAX_PROOF_TEXT_LENGTH",
    "MAX_PROOF_LINKS",
    "MAX_REVIEW_NOTE_LENGTH",
    "SubmissionCreate",
    "ReviewRequest",
    "field_errors",
    "SubmissionResponse",
    "SubmissionEnvelope",
    "SubmissionListEnvelope",
    "ReviewQueueEnvelope",
    "ReviewEnvelope",
]
