"""Pydantic models for request/response validation."""
import re
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Largest candidate ID accepted in a stats query (unsigned 32-bit range)
MAX_QUERY_CANDIDATE_ID = 2**32 - 1
# Largest candidate ID accepted in a vote body (unsigned 64-bit range)
MAX_VOTE_CANDIDATE_ID = 2**64 - 1

_DIGITS = re.compile(r"^[0-9]+$")


def parse_candidate_id(raw: str) -> int:
    """
    Parse a candidate ID taken from a query string.

    Only plain ASCII decimal digits are accepted; zero is a valid parse.

    Raises:
        ValueError: Not a decimal number, or outside the unsigned 32-bit range
    """
    if not _DIGITS.match(raw):
        raise ValueError(f"candidate_id must be a non-negative integer, got {raw!r}")
    value = int(raw)
    if value > MAX_QUERY_CANDIDATE_ID:
        raise ValueError(f"candidate_id {value} is out of range")
    return value


class VoteRequest(BaseModel):
    """Vote submission request model."""

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "candidate_id": 5,
                "passport": "AB1234567"
            }
        }
    )

    candidate_id: int = Field(
        default=0,
        strict=True,
        validate_default=True,
        le=MAX_VOTE_CANDIDATE_ID,
        description="Candidate identifier (positive integer)"
    )
    # Reserved for voter identity checks, not validated
    passport: str = Field(default="", description="Voter passport identifier")

    @field_validator("candidate_id")
    @classmethod
    def validate_candidate_id(cls, v):
        """Reject the zero sentinel and negative IDs."""
        if v <= 0:
            raise ValueError("candidate_id must be a positive integer")
        return v

    @field_validator("passport", mode="before")
    @classmethod
    def validate_passport(cls, v):
        """Treat a JSON null passport as absent."""
        if v is None:
            return ""
        return v


class CandidateStatsResponse(BaseModel):
    """Vote count for a single candidate."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "candidate_id": 5,
                "votes": 42
            }
        }
    )

    candidate_id: int = Field(..., description="Candidate identifier")
    votes: int = Field(..., description="Number of votes recorded")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: Literal["healthy", "unhealthy"] = Field(..., description="Overall health status")
    candidates: int = Field(..., description="Candidates with at least one vote")
    total_votes: int = Field(..., description="Votes recorded since startup")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Health check timestamp"
    )
