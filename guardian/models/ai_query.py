"""
AI Query Models

Record of every prompt sent to the LLM and the tokens it consumed. The
token total drives the usage limit.
"""

from datetime import datetime

from pydantic import Field

from guardian.models.base import GuardianModel, utc_now


class AiQueryCreate(GuardianModel):
    contract_id: int
    query: str
    response: str | None = None
    token_count: int | None = Field(default=0, ge=0)


class AiQuery(GuardianModel):
    id: int
    contract_id: int
    query: str
    response: str | None = None
    token_count: int | None = 0
    created_at: datetime = Field(default_factory=utc_now)


class TokenUsage(GuardianModel):
    """Token consumption against the configured limit."""

    used: int
    limit: int
    percentage: float
