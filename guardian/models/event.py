"""
Event Models

On-chain (or demo) event log entries attributed to a contract.
"""

from datetime import datetime
from typing import Any

from pydantic import Field

from guardian.models.base import GuardianModel, utc_now


class EventCreate(GuardianModel):
    """
    Schema for recording an event.

    ``timestamp`` is normally assigned on insert; demo seeding passes an
    explicit value to spread events over the last hour.
    """

    contract_id: int
    event_name: str
    block_number: int = Field(ge=0)
    transaction_hash: str
    event_data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime | None = None


class Event(GuardianModel):
    """Stored event record."""

    id: int
    contract_id: int
    event_name: str
    block_number: int
    transaction_hash: str
    event_data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utc_now)
