"""
Contract Models

A monitored smart contract. Only metadata is stored; code and events are
fetched through the blockchain service.
"""

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from guardian.config import ADDRESS_PATTERN
from guardian.models.base import ContractStatus, ContractType, GuardianModel, utc_now


class ContractCreate(GuardianModel):
    """Schema for registering a contract."""

    name: str = Field(min_length=1, max_length=200)
    address: str
    type: ContractType
    abi: list[dict[str, Any]] | None = None
    status: ContractStatus = ContractStatus.HEALTHY

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        if not ADDRESS_PATTERN.match(v):
            raise ValueError("address must be 0x followed by 40 hex characters")
        return v


class Contract(GuardianModel):
    """Stored contract record."""

    id: int
    name: str
    address: str
    type: ContractType
    abi: list[dict[str, Any]] | None = None
    status: ContractStatus = ContractStatus.HEALTHY
    added_at: datetime = Field(default_factory=utc_now)
