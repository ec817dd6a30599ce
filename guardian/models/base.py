"""
Base Models and Common Types

Foundation classes for all Guardian models: shared enums and the base
model configuration that maps snake_case attributes to the camelCase
keys used on the wire.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(UTC)


class GuardianModel(BaseModel):
    """Base model for all Guardian entities with common configuration."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class ContractType(str, Enum):
    """Kinds of Guardian contracts being monitored."""

    FEED = "FEED"
    DAO = "DAO"
    BADGE = "BADGE"


class ContractStatus(str, Enum):
    """Health status shown on the dashboard."""

    HEALTHY = "HEALTHY"
    WARNING = "WARNING"
    ALERT = "ALERT"


class AlertSeverity(str, Enum):
    """Alert severity levels, lowest first."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def escalates_to(self) -> ContractStatus | None:
        """Contract status implied by an alert of this severity."""
        if self in (AlertSeverity.HIGH, AlertSeverity.CRITICAL):
            return ContractStatus.ALERT
        if self == AlertSeverity.MEDIUM:
            return ContractStatus.WARNING
        return None
