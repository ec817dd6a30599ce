"""
Alert Models

Security notifications raised against a contract, either by the health
check or by AI analysis.
"""

from datetime import datetime

from pydantic import Field

from guardian.models.base import AlertSeverity, GuardianModel, utc_now


class AlertCreate(GuardianModel):
    """Schema for creating an alert."""

    contract_id: int
    severity: AlertSeverity
    title: str = Field(min_length=1)
    description: str
    ai_analysis: str | None = None


class Alert(GuardianModel):
    """Stored alert record."""

    id: int
    contract_id: int
    severity: AlertSeverity
    title: str
    description: str
    ai_analysis: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    resolved: bool = False
