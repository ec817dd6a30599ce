"""
Guardian AI Data Models
"""

from guardian.models.ai_query import AiQuery, AiQueryCreate, TokenUsage
from guardian.models.alert import Alert, AlertCreate
from guardian.models.base import (
    AlertSeverity,
    ContractStatus,
    ContractType,
    GuardianModel,
)
from guardian.models.contract import Contract, ContractCreate
from guardian.models.event import Event, EventCreate
from guardian.models.scan import (
    ContractScanResult,
    VulnerabilityCount,
    VulnerabilityFinding,
    VulnerabilitySeverity,
)

__all__ = [
    "GuardianModel",
    "ContractType",
    "ContractStatus",
    "AlertSeverity",
    "Contract",
    "ContractCreate",
    "Alert",
    "AlertCreate",
    "Event",
    "EventCreate",
    "AiQuery",
    "AiQueryCreate",
    "TokenUsage",
    "ContractScanResult",
    "VulnerabilityCount",
    "VulnerabilityFinding",
    "VulnerabilitySeverity",
]
