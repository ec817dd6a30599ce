"""
Scan Report Models

Output of the contract security kit scan. These keep snake_case keys on
the wire, matching the report format consumed by the dashboard.
"""

from enum import Enum

from pydantic import BaseModel, Field


class VulnerabilitySeverity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"

    @property
    def rank(self) -> int:
        """Sort key, most severe first."""
        return list(VulnerabilitySeverity).index(self)


class VulnerabilityFinding(BaseModel):
    id: str
    name: str
    description: str
    severity: VulnerabilitySeverity
    line_number: int | None = None
    code_snippet: str | None = None
    recommendation: str | None = None
    category: str


class VulnerabilityCount(BaseModel):
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    info: int = 0

    @property
    def total(self) -> int:
        return self.critical + self.high + self.medium + self.low + self.info


class ContractScanResult(BaseModel):
    """Full scan report for one address."""

    contract_address: str
    scan_id: str
    timestamp: str
    overall_score: float = Field(ge=0, le=100)
    vulnerability_count: VulnerabilityCount
    vulnerabilities: list[VulnerabilityFinding] = Field(default_factory=list)
    gas_optimization_suggestions: list[str] = Field(default_factory=list)
    audit_summary: str
