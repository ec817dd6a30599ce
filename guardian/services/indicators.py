"""
Analysis Indicators

Turns free-text LLM output into alert severities. Matching is keyword
based and case-insensitive.
"""

import re
from dataclasses import dataclass

from guardian.models import AlertSeverity, ContractStatus


@dataclass(frozen=True)
class Indicator:
    pattern: re.Pattern[str]
    severity: AlertSeverity
    title: str


# Checked in order; only the first match produces an alert
CONTRACT_INDICATORS: tuple[Indicator, ...] = (
    Indicator(re.compile(r"reentrancy", re.I), AlertSeverity.HIGH, "Reentrancy vulnerability"),
    Indicator(re.compile(r"access control", re.I), AlertSeverity.HIGH, "Access control issue"),
    Indicator(re.compile(r"overflow|underflow", re.I), AlertSeverity.MEDIUM, "Integer overflow/underflow"),
    Indicator(re.compile(r"front.?running", re.I), AlertSeverity.MEDIUM, "Front-running vulnerability"),
    Indicator(re.compile(r"logic error", re.I), AlertSeverity.MEDIUM, "Logic error"),
    Indicator(re.compile(r"gas optimization", re.I), AlertSeverity.LOW, "Gas optimization issue"),
)

SUSPICIOUS_PATTERN = re.compile(r"suspicious|unusual|vulnerability|attack|exploit", re.I)
HIGH_RISK_PATTERN = re.compile(r"critical|severe|high risk", re.I)
MEDIUM_RISK_PATTERN = re.compile(r"medium|moderate", re.I)


def match_contract_indicator(analysis: str) -> Indicator | None:
    """First contract indicator found in ``analysis``, if any."""
    for indicator in CONTRACT_INDICATORS:
        if indicator.pattern.search(analysis):
            return indicator
    return None


def is_suspicious(analysis: str) -> bool:
    return SUSPICIOUS_PATTERN.search(analysis) is not None


def classify_event_severity(analysis: str) -> AlertSeverity:
    if HIGH_RISK_PATTERN.search(analysis):
        return AlertSeverity.HIGH
    if MEDIUM_RISK_PATTERN.search(analysis):
        return AlertSeverity.MEDIUM
    return AlertSeverity.LOW


def escalated_status(
    current: ContractStatus, severity: AlertSeverity
) -> ContractStatus | None:
    """
    New contract status after an alert of ``severity``, or None to keep it.

    A WARNING never downgrades a contract already in ALERT.
    """
    target = severity.escalates_to
    if target is None or target == current:
        return None
    if target == ContractStatus.WARNING and current == ContractStatus.ALERT:
        return None
    return target
