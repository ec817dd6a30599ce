"""
Contract Security Kit Scanner (demo)

Produces a randomized but internally consistent vulnerability report for an
address, plus mock Solidity source. No code is actually analyzed.

The random source is injectable so reports can be reproduced in tests.
"""

from __future__ import annotations

import random
import time
from collections import Counter
from datetime import UTC, datetime

import structlog

from guardian.config import ADDRESS_PATTERN
from guardian.models import (
    ContractScanResult,
    VulnerabilityCount,
    VulnerabilityFinding,
    VulnerabilitySeverity,
)

logger = structlog.get_logger(__name__)

VULNERABILITY_NAMES: dict[str, tuple[str, ...]] = {
    "Reentrancy": (
        "Single Function Reentrancy",
        "Cross-Function Reentrancy",
        "Cross-Contract Reentrancy",
    ),
    "Integer Overflow/Underflow": (
        "Integer Overflow in Calculation",
        "Integer Underflow in Balance Update",
        "Unchecked Math Operation",
    ),
    "Access Control": (
        "Missing Access Controls",
        "Improper Role Validation",
        "Privileged Function Exposure",
    ),
    "Unchecked External Calls": (
        "Unchecked Call Return Value",
        "Unsafe External Call",
        "Missing Return Value Check",
    ),
    "Flash Loan Attacks": (
        "Vulnerable to Price Manipulation",
        "DEX Pool Manipulation Risk",
        "Flash Loan Oracle Attack Vector",
    ),
    "Front-Running": (
        "Unprotected Function Vulnerable to Front-Running",
        "Unprotected Order Execution",
        "Missing Commit-Reveal Pattern",
    ),
    "Oracle Manipulation": (
        "Single Oracle Dependency",
        "Time-Weighted Average Price Manipulation",
        "Oracle Update Mechanism Flaw",
    ),
    "Gas Optimization": (
        "Inefficient Storage Layout",
        "Redundant Operations",
        "Excessive Loop Operations",
    ),
    "Logic Errors": (
        "Incorrect Business Logic Implementation",
        "State Machine Error",
        "Conditional Check Flaw",
    ),
    "Denial of Service": (
        "Block Gas Limit DoS",
        "External Call Dependency DoS",
        "Array Length Manipulation DoS",
    ),
}
VULNERABILITY_CATEGORIES = tuple(VULNERABILITY_NAMES)

RECOMMENDED_PRACTICE = {
    "Reentrancy": "checks-effects-interactions pattern",
    "Integer Overflow/Underflow": "SafeMath library or Solidity 0.8+ built-in overflow checks",
    "Access Control": "role-based access control",
    "Unchecked External Calls": "return value checks",
    "Flash Loan Attacks": "time-weighted price oracles or internal price discovery mechanisms",
    "Front-Running": "commit-reveal schemes or transaction ordering protection",
    "Oracle Manipulation": "multiple oracle sources with median price calculation",
    "Gas Optimization": "efficient storage patterns and operation batching",
    "Logic Errors": "thorough state machine validation and invariant checks",
    "Denial of Service": "resource consumption limits and fallback mechanisms",
}

IMPACT_BY_SEVERITY = {
    VulnerabilitySeverity.CRITICAL: "severe security breaches and loss of funds",
    VulnerabilitySeverity.HIGH: "significant security issues",
    VulnerabilitySeverity.MEDIUM: "moderate security concerns",
    VulnerabilitySeverity.LOW: "minor security issues",
    VulnerabilitySeverity.INFO: "informational concerns",
}

# Score deduction per finding
SEVERITY_WEIGHTS = {
    VulnerabilitySeverity.CRITICAL: 25.0,
    VulnerabilitySeverity.HIGH: 10.0,
    VulnerabilitySeverity.MEDIUM: 5.0,
    VulnerabilitySeverity.LOW: 2.0,
    VulnerabilitySeverity.INFO: 0.5,
}

# Exclusive upper bound of findings drawn per severity
MAX_FINDINGS = {
    VulnerabilitySeverity.CRITICAL: 2,
    VulnerabilitySeverity.HIGH: 3,
    VulnerabilitySeverity.MEDIUM: 5,
    VulnerabilitySeverity.LOW: 7,
    VulnerabilitySeverity.INFO: 5,
}

GAS_SUGGESTIONS = (
    "Use packed storage variables to optimize gas usage",
    "Replace memory with calldata for read-only function parameters",
    "Use short-circuiting in conditional statements to reduce gas",
    "Implement gas-efficient smart contract patterns",
    "Cache array length outside of for loops",
    "Use assembly for efficient bit manipulation operations",
    "Avoid unnecessary SLOAD operations by caching values",
    "Pre-compute values off-chain when possible",
    "Use events instead of storing unnecessary data",
    "Optimize contract deployment by minimizing contract size",
)

NAME_PREFIXES = ("Guardian", "Secure", "Decentralized", "Token", "Smart", "Chain", "Block", "Crypto", "DeFi", "Meta")
NAME_SUFFIXES = ("Vault", "Protocol", "Exchange", "DAO", "Token", "Bridge", "Pool", "Fund", "Swap", "Market")
CONTRACT_PURPOSES = (
    "token trading and exchange",
    "decentralized finance operations",
    "secure asset management",
    "cross-chain bridging",
    "governance voting",
    "yield farming and staking",
    "NFT marketplace operations",
    "liquidity provision",
    "decentralized autonomous organization",
    "secure payment processing",
)

MOCK_SOURCE_TEMPLATE = """// SPDX-License-Identifier: MIT
pragma solidity ^0.8.0;

/**
 * @title {title}
 * @dev Smart contract for {purpose}
 */
contract {name} {{
    address public owner;
    mapping(address => uint256) public balances;
    uint256 public totalSupply;
    bool private locked;

    event Transfer(address indexed from, address indexed to, uint256 amount);
    event Deposit(address indexed account, uint256 amount);
    event Withdrawal(address indexed account, uint256 amount);

    constructor() {{
        owner = msg.sender;
        totalSupply = 1000000 * 10**18;
        balances[owner] = totalSupply;
    }}

    modifier onlyOwner() {{
        require(msg.sender == owner, "Not owner");
        _;
    }}

    modifier nonReentrant() {{
        require(!locked, "No reentrancy");
        locked = true;
        _;
        locked = false;
    }}

    function transfer(address _to, uint256 _amount) public {{
        require(_to != address(0), "Invalid address");
        require(balances[msg.sender] >= _amount, "Insufficient balance");

        balances[msg.sender] -= _amount;
        balances[_to] += _amount;

        emit Transfer(msg.sender, _to, _amount);
    }}

    function deposit() public payable {{
        balances[msg.sender] += msg.value;
        emit Deposit(msg.sender, msg.value);
    }}

    function withdraw(uint256 _amount) public nonReentrant {{
        require(balances[msg.sender] >= _amount, "Insufficient balance");

        balances[msg.sender] -= _amount;
        (bool success, ) = msg.sender.call{{value: _amount}}("");
        require(success, "Transfer failed");

        emit Withdrawal(msg.sender, _amount);
    }}

    function changeOwner(address _newOwner) public onlyOwner {{
        owner = _newOwner;
    }}

    function getBalance(address _account) public view returns (uint256) {{
        return balances[_account];
    }}

    receive() external payable {{
        deposit();
    }}
}}"""


def validate_address(address: str) -> str | None:
    """Return an error message for a malformed address, or None if valid."""
    if not address:
        return "Contract address is required"
    if not address.startswith("0x"):
        return "Contract address must start with 0x"
    if len(address) != 42:
        return "Contract address must be 42 characters long"
    if not ADDRESS_PATTERN.match(address):
        return "Contract address contains invalid characters"
    return None


def calculate_score(counts: VulnerabilityCount) -> float:
    """100 minus the weighted finding count, floored at 0."""
    penalty = (
        counts.critical * SEVERITY_WEIGHTS[VulnerabilitySeverity.CRITICAL]
        + counts.high * SEVERITY_WEIGHTS[VulnerabilitySeverity.HIGH]
        + counts.medium * SEVERITY_WEIGHTS[VulnerabilitySeverity.MEDIUM]
        + counts.low * SEVERITY_WEIGHTS[VulnerabilitySeverity.LOW]
        + counts.info * SEVERITY_WEIGHTS[VulnerabilitySeverity.INFO]
    )
    return max(0.0, 100.0 - min(100.0, penalty))


def risk_level(counts: VulnerabilityCount) -> str:
    if counts.critical > 0 or counts.high > 1:
        return "Critical"
    if counts.high > 0 or counts.medium > 2:
        return "High"
    if counts.medium > 0 or counts.low > 3:
        return "Medium"
    return "Low"


def build_audit_summary(
    address: str,
    counts: VulnerabilityCount,
    score: float,
    findings: list[VulnerabilityFinding],
) -> str:
    top_categories = [c for c, _ in Counter(f.category for f in findings).most_common(3)]
    concerns = f"Primary concerns include {', '.join(top_categories)}." if top_categories else ""

    paragraphs = [
        f"The smart contract at {address} has been analyzed by the Contract Security Kit.",
        f"Overall Security Score: {score:.1f}/100 ({risk_level(counts)} Risk)",
        (
            f"Summary: The audit identified {counts.total} findings ({counts.critical} critical, "
            f"{counts.high} high, {counts.medium} medium, {counts.low} low, "
            f"{counts.info} informational). {concerns}"
        ).rstrip(),
    ]

    if counts.critical > 0:
        paragraphs.append(
            f"CRITICAL FINDINGS: Immediate attention required to address {counts.critical} "
            "critical vulnerabilities that pose significant security risks."
        )

    if findings:
        recommendations = [
            "Address all critical and high severity findings before deployment" if counts.critical else "",
            "Implement thorough testing for identified high-risk vulnerabilities" if counts.high else "",
            "Review and fix medium severity issues in the next development cycle" if counts.medium else "",
            "Consider addressing low severity findings to improve overall security" if counts.low else "",
            "Consider using OpenZeppelin libraries for standard functionality",
            "Implement comprehensive test coverage for all contract functions",
        ]
        paragraphs.append("RECOMMENDATIONS: " + ". ".join(r for r in recommendations if r) + ".")

    paragraphs.append(
        "This report provides an initial automated assessment and should be followed "
        "by a thorough manual security review."
    )
    return "\n\n".join(paragraphs)


class ContractScanner:
    """Randomized vulnerability scan reports."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def _finding(self, index: int, severity: VulnerabilitySeverity) -> VulnerabilityFinding:
        category = self._rng.choice(VULNERABILITY_CATEGORIES)
        name = self._rng.choice(VULNERABILITY_NAMES[category])
        line_number = self._rng.randrange(10, 500)

        return VulnerabilityFinding(
            id=f"VULN-{int(time.time() * 1000)}-{self._rng.randrange(1000)}",
            name=name,
            description=(
                f"The contract has a potential {name.lower()} vulnerability that could "
                f"lead to {IMPACT_BY_SEVERITY[severity]}."
            ),
            severity=severity,
            line_number=line_number,
            code_snippet=(
                f"function transfer{index}(address _to, uint256 _amount) public {{\n"
                f"    // Vulnerable code at line {line_number}\n"
                "    balances[msg.sender] -= _amount;\n"
                "    balances[_to] += _amount;\n"
                "    // Missing important checks or validations\n"
                "}"
            ),
            recommendation=(
                f"Implement proper {RECOMMENDED_PRACTICE[category]} to prevent this vulnerability."
            ),
            category=category,
        )

    def scan_contract(self, address: str) -> ContractScanResult:
        """
        Build a scan report for ``address``.

        Raises:
            ValueError: If the address is malformed
        """
        error = validate_address(address)
        if error:
            raise ValueError(error)

        counts = VulnerabilityCount(
            **{
                severity.value.lower(): self._rng.randrange(MAX_FINDINGS[severity])
                for severity in VulnerabilitySeverity
            }
        )

        findings: list[VulnerabilityFinding] = []
        for severity in VulnerabilitySeverity:
            for i in range(getattr(counts, severity.value.lower())):
                findings.append(self._finding(i, severity))
        findings.sort(key=lambda f: f.severity.rank)

        gas_suggestions = [
            self._rng.choice(GAS_SUGGESTIONS)
            for f in findings
            if f.category == "Gas Optimization"
        ]

        score = calculate_score(counts)
        report = ContractScanResult(
            contract_address=address,
            scan_id=f"SCAN-{int(time.time() * 1000)}",
            timestamp=datetime.now(UTC).isoformat(),
            overall_score=score,
            vulnerability_count=counts,
            vulnerabilities=findings,
            gas_optimization_suggestions=gas_suggestions,
            audit_summary=build_audit_summary(address, counts, score, findings),
        )
        logger.info(
            "contract_scan_complete",
            address=address,
            score=score,
            findings=counts.total,
        )
        return report

    def fetch_contract_source(self, address: str) -> str:
        """Mock verified source for ``address``."""
        error = validate_address(address)
        if error:
            raise ValueError(error)

        def contract_name() -> str:
            return self._rng.choice(NAME_PREFIXES) + self._rng.choice(NAME_SUFFIXES)

        return MOCK_SOURCE_TEMPLATE.format(
            title=contract_name(),
            purpose=self._rng.choice(CONTRACT_PURPOSES),
            name=contract_name(),
        )
