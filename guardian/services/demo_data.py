"""
Demo Mode Fixtures

Placeholder chain data used when no RPC node is available: one sample
event per contract type, three sample alerts, and stand-in bytecode.
"""

import secrets
from datetime import datetime, timedelta
from typing import Any

from guardian.models import AlertSeverity, ContractType
from guardian.models.base import utc_now

DEMO_BLOCK_NUMBER = 12345678

# Minimal compiled storage contract; any non-empty code reads as "deployed"
DEMO_BYTECODE = (
    "0x608060405234801561001057600080fd5b50610150806100206000396000f3fe6080604052"
    "34801561001057600080fd5b50600436106100365760003560e01c806320965255146100"
    "3b57806330065c7f14610059575b600080fd5b610043610075565b604051610050919061"
    "00a1565b60405180910390f35b610073600480360381019061006e91906100ed565b6100"
    "7e565b005b60005481565b8060008190555050565b6000819050919050565b61009b8161"
    "0088565b82525050565b60006020820190506100b66000830184610092565b9291505056"
    "5b600080fd5b6100ca81610088565b81146100d557600080fd5b50565b60008135905061"
    "00e7816100c1565b92915050565b600060208284031215610103576101026100bc565b5b"
    "6000610111848285016100d8565b9150509291505056fe"
)

DEMO_EVENTS: dict[ContractType, tuple[str, dict[str, Any]]] = {
    ContractType.FEED: (
        "AlertSubmitted",
        {
            "submitter": "0x7834CbA335D49B6160cB7ad17f17A6ec38a18f32",
            "alertId": "123",
            "description": "Suspicious activity detected in token transfer functions",
        },
    ),
    ContractType.DAO: (
        "ProposalCreated",
        {
            "proposalId": "7",
            "proposer": "0x1A78be26D8373eDb66A71dd38dB196f7B9621C0F",
            "description": "Proposal to update Guardian security parameters",
        },
    ),
    ContractType.BADGE: (
        "BadgeClaim",
        {
            "claimer": "0x9B45dc3F0F271E1B1538189D6FD49A033c58De39",
            "tokenId": "42",
        },
    ),
}

# (severity, title, description, ai_analysis), applied to contracts 1..3 in order
DEMO_ALERTS: tuple[tuple[AlertSeverity, str, str, str], ...] = (
    (
        AlertSeverity.HIGH,
        "Suspicious Transfer Pattern Detected",
        "Multiple high-value transfers to newly created wallets in short succession. "
        "Possible early signs of a rug pull.",
        "The contract's transfer function was called 17 times in 3 minutes, sending "
        "tokens to wallets that were all created within the last hour. This pattern "
        "matches known exit scam behaviors. Recommend immediate investigation.",
    ),
    (
        AlertSeverity.MEDIUM,
        "Governance Parameter Change",
        "Proposal to modify voting threshold was accepted with minimal participation.",
        "The proposal passed with only 12% of token holders voting, which is unusually "
        "low. The new parameters reduce the quorum needed for future proposals, "
        "potentially centralizing control.",
    ),
    (
        AlertSeverity.LOW,
        "Unusual Minting Activity",
        "Large batch of new badges minted to a single address.",
        "While within contract parameters, this minting activity represents a 23% "
        "increase in total supply. The receiving address has no prior history with "
        "this contract.",
    ),
)


def random_tx_hash() -> str:
    return "0x" + secrets.token_hex(32)


def random_recent_timestamp(max_minutes: int = 60) -> datetime:
    """A time within the last ``max_minutes`` minutes."""
    return utc_now() - timedelta(minutes=secrets.randbelow(max_minutes))
