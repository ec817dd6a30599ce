"""
Blockchain Service

Source of contract bytecode, block times and event logs.

Two modes:
- Demo (default): no network access. Seeds sample events and alerts once
  and returns fixed bytecode.
- Live: connects to a JSON-RPC node with web3.py and polls event logs for
  every stored contract. If the node cannot be reached at startup the
  service falls back to demo mode.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import structlog
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import BlockNotFound

from guardian.immune.circuit_breaker import GuardianCircuits
from guardian.models import AlertCreate, Contract, ContractType, EventCreate
from guardian.repositories import GuardianStorage
from guardian.services.demo_data import (
    DEMO_ALERTS,
    DEMO_BLOCK_NUMBER,
    DEMO_BYTECODE,
    DEMO_EVENTS,
    random_recent_timestamp,
    random_tx_hash,
)

logger = structlog.get_logger(__name__)


class BlockchainUnavailableError(Exception):
    """Raised when a live-mode call is made without an RPC connection."""


def _param(name: str, type_: str, indexed: bool = False) -> dict[str, Any]:
    return {"name": name, "type": type_, "indexed": indexed}


def _event(name: str, *inputs: dict[str, Any]) -> dict[str, Any]:
    return {"type": "event", "name": name, "anonymous": False, "inputs": list(inputs)}


DEFAULT_EVENT_ABIS: dict[ContractType, list[dict[str, Any]]] = {
    ContractType.FEED: [
        _event(
            "AlertSubmitted",
            _param("submitter", "address", indexed=True),
            _param("alertId", "uint256", indexed=True),
            _param("description", "string"),
        ),
        _event(
            "AlertResolved",
            _param("alertId", "uint256", indexed=True),
            _param("resolver", "address", indexed=True),
        ),
    ],
    ContractType.DAO: [
        _event(
            "ProposalCreated",
            _param("proposalId", "uint256", indexed=True),
            _param("proposer", "address", indexed=True),
            _param("description", "string"),
        ),
        _event(
            "Vote",
            _param("proposalId", "uint256", indexed=True),
            _param("voter", "address", indexed=True),
            _param("support", "bool"),
            _param("weight", "uint256"),
        ),
        _event(
            "ProposalExecuted",
            _param("proposalId", "uint256", indexed=True),
        ),
    ],
    ContractType.BADGE: [
        _event(
            "BadgeClaim",
            _param("claimer", "address", indexed=True),
            _param("tokenId", "uint256", indexed=True),
        ),
        _event(
            "BadgeRevoked",
            _param("tokenId", "uint256", indexed=True),
            _param("revoker", "address", indexed=True),
            _param("reason", "string"),
        ),
    ],
}


def _to_hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()


def format_event_value(value: Any) -> Any:
    """Make a decoded log argument JSON-friendly."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        # uint256 values overflow JSON number precision
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return _to_hex(value)
    if isinstance(value, (list, tuple)):
        return [format_event_value(v) for v in value]
    if isinstance(value, Mapping):
        return format_event_args(value)
    return value


def format_event_args(args: Mapping[Any, Any]) -> dict[str, Any]:
    """Named log arguments only; positional (numeric) keys are dropped."""
    formatted: dict[str, Any] = {}
    for key, value in args.items():
        if isinstance(key, int) or str(key).isdigit():
            continue
        formatted[str(key)] = format_event_value(value)
    return formatted


class BlockchainService:
    """Chain access for the monitor, in demo or live mode."""

    def __init__(
        self,
        storage: GuardianStorage,
        demo_mode: bool = True,
        rpc_url: str = "https://rpc.scs.soneium.io",
    ):
        self._storage = storage
        self._demo_mode = demo_mode
        self._rpc_url = rpc_url
        self._w3: AsyncWeb3 | None = None
        self._contracts: dict[int, Any] = {}
        self._last_block: int | None = None
        self._initialized = False
        self._demo_seeded = False

    @property
    def is_demo_mode(self) -> bool:
        return self._demo_mode

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def _get_w3(self) -> AsyncWeb3:
        if self._w3 is None:
            raise BlockchainUnavailableError("Provider not available")
        return self._w3

    async def initialize(self) -> bool:
        """
        Prepare the service. Safe to call more than once.

        Returns False only if initialization failed outright; an unreachable
        node is not a failure because the service drops to demo mode.
        """
        if self._initialized:
            return True

        try:
            if self._demo_mode:
                await self._initialize_demo_mode()
            else:
                await self._initialize_live_mode()
        except Exception as e:  # Reported to the monitor as a failed start
            logger.error("blockchain_initialization_failed", error=str(e))
            return False

        self._initialized = True
        return True

    async def _initialize_live_mode(self) -> None:
        self._w3 = AsyncWeb3(AsyncHTTPProvider(self._rpc_url))
        try:
            block = await self._block_number()
        except Exception as e:  # Any connection problem means demo data instead
            logger.warning(
                "blockchain_connection_failed",
                rpc_url=self._rpc_url,
                error=str(e),
                fallback="demo_mode",
            )
            self._w3 = None
            self._demo_mode = True
            await self._initialize_demo_mode()
            return

        logger.info("blockchain_connected", rpc_url=self._rpc_url, block=block)
        self._last_block = block
        for contract in await self._storage.get_contracts():
            self._load_contract(contract)

    def _load_contract(self, contract: Contract) -> bool:
        abi = contract.abi or DEFAULT_EVENT_ABIS.get(contract.type, [])
        if not abi:
            logger.warning("contract_abi_missing", contract=contract.name)
            return False

        w3 = self._get_w3()
        self._contracts[contract.id] = w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(contract.address),
            abi=abi,
        )
        logger.info(
            "contract_initialized",
            contract=contract.name,
            address=contract.address,
        )
        return True

    def track_contract(self, contract: Contract) -> bool:
        """Start polling logs for a contract registered after startup."""
        if self._demo_mode or self._w3 is None:
            return False
        return self._load_contract(contract)

    async def _initialize_demo_mode(self) -> None:
        if self._demo_seeded:
            return
        self._demo_seeded = True

        logger.info("demo_mode_initializing")
        contracts = await self._storage.get_contracts()

        for contract in contracts:
            if contract.type not in DEMO_EVENTS:
                continue
            name, data = DEMO_EVENTS[contract.type]
            await self._storage.create_event(
                EventCreate(
                    contract_id=contract.id,
                    event_name=name,
                    block_number=DEMO_BLOCK_NUMBER,
                    transaction_hash=random_tx_hash(),
                    event_data=dict(data),
                    timestamp=random_recent_timestamp(),
                )
            )
            logger.debug("demo_event_created", event_name=name, contract=contract.name)

        for contract, (severity, title, description, analysis) in zip(contracts, DEMO_ALERTS):
            await self._storage.create_alert(
                AlertCreate(
                    contract_id=contract.id,
                    severity=severity,
                    title=title,
                    description=description,
                    ai_analysis=analysis,
                )
            )
            logger.debug("demo_alert_created", title=title)

        logger.info("demo_mode_initialized", contracts=len(contracts))

    # =========================================================================
    # RPC reads
    # =========================================================================

    async def _block_number(self) -> int:
        w3 = self._get_w3()

        async def fetch() -> int:
            number: int = await w3.eth.block_number
            return number

        return await GuardianCircuits.rpc().call(fetch)

    async def get_contract_code(self, address: str) -> str:
        """Deployed bytecode as a 0x-prefixed hex string ("0x" when empty)."""
        if self._demo_mode:
            return DEMO_BYTECODE

        w3 = self._get_w3()
        code = await GuardianCircuits.rpc().call(
            w3.eth.get_code, AsyncWeb3.to_checksum_address(address)
        )
        return _to_hex(code)

    async def get_block_timestamp(self, block_number: int) -> int:
        """Unix timestamp of a block (now in demo mode, 0 if the block is unknown)."""
        if self._demo_mode:
            return int(time.time())

        w3 = self._get_w3()
        try:
            block = await GuardianCircuits.rpc().call(w3.eth.get_block, block_number)
        except BlockNotFound:
            return 0
        return int(block["timestamp"])

    async def poll_events(self) -> int:
        """
        Store logs emitted since the last poll for every loaded contract.

        Every contract's logs are fetched before any event is written, so a
        failed RPC call leaves the store untouched and the same block range
        is retried on the next poll. Returns the number of events stored.
        No-op in demo mode.
        """
        if self._demo_mode or self._w3 is None:
            return 0

        latest = await self._block_number()
        if self._last_block is not None and latest <= self._last_block:
            return 0
        from_block = latest if self._last_block is None else self._last_block + 1

        pending: list[EventCreate] = []
        timestamps: dict[int, datetime] = {}
        for contract_id, web3_contract in self._contracts.items():
            for entry in web3_contract.abi:
                if entry.get("type") != "event":
                    continue
                event_cls = getattr(web3_contract.events, entry["name"])
                logs = await GuardianCircuits.rpc().call(
                    event_cls().get_logs,
                    from_block=from_block,
                    to_block=latest,
                )
                for log in logs:
                    block = int(log["blockNumber"])
                    if block not in timestamps:
                        timestamps[block] = datetime.fromtimestamp(
                            await self.get_block_timestamp(block), tz=UTC
                        )
                    pending.append(
                        EventCreate(
                            contract_id=contract_id,
                            event_name=log["event"],
                            block_number=block,
                            transaction_hash=_to_hex(log["transactionHash"]),
                            event_data=format_event_args(log["args"]),
                            timestamp=timestamps[block],
                        )
                    )

        for data in pending:
            await self._storage.create_event(data)

        self._last_block = latest
        if pending:
            logger.info(
                "chain_events_stored",
                count=len(pending),
                from_block=from_block,
                to_block=latest,
            )
        return len(pending)

    async def close(self) -> None:
        """Drop the RPC connection."""
        if self._w3 is not None:
            provider = self._w3.provider
            if hasattr(provider, "disconnect"):
                await provider.disconnect()
        self._w3 = None
        self._contracts.clear()
