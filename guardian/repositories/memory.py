"""
In-Memory Storage

Dictionary-backed implementation of GuardianStorage. Each entity type has
its own auto-incrementing id counter starting at 1. Nothing survives a
restart.

Updates replace the stored record with a modified copy, so records handed
out earlier are never mutated in place.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from guardian.config import Settings, get_settings
from guardian.models import (
    AiQuery,
    AiQueryCreate,
    Alert,
    AlertCreate,
    Contract,
    ContractCreate,
    ContractStatus,
    ContractType,
    Event,
    EventCreate,
)
from guardian.models.base import utc_now
from guardian.repositories.base import DuplicateContractError, GuardianStorage

logger = structlog.get_logger(__name__)


def default_contracts(settings: Settings) -> list[ContractCreate]:
    """The three Guardian contracts every deployment watches."""
    return [
        ContractCreate(
            name="Guardian Feed",
            address=settings.guardian_feed,
            type=ContractType.FEED,
            status=ContractStatus.HEALTHY,
        ),
        ContractCreate(
            name="Guardian DAO",
            address=settings.guardian_dao,
            type=ContractType.DAO,
            status=ContractStatus.WARNING,
        ),
        ContractCreate(
            name="Guardian Badge",
            address=settings.guardian_badge,
            type=ContractType.BADGE,
            status=ContractStatus.ALERT,
        ),
    ]


def _newest_first(events: Iterable[Event], limit: int | None) -> list[Event]:
    ordered = sorted(events, key=lambda e: (e.timestamp, e.id), reverse=True)
    # A falsy limit (None or 0) means no limit
    return ordered[:limit] if limit else ordered


class MemStorage(GuardianStorage):
    """Single-process store; all access happens on one event loop."""

    def __init__(
        self,
        settings: Settings | None = None,
        seed: bool = True,
    ) -> None:
        self._contracts: dict[int, Contract] = {}
        self._alerts: dict[int, Alert] = {}
        self._events: dict[int, Event] = {}
        self._ai_queries: dict[int, AiQuery] = {}

        self._contract_id = 1
        self._alert_id = 1
        self._event_id = 1
        self._ai_query_id = 1

        if seed:
            for data in default_contracts(settings or get_settings()):
                self._insert_contract(data)

    # =========================================================================
    # Contracts
    # =========================================================================

    def _insert_contract(self, data: ContractCreate) -> Contract:
        contract = Contract(
            id=self._contract_id,
            name=data.name,
            address=data.address,
            type=data.type,
            abi=data.abi,
            status=data.status,
            added_at=utc_now(),
        )
        self._contracts[contract.id] = contract
        self._contract_id += 1
        return contract

    async def get_contracts(self) -> list[Contract]:
        return list(self._contracts.values())

    async def get_contract(self, contract_id: int) -> Contract | None:
        return self._contracts.get(contract_id)

    async def get_contract_by_address(self, address: str) -> Contract | None:
        wanted = address.lower()
        for contract in self._contracts.values():
            if contract.address.lower() == wanted:
                return contract
        return None

    async def create_contract(self, data: ContractCreate) -> Contract:
        if await self.get_contract_by_address(data.address) is not None:
            raise DuplicateContractError(data.address)
        contract = self._insert_contract(data)
        logger.info("contract_created", contract_id=contract.id, name=contract.name)
        return contract

    async def update_contract_status(
        self, contract_id: int, status: ContractStatus
    ) -> Contract | None:
        contract = self._contracts.get(contract_id)
        if contract is None:
            return None
        updated = contract.model_copy(update={"status": status})
        self._contracts[contract_id] = updated
        return updated

    # =========================================================================
    # Alerts
    # =========================================================================

    async def get_alerts(self) -> list[Alert]:
        return list(self._alerts.values())

    async def get_alerts_by_contract(self, contract_id: int) -> list[Alert]:
        return [a for a in self._alerts.values() if a.contract_id == contract_id]

    async def get_active_alerts(self) -> list[Alert]:
        return [a for a in self._alerts.values() if not a.resolved]

    async def create_alert(self, data: AlertCreate) -> Alert:
        alert = Alert(
            id=self._alert_id,
            contract_id=data.contract_id,
            severity=data.severity,
            title=data.title,
            description=data.description,
            ai_analysis=data.ai_analysis,
            created_at=utc_now(),
            resolved=False,
        )
        self._alerts[alert.id] = alert
        self._alert_id += 1
        return alert

    async def resolve_alert(self, alert_id: int) -> Alert | None:
        alert = self._alerts.get(alert_id)
        if alert is None:
            return None
        resolved = alert.model_copy(update={"resolved": True})
        self._alerts[alert_id] = resolved
        return resolved

    # =========================================================================
    # Events
    # =========================================================================

    async def get_events(self, limit: int | None = None) -> list[Event]:
        return _newest_first(self._events.values(), limit)

    async def get_event(self, event_id: int) -> Event | None:
        return self._events.get(event_id)

    async def get_events_by_contract(
        self, contract_id: int, limit: int | None = None
    ) -> list[Event]:
        return _newest_first(
            (e for e in self._events.values() if e.contract_id == contract_id),
            limit,
        )

    async def create_event(self, data: EventCreate) -> Event:
        event = Event(
            id=self._event_id,
            contract_id=data.contract_id,
            event_name=data.event_name,
            block_number=data.block_number,
            transaction_hash=data.transaction_hash,
            event_data=data.event_data,
            timestamp=data.timestamp or utc_now(),
        )
        self._events[event.id] = event
        self._event_id += 1
        return event

    # =========================================================================
    # AI queries
    # =========================================================================

    async def get_ai_queries(self) -> list[AiQuery]:
        return list(self._ai_queries.values())

    async def get_ai_queries_by_contract(self, contract_id: int) -> list[AiQuery]:
        return [q for q in self._ai_queries.values() if q.contract_id == contract_id]

    async def create_ai_query(self, data: AiQueryCreate) -> AiQuery:
        query = AiQuery(
            id=self._ai_query_id,
            contract_id=data.contract_id,
            query=data.query,
            response=data.response,
            token_count=data.token_count,
            created_at=utc_now(),
        )
        self._ai_queries[query.id] = query
        self._ai_query_id += 1
        return query

    async def get_total_query_token_count(self) -> int:
        return sum(q.token_count or 0 for q in self._ai_queries.values())
