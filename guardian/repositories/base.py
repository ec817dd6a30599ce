"""
Base Storage

Abstract interface for the Guardian data store. The API and services depend
only on this interface so the in-memory store can be swapped for a
persistent one.
"""

from abc import ABC, abstractmethod

from guardian.models import (
    AiQuery,
    AiQueryCreate,
    Alert,
    AlertCreate,
    Contract,
    ContractCreate,
    ContractStatus,
    Event,
    EventCreate,
)


class StorageError(Exception):
    """Base class for storage failures."""


class DuplicateContractError(StorageError):
    """Raised when a contract address is already registered."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Contract already registered: {address}")


class GuardianStorage(ABC):
    """CRUD operations over contracts, alerts, events and AI queries."""

    # Contracts
    @abstractmethod
    async def get_contracts(self) -> list[Contract]: ...

    @abstractmethod
    async def get_contract(self, contract_id: int) -> Contract | None: ...

    @abstractmethod
    async def get_contract_by_address(self, address: str) -> Contract | None: ...

    @abstractmethod
    async def create_contract(self, data: ContractCreate) -> Contract: ...

    @abstractmethod
    async def update_contract_status(
        self, contract_id: int, status: ContractStatus
    ) -> Contract | None: ...

    # Alerts
    @abstractmethod
    async def get_alerts(self) -> list[Alert]: ...

    @abstractmethod
    async def get_alerts_by_contract(self, contract_id: int) -> list[Alert]: ...

    @abstractmethod
    async def get_active_alerts(self) -> list[Alert]: ...

    @abstractmethod
    async def create_alert(self, data: AlertCreate) -> Alert: ...

    @abstractmethod
    async def resolve_alert(self, alert_id: int) -> Alert | None: ...

    # Events
    @abstractmethod
    async def get_events(self, limit: int | None = None) -> list[Event]: ...

    @abstractmethod
    async def get_event(self, event_id: int) -> Event | None: ...

    @abstractmethod
    async def get_events_by_contract(
        self, contract_id: int, limit: int | None = None
    ) -> list[Event]: ...

    @abstractmethod
    async def create_event(self, data: EventCreate) -> Event: ...

    # AI queries
    @abstractmethod
    async def get_ai_queries(self) -> list[AiQuery]: ...

    @abstractmethod
    async def get_ai_queries_by_contract(self, contract_id: int) -> list[AiQuery]: ...

    @abstractmethod
    async def create_ai_query(self, data: AiQueryCreate) -> AiQuery: ...

    @abstractmethod
    async def get_total_query_token_count(self) -> int: ...
