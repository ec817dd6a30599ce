"""
Contract Routes

List, inspect and register monitored contracts.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, status

from guardian.api.dependencies import BlockchainDep, StorageDep, parse_id
from guardian.models import Contract, ContractCreate
from guardian.repositories import DuplicateContractError

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("", response_model=list[Contract])
async def list_contracts(storage: StorageDep) -> list[Contract]:
    return await storage.get_contracts()


@router.post("", response_model=Contract, status_code=status.HTTP_201_CREATED)
async def create_contract(
    data: ContractCreate,
    storage: StorageDep,
    blockchain: BlockchainDep,
) -> Contract:
    """Register a contract for monitoring. Addresses are unique."""
    try:
        contract = await storage.create_contract(data)
    except DuplicateContractError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        ) from None

    # Live mode only; demo mode has no logs to poll
    blockchain.track_contract(contract)

    logger.info("contract_registered", contract=contract.name, address=contract.address)
    return contract


@router.get("/{contract_id}", response_model=Contract)
async def get_contract(contract_id: str, storage: StorageDep) -> Contract:
    contract = await storage.get_contract(parse_id(contract_id, "contract"))
    if contract is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Contract not found",
        )
    return contract
