"""
Event Log Routes

Events are returned newest first. ``limit`` caps the result; 0 or absent
returns everything.
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from guardian.api.dependencies import StorageDep, parse_id
from guardian.models import Event

router = APIRouter()


@router.get("", response_model=list[Event])
async def list_events(
    storage: StorageDep,
    limit: int | None = Query(default=None, ge=0),
) -> list[Event]:
    return await storage.get_events(limit)


@router.get("/contract/{contract_id}", response_model=list[Event])
async def list_contract_events(
    contract_id: str,
    storage: StorageDep,
    limit: int | None = Query(default=None, ge=0),
) -> list[Event]:
    return await storage.get_events_by_contract(parse_id(contract_id, "contract"), limit)
