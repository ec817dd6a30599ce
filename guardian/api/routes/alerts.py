"""
Alert Routes
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, status

from guardian.api.dependencies import StorageDep, parse_id
from guardian.models import Alert

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("", response_model=list[Alert])
async def list_alerts(storage: StorageDep) -> list[Alert]:
    return await storage.get_alerts()


@router.get("/active", response_model=list[Alert])
async def list_active_alerts(storage: StorageDep) -> list[Alert]:
    """Alerts that have not been resolved yet."""
    return await storage.get_active_alerts()


@router.get("/contract/{contract_id}", response_model=list[Alert])
async def list_contract_alerts(contract_id: str, storage: StorageDep) -> list[Alert]:
    # Unknown contracts simply have no alerts
    return await storage.get_alerts_by_contract(parse_id(contract_id, "contract"))


@router.post("/{alert_id}/resolve", response_model=Alert)
async def resolve_alert(alert_id: str, storage: StorageDep) -> Alert:
    alert = await storage.resolve_alert(parse_id(alert_id, "alert"))
    if alert is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Alert not found",
        )
    logger.info("alert_resolved", alert_id=alert.id, contract_id=alert.contract_id)
    return alert
