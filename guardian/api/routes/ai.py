"""
AI Analysis Routes

Token usage, on-demand contract and event analysis, and the record of
prompts sent to the model.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from guardian.api.dependencies import (
    AnalysisDep,
    MonitorDep,
    StorageDep,
    server_error,
)
from guardian.models import AiQuery, GuardianModel, TokenUsage

router = APIRouter()


class AnalyzeContractRequest(GuardianModel):
    contract_id: int


class AnalyzeEventRequest(GuardianModel):
    contract_id: int
    event_id: int


class MessageResponse(GuardianModel):
    message: str


@router.get("/usage", response_model=TokenUsage)
async def get_usage(analysis: AnalysisDep) -> TokenUsage:
    try:
        return await analysis.get_token_usage()
    except Exception as e:
        raise server_error("fetching AI usage", e) from e


@router.post("/analyze-contract", response_model=MessageResponse)
async def analyze_contract(
    request: AnalyzeContractRequest,
    storage: StorageDep,
    monitor: MonitorDep,
) -> MessageResponse:
    """
    Run a health check and AI review for one contract.

    Completes before responding; any resulting alert is visible as soon as
    this returns.
    """
    contract = await storage.get_contract(request.contract_id)
    if contract is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Contract not found",
        )

    try:
        await monitor.scan_contract(contract.address)
    except Exception as e:
        raise server_error("analyzing contract", e) from e

    return MessageResponse(message="Contract analysis started")


@router.post("/analyze-event", response_model=MessageResponse)
async def analyze_event(
    request: AnalyzeEventRequest,
    storage: StorageDep,
    monitor: MonitorDep,
) -> MessageResponse:
    """AI review of one stored event; raises an alert if it looks suspicious."""
    if await storage.get_contract(request.contract_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Contract not found",
        )

    event = await storage.get_event(request.event_id)
    if event is None or event.contract_id != request.contract_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )

    try:
        await monitor.analyze_event(request.contract_id, request.event_id)
    except Exception as e:
        raise server_error("analyzing event", e) from e

    return MessageResponse(message="Event analysis complete")


@router.get("/queries", response_model=list[AiQuery])
async def list_queries(
    storage: StorageDep,
    contract_id: int | None = Query(default=None, alias="contractId"),
) -> list[AiQuery]:
    if contract_id is None:
        return await storage.get_ai_queries()
    return await storage.get_ai_queries_by_contract(contract_id)
