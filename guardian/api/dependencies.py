"""
Guardian AI - FastAPI Dependencies

Dependency injection for API routes. Every service hangs off the
GuardianApp container stored on ``app.state.guardian`` during startup.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status

from guardian.repositories import GuardianStorage
from guardian.services import (
    AnalysisService,
    BlockchainService,
    ContractScanner,
    MonitorService,
)

# =============================================================================
# Guardian App Access
# =============================================================================

def get_guardian_app(request: Request) -> Any:
    """Get the GuardianApp container from application state."""
    guardian = getattr(request.app.state, "guardian", None)
    if guardian is None or not guardian.is_ready:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Guardian application not initialized",
        )
    return guardian


GuardianAppDep = Annotated[Any, Depends(get_guardian_app)]


def get_storage(guardian: GuardianAppDep) -> GuardianStorage:
    return guardian.storage


def get_monitor(guardian: GuardianAppDep) -> MonitorService:
    return guardian.monitor


def get_analysis(guardian: GuardianAppDep) -> AnalysisService:
    return guardian.analysis


def get_blockchain(guardian: GuardianAppDep) -> BlockchainService:
    return guardian.blockchain


def get_scanner(guardian: GuardianAppDep) -> ContractScanner:
    return guardian.scanner


StorageDep = Annotated[GuardianStorage, Depends(get_storage)]
MonitorDep = Annotated[MonitorService, Depends(get_monitor)]
AnalysisDep = Annotated[AnalysisService, Depends(get_analysis)]
BlockchainDep = Annotated[BlockchainService, Depends(get_blockchain)]
ScannerDep = Annotated[ContractScanner, Depends(get_scanner)]


# =============================================================================
# Path helpers
# =============================================================================

def parse_id(raw: str, label: str) -> int:
    """Parse a path id, failing with 400 ``Invalid <label> ID``."""
    try:
        return int(raw)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label} ID",
        ) from None


def server_error(action: str, error: Exception) -> HTTPException:
    """500 carrying ``Error <action>: <reason>``."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Error {action}: {error}",
    )
