"""
Vulnerability Scan Routes

Demo scans: the report and source are generated, not fetched.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, status

from guardian.api.dependencies import ScannerDep
from guardian.models import GuardianModel
from guardian.services.scanner import validate_address

router = APIRouter()


class ScanRequest(GuardianModel):
    address: str = ""


@router.post("")
async def scan_contract(request: ScanRequest, scanner: ScannerDep) -> dict[str, Any]:
    """Scan an address and return ``{source, report}``."""
    error = validate_address(request.address)
    if error is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

    report = scanner.scan_contract(request.address)
    source = scanner.fetch_contract_source(request.address)
    return {"source": source, "report": report.model_dump(mode="json")}
