"""
Monitor Control Routes

Start and stop the monitor, read its status, and run or reset individual
scheduled jobs.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, status

from guardian.api.dependencies import MonitorDep, server_error
from guardian.services import MonitorService

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/start")
async def start_monitor(monitor: MonitorDep) -> dict[str, str]:
    if monitor.is_active():
        return {"message": "Monitoring service is already running"}

    try:
        started = await monitor.start()
    except Exception as e:
        raise server_error("starting monitoring service", e) from e

    if not started:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to start monitoring service",
        )
    return {"message": "Monitoring service started successfully"}


@router.post("/stop")
async def stop_monitor(monitor: MonitorDep) -> dict[str, str]:
    if not monitor.is_active():
        return {"message": "Monitoring service is already stopped"}

    try:
        await monitor.stop()
    except Exception as e:
        raise server_error("stopping monitoring service", e) from e
    return {"message": "Monitoring service stopped"}


@router.get("/status")
async def get_monitor_status(monitor: MonitorDep) -> dict[str, bool]:
    return {"active": monitor.is_active()}


@router.get("/details")
async def get_monitor_details(monitor: MonitorDep) -> dict[str, Any]:
    """Start time, mode and per-task scheduler statistics."""
    return monitor.get_status()


def _require_task(monitor: MonitorService, name: str) -> None:
    if not monitor.is_active():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Monitoring service is not running",
        )
    if name not in monitor.task_names():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found",
        )


@router.post("/tasks/{name}/run")
async def run_monitor_task(name: str, monitor: MonitorDep) -> dict[str, str]:
    """Run one monitor job now, outside its schedule."""
    _require_task(monitor, name)
    if not await monitor.run_task_now(name):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Task {name} failed",
        )
    return {"message": f"Task {name} completed"}


@router.post("/tasks/{name}/reset")
async def reset_monitor_task(name: str, monitor: MonitorDep) -> dict[str, str]:
    """Clear a job's failures; an auto-disabled job starts running again."""
    _require_task(monitor, name)
    monitor.reset_task(name)
    logger.info("monitor_task_reset", task=name)
    return {"message": f"Task {name} reset"}
