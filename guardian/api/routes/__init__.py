"""
Guardian API Routes Module

Exports all API routers for inclusion in the main FastAPI application.
"""

from guardian.api.routes.ai import router as ai_router
from guardian.api.routes.alerts import router as alerts_router
from guardian.api.routes.contracts import router as contracts_router
from guardian.api.routes.events import router as events_router
from guardian.api.routes.monitor import router as monitor_router
from guardian.api.routes.scans import router as scans_router

__all__ = [
    "ai_router",
    "alerts_router",
    "contracts_router",
    "events_router",
    "monitor_router",
    "scans_router",
]
