"""API routers."""

from airmirror.routers.customers import router as customers_router
from airmirror.routers.health import router as health_router
from airmirror.routers.insights import router as insights_router
from airmirror.routers.sync import router as sync_router
from airmirror.routers.tables import router as tables_router
from airmirror.routers.webhook import router as webhook_router

__all__ = [
    "customers_router",
    "health_router",
    "insights_router",
    "sync_router",
    "tables_router",
    "webhook_router",
]
