from pharmastock.routers.forecast import router as forecast_router
from pharmastock.routers.health import router as health_router
from pharmastock.routers.inventory import router as inventory_router
from pharmastock.routers.items import router as items_router

__all__ = [
    "forecast_router",
    "health_router",
    "inventory_router",
    "items_router",
]
