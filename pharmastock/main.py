from fastapi import FastAPI

from pharmastock.config import Settings, get_settings
from pharmastock.core.logging import setup_logging
from pharmastock.database import Base, engine
from pharmastock.models import import_all_models
from pharmastock.routers import (
    forecast_router,
    health_router,
    inventory_router,
    items_router,
)

setup_logging()
settings: Settings = get_settings()

import_all_models()
Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.APP_NAME)

app.include_router(health_router)
app.include_router(items_router)
app.include_router(inventory_router)
app.include_router(forecast_router)


__all__ = ["app"]
