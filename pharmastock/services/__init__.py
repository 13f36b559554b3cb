from pharmastock.services.adjustment_service import adjust_stock, dispose_item, set_stock
from pharmastock.services.forecast_service import medicine_forecasts
from pharmastock.services.inventory_service import (
    inventory_summary,
    list_logs,
    monthly_consumption,
    stock_snapshot,
)

__all__ = [
    "adjust_stock",
    "dispose_item",
    "inventory_summary",
    "list_logs",
    "medicine_forecasts",
    "monthly_consumption",
    "set_stock",
    "stock_snapshot",
]
