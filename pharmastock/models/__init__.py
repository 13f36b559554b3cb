import importlib

from pharmastock.models.adjustment_log import AdjustmentLog
from pharmastock.models.item import Item
from pharmastock.models.stock_level import StockLevel


def import_all_models() -> None:
    for module_name in (
        "pharmastock.models.adjustment_log",
        "pharmastock.models.item",
        "pharmastock.models.stock_level",
    ):
        importlib.import_module(module_name)


__all__ = [
    "AdjustmentLog",
    "Item",
    "StockLevel",
    "import_all_models",
]
