from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class BatchForecastRead(BaseModel):
    item_id: int
    form: Optional[str] = None
    expiry_date: Optional[str] = None
    current_stock: int
    expired: bool
    months_until_expiry: Optional[int] = None
    consumption_percentage: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class MedicineForecastRead(BaseModel):
    name: str
    total_stock: int
    usable_stock: int
    monthly_consumption: int
    forecast_months: Optional[int] = None
    status: str
    batches: List[BatchForecastRead]

    model_config = ConfigDict(from_attributes=True)
