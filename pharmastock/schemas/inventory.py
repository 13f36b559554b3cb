from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from pharmastock.core.constants import MAX_QUANTITY, ReasonCode, SnapshotSortField, SortOrder
from pharmastock.schemas.item import ItemRead


class AdjustmentCreate(BaseModel):
    item_id: int
    quantity: int = Field(ge=-MAX_QUANTITY, le=MAX_QUANTITY)
    # Checked by the adjustment service so unknown codes surface as a 400.
    reason: str
    note: Optional[str] = None
    patient_name: Optional[str] = None
    patient_id: Optional[str] = None
    prescription_number: Optional[str] = None


class StockSetRequest(BaseModel):
    # negative counts are rejected by the ledger with a 400
    current_stock: int = Field(le=MAX_QUANTITY)


class AdjustmentLogRead(BaseModel):
    id: int
    item_id: int
    actor_id: str
    delta: int
    reason: ReasonCode
    note: Optional[str] = None
    previous_quantity: Optional[int] = None
    new_quantity: Optional[int] = None
    patient_name: Optional[str] = None
    patient_id: Optional[str] = None
    prescription_number: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdjustmentLogWithItem(AdjustmentLogRead):
    item: Optional[ItemRead] = None


class AdjustmentResponse(BaseModel):
    log: AdjustmentLogWithItem


class StockSetResponse(BaseModel):
    current_stock: int
    log: Optional[AdjustmentLogRead] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class AdjustmentLogPage(BaseModel):
    logs: List[AdjustmentLogWithItem]
    pagination: Pagination


class SnapshotQuery(BaseModel):
    name: Optional[str] = None
    include_inactive: bool = False
    sort_by: SnapshotSortField = SnapshotSortField.NAME
    sort_order: SortOrder = SortOrder.ASC


class LogQuery(BaseModel):
    item_id: Optional[int] = None
    # matches medicine name, patient name, patient id or prescription number
    search: Optional[str] = None
    reason: Optional[ReasonCode] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)
    sort_order: SortOrder = SortOrder.DESC


class SnapshotRow(BaseModel):
    item_id: int
    name: str
    description: Optional[str] = None
    form: str
    expiry_date: Optional[str] = None
    expiry_status: str
    is_active: bool
    current_stock: int


class InventorySummary(BaseModel):
    total_items: int
    total_inventory: int
    recent_movements: List[AdjustmentLogWithItem]
