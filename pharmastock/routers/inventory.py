from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pharmastock.config import get_settings
from pharmastock.core.constants import ReasonCode, SnapshotSortField, SortOrder
from pharmastock.core.exceptions import PharmaStockError
from pharmastock.dependencies import get_db, require_actor
from pharmastock.routers.errors import to_http_exception
from pharmastock.schemas.inventory import (
    AdjustmentCreate,
    AdjustmentLogPage,
    AdjustmentResponse,
    InventorySummary,
    LogQuery,
    SnapshotQuery,
    SnapshotRow,
    StockSetRequest,
    StockSetResponse,
)
from pharmastock.services.adjustment_service import adjust_stock, set_stock
from pharmastock.services.inventory_service import (
    inventory_summary,
    list_logs,
    page_count,
    stock_snapshot,
)

router = APIRouter(prefix="/inventory", tags=["Inventory"])


@router.post("/adjust", response_model=AdjustmentResponse, status_code=status.HTTP_201_CREATED)
def create_adjustment(
    payload: AdjustmentCreate,
    db: Session = Depends(get_db),
    actor_id: str = Depends(require_actor),
):
    try:
        log = adjust_stock(
            db,
            item_id=payload.item_id,
            quantity=payload.quantity,
            reason=payload.reason,
            actor_id=actor_id,
            note=payload.note,
            patient_name=payload.patient_name,
            patient_id=payload.patient_id,
            prescription_number=payload.prescription_number,
        )
    except PharmaStockError as exc:
        raise to_http_exception(exc) from exc
    return {"log": log}


@router.put("/{item_id}/stock", response_model=StockSetResponse)
def update_stock(
    item_id: int,
    payload: StockSetRequest,
    db: Session = Depends(get_db),
    actor_id: str = Depends(require_actor),
):
    try:
        quantity, log = set_stock(
            db,
            item_id=item_id,
            target_quantity=payload.current_stock,
            actor_id=actor_id,
        )
    except PharmaStockError as exc:
        raise to_http_exception(exc) from exc
    return {"current_stock": quantity, "log": log}


@router.get("/snapshot", response_model=List[SnapshotRow])
def snapshot(
    name: Optional[str] = Query(None, description="Medicine name contains"),
    include_inactive: bool = Query(False),
    sort_by: SnapshotSortField = Query(SnapshotSortField.NAME),
    sort_order: SortOrder = Query(SortOrder.ASC),
    db: Session = Depends(get_db),
):
    query = SnapshotQuery(
        name=name,
        include_inactive=include_inactive,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return stock_snapshot(db, query)


@router.get("/logs", response_model=AdjustmentLogPage)
def logs(
    item_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Medicine, patient or prescription contains"),
    reason: Optional[ReasonCode] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    sort_order: SortOrder = Query(SortOrder.DESC),
    db: Session = Depends(get_db),
):
    settings = get_settings()
    limit = min(limit or settings.LOGS_DEFAULT_LIMIT, settings.LOGS_MAX_LIMIT)
    query = LogQuery(
        item_id=item_id,
        search=search,
        reason=reason,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
        sort_order=sort_order,
    )
    entries, total = list_logs(db, query)
    return {
        "logs": entries,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": page_count(total, limit),
        },
    }


@router.get("/summary", response_model=InventorySummary)
def summary(db: Session = Depends(get_db)):
    return inventory_summary(db)
