from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pharmastock.core.constants import MedicineForm
from pharmastock.core.exceptions import PharmaStockError
from pharmastock.dependencies import get_db, require_actor, require_auth
from pharmastock.routers.errors import to_http_exception
from pharmastock.schemas.inventory import AdjustmentLogRead
from pharmastock.schemas.item import (
    DisposeRequest,
    ItemCreate,
    ItemRead,
    ItemReadWithStock,
    ItemUpdate,
)
from pharmastock.services import item_service
from pharmastock.services.adjustment_service import dispose_item
from pharmastock.services.stock_ledger import current_quantity, deactivate

router = APIRouter(prefix="/items", tags=["Items"])


def _with_stock(item, quantity):
    base = ItemRead.model_validate(item).model_dump()
    base["current_stock"] = quantity
    return ItemReadWithStock(**base)


@router.get("", response_model=List[ItemReadWithStock])
def list_items(
    name: Optional[str] = Query(None, description="Name contains"),
    form: Optional[MedicineForm] = Query(None),
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
):
    rows = item_service.list_items(db, name=name, form=form, include_inactive=include_inactive)
    return [_with_stock(item, quantity) for item, quantity in rows]


@router.post("", response_model=ItemReadWithStock, status_code=status.HTTP_201_CREATED)
def create_item(
    payload: ItemCreate,
    db: Session = Depends(get_db),
    _auth=Depends(require_auth),
):
    try:
        item = item_service.create_item(
            db,
            name=payload.name,
            form=payload.form,
            expiry_date=payload.expiry_date,
            description=payload.description,
        )
    except PharmaStockError as exc:
        raise to_http_exception(exc) from exc
    return _with_stock(item, 0)


@router.get("/{item_id}", response_model=ItemReadWithStock)
def get_item(item_id: int, db: Session = Depends(get_db)):
    try:
        item = item_service.get_item(db, item_id)
    except PharmaStockError as exc:
        raise to_http_exception(exc) from exc
    return _with_stock(item, current_quantity(db, item_id))


@router.put("/{item_id}", response_model=ItemReadWithStock)
def update_item(
    item_id: int,
    payload: ItemUpdate,
    db: Session = Depends(get_db),
    _auth=Depends(require_auth),
):
    try:
        item = item_service.update_item(db, item_id, changes=payload.model_dump(exclude_unset=True))
    except PharmaStockError as exc:
        raise to_http_exception(exc) from exc
    return _with_stock(item, current_quantity(db, item_id))


@router.post("/{item_id}/deactivate", response_model=ItemReadWithStock)
def deactivate_item(
    item_id: int,
    db: Session = Depends(get_db),
    _auth=Depends(require_auth),
):
    try:
        item = deactivate(db, item_id)
    except PharmaStockError as exc:
        raise to_http_exception(exc) from exc
    return _with_stock(item, current_quantity(db, item_id))


@router.post("/{item_id}/dispose", response_model=AdjustmentLogRead)
def dispose(
    item_id: int,
    payload: DisposeRequest,
    db: Session = Depends(get_db),
    actor_id: str = Depends(require_actor),
):
    try:
        return dispose_item(db, item_id=item_id, reason=payload.reason, actor_id=actor_id)
    except PharmaStockError as exc:
        raise to_http_exception(exc) from exc
