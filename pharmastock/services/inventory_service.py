import math
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from pharmastock.config import get_settings
from pharmastock.core.constants import RECENT_MOVEMENTS_LIMIT, ReasonCode, SnapshotSortField, SortOrder
from pharmastock.core.dates import add_months, expiry_status, parse_expiry
from pharmastock.models.adjustment_log import AdjustmentLog
from pharmastock.models.item import Item
from pharmastock.models.stock_level import StockLevel
from pharmastock.schemas.inventory import LogQuery, SnapshotQuery


def _snapshot_sort_key(sort_by):
    if sort_by is SnapshotSortField.STOCK:
        return lambda row: (row["current_stock"], row["name"].lower())
    if sort_by is SnapshotSortField.FORM:
        return lambda row: (row["form"], row["name"].lower())
    if sort_by is SnapshotSortField.EXPIRY_DATE:
        # batches without an expiry sort after every dated batch
        return lambda row: (
            parse_expiry(row["expiry_date"]) or date.max,
            row["name"].lower(),
        )
    return lambda row: (row["name"].lower(), row["form"], parse_expiry(row["expiry_date"]) or date.max)


def stock_snapshot(db: Session, query: SnapshotQuery | None = None, *, today=None) -> list[dict]:
    """One row per batch with its item metadata and on-hand quantity."""
    query = query or SnapshotQuery()
    settings = get_settings()
    today = today or date.today()

    stmt = select(Item, StockLevel.current_quantity).outerjoin(
        StockLevel, StockLevel.item_id == Item.id
    )
    if not query.include_inactive:
        stmt = stmt.where(Item.is_active.is_(True))
    if query.name:
        stmt = stmt.where(Item.name.ilike("%{}%".format(query.name.strip())))

    rows = []
    for item, quantity in db.execute(stmt).all():
        rows.append(
            {
                "item_id": item.id,
                "name": item.name,
                "description": item.description,
                "form": item.form,
                "expiry_date": item.expiry_date,
                "expiry_status": expiry_status(
                    item.expiry_date, today, settings.EXPIRY_WARNING_MONTHS
                ),
                "is_active": bool(item.is_active),
                "current_stock": quantity or 0,
            }
        )

    rows.sort(
        key=_snapshot_sort_key(query.sort_by),
        reverse=query.sort_order is SortOrder.DESC,
    )
    return rows


def _as_utc_bound(value: date, *, end: bool) -> datetime:
    bound = datetime.combine(value, time.min, tzinfo=timezone.utc)
    if end:
        bound += timedelta(days=1)
    return bound


def list_logs(db: Session, query: LogQuery) -> tuple[list[AdjustmentLog], int]:
    settings = get_settings()
    limit = min(query.limit, settings.LOGS_MAX_LIMIT)

    conditions = []
    if query.item_id is not None:
        conditions.append(AdjustmentLog.item_id == query.item_id)
    search = (query.search or "").strip()
    if search:
        pattern = "%{}%".format(search)
        conditions.append(
            or_(
                AdjustmentLog.item_id.in_(select(Item.id).where(Item.name.ilike(pattern))),
                AdjustmentLog.patient_name.ilike(pattern),
                AdjustmentLog.patient_id.ilike(pattern),
                AdjustmentLog.prescription_number.ilike(pattern),
            )
        )
    if query.reason is not None:
        conditions.append(AdjustmentLog.reason == query.reason.value)
    if query.date_from is not None:
        conditions.append(AdjustmentLog.created_at >= _as_utc_bound(query.date_from, end=False))
    if query.date_to is not None:
        # date_to is inclusive of the whole day
        conditions.append(AdjustmentLog.created_at < _as_utc_bound(query.date_to, end=True))

    order = AdjustmentLog.created_at.asc() if query.sort_order is SortOrder.ASC else AdjustmentLog.created_at.desc()
    id_order = AdjustmentLog.id.asc() if query.sort_order is SortOrder.ASC else AdjustmentLog.id.desc()

    total = db.execute(
        select(func.count(AdjustmentLog.id)).where(*conditions)
    ).scalar_one()
    logs = (
        db.execute(
            select(AdjustmentLog)
            .options(selectinload(AdjustmentLog.item))
            .where(*conditions)
            .order_by(order, id_order)
            .offset((query.page - 1) * limit)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return list(logs), total


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def inventory_summary(db: Session) -> dict:
    total_items = db.execute(
        select(func.count(Item.id)).where(Item.is_active.is_(True))
    ).scalar_one()
    total_inventory = db.execute(
        select(func.coalesce(func.sum(StockLevel.current_quantity), 0))
        .join(Item, Item.id == StockLevel.item_id)
        .where(Item.is_active.is_(True))
    ).scalar_one()
    recent = (
        db.execute(
            select(AdjustmentLog)
            .options(selectinload(AdjustmentLog.item))
            .order_by(AdjustmentLog.created_at.desc(), AdjustmentLog.id.desc())
            .limit(RECENT_MOVEMENTS_LIMIT)
        )
        .scalars()
        .all()
    )
    return {
        "total_items": total_items,
        "total_inventory": total_inventory,
        "recent_movements": list(recent),
    }


def consumption_window(today=None) -> tuple[datetime, datetime]:
    """Trailing one-calendar-month window ending at the end of ``today``."""
    today = today or datetime.now(timezone.utc).date()
    start = add_months(today, -1)
    return _as_utc_bound(start, end=False), _as_utc_bound(today, end=True)


def consumed_units(delta: int, reason: str) -> int:
    if reason == ReasonCode.DISPENSATION.value:
        return abs(delta)
    if reason == ReasonCode.ADJUSTMENT.value and delta < 0:
        return -delta
    return 0


def monthly_consumption(db: Session, names=None, *, today=None) -> dict[str, int]:
    """Units consumed per medicine name over the trailing month.

    Dispensations count in full; ADJUSTMENT entries count only when they
    removed stock. Inactive items still contribute, since the usage happened.
    """
    window_start, window_end = consumption_window(today)
    stmt = (
        select(Item.name, AdjustmentLog.delta, AdjustmentLog.reason)
        .join(Item, Item.id == AdjustmentLog.item_id)
        .where(
            AdjustmentLog.created_at >= window_start,
            AdjustmentLog.created_at < window_end,
            AdjustmentLog.reason.in_(
                (ReasonCode.DISPENSATION.value, ReasonCode.ADJUSTMENT.value)
            ),
        )
    )
    if names is not None:
        names = list(names)
        if not names:
            return {}
        stmt = stmt.where(Item.name.in_(names))

    totals: dict[str, int] = {}
    for name, delta, reason in db.execute(stmt).all():
        totals[name] = totals.get(name, 0) + consumed_units(delta, reason)
    return totals
