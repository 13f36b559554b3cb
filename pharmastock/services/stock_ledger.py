"""
Stock ledger: the only writer of ``stock_levels`` and ``adjustment_logs``.

For every item, ``StockLevel.current_quantity`` equals the sum of the
``delta`` column of its log entries and never drops below zero. Each
operation reads the stock row with a row lock (where the backend has one),
computes the new quantity, writes the row and its log entry, and commits
both together. The row's version counter turns a write based on a stale
read into ``ConcurrencyConflictError``; the ledger never retries on its own.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from pharmastock.core.constants import MAX_QUANTITY, ReasonCode
from pharmastock.core.exceptions import (
    AlreadyDisposedError,
    ConcurrencyConflictError,
    InsufficientStockError,
    InvalidArgumentError,
    NotFoundError,
    PersistenceError,
    PharmaStockError,
    ValidationError,
)
from pharmastock.database.engine import is_sqlite_lock_error
from pharmastock.models.adjustment_log import AdjustmentLog
from pharmastock.models.item import Item
from pharmastock.models.stock_level import StockLevel

logger = logging.getLogger(__name__)


def _is_integer(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _coerce_delta(delta) -> int:
    if not _is_integer(delta):
        raise ValidationError("quantity must be an integer")
    if delta == 0:
        raise ValidationError("quantity cannot be 0")
    if abs(delta) > MAX_QUANTITY:
        raise ValidationError("quantity must be between -{0} and {0}".format(MAX_QUANTITY))
    return delta


def _load_item(db: Session, item_id: int) -> Item:
    item = (
        db.execute(
            select(Item)
            .where(Item.id == item_id)
            .execution_options(populate_existing=True)
        )
        .scalars()
        .first()
    )
    if item is None:
        raise NotFoundError("Item", item_id)
    return item


def _lock_stock(db: Session, item_id: int) -> StockLevel | None:
    return (
        db.execute(
            select(StockLevel)
            .where(StockLevel.item_id == item_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        .scalars()
        .first()
    )


def current_quantity(db: Session, item_id: int) -> int:
    quantity = db.execute(
        select(StockLevel.current_quantity).where(StockLevel.item_id == item_id)
    ).scalar_one_or_none()
    return quantity or 0


def _write_adjustment(
    db: Session,
    item: Item,
    delta: int,
    reason: ReasonCode,
    *,
    actor_id: str,
    note: str | None,
    provenance: dict | None = None,
) -> tuple[AdjustmentLog, bool]:
    stock = _lock_stock(db, item.id)
    previous = stock.current_quantity if stock is not None else 0
    new_quantity = previous + delta
    if new_quantity < 0:
        raise InsufficientStockError(item.id, previous, delta)
    if new_quantity > MAX_QUANTITY:
        raise ValidationError(
            "Stock for item {} would exceed {} units".format(item.id, MAX_QUANTITY)
        )

    created = stock is None
    if created:
        stock = StockLevel(item_id=item.id, current_quantity=new_quantity)
        db.add(stock)
    else:
        stock.current_quantity = new_quantity

    if not note:
        note = "Stock adjustment: {}{}".format("+" if delta > 0 else "", delta)

    log = AdjustmentLog(
        item=item,
        item_id=item.id,
        actor_id=actor_id,
        delta=delta,
        reason=reason.value,
        note=note,
        previous_quantity=previous,
        new_quantity=new_quantity,
        **(provenance or {}),
    )
    db.add(log)
    return log, created


def _commit(db: Session, item_id: int, *, created_stock: bool) -> None:
    try:
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        raise ConcurrencyConflictError(item_id) from exc
    except IntegrityError as exc:
        db.rollback()
        if created_stock:
            raise ConcurrencyConflictError(
                item_id, "Stock row for item {} was created concurrently".format(item_id)
            ) from exc
        raise PersistenceError("Failed to record stock change for item {}".format(item_id)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        if is_sqlite_lock_error(exc):
            raise ConcurrencyConflictError(item_id) from exc
        raise PersistenceError("Failed to record stock change for item {}".format(item_id)) from exc
    except Exception:
        db.rollback()
        raise


def _run(db: Session, item_id: int, work):
    """Run ``work`` and commit, rolling back on every failure path."""
    try:
        result, created_stock = work()
    except PharmaStockError:
        db.rollback()
        raise
    except StaleDataError as exc:
        db.rollback()
        raise ConcurrencyConflictError(item_id) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        if is_sqlite_lock_error(exc):
            raise ConcurrencyConflictError(item_id) from exc
        raise PersistenceError("Failed to read stock for item {}".format(item_id)) from exc
    except Exception:
        db.rollback()
        raise
    _commit(db, item_id, created_stock=created_stock)
    return result


def _log_committed(log: AdjustmentLog) -> None:
    logger.info(
        "Stock for item %s changed %s -> %s (%s)",
        log.item_id,
        log.previous_quantity,
        log.new_quantity,
        log.reason,
        extra={
            "item_id": log.item_id,
            "actor_id": log.actor_id,
            "delta": log.delta,
            "reason": log.reason,
            "previous_quantity": log.previous_quantity,
            "new_quantity": log.new_quantity,
        },
    )


def apply_adjustment(
    db: Session,
    item_id: int,
    delta: int,
    reason: ReasonCode,
    *,
    actor_id: str,
    note: str | None = None,
    provenance: dict | None = None,
) -> AdjustmentLog:
    delta = _coerce_delta(delta)
    reason = ReasonCode(reason)

    def work():
        item = _load_item(db, item_id)
        if not item.is_active:
            raise ValidationError("Item {} is inactive and cannot be adjusted".format(item_id))
        return _write_adjustment(
            db,
            item,
            delta,
            reason,
            actor_id=actor_id,
            note=note,
            provenance=provenance,
        )

    log = _run(db, item_id, work)
    _log_committed(log)
    return log


def set_absolute_quantity(
    db: Session,
    item_id: int,
    target_quantity: int,
    *,
    actor_id: str,
) -> AdjustmentLog | None:
    """Reconcile stock to a counted quantity.

    Returns None without writing anything when the count already matches.
    """
    if not _is_integer(target_quantity):
        raise InvalidArgumentError("target quantity must be an integer")
    if target_quantity < 0:
        raise InvalidArgumentError("target quantity must be non-negative")
    if target_quantity > MAX_QUANTITY:
        raise InvalidArgumentError("target quantity must not exceed {}".format(MAX_QUANTITY))

    def work():
        item = _load_item(db, item_id)
        if not item.is_active:
            raise ValidationError("Item {} is inactive and cannot be adjusted".format(item_id))
        stock = _lock_stock(db, item_id)
        previous = stock.current_quantity if stock is not None else 0
        delta = target_quantity - previous
        if delta == 0:
            return None, False
        return _write_adjustment(
            db,
            item,
            delta,
            ReasonCode.ADJUSTMENT,
            actor_id=actor_id,
            note="Stock set: {} -> {}".format(previous, target_quantity),
        )

    log = _run(db, item_id, work)
    if log is None:
        logger.debug("Stock count for item %s matched; nothing recorded", item_id)
        return None
    _log_committed(log)
    return log


def dispose(db: Session, item_id: int, reason: str, *, actor_id: str) -> AdjustmentLog:
    reason_text = (reason or "").strip()
    if not reason_text:
        raise ValidationError("A disposal reason is required")

    def work():
        item = _load_item(db, item_id)
        if not item.is_active:
            raise AlreadyDisposedError(item_id)
        stock = _lock_stock(db, item_id)
        quantity = stock.current_quantity if stock is not None else 0
        if quantity <= 0:
            raise InvalidArgumentError(
                "Item {} has no stock to dispose; deactivate it instead".format(item_id)
            )
        log, created = _write_adjustment(
            db,
            item,
            -quantity,
            ReasonCode.DISPOSE,
            actor_id=actor_id,
            note="Disposed: {}".format(reason_text),
        )
        item.is_active = False
        return log, created

    log = _run(db, item_id, work)
    _log_committed(log)
    logger.info("Item %s disposed and deactivated", item_id, extra={"item_id": item_id})
    return log


def deactivate(db: Session, item_id: int) -> Item:
    def work():
        item = _load_item(db, item_id)
        if item.is_active:
            item.is_active = False
            logger.info("Item %s deactivated", item_id, extra={"item_id": item_id})
        return item, False

    return _run(db, item_id, work)


__all__ = [
    "apply_adjustment",
    "current_quantity",
    "deactivate",
    "dispose",
    "set_absolute_quantity",
]
