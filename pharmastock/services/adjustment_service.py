import logging

from sqlalchemy.orm import Session

from pharmastock.config import get_settings
from pharmastock.core.constants import MANUAL_REASON_CODES, ReasonCode
from pharmastock.core.exceptions import (
    ConcurrencyConflictError,
    InsufficientStockError,
    ValidationError,
)
from pharmastock.models.adjustment_log import AdjustmentLog
from pharmastock.services import stock_ledger

logger = logging.getLogger(__name__)


def parse_reason(value, *, allowed=MANUAL_REASON_CODES) -> ReasonCode:
    if isinstance(value, ReasonCode):
        reason = value
    else:
        key = str(value or "").strip().upper()
        try:
            reason = ReasonCode(key)
        except ValueError:
            raise ValidationError("Unknown reason code: {!r}".format(value)) from None
    if reason not in allowed:
        raise ValidationError("Reason code {} is not allowed here".format(reason.value))
    return reason


def _clean_text(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def with_conflict_retry(item_id: int, operation, *, max_retries: int | None = None):
    """Call ``operation`` again after each ConcurrencyConflictError.

    Every attempt re-reads the stock row, so a retry recomputes the new
    quantity from fresh state. Other errors propagate on the first attempt.
    """
    if max_retries is None:
        max_retries = get_settings().ADJUSTMENT_MAX_RETRIES
    attempt = 0
    while True:
        attempt += 1
        try:
            return operation()
        except ConcurrencyConflictError:
            if attempt > max_retries:
                logger.warning(
                    "Giving up on item %s after %s conflicting attempts",
                    item_id,
                    attempt,
                    extra={"item_id": item_id, "attempt": attempt},
                )
                raise
            logger.warning(
                "Concurrent stock change on item %s; retrying (attempt %s)",
                item_id,
                attempt,
                extra={"item_id": item_id, "attempt": attempt},
            )


def adjust_stock(
    db: Session,
    *,
    item_id: int,
    quantity: int,
    reason,
    actor_id: str,
    note: str | None = None,
    patient_name: str | None = None,
    patient_id: str | None = None,
    prescription_number: str | None = None,
    max_retries: int | None = None,
) -> AdjustmentLog:
    reason_code = parse_reason(reason)

    provenance = {
        "patient_name": _clean_text(patient_name),
        "patient_id": _clean_text(patient_id),
        "prescription_number": _clean_text(prescription_number),
    }
    provenance = {key: value for key, value in provenance.items() if value is not None}
    if provenance and reason_code is not ReasonCode.DISPENSATION:
        raise ValidationError("Patient and prescription details only apply to dispensations")

    try:
        return with_conflict_retry(
            item_id,
            lambda: stock_ledger.apply_adjustment(
                db,
                item_id,
                quantity,
                reason_code,
                actor_id=actor_id,
                note=_clean_text(note),
                provenance=provenance,
            ),
            max_retries=max_retries,
        )
    except InsufficientStockError as exc:
        logger.warning(
            "Rejected %s of %s on item %s: %s units on hand",
            reason_code.value,
            quantity,
            item_id,
            exc.current_quantity,
            extra={"item_id": item_id, "actor_id": actor_id, "delta": quantity},
        )
        raise


def set_stock(
    db: Session,
    *,
    item_id: int,
    target_quantity: int,
    actor_id: str,
    max_retries: int | None = None,
) -> tuple[int, AdjustmentLog | None]:
    log = with_conflict_retry(
        item_id,
        lambda: stock_ledger.set_absolute_quantity(
            db,
            item_id,
            target_quantity,
            actor_id=actor_id,
        ),
        max_retries=max_retries,
    )
    if log is not None:
        return log.new_quantity, log
    return stock_ledger.current_quantity(db, item_id), None


def dispose_item(
    db: Session,
    *,
    item_id: int,
    reason: str,
    actor_id: str,
    max_retries: int | None = None,
) -> AdjustmentLog:
    return with_conflict_retry(
        item_id,
        lambda: stock_ledger.dispose(db, item_id, reason, actor_id=actor_id),
        max_retries=max_retries,
    )


__all__ = [
    "adjust_stock",
    "dispose_item",
    "parse_reason",
    "set_stock",
    "with_conflict_retry",
]
