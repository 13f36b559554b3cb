"""
Expiry-aware supply forecast.

Given the stock of one medicine split across expiry-dated batches and the
units consumed over the last month, walk the batches from the earliest
expiry to the latest and credit each one with the months it can cover
before it expires. Surplus a batch cannot use before its expiry rolls into
the next batch's window. All month arithmetic is integer.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from pharmastock.core.dates import is_expired, month_start, months_between, parse_expiry


@dataclass(frozen=True)
class BatchStock:
    item_id: int
    current_stock: int
    expiry_date: Optional[str] = None
    form: Optional[str] = None


@dataclass
class BatchForecast:
    item_id: int
    current_stock: int
    expiry_date: Optional[str]
    form: Optional[str]
    expired: bool
    months_until_expiry: Optional[int]
    # None means the walk stopped before reaching this batch.
    consumption_percentage: Optional[int] = None


@dataclass
class MedicineForecast:
    name: str
    total_stock: int
    usable_stock: int
    monthly_consumption: int
    forecast_months: Optional[int]
    status: str
    batches: list[BatchForecast] = field(default_factory=list)


def _round_half_up_percent(part, whole):
    return (part * 200 + whole) // (2 * whole)


def _sort_key(entry):
    expiry_month = entry[1]
    if expiry_month is None:
        return (1, date.max)
    return (0, expiry_month)


def forecast_batches(batches, monthly_consumption, today=None):
    """Run the greedy depletion walk over one medicine's batches.

    Returns ``(forecast_months, batch_forecasts)``. ``forecast_months`` is
    None when there is no consumption or no usable stock, 0 when every batch
    has expired. ``batch_forecasts`` keeps the input order.
    """
    if monthly_consumption < 0:
        raise ValueError("monthly_consumption must be non-negative")
    today = today or date.today()
    current_month = month_start(today)

    results = {}
    live = []
    for index, batch in enumerate(batches):
        if batch.current_stock < 0:
            raise ValueError("current_stock must be non-negative for item {}".format(batch.item_id))
        expiry_month = parse_expiry(batch.expiry_date)
        expired = is_expired(expiry_month, today)
        months_left = None
        if expiry_month is not None:
            months_left = max(0, months_between(current_month, expiry_month))
        result = BatchForecast(
            item_id=batch.item_id,
            current_stock=batch.current_stock,
            expiry_date=batch.expiry_date,
            form=batch.form,
            expired=expired,
            months_until_expiry=months_left,
        )
        results[index] = result
        if expired:
            result.consumption_percentage = 0
        else:
            live.append((index, expiry_month, batch))

    ordered = [results[index] for index in range(len(batches))]
    if not batches:
        return None, ordered
    if not live:
        return 0, ordered

    usable_stock = sum(batch.current_stock for _, _, batch in live)
    if monthly_consumption == 0 or usable_stock == 0:
        return None, ordered

    remaining_stock = 0
    total_months = 0
    for index, _expiry_month, batch in sorted(live, key=_sort_key):
        result = results[index]
        months_left = result.months_until_expiry
        remaining_stock += batch.current_stock

        months_lasting = remaining_stock // monthly_consumption
        if months_left is None:
            effective_months = months_lasting
        else:
            effective_months = min(months_lasting, months_left)

        if (months_left is None or months_left > 0) and batch.current_stock > 0:
            consumed = min(batch.current_stock, effective_months * monthly_consumption)
            result.consumption_percentage = _round_half_up_percent(consumed, batch.current_stock)
        else:
            result.consumption_percentage = 0

        if effective_months > 0:
            total_months += effective_months
            remaining_stock -= effective_months * monthly_consumption

        if remaining_stock <= 0 or effective_months == months_left:
            break

    return total_months, ordered


def classify_supply(stock, forecast_months, *, critical_months=3, low_months=6):
    if stock <= 0:
        return "out_of_stock"
    if forecast_months is None:
        return "in_stock"
    if forecast_months <= critical_months:
        return "critical"
    if forecast_months <= low_months:
        return "low"
    return "ok"


def forecast_medicine(
    name,
    batches,
    monthly_consumption,
    *,
    today=None,
    critical_months=3,
    low_months=6,
):
    forecast_months, batch_forecasts = forecast_batches(batches, monthly_consumption, today=today)
    total_stock = sum(batch.current_stock for batch in batches)
    # status bands only count stock that has not expired
    usable_stock = sum(batch.current_stock for batch in batch_forecasts if not batch.expired)
    return MedicineForecast(
        name=name,
        total_stock=total_stock,
        usable_stock=usable_stock,
        monthly_consumption=monthly_consumption,
        forecast_months=forecast_months,
        status=classify_supply(
            usable_stock,
            forecast_months,
            critical_months=critical_months,
            low_months=low_months,
        ),
        batches=batch_forecasts,
    )


def group_by_medicine(batches_by_name):
    """Group ``(name, BatchStock)`` pairs into medicine groups keyed by name."""
    groups = {}
    for name, batch in batches_by_name:
        groups.setdefault(name, []).append(batch)
    return groups


__all__ = [
    "BatchForecast",
    "BatchStock",
    "MedicineForecast",
    "classify_supply",
    "forecast_batches",
    "forecast_medicine",
    "group_by_medicine",
]
