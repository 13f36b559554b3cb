from datetime import datetime, timezone

from sqlalchemy.orm import Session

from pharmastock.config import get_settings
from pharmastock.core.forecast import BatchStock, MedicineForecast, forecast_medicine, group_by_medicine
from pharmastock.schemas.inventory import SnapshotQuery
from pharmastock.services.inventory_service import monthly_consumption, stock_snapshot


def medicine_forecasts(db: Session, *, name=None, exact=False, today=None) -> list[MedicineForecast]:
    """Forecast every medicine group in the active-stock snapshot.

    ``name`` filters by substring, or by exact name when ``exact`` is set.
    """
    settings = get_settings()
    today = today or datetime.now(timezone.utc).date()

    rows = stock_snapshot(db, SnapshotQuery(name=name), today=today)
    if exact and name is not None:
        rows = [row for row in rows if row["name"] == name]

    groups = group_by_medicine(
        (
            row["name"],
            BatchStock(
                item_id=row["item_id"],
                current_stock=row["current_stock"],
                expiry_date=row["expiry_date"],
                form=row["form"],
            ),
        )
        for row in rows
    )
    consumption = monthly_consumption(db, groups.keys(), today=today)

    forecasts = []
    for group_name in sorted(groups, key=str.lower):
        forecasts.append(
            forecast_medicine(
                group_name,
                groups[group_name],
                consumption.get(group_name, 0),
                today=today,
                critical_months=settings.FORECAST_CRITICAL_MONTHS,
                low_months=settings.FORECAST_LOW_MONTHS,
            )
        )
    return forecasts
