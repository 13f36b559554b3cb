from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from pharmastock.dependencies import get_db
from pharmastock.schemas.forecast import MedicineForecastRead
from pharmastock.services.forecast_service import medicine_forecasts

router = APIRouter(prefix="/forecast", tags=["Forecast"])


@router.get("", response_model=List[MedicineForecastRead])
def list_forecasts(
    name: Optional[str] = Query(None, description="Medicine name contains"),
    db: Session = Depends(get_db),
):
    return medicine_forecasts(db, name=name)


@router.get("/{name}", response_model=MedicineForecastRead)
def get_forecast(name: str, db: Session = Depends(get_db)):
    forecasts = medicine_forecasts(db, name=name, exact=True)
    if not forecasts:
        raise HTTPException(status_code=404, detail="No active stock for medicine {}.".format(name))
    return forecasts[0]
