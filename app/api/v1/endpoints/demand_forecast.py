from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.core.forecasting.errors import DealerNotFoundError, ForecastRunCancelledError
from app.schemas.forecasting import (
    DemandForecastResult,
    ForecastChartData,
    GenerateForecastRequest,
)
from app.services.demand_forecast import generate_demand_forecasts, get_stored_forecasts
from app.services.forecast_reporting import get_forecast_chart_data


router = APIRouter()


@router.post("/demand", response_model=list[DemandForecastResult])
def create_demand_forecasts(
    payload: GenerateForecastRequest,
    db: Session = Depends(get_db),
) -> list[DemandForecastResult]:
    try:
        return generate_demand_forecasts(
            db=db,
            dealer_id=payload.dealer_id,
            product_ids=payload.product_ids,
        )
    except DealerNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except ForecastRunCancelledError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.get("/demand", response_model=list[DemandForecastResult])
def list_demand_forecasts(
    dealer_id: int,
    product_id: int | None = None,
    db: Session = Depends(get_db),
) -> list[DemandForecastResult]:
    try:
        return get_stored_forecasts(db, dealer_id, product_id)
    except DealerNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("/demand/chart", response_model=ForecastChartData)
def get_demand_chart(
    dealer_id: int,
    product_id: int | None = None,
    db: Session = Depends(get_db),
) -> ForecastChartData:
    try:
        return get_forecast_chart_data(db, dealer_id, product_id)
    except DealerNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
