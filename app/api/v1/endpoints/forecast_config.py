from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.core.forecasting.errors import DealerNotFoundError
from app.schemas.forecasting import ForecastConfigRead, ForecastConfigUpdateRequest
from app.services.forecast_repository import get_or_create_config, update_config


router = APIRouter()


@router.get("/config", response_model=ForecastConfigRead)
def get_forecast_config(dealer_id: int, db: Session = Depends(get_db)):
    try:
        config = get_or_create_config(db, dealer_id)
    except DealerNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    db.commit()
    db.refresh(config)
    return config


@router.put("/config", response_model=ForecastConfigRead)
def update_forecast_config(
    payload: ForecastConfigUpdateRequest,
    db: Session = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True, exclude={"dealer_id"})
    try:
        config = update_config(db, payload.dealer_id, changes)
    except DealerNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    db.commit()
    db.refresh(config)
    return config
