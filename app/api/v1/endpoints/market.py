import os

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.core.forecasting.errors import DealerNotFoundError
from app.schemas.forecasting import (
    MarketAnalysis,
    MarketIndicatorInput,
    MarketIndicatorRead,
    MarketSeedResult,
)
from app.services.market_analysis import (
    get_market_analysis,
    get_regional_comparison,
    seed_market_indicators,
    upsert_market_indicator,
)


router = APIRouter()


APP_ENV_VAR = "APP_ENV"


@router.get("/market", response_model=MarketAnalysis)
def get_dealer_market_analysis(dealer_id: int, db: Session = Depends(get_db)):
    try:
        return get_market_analysis(db, dealer_id)
    except DealerNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("/market/regions", response_model=dict[str, list[MarketIndicatorRead]])
def compare_regions(
    regions: list[str] = Query(...),
    db: Session = Depends(get_db),
):
    return get_regional_comparison(db, regions)


@router.put("/market/indicators")
def put_market_indicator(payload: MarketIndicatorInput, db: Session = Depends(get_db)) -> dict:
    indicator = upsert_market_indicator(db, payload)
    return {
        "id": indicator.id,
        "region": indicator.region,
        "indicator_name": indicator.indicator_name,
        "percent_change": indicator.percent_change,
    }


@router.post("/market/seed", response_model=MarketSeedResult)
def seed_market(db: Session = Depends(get_db)) -> MarketSeedResult:
    if os.getenv(APP_ENV_VAR, "development").lower() == "production":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Seeding not allowed in production",
        )
    return MarketSeedResult(seeded_count=seed_market_indicators(db))
