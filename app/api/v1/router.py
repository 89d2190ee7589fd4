from fastapi import APIRouter

from app.api.v1.endpoints import (
    demand_forecast,
    forecast_config,
    market,
    suggested_order,
)

api_router = APIRouter()

api_router.include_router(forecast_config.router, prefix="/forecasting", tags=["forecasting-config"])
api_router.include_router(demand_forecast.router, prefix="/forecasting", tags=["forecasting-demand"])
api_router.include_router(suggested_order.router, prefix="/forecasting", tags=["forecasting-orders"])
api_router.include_router(market.router, prefix="/forecasting", tags=["forecasting-market"])
