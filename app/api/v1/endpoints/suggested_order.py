from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.core.forecasting.errors import (
    DealerNotFoundError,
    ForecastRunCancelledError,
    InvalidStatusTransitionError,
    SuggestedOrderNotFoundError,
)
from app.schemas.forecasting import (
    GenerateOrderPlanRequest,
    OrderTimelineData,
    SuggestedOrderItem,
    SuggestedOrderPlan,
    SuggestedOrderStatusUpdate,
)
from app.services.forecast_reporting import get_order_timeline_data
from app.services.forecast_repository import (
    find_config,
    list_suggested_orders,
    set_suggested_order_status,
    suggested_order_to_item,
)
from app.services.order_plan import generate_suggested_order_plan


router = APIRouter()


_ALLOWED_STATUSES = {"pending", "accepted", "ordered", "skipped"}


@router.post("/orders", response_model=SuggestedOrderPlan, status_code=status.HTTP_201_CREATED)
def create_order_plan(
    payload: GenerateOrderPlanRequest,
    db: Session = Depends(get_db),
) -> SuggestedOrderPlan:
    try:
        return generate_suggested_order_plan(db=db, dealer_id=payload.dealer_id)
    except DealerNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except ForecastRunCancelledError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.get("/orders", response_model=list[SuggestedOrderItem])
def list_orders(
    dealer_id: int,
    status_filter: str | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
) -> list[SuggestedOrderItem]:
    if status_filter is not None and status_filter not in _ALLOWED_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status '{status_filter}', must be one of: {sorted(_ALLOWED_STATUSES)}",
        )
    try:
        config = find_config(db, dealer_id)
    except DealerNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    if config is None:
        return []
    orders = list_suggested_orders(db, config.id, status_filter)
    return [suggested_order_to_item(o) for o in orders]


@router.get("/orders/timeline", response_model=OrderTimelineData)
def get_orders_timeline(dealer_id: int, db: Session = Depends(get_db)) -> OrderTimelineData:
    try:
        return get_order_timeline_data(db, dealer_id)
    except DealerNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.patch("/orders/{order_id}", response_model=SuggestedOrderItem)
def update_order_status(
    order_id: int,
    payload: SuggestedOrderStatusUpdate,
    db: Session = Depends(get_db),
) -> SuggestedOrderItem:
    try:
        order = set_suggested_order_status(
            db,
            order_id,
            payload.status,
            linked_order_id=payload.linked_order_id,
        )
    except SuggestedOrderNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except InvalidStatusTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    db.commit()
    db.refresh(order)
    return suggested_order_to_item(order)
