from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable, Sequence

from sqlalchemy.orm import Session

from app.core.forecasting.domain import (
    ALLOWED_STATUS_TRANSITIONS,
    HistoricalDemandPoint,
    ProductSnapshot,
    SuggestedOrderStatus,
)
from app.core.forecasting.errors import (
    DealerNotFoundError,
    InvalidStatusTransitionError,
    SuggestedOrderNotFoundError,
)
from app.models.models import (
    Dealer,
    DealerOrder,
    DealerOrderItem,
    DemandForecast,
    ForecastConfig,
    Product,
    SuggestedOrder,
)
from app.schemas.forecasting import (
    ForecastConfigUpdate,
    ForecastPeriod,
    OrderReasoning,
    SuggestedOrderItem,
)


DEMAND_ORDER_STATUSES = ("confirmed", "processing", "shipped", "delivered")


def months_before(day: date, months: int) -> date:
    """Same day-of-month `months` earlier, clamped to the month's length."""

    index = day.year * 12 + (day.month - 1) - months
    year, month = index // 12, index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def require_dealer(db: Session, dealer_id: int) -> Dealer:
    dealer = db.query(Dealer).filter(Dealer.id == dealer_id).first()
    if dealer is None:
        raise DealerNotFoundError(dealer_id)
    return dealer


def get_or_create_config(db: Session, dealer_id: int) -> ForecastConfig:
    """Return the dealer's forecast config, inserting one with defaults if absent.

    Flushes but does not commit; the caller owns the transaction.
    """

    require_dealer(db, dealer_id)

    config = db.query(ForecastConfig).filter(ForecastConfig.dealer_id == dealer_id).first()
    if config is None:
        config = ForecastConfig(dealer_id=dealer_id)
        db.add(config)
        db.flush()
    return config


def find_config(db: Session, dealer_id: int) -> ForecastConfig | None:
    """Return the dealer's forecast config without creating one."""

    require_dealer(db, dealer_id)
    return db.query(ForecastConfig).filter(ForecastConfig.dealer_id == dealer_id).first()


def update_config(db: Session, dealer_id: int, changes: dict[str, Any]) -> ForecastConfig:
    """Apply the user-editable settings in `changes`; other keys are ignored."""

    config = get_or_create_config(db, dealer_id)
    for field_name, value in changes.items():
        if value is None or field_name not in ForecastConfigUpdate.model_fields:
            continue
        setattr(config, field_name, value)
    db.flush()
    return config


def get_order_history(
    db: Session,
    dealer_id: int,
    product_id: int | None = None,
    months_back: int = 24,
    as_of: date | None = None,
) -> list[HistoricalDemandPoint]:
    """Order-line quantities of the dealer's confirmed-or-later orders, oldest first.

    The window runs from `months_back` months before `as_of` through the end
    of `as_of` itself.
    """

    as_of = as_of or date.today()
    start = datetime.combine(months_before(as_of, months_back), time.min, tzinfo=timezone.utc)
    end = datetime.combine(as_of + timedelta(days=1), time.min, tzinfo=timezone.utc)

    query = (
        db.query(DealerOrder.submitted_at, DealerOrderItem.product_id, DealerOrderItem.quantity)
        .join(DealerOrderItem, DealerOrderItem.order_id == DealerOrder.id)
        .filter(
            DealerOrder.dealer_id == dealer_id,
            DealerOrder.status.in_(DEMAND_ORDER_STATUSES),
            DealerOrder.submitted_at.is_not(None),
            DealerOrder.submitted_at >= start,
            DealerOrder.submitted_at < end,
        )
    )
    if product_id is not None:
        query = query.filter(DealerOrderItem.product_id == product_id)

    rows = query.order_by(DealerOrder.submitted_at.asc(), DealerOrderItem.id.asc()).all()

    return [
        HistoricalDemandPoint(date=submitted_at.date(), quantity=quantity, product_id=pid)
        for submitted_at, pid, quantity in rows
    ]


def get_active_products(
    db: Session,
    product_ids: Sequence[int] | None = None,
) -> list[ProductSnapshot]:
    query = db.query(Product)
    if product_ids is not None:
        if not product_ids:
            return []
        query = query.filter(Product.id.in_(product_ids))
    else:
        query = query.filter(Product.status == "active")

    snapshots: list[ProductSnapshot] = []
    for product in query.order_by(Product.id).all():
        current_stock = sum(level.quantity - level.reserved for level in product.inventory)
        snapshots.append(
            ProductSnapshot(
                id=product.id,
                name=product.name,
                sku=product.sku,
                price=float(product.price),
                cost_price=float(product.cost_price) if product.cost_price is not None else None,
                current_stock=current_stock,
            )
        )
    return snapshots


def replace_forecasts(
    db: Session,
    config_id: int,
    product_id: int,
    periods: Iterable[ForecastPeriod],
) -> list[DemandForecast]:
    """Delete every stored forecast of (config, product) and insert `periods`."""

    db.query(DemandForecast).filter(
        DemandForecast.forecast_config_id == config_id,
        DemandForecast.product_id == product_id,
    ).delete(synchronize_session=False)

    rows = [
        DemandForecast(
            forecast_config_id=config_id,
            product_id=product_id,
            period_start=period.period_start,
            period_end=period.period_end,
            period_type="month",
            forecasted_demand=period.forecasted_demand,
            lower_bound=period.lower_bound,
            upper_bound=period.upper_bound,
            historical_average=period.historical_average,
            year_over_year_change=period.year_over_year_change,
            trend_component=period.trend_component,
            seasonal_component=period.seasonal_component,
        )
        for period in periods
    ]
    db.add_all(rows)
    db.flush()
    return rows


def replace_suggested_orders(
    db: Session,
    config_id: int,
    items: Iterable[SuggestedOrderItem],
) -> list[SuggestedOrder]:
    """Delete the config's pending suggestions and insert `items`.

    Accepted and skipped suggestions are left in place.
    """

    db.query(SuggestedOrder).filter(
        SuggestedOrder.forecast_config_id == config_id,
        SuggestedOrder.status == SuggestedOrderStatus.PENDING.value,
    ).delete(synchronize_session=False)

    rows = [
        SuggestedOrder(
            forecast_config_id=config_id,
            product_id=item.product_id,
            suggested_order_date=item.suggested_order_date,
            expected_delivery_date=item.expected_delivery_date,
            suggested_quantity=item.suggested_quantity,
            minimum_quantity=item.minimum_quantity,
            economic_order_qty=item.economic_order_qty,
            current_stock=item.current_stock,
            projected_stock=item.projected_stock,
            projected_demand=item.projected_demand,
            estimated_cost=item.estimated_cost,
            estimated_value=item.estimated_value,
            priority=item.priority,
            status=item.status,
            reasoning=item.reasoning.model_dump() if item.reasoning else None,
        )
        for item in items
    ]
    db.add_all(rows)
    db.flush()
    return rows


def set_suggested_order_status(
    db: Session,
    order_id: int,
    status: str,
    linked_order_id: int | None = None,
) -> SuggestedOrder:
    order = db.query(SuggestedOrder).filter(SuggestedOrder.id == order_id).first()
    if order is None:
        raise SuggestedOrderNotFoundError(order_id)

    try:
        new_status = SuggestedOrderStatus(status)
        old_status = SuggestedOrderStatus(order.status)
    except ValueError:
        raise InvalidStatusTransitionError(order.status, status)

    if new_status not in ALLOWED_STATUS_TRANSITIONS.get(old_status, set()):
        raise InvalidStatusTransitionError(old_status.value, new_status.value)

    if new_status != old_status:
        order.status = new_status.value
        if new_status == SuggestedOrderStatus.ACCEPTED:
            order.accepted_at = datetime.now(timezone.utc)

    if linked_order_id is not None:
        order.actual_order_id = linked_order_id

    db.flush()
    return order


def list_forecasts(
    db: Session,
    config_id: int,
    product_id: int | None = None,
) -> list[DemandForecast]:
    query = db.query(DemandForecast).filter(DemandForecast.forecast_config_id == config_id)
    if product_id is not None:
        query = query.filter(DemandForecast.product_id == product_id)
    return query.order_by(DemandForecast.period_start.asc(), DemandForecast.product_id.asc()).all()


def list_suggested_orders(
    db: Session,
    config_id: int,
    status: str | None = None,
) -> list[SuggestedOrder]:
    query = db.query(SuggestedOrder).filter(SuggestedOrder.forecast_config_id == config_id)
    if status is not None:
        query = query.filter(SuggestedOrder.status == status)
    return query.order_by(SuggestedOrder.suggested_order_date.asc(), SuggestedOrder.id.asc()).all()


def suggested_order_to_item(order: SuggestedOrder) -> SuggestedOrderItem:
    return SuggestedOrderItem(
        id=order.id,
        product_id=order.product_id,
        product_name=order.product.name,
        product_sku=order.product.sku,
        suggested_order_date=order.suggested_order_date,
        expected_delivery_date=order.expected_delivery_date,
        suggested_quantity=order.suggested_quantity,
        minimum_quantity=order.minimum_quantity,
        economic_order_qty=order.economic_order_qty,
        current_stock=order.current_stock,
        projected_stock=order.projected_stock,
        projected_demand=order.projected_demand,
        estimated_cost=order.estimated_cost,
        estimated_value=order.estimated_value,
        priority=order.priority,
        status=order.status,
        reasoning=OrderReasoning(**order.reasoning) if order.reasoning else None,
        accepted_at=order.accepted_at,
        actual_order_id=order.actual_order_id,
    )
