from __future__ import annotations

import threading
from datetime import date

import pytest

from app.core.forecasting.deadline import RunDeadline
from app.core.forecasting.errors import DealerNotFoundError, ForecastRunCancelledError
from app.models.models import DemandForecast, ForecastConfig
from app.services import demand_forecast as demand_forecast_module
from app.services.demand_forecast import generate_demand_forecasts, get_stored_forecasts
from tests.test_utils import (
    add_monthly_orders,
    add_order,
    create_dealer,
    create_forecast_config,
    create_product,
)


AS_OF = date(2026, 10, 1)


def _stored(db_session, product_id: int) -> list[DemandForecast]:
    return (
        db_session.query(DemandForecast)
        .filter(DemandForecast.product_id == product_id)
        .order_by(DemandForecast.period_start)
        .all()
    )


@pytest.mark.usefixtures("db_session")
class TestGenerateDemandForecasts:
    def test_steady_history_forecasts_steady_demand(self, db_session):
        """24 months of 10 units yields flat forecasts of 10 with a collapsed interval."""
        dealer = create_dealer(db_session, code="DF-1")
        product = create_product(db_session, sku="DF-P1")
        create_forecast_config(db_session, dealer, forecast_horizon=3)
        add_monthly_orders(db_session, dealer, product, AS_OF, [10] * 24)

        [result] = generate_demand_forecasts(db_session, dealer.id, [product.id], as_of=AS_OF)

        assert result.product_id == product.id
        assert result.product_sku == "DF-P1"
        assert [p.period_label for p in result.periods] == ["Nov 2026", "Dec 2026", "Jan 2027"]
        for period in result.periods:
            assert period.forecasted_demand == 10
            assert period.lower_bound == 10
            assert period.upper_bound == 10
            assert period.historical_average == pytest.approx(10.0)
            assert period.year_over_year_change == pytest.approx(0.0)
            assert period.seasonal_component == pytest.approx(0.0)

        summary = result.summary
        assert summary.total_forecasted_demand == 30
        assert summary.trend_direction == "stable"
        assert summary.peak_month == "Nov 2026"
        assert summary.confidence_score == pytest.approx(0.95)

        rows = _stored(db_session, product.id)
        assert [r.forecasted_demand for r in rows] == [10, 10, 10]
        assert rows[0].period_start == date(2026, 11, 1)
        assert rows[0].period_end == date(2026, 11, 30)
        assert rows[0].period_type == "month"

        config = db_session.query(ForecastConfig).filter(ForecastConfig.dealer_id == dealer.id).one()
        assert config.last_calculated_at is not None

    def test_draft_and_cancelled_orders_do_not_count(self, db_session):
        dealer = create_dealer(db_session, code="DF-2")
        product = create_product(db_session, sku="DF-P2")
        create_forecast_config(db_session, dealer, forecast_horizon=2)
        add_order(db_session, dealer, date(2026, 9, 15), [(product, 500)], status="draft")
        add_order(db_session, dealer, date(2026, 8, 15), [(product, 500)], status="cancelled")

        [result] = generate_demand_forecasts(db_session, dealer.id, [product.id], as_of=AS_OF)

        assert [p.forecasted_demand for p in result.periods] == [10, 10]
        assert result.summary.confidence_score == pytest.approx(0.5)

    def test_config_is_created_on_first_run(self, db_session):
        dealer = create_dealer(db_session, code="DF-3")
        product = create_product(db_session, sku="DF-P3")

        [result] = generate_demand_forecasts(db_session, dealer.id, [product.id], as_of=AS_OF)

        assert len(result.periods) == 18

    def test_runs_for_all_active_products_by_default(self, db_session):
        dealer = create_dealer(db_session, code="DF-4")
        active = create_product(db_session, sku="DF-P4")
        inactive = create_product(db_session, sku="DF-P5", status="inactive")
        create_forecast_config(db_session, dealer, forecast_horizon=1)

        results = generate_demand_forecasts(db_session, dealer.id, as_of=AS_OF)

        product_ids = {r.product_id for r in results}
        assert active.id in product_ids
        assert inactive.id not in product_ids

    def test_rerun_replaces_previous_forecasts(self, db_session):
        dealer = create_dealer(db_session, code="DF-5")
        product = create_product(db_session, sku="DF-P6")
        create_forecast_config(db_session, dealer, forecast_horizon=4)

        generate_demand_forecasts(db_session, dealer.id, [product.id], as_of=AS_OF)
        add_monthly_orders(db_session, dealer, product, AS_OF, [30] * 6)
        generate_demand_forecasts(db_session, dealer.id, [product.id], as_of=AS_OF)

        rows = _stored(db_session, product.id)
        assert len(rows) == 4
        assert len({r.period_start for r in rows}) == 4
        assert all(r.forecasted_demand == 30 for r in rows)

    def test_shorter_horizon_drops_stale_periods(self, db_session):
        dealer = create_dealer(db_session, code="DF-6")
        product = create_product(db_session, sku="DF-P7")
        config = create_forecast_config(db_session, dealer, forecast_horizon=6)

        generate_demand_forecasts(db_session, dealer.id, [product.id], as_of=AS_OF)
        config.forecast_horizon = 2
        db_session.flush()
        generate_demand_forecasts(db_session, dealer.id, [product.id], as_of=AS_OF)

        assert len(_stored(db_session, product.id)) == 2

    def test_unknown_dealer(self, db_session):
        with pytest.raises(DealerNotFoundError):
            generate_demand_forecasts(db_session, 999999, as_of=AS_OF)

    def test_cancelled_run_keeps_previous_forecasts(self, db_session):
        dealer = create_dealer(db_session, code="DF-7")
        product = create_product(db_session, sku="DF-P8")
        create_forecast_config(db_session, dealer, forecast_horizon=3)

        generate_demand_forecasts(db_session, dealer.id, [product.id], as_of=AS_OF)
        first_calculated_at = (
            db_session.query(ForecastConfig).filter(ForecastConfig.dealer_id == dealer.id).one().last_calculated_at
        )

        add_monthly_orders(db_session, dealer, product, AS_OF, [50] * 6)
        db_session.commit()

        cancel = threading.Event()
        cancel.set()
        with pytest.raises(ForecastRunCancelledError):
            generate_demand_forecasts(
                db_session,
                dealer.id,
                [product.id],
                as_of=AS_OF,
                deadline=RunDeadline(cancel_event=cancel),
            )

        assert [r.forecasted_demand for r in _stored(db_session, product.id)] == [10, 10, 10]
        config = db_session.query(ForecastConfig).filter(ForecastConfig.dealer_id == dealer.id).one()
        assert config.last_calculated_at == first_calculated_at

    def test_expired_deadline_cancels_run(self, db_session):
        dealer = create_dealer(db_session, code="DF-8")
        product = create_product(db_session, sku="DF-P9")
        db_session.commit()

        with pytest.raises(ForecastRunCancelledError):
            generate_demand_forecasts(
                db_session,
                dealer.id,
                [product.id],
                as_of=AS_OF,
                deadline=RunDeadline(seconds=0),
            )

        assert _stored(db_session, product.id) == []

    def test_failure_on_one_product_rolls_back_the_whole_run(self, db_session, monkeypatch):
        dealer = create_dealer(db_session, code="DF-9")
        first = create_product(db_session, sku="DF-P10")
        second = create_product(db_session, sku="DF-P11")
        create_forecast_config(db_session, dealer, forecast_horizon=2)

        generate_demand_forecasts(db_session, dealer.id, [first.id, second.id], as_of=AS_OF)
        add_monthly_orders(db_session, dealer, first, AS_OF, [40] * 6)
        db_session.commit()

        real_replace = demand_forecast_module.replace_forecasts

        def _failing_replace(db, config_id, product_id, periods):
            if product_id == second.id:
                raise RuntimeError("storage failure")
            return real_replace(db, config_id, product_id, periods)

        monkeypatch.setattr(demand_forecast_module, "replace_forecasts", _failing_replace)

        with pytest.raises(RuntimeError):
            generate_demand_forecasts(db_session, dealer.id, [first.id, second.id], as_of=AS_OF)

        assert [r.forecasted_demand for r in _stored(db_session, first.id)] == [10, 10]
        assert [r.forecasted_demand for r in _stored(db_session, second.id)] == [10, 10]


def test_stored_forecasts_are_grouped_per_product(db_session):
    dealer = create_dealer(db_session, code="DF-10")
    first = create_product(db_session, sku="DF-P12")
    second = create_product(db_session, sku="DF-P13")
    create_forecast_config(db_session, dealer, forecast_horizon=2)
    add_monthly_orders(db_session, dealer, second, AS_OF, [20] * 3)

    generate_demand_forecasts(db_session, dealer.id, [first.id, second.id], as_of=AS_OF)

    stored = get_stored_forecasts(db_session, dealer.id)
    assert [r.product_id for r in stored] == [first.id, second.id]
    assert [p.forecasted_demand for p in stored[1].periods] == [20, 20]
    assert stored[1].periods[0].period_label == "Nov 2026"
    assert stored[1].summary is None

    only_first = get_stored_forecasts(db_session, dealer.id, first.id)
    assert [r.product_id for r in only_first] == [first.id]


def test_orders_after_as_of_do_not_feed_the_forecast(db_session):
    dealer = create_dealer(db_session, code="DF-11")
    product = create_product(db_session, sku="DF-P14")
    create_forecast_config(db_session, dealer, forecast_horizon=2)
    add_monthly_orders(db_session, dealer, product, AS_OF, [10] * 6)
    add_order(db_session, dealer, date(2027, 3, 15), [(product, 1000)])

    [result] = generate_demand_forecasts(db_session, dealer.id, [product.id], as_of=AS_OF)

    assert [p.forecasted_demand for p in result.periods] == [10, 10]


def test_reading_stored_forecasts_does_not_create_a_config(db_session):
    dealer = create_dealer(db_session, code="DF-12")

    assert get_stored_forecasts(db_session, dealer.id) == []
    assert db_session.query(ForecastConfig).filter(ForecastConfig.dealer_id == dealer.id).count() == 0
