from datetime import timedelta
from decimal import Decimal

import pytest

from smartseller.services import order_service, report_session_service, reporting_service
from smartseller.services.errors import ReportSessionNotFound
from smartseller.services.requirements_service import ProductLine
from smartseller.time_utils import day_key, utcnow
from smartseller.validation import ValidationError


@pytest.fixture
def sales(make_product):
    """Two delivered orders, one debt, one credit and one pending."""
    burger = make_product("Burger", price=Decimal("1500"), cost_price=Decimal("900"), stock=10)
    fries = make_product("Fries", price=Decimal("500"), cost_price=Decimal("150"), stock=20)
    make_product("Sauce", price=Decimal("50"), stock=2, low_stock_threshold=5)

    order_service.create_order(payment_type="cash", items=[ProductLine(burger.id, 2)], requested_status="delivered")
    order_service.create_order(payment_type="cash", items=[ProductLine(fries.id, 3)], requested_status="delivered")
    order_service.create_order(payment_type="cash", items=[ProductLine(burger.id, 1)], debt_amount=Decimal("500"))
    order_service.create_order(payment_type="credit", items=[ProductLine(fries.id, 2)])
    order_service.create_order(payment_type="cash", items=[ProductLine(burger.id, 1)])
    return {"burger": burger, "fries": fries}


def test_dashboard(sales):
    stats = reporting_service.dashboard()

    assert stats["revenue"] == 4500.0
    assert stats["totalOrders"] == 2
    assert stats["ordersByStatus"] == [
        {"status": "pending", "count": 1},
        {"status": "delivered", "count": 2},
        {"status": "debt", "count": 1},
        {"status": "credit", "count": 1},
    ]
    assert [p["name"] for p in stats["lowStockItems"]] == ["Sauce"]
    assert stats["bestSellers"] == [
        {"name": "Fries", "total_sold": 3},
        {"name": "Burger", "total_sold": 2},
    ]
    assert stats["debtCount"] == 1
    assert stats["totalDebt"] == 500.0
    assert stats["creditCount"] == 1
    assert stats["totalCredit"] == 1000.0


def test_dashboard_trend_covers_seven_days(sales):
    trend = reporting_service.dashboard()["salesTrend"]

    assert len(trend) == 7
    assert trend[-1]["date"] == day_key(utcnow())
    assert trend[-1]["revenue"] == 4500.0
    # (1500 - 900) * 2 + (500 - 150) * 3
    assert trend[-1]["profit"] == 2250.0
    assert all(day["revenue"] == 0.0 for day in trend[:-1])


def test_sales_report_range(sales):
    report = reporting_service.sales_report()
    assert report["summary"] == {"totalRevenue": 4500.0, "totalOrders": 2}
    assert all(order["status"] == "delivered" for order in report["orders"])
    assert all(order["items"] for order in report["orders"])

    tomorrow = (utcnow() + timedelta(days=1)).strftime("%Y-%m-%d")
    empty = reporting_service.sales_report(start=tomorrow)
    assert empty["summary"] == {"totalRevenue": 0.0, "totalOrders": 0}
    assert empty["bestSellers"] == []

    with pytest.raises(ValidationError):
        reporting_service.sales_report(start="last tuesday")


def test_daily_report_for_current_session(sales):
    report = reporting_service.daily_session_report("current")

    assert report["session"]["is_active"] is True
    assert report["days"] == [{
        "date": day_key(utcnow()),
        "delivered_orders": 2,
        "revenue": 4500.0,
        "profit": 2250.0,
    }]
    assert report["totals"] == {"totalRevenue": 4500.0, "totalOrders": 2, "totalProfit": 2250.0}


def test_new_session_starts_empty_and_old_session_stays_readable(sales):
    old = report_session_service.get_active_session()
    old_id = old.id

    fresh = report_session_service.start_new_session()
    assert fresh.id != old_id
    assert report_session_service.get_active_session().id == fresh.id

    assert reporting_service.daily_session_report("current")["days"] == []
    by_id = reporting_service.daily_session_report(str(old_id))
    assert by_id["session"]["is_active"] is False
    assert by_id["totals"]["totalOrders"] == 2


def test_stop_session(sales):
    stopped = report_session_service.stop_active_session()
    assert stopped.ended_at is not None
    assert report_session_service.get_active_session() is None

    with pytest.raises(ReportSessionNotFound):
        reporting_service.daily_session_report("current")
    with pytest.raises(ReportSessionNotFound):
        report_session_service.stop_active_session()


def test_delivery_after_stop_opens_a_new_session(sales):
    pending = order_service.list_orders(status="pending")[0]
    stopped = report_session_service.stop_active_session()

    delivered = order_service.update_order_status(pending.id, "delivered")

    assert delivered.report_session_id != stopped.id
    assert report_session_service.get_active_session().id == delivered.report_session_id


def test_daily_report_rejects_bad_session_ids(db_session):
    with pytest.raises(ValidationError):
        reporting_service.daily_session_report("abc")
    with pytest.raises(ValidationError):
        reporting_service.daily_session_report("0")
    with pytest.raises(ReportSessionNotFound):
        reporting_service.daily_session_report("77")
