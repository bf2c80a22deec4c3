# Overview: Read-only sales reporting over delivered orders and report sessions.

from __future__ import annotations

from collections import Counter, OrderedDict
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import Order, OrderLine, Product
from ..models.orders import ORDER_STATUSES, STATUS_CREDIT, STATUS_DEBT, STATUS_DELIVERED
from ..money_utils import as_float, money_sum, round2
from ..validation import ValidationError
from smartseller.time_utils import day_key, parse_iso_datetime, to_utc_z, utcnow
from .errors import ReportSessionNotFound
from .report_session_service import get_active_session, get_session

TREND_DAYS = 7
DASHBOARD_BEST_SELLERS = 5
REPORT_BEST_SELLERS = 20


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ValidationError("Invalid date range")
    return start_dt, end_dt


def _effective_time(order: Order) -> datetime | None:
    return order.delivered_at or order.updated_at or order.created_at


def line_profit(line: OrderLine) -> Decimal:
    return (line.unit_price_at_time - line.unit_cost_at_time) * line.quantity


def order_profit(order: Order) -> Decimal:
    return money_sum(line_profit(line) for line in order.lines)


def best_sellers(orders, limit: int) -> list[dict]:
    """Units sold per snapshotted line name, combos included."""
    sold: Counter = Counter()
    for order in orders:
        for line in order.lines:
            sold[line.name_at_time] += line.quantity
    ranked = sorted(sold.items(), key=lambda kv: (-kv[1], kv[0]))
    return [{"name": name, "total_sold": qty} for name, qty in ranked[:limit]]


def _delivered_orders():
    return db.session.query(Order).filter(Order.status == STATUS_DELIVERED)


def dashboard() -> dict:
    delivered = _delivered_orders().all()

    status_rows = (
        db.session.query(Order.status, func.count(Order.id))
        .group_by(Order.status)
        .order_by(Order.status.asc())
        .all()
    )
    counts = {status: 0 for status in ORDER_STATUSES}
    counts.update({status: int(n) for status, n in status_rows})

    low_stock = (
        db.session.query(Product)
        .filter(Product.stock <= Product.low_stock_threshold)
        .order_by(Product.stock.asc(), Product.id.asc())
        .all()
    )

    # Trend buckets for today and the previous six days, oldest first
    today = utcnow()
    window_start = (today - timedelta(days=TREND_DAYS - 1)).replace(hour=0, minute=0, second=0, microsecond=0)
    trend: OrderedDict = OrderedDict(
        (day_key(window_start + timedelta(days=i)), {"revenue": Decimal("0"), "profit": Decimal("0")})
        for i in range(TREND_DAYS)
    )
    for order in delivered:
        when = _effective_time(order)
        key = day_key(when)
        if when is None or when < window_start or key not in trend:
            continue
        trend[key]["revenue"] += order.total_amount
        trend[key]["profit"] += order_profit(order)

    debt_orders = db.session.query(Order).filter(Order.status == STATUS_DEBT).all()
    credit_orders = db.session.query(Order).filter(Order.status == STATUS_CREDIT).all()

    return {
        "revenue": as_float(money_sum(o.total_amount for o in delivered)),
        "totalOrders": len(delivered),
        "ordersByStatus": [{"status": s, "count": n} for s, n in counts.items()],
        "lowStockItems": [p.to_dict() for p in low_stock],
        "salesTrend": [
            {"date": key, "revenue": as_float(v["revenue"]), "profit": as_float(v["profit"])}
            for key, v in trend.items()
        ],
        "bestSellers": best_sellers(delivered, DASHBOARD_BEST_SELLERS),
        "debtCount": len(debt_orders),
        "creditCount": len(credit_orders),
        "totalDebt": as_float(money_sum(o.amount_paid - o.total_amount for o in debt_orders)),
        "totalCredit": as_float(money_sum(o.total_amount - o.amount_paid for o in credit_orders)),
    }


def sales_report(*, start: str | None = None, end: str | None = None) -> dict:
    """Delivered orders whose delivered_at falls in [start, end], newest first."""
    start_dt, end_dt = _parse_range(start, end)

    query = _delivered_orders()
    if start_dt:
        query = query.filter(Order.delivered_at >= start_dt)
    if end_dt:
        query = query.filter(Order.delivered_at <= end_dt)
    orders = query.all()
    orders.sort(key=lambda o: (_effective_time(o) or datetime.min, o.id), reverse=True)

    return {
        "start": to_utc_z(start_dt) if start_dt else None,
        "end": to_utc_z(end_dt) if end_dt else None,
        "summary": {
            "totalRevenue": as_float(money_sum(o.total_amount for o in orders)),
            "totalOrders": len(orders),
        },
        "bestSellers": best_sellers(orders, REPORT_BEST_SELLERS),
        "orders": [o.to_dict(include_lines=True) for o in orders],
    }


def _resolve_report_session(session_ref):
    if session_ref is None or str(session_ref).strip() in ("", "current"):
        active = get_active_session()
        if active is None:
            raise ReportSessionNotFound("No active report session")
        return active

    try:
        session_id = int(str(session_ref).strip())
    except ValueError:
        raise ValidationError("Invalid session id")
    if session_id <= 0:
        raise ValidationError("Invalid session id")
    return get_session(session_id)


def daily_session_report(session_ref="current") -> dict:
    """
    Per-day delivered order count, revenue and profit for one report
    session, newest day first.
    """
    report_session = _resolve_report_session(session_ref)

    orders = (
        _delivered_orders()
        .filter(Order.report_session_id == report_session.id, Order.delivered_at.isnot(None))
        .all()
    )

    days: dict[str, dict] = {}
    for order in orders:
        bucket = days.setdefault(
            day_key(order.delivered_at),
            {"delivered_orders": 0, "revenue": Decimal("0"), "profit": Decimal("0")},
        )
        bucket["delivered_orders"] += 1
        bucket["revenue"] += order.total_amount
        bucket["profit"] += order_profit(order)

    rows = [
        {
            "date": key,
            "delivered_orders": v["delivered_orders"],
            "revenue": as_float(v["revenue"]),
            "profit": as_float(v["profit"]),
        }
        for key, v in sorted(days.items(), reverse=True)
    ]

    return {
        "session": report_session.to_dict(),
        "totals": {
            "totalRevenue": as_float(money_sum(v["revenue"] for v in days.values())),
            "totalOrders": sum(v["delivered_orders"] for v in days.values()),
            "totalProfit": as_float(round2(money_sum(v["profit"] for v in days.values()))),
        },
        "days": rows,
    }
