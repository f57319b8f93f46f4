# Overview: Service-layer operations for reporting; read-only aggregates over invoices, stock and balances.

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import Customer, Invoice, InvoiceItem, Product
from posledger.time_utils import (
    local_date_key,
    local_midnight_utc,
    months_before,
    to_local,
    to_utc_z,
    utcnow,
)
from .settings_service import get_store_settings


RANGE_KEYS = ("today", "week", "month", "year")


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def range_start(range_key: str, now: datetime, tz_name: str) -> datetime:
    """
    Lower bound (UTC-naive) of a report window.

    The window starts at local midnight today, moved back by 0 days,
    7 days, 1 month or 1 year.
    """
    today = to_local(now, tz_name).date()
    if range_key == "today":
        day = today
    elif range_key == "week":
        day = today - timedelta(days=7)
    elif range_key == "month":
        day = months_before(today, 1)
    elif range_key == "year":
        day = months_before(today, 12)
    else:
        raise ReportError(f"range must be one of {', '.join(RANGE_KEYS)}")
    return local_midnight_utc(day, tz_name)


def _completed_total(invoice_type: str, column, since: datetime | None = None) -> int:
    query = db.session.query(func.coalesce(func.sum(column), 0)).filter(
        Invoice.type == invoice_type,
        Invoice.status == "completed",
    )
    if since is not None:
        query = query.filter(Invoice.created_at >= since)
    return int(query.scalar() or 0)


def low_stock_products() -> list[Product]:
    """Every product at or below its minimum quantity, soft-deleted ones included."""
    return (
        db.session.query(Product)
        .filter(Product.quantity <= Product.min_quantity)
        .order_by(Product.quantity.asc(), Product.id.asc())
        .all()
    )


def _pending_count() -> int:
    return db.session.query(func.count(Invoice.id)).filter(Invoice.status == "pending").scalar() or 0


def _total_customer_debt() -> int:
    total = (
        db.session.query(func.coalesce(func.sum(Customer.balance_cents), 0))
        .filter(Customer.balance_cents > 0)
        .scalar()
    )
    return int(total or 0)


def dashboard_stats(now: datetime | None = None) -> dict:
    """
    Headline numbers for the dashboard.

    profit here is total sales minus total purchases; the item-level
    margin lives in sales_report.
    """
    now = now or utcnow()
    tz_name = get_store_settings().timezone

    today = to_local(now, tz_name).date()
    today_start = local_midnight_utc(today, tz_name)
    month_start = local_midnight_utc(today.replace(day=1), tz_name)

    total_sales = _completed_total("sale", Invoice.total_cents)
    total_purchases = _completed_total("purchase", Invoice.total_cents)
    low_stock = low_stock_products()

    return {
        "total_sales_cents": total_sales,
        "total_purchases_cents": total_purchases,
        "total_discounts_cents": _completed_total("sale", Invoice.discount_cents),
        "total_tax_cents": _completed_total("sale", Invoice.tax_cents),
        "profit_cents": total_sales - total_purchases,
        "today_sales_cents": _completed_total("sale", Invoice.total_cents, since=today_start),
        "month_sales_cents": _completed_total("sale", Invoice.total_cents, since=month_start),
        "products_count": db.session.query(func.count(Product.id)).scalar() or 0,
        "customers_count": db.session.query(func.count(Customer.id)).scalar() or 0,
        "low_stock_count": len(low_stock),
        "low_stock_products": [p.to_dict() for p in low_stock],
        "pending_invoices": _pending_count(),
        "total_debts_cents": _total_customer_debt(),
        "generated_at": to_utc_z(now),
    }


def sales_report(range_key: str = "month", now: datetime | None = None, top_n: int = 10) -> dict:
    """
    Sales figures for one of the fixed windows (today/week/month/year).

    Only completed invoices count. Item profit uses each product's current
    cost, so editing a cost rewrites historical profit.
    """
    now = now or utcnow()
    tz_name = get_store_settings().timezone
    start = range_start(range_key, now, tz_name)

    invoices = (
        db.session.query(Invoice)
        .filter(Invoice.status == "completed", Invoice.created_at >= start)
        .order_by(Invoice.created_at.asc(), Invoice.id.asc())
        .all()
    )
    sales = [inv for inv in invoices if inv.type == "sale"]
    purchases = [inv for inv in invoices if inv.type == "purchase"]

    daily: dict[str, dict] = defaultdict(lambda: {"total_cents": 0, "count": 0})
    for inv in sales:
        bucket = daily[local_date_key(inv.created_at, tz_name)]
        bucket["total_cents"] += inv.total_cents
        bucket["count"] += 1

    rows = (
        db.session.query(InvoiceItem, Product.cost_cents)
        .join(Invoice, Invoice.id == InvoiceItem.invoice_id)
        .outerjoin(Product, Product.id == InvoiceItem.product_id)
        .filter(
            Invoice.type == "sale",
            Invoice.status == "completed",
            Invoice.created_at >= start,
        )
        .all()
    )

    profit = 0
    by_product: dict[int, dict] = {}
    for item, cost_cents in rows:
        item_profit = (item.price_cents - (cost_cents or 0)) * item.quantity
        profit += item_profit

        entry = by_product.setdefault(
            item.product_id,
            {
                "product_id": item.product_id,
                "product_name": item.product_name,
                "quantity": 0,
                "revenue_cents": 0,
                "profit_cents": 0,
            },
        )
        entry["quantity"] += item.quantity
        entry["revenue_cents"] += item.total_cents
        entry["profit_cents"] += item_profit

    top_products = sorted(
        by_product.values(),
        key=lambda e: (-e["revenue_cents"], e["product_id"]),
    )[:top_n]

    return {
        "range": range_key,
        "start": to_utc_z(start),
        "end": to_utc_z(now),
        "invoice_count": len(sales),
        "total_sales_cents": sum(inv.total_cents for inv in sales),
        "total_purchases_cents": sum(inv.total_cents for inv in purchases),
        "total_discounts_cents": sum(inv.discount_cents for inv in sales),
        "total_tax_cents": sum(inv.tax_cents for inv in sales),
        "profit_cents": profit,
        "top_products": top_products,
        "daily_sales": [
            {"date": day, **values} for day, values in sorted(daily.items())
        ],
    }
