"""
Reporting tests: date windows, low stock, dashboard and sales aggregates.
"""

from datetime import datetime

import pytest

from conftest import sale_payload
from posledger.extensions import db
from posledger.models import Customer, Invoice, Product
from posledger.services import invoice_service, reporting_service
from posledger.services.settings_service import get_store_settings


NOW = datetime(2026, 3, 15, 12, 0, 0)


def _backdate(invoice, when: datetime):
    row = db.session.get(Invoice, invoice.id)
    row.created_at = when
    db.session.commit()


class TestRangeStart:
    @pytest.mark.parametrize(
        "range_key,expected",
        [
            ("today", datetime(2026, 3, 15)),
            ("week", datetime(2026, 3, 8)),
            ("month", datetime(2026, 2, 15)),
            ("year", datetime(2025, 3, 15)),
        ],
    )
    def test_utc_windows(self, range_key, expected):
        assert reporting_service.range_start(range_key, NOW, "UTC") == expected

    def test_month_clamps_to_shorter_month(self):
        start = reporting_service.range_start("month", datetime(2026, 3, 31, 9, 0), "UTC")
        assert start == datetime(2026, 2, 28)

    def test_local_midnight_in_store_timezone(self):
        # Baghdad is UTC+3: local midnight on the 15th is 21:00 UTC on the 14th
        assert reporting_service.range_start("today", NOW, "Asia/Baghdad") == datetime(2026, 3, 14, 21, 0)

    def test_unknown_range(self):
        with pytest.raises(reporting_service.ReportError):
            reporting_service.range_start("decade", NOW, "UTC")


class TestLowStock:
    def test_boundary_is_inclusive(self, db_session):
        db_session.add_all([
            Product(sku="LOW", name="Below", quantity=3, min_quantity=10),
            Product(sku="EQ", name="Equal", quantity=10, min_quantity=10),
            Product(sku="OK", name="Above", quantity=11, min_quantity=10),
            Product(sku="OFF", name="Inactive", quantity=0, min_quantity=10, is_active=False),
        ])
        db_session.commit()

        names = {p.name for p in reporting_service.low_stock_products()}
        assert names == {"Below", "Equal", "Inactive"}

    def test_soft_deleted_product_still_counted(self, db_session):
        db_session.add(Product(sku="GONE", name="Retired", quantity=3, min_quantity=10, is_active=False))
        db_session.commit()

        stats = reporting_service.dashboard_stats(now=NOW)
        assert stats["low_stock_count"] == 1
        assert stats["low_stock_products"][0]["sku"] == "GONE"


class TestDashboard:
    def test_counts_completed_invoices_only(self, db_session, product_a, customer, supplier):
        invoice_service.process_invoice(sale_payload((product_a.id, 2, 100)))
        invoice_service.process_invoice(
            sale_payload((product_a.id, 1, 100), payment_method="credit", paid_cents=0, customer_id=customer.id)
        )
        invoice_service.process_invoice(
            sale_payload((product_a.id, 1, 60), type="purchase", supplier_id=supplier.id)
        )

        stats = reporting_service.dashboard_stats()

        assert stats["total_sales_cents"] == 200
        assert stats["total_purchases_cents"] == 60
        assert stats["profit_cents"] == 140
        assert stats["pending_invoices"] == 1
        assert stats["total_debts_cents"] == 100
        assert stats["today_sales_cents"] == 200

    def test_today_and_month_windows(self, db_session, product_a):
        today = invoice_service.process_invoice(sale_payload((product_a.id, 1, 100)))
        earlier = invoice_service.process_invoice(sale_payload((product_a.id, 1, 300)))
        old = invoice_service.process_invoice(sale_payload((product_a.id, 1, 700)))
        _backdate(today, datetime(2026, 3, 15, 8, 0))
        _backdate(earlier, datetime(2026, 3, 2, 8, 0))
        _backdate(old, datetime(2026, 2, 20, 8, 0))

        stats = reporting_service.dashboard_stats(now=NOW)

        assert stats["today_sales_cents"] == 100
        assert stats["month_sales_cents"] == 400
        assert stats["total_sales_cents"] == 1100

    def test_low_stock_and_debts(self, db_session, product_a, product_b):
        db_session.add(Customer(name="Debtor", balance_cents=250))
        db_session.commit()

        stats = reporting_service.dashboard_stats()

        assert stats["low_stock_count"] == 1
        assert stats["low_stock_products"][0]["sku"] == "PROD-B-001"
        assert stats["total_debts_cents"] == 250


class TestSalesReport:
    def test_profit_uses_current_cost(self, db_session, product_a, product_b):
        inv = invoice_service.process_invoice(
            sale_payload((product_a.id, 2, 100), (product_b.id, 3, 50))
        )
        _backdate(inv, datetime(2026, 3, 14, 10, 0))

        report = reporting_service.sales_report("week", now=NOW)
        # (100 - 60) * 2 + (50 - 20) * 3
        assert report["profit_cents"] == 170

        db.session.get(Product, product_a.id).cost_cents = 90
        db.session.commit()

        report = reporting_service.sales_report("week", now=NOW)
        assert report["profit_cents"] == 20 + 90

    def test_top_products_by_revenue(self, db_session, product_a, product_b):
        inv = invoice_service.process_invoice(
            sale_payload((product_a.id, 1, 100), (product_b.id, 4, 50))
        )
        _backdate(inv, datetime(2026, 3, 15, 9, 0))

        top = reporting_service.sales_report("today", now=NOW, top_n=1)["top_products"]

        assert len(top) == 1
        assert top[0]["product_id"] == product_b.id
        assert top[0]["quantity"] == 4
        assert top[0]["revenue_cents"] == 200

    def test_window_excludes_older_invoices(self, db_session, product_a):
        recent = invoice_service.process_invoice(sale_payload((product_a.id, 1, 100)))
        stale = invoice_service.process_invoice(sale_payload((product_a.id, 1, 100)))
        _backdate(recent, datetime(2026, 3, 10, 9, 0))
        _backdate(stale, datetime(2026, 3, 1, 9, 0))

        report = reporting_service.sales_report("week", now=NOW)

        assert report["invoice_count"] == 1
        assert report["total_sales_cents"] == 100

    def test_daily_sales_keyed_by_local_date(self, db_session, product_a):
        settings = get_store_settings()
        settings.timezone = "Asia/Baghdad"
        db.session.commit()

        inv = invoice_service.process_invoice(sale_payload((product_a.id, 1, 100)))
        # 22:30 UTC on the 13th is 01:30 on the 14th in Baghdad
        _backdate(inv, datetime(2026, 3, 13, 22, 30))

        report = reporting_service.sales_report("week", now=NOW)

        assert report["daily_sales"] == [{"date": "2026-03-14", "total_cents": 100, "count": 1}]

    def test_unknown_range(self, db_session):
        with pytest.raises(reporting_service.ReportError):
            reporting_service.sales_report("forever", now=NOW)
