# Overview: Pytest coverage for report endpoints, report services and exports.

from datetime import date, datetime, timedelta
from io import BytesIO

import pytest
from openpyxl import load_workbook
from sqlalchemy.exc import OperationalError

from stockpro.services import reporting_service, stock_service
from stockpro.services.aggregation import aggregate
from stockpro.services.export_service import ExportError, export_excel, export_pdf, format_brl
from stockpro.services.reporting_service import ReportError
from stockpro.services.repository import DataUnavailableError, StockRepository
from stockpro.time_utils import utcnow


@pytest.fixture
def scenario(db_session, company_a, make_product):
    """Two products, one restock and two sales in March 2024."""
    a = make_product(company_a, "A", name="Arroz", category="Mercearia",
                     cost_price_cents=1000, sale_price_cents=1500, quantity_on_hand=10)
    b = make_product(company_a, "B", name="Sabão", category="Limpeza",
                     cost_price_cents=2000, sale_price_cents=3000, quantity_on_hand=10)
    stock_service.apply_movement(company_a.id, a.id, "IN", 5, occurred_at=datetime(2024, 3, 1, 9, 0))
    stock_service.apply_movement(company_a.id, a.id, "OUT", 2, occurred_at=datetime(2024, 3, 10, 12, 0))
    stock_service.apply_movement(company_a.id, b.id, "OUT", 1, occurred_at=datetime(2024, 3, 31, 23, 59, 59))
    # outside the March range
    stock_service.apply_movement(company_a.id, b.id, "OUT", 1, occurred_at=datetime(2024, 4, 1, 0, 0, 0))
    return a, b


class TestSalesReport:
    def test_march_report(self, client, headers_a, scenario):
        resp = client.get("/api/reports/sales?start=2024-03-01&end=2024-03-31", headers=headers_a)

        assert resp.status_code == 200
        report = resp.json
        assert report["total_revenue_cents"] == 6000
        assert report["net_profit_cents"] == 2000
        assert report["total_cost_of_goods_cents"] == 5000
        assert report["units_sold"] == 3
        assert report["sale_count"] == 2
        assert report["period_label"] == "01/03/2024 to 31/03/2024"
        assert [(p["code"], p["quantity"]) for p in report["top_products"]] == [("A", 2), ("B", 1)]
        assert report["revenue_by_category"] == [
            {"category": "Mercearia", "revenue_cents": 3000},
            {"category": "Limpeza", "revenue_cents": 3000},
        ]

    def test_historical_cost_basis(self, client, headers_a, db_session, scenario):
        a, _ = scenario
        a.cost_price_cents = 1400
        db_session.commit()

        current = client.get("/api/reports/sales?start=2024-03-01&end=2024-03-31", headers=headers_a).json
        historical = client.get(
            "/api/reports/sales?start=2024-03-01&end=2024-03-31&cost_basis=historical", headers=headers_a
        ).json

        assert current["net_profit_cents"] == (3000 - 2800) + (3000 - 2000)
        assert historical["net_profit_cents"] == 2000

    def test_inverted_range_is_empty_not_error(self, client, headers_a, scenario):
        resp = client.get("/api/reports/sales?start=2024-03-31&end=2024-03-01", headers=headers_a)

        assert resp.status_code == 200
        assert resp.json["sale_count"] == 0
        assert resp.json["top_products"] == []

    @pytest.mark.parametrize("query", [
        "start=03/01/2024&end=2024-03-31",
        "days=abc",
        "days=-1",
        "cost_basis=average",
        "start=2020-01-01&end=2024-01-01",
        "days=1000000",
        "days=366",
    ])
    def test_bad_parameters(self, client, headers_a, scenario, query):
        assert client.get(f"/api/reports/sales?{query}", headers=headers_a).status_code == 400

    def test_rolling_window_default(self, db_session, company_a, make_product):
        p = make_product(company_a, "001", quantity_on_hand=10)
        today = utcnow().date()
        stock_service.apply_movement(company_a.id, p.id, "OUT", 1, occurred_at=utcnow() - timedelta(days=40))
        stock_service.apply_movement(company_a.id, p.id, "OUT", 2, occurred_at=utcnow() - timedelta(days=3))

        report = reporting_service.sales_report(company_a.id, today=today)

        assert report["period_label"] == "Last 30 days"
        assert report["units_sold"] == 2

    def test_storage_failure_is_503(self, client, headers_a, monkeypatch):
        def broken(self, include_inactive=True):
            raise DataUnavailableError("Could not load products, please try again")

        monkeypatch.setattr(StockRepository, "list_products", broken)

        resp = client.get("/api/reports/sales", headers=headers_a)

        assert resp.status_code == 503
        assert resp.json["retryable"] is True

    def test_repository_wraps_sqlalchemy_errors(self, db_session):
        class BrokenQuery:
            def all(self):
                raise OperationalError("SELECT", {}, Exception("disk I/O error"))

        with pytest.raises(DataUnavailableError):
            StockRepository(1)._load("movements", BrokenQuery())


class TestOtherReports:
    def test_expiry_report(self, db_session, company_a, make_product):
        today = date(2024, 3, 10)
        make_product(company_a, "001", has_expiry=True, expiry_date=date(2024, 3, 1),
                     quantity_on_hand=4, cost_price_cents=250)
        make_product(company_a, "002", has_expiry=True, expiry_date=date(2024, 3, 10))
        make_product(company_a, "003", has_expiry=True, expiry_date=date(2024, 3, 15))
        make_product(company_a, "004", has_expiry=True, expiry_date=date(2024, 3, 30))
        make_product(company_a, "005", has_expiry=True, expiry_date=date(2025, 1, 1))
        make_product(company_a, "006")
        make_product(company_a, "007", has_expiry=True, expiry_date=date(2024, 1, 1), is_active=False)

        report = reporting_service.expiry_report(company_a.id, today=today)

        assert report["summary"] == {
            "expired": 1,
            "expires_today": 1,
            "expires_within_7_days": 1,
            "near_expiry": 1,
            "valid": 1,
            "no_expiry": 1,
        }
        assert report["lost_value_cents"] == 1000
        assert report["items"]["expired"][0]["days_remaining"] == -9

    def test_stock_report(self, db_session, company_a, make_product):
        make_product(company_a, "001", category="Bebidas", quantity_on_hand=0, cost_price_cents=100)
        make_product(company_a, "002", category="Bebidas", quantity_on_hand=1, reorder_threshold=5, cost_price_cents=100)
        make_product(company_a, "003", category="Limpeza", quantity_on_hand=10, cost_price_cents=500)

        report = reporting_service.stock_report(company_a.id)

        assert report["active_products"] == 3
        assert report["out_of_stock_count"] == 1
        assert report["low_stock_count"] == 1
        assert report["stock_value_cents"] == 5100
        assert [c["category"] for c in report["categories"]] == ["Limpeza", "Bebidas"]
        assert [p["code"] for p in report["critical_products"]] == ["001", "002"]

    def test_daily_sales(self, db_session, company_a, make_product):
        p = make_product(company_a, "001", sale_price_cents=500, quantity_on_hand=10)
        stock_service.apply_movement(company_a.id, p.id, "OUT", 2, occurred_at=datetime(2024, 3, 9, 10, 0))

        items = reporting_service.daily_sales(company_a.id, days=3, today=date(2024, 3, 10))

        assert [i["revenue_cents"] for i in items] == [0, 1000, 0]
        with pytest.raises(ReportError):
            reporting_service.daily_sales(company_a.id, days=0)
        with pytest.raises(ReportError):
            reporting_service.daily_sales(company_a.id, days=1_000_000)

    @pytest.mark.parametrize("days", ["abc", "0", "1000000"])
    def test_daily_sales_route_rejects_bad_days(self, client, headers_a, days):
        resp = client.get(f"/api/reports/daily-sales?days={days}", headers=headers_a)

        assert resp.status_code == 400

    def test_daily_sales_route_default_window(self, client, headers_a):
        resp = client.get("/api/reports/daily-sales", headers=headers_a)

        assert resp.status_code == 200
        assert len(resp.json["items"]) == 7

    def test_dashboard(self, db_session, company_a, make_product):
        today = date(2024, 3, 20)
        p = make_product(company_a, "001", sale_price_cents=500, cost_price_cents=200,
                         quantity_on_hand=10, reorder_threshold=2)
        make_product(company_a, "002", quantity_on_hand=0)
        stock_service.apply_movement(company_a.id, p.id, "OUT", 2, occurred_at=datetime(2024, 3, 5, 10, 0))
        stock_service.apply_movement(company_a.id, p.id, "OUT", 1, occurred_at=datetime(2024, 2, 28, 10, 0))

        data = reporting_service.dashboard(company_a.id, today=today)

        assert data["month_revenue_cents"] == 1000
        assert data["month_sale_count"] == 1
        assert data["active_products"] == 2
        assert data["low_stock_count"] == 1
        assert data["zero_stock_count"] == 1
        assert data["stock_value_cents"] == 7 * 200 + 0
        assert data["movement_count"] == 2
        assert data["healthy_stock_pct"] == 50.0

    def test_dashboard_reads_only_current_month(self, db_session, company_a, make_product, monkeypatch):
        p = make_product(company_a, "001", quantity_on_hand=10)
        stock_service.apply_movement(company_a.id, p.id, "OUT", 1, occurred_at=datetime(2023, 1, 5, 10, 0))
        stock_service.apply_movement(company_a.id, p.id, "IN", 4, occurred_at=datetime(2024, 3, 2, 10, 0))
        calls = []
        original = StockRepository.list_movements

        def recording(self, start=None, end=None, direction=None):
            calls.append((start, end, direction))
            return original(self, start=start, end=end, direction=direction)

        monkeypatch.setattr(StockRepository, "list_movements", recording)

        data = reporting_service.dashboard(company_a.id, today=date(2024, 3, 20))

        assert calls == [(date(2024, 3, 1), date(2024, 3, 20), "OUT")]
        assert data["month_sale_count"] == 0
        assert data["movement_count"] == 2

    def test_report_routes_respond(self, client, headers_a, scenario):
        for path in ("/api/reports/expiry", "/api/reports/stock", "/api/reports/daily-sales", "/api/reports/dashboard"):
            assert client.get(path, headers=headers_a).status_code == 200


class TestExports:
    def test_pdf_export(self, client, headers_a, scenario):
        resp = client.get("/api/reports/export/pdf?start=2024-03-01&end=2024-03-31", headers=headers_a)

        assert resp.status_code == 200
        assert resp.mimetype == "application/pdf"
        assert resp.data.startswith(b"%PDF")
        assert "StockPro_Report_" in resp.headers["Content-Disposition"]

    def test_excel_export_sheets(self, client, headers_a, scenario):
        resp = client.get("/api/reports/export/excel?start=2024-03-01&end=2024-03-31", headers=headers_a)

        assert resp.status_code == 200
        wb = load_workbook(BytesIO(resp.data))
        assert wb.sheetnames == ["Summary", "Top Products", "Categories", "Products", "Movements"]
        assert wb["Movements"].max_row == 1 + 3
        assert wb["Top Products"]["C2"].value == "Arroz"

    def test_excel_without_sales_skips_ranking_sheets(self):
        wb_file = export_excel(aggregate([], []), [], [], generated_at=datetime(2024, 5, 2, 10, 0))

        assert wb_file.filename == "StockPro_Report_02-05-2024.xlsx"
        wb = load_workbook(BytesIO(wb_file.content))
        assert wb.sheetnames == ["Summary", "Products", "Movements"]

    def test_encoder_failure_raises_export_error(self, monkeypatch):
        import stockpro.services.export_service as export_module

        def broken(*args, **kwargs):
            raise RuntimeError("encoder crashed")

        monkeypatch.setattr(export_module, "_build_pdf", broken)

        with pytest.raises(ExportError):
            export_pdf(aggregate([], []))

    def test_export_failure_is_500(self, client, headers_a, monkeypatch):
        import stockpro.services.export_service as export_module

        def broken(*args, **kwargs):
            raise RuntimeError("encoder crashed")

        monkeypatch.setattr(export_module, "_build_workbook", broken)

        resp = client.get("/api/reports/export/excel", headers=headers_a)

        assert resp.status_code == 500
        assert "error" in resp.json

    def test_money_format(self):
        assert format_brl(123456789) == "R$ 1.234.567,89"
        assert format_brl(5) == "R$ 0,05"
        assert format_brl(-1500) == "-R$ 15,00"
