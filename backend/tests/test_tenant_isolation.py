# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that cross-tenant access is denied for core resources.

These tests create two companies with their own users and data, then verify
that:
1. User A cannot read or write data of Company B
2. A foreign id is reported exactly like a missing one (404, no leak)
3. Listings and reports only ever contain the caller's own records
4. Cross-tenant attempts are logged

Test Coverage:
- Products: cross-tenant read/write/delete blocked
- Movements: cross-tenant create/delete blocked, listings scoped
- POS: foreign product ids rejected without side effects
- Reports: figures computed from own data only
"""

import logging
from datetime import datetime

import pytest

from stockpro.models import Movement, Product
from stockpro.services import stock_service
from stockpro.services.tenant_service import (
    TenantAccessError,
    get_current_company_id,
    require_product_in_company,
)


class TestTenantServiceHelpers:
    """Test tenant_service helper functions."""

    def test_require_product_in_company_valid(self, db_session, company_a, make_product):
        product = make_product(company_a, "001")

        assert require_product_in_company(product.id, company_a.id).id == product.id

    def test_require_product_in_company_cross_tenant(self, db_session, company_a, company_b, make_product):
        foreign = make_product(company_b, "001")

        with pytest.raises(TenantAccessError):
            require_product_in_company(foreign.id, company_a.id)

    def test_require_product_in_company_nonexistent(self, db_session, company_a):
        with pytest.raises(TenantAccessError):
            require_product_in_company(99999, company_a.id)

    def test_cross_tenant_access_is_logged(self, db_session, caplog, company_a, company_b, make_product):
        foreign = make_product(company_b, "001")

        with caplog.at_level(logging.WARNING, logger="stockpro.services.tenant_service"):
            with pytest.raises(TenantAccessError):
                require_product_in_company(foreign.id, company_a.id)

        assert "Cross-tenant access attempt" in caplog.text

    def test_missing_tenant_context(self, app):
        with app.test_request_context():
            with pytest.raises(TenantAccessError):
                get_current_company_id()


class TestProductIsolation:
    def test_listing_is_scoped(self, client, headers_a, company_a, company_b, make_product):
        make_product(company_a, "001", name="Own")
        make_product(company_b, "001", name="Foreign")

        resp = client.get("/api/products", headers=headers_a)

        assert [p["name"] for p in resp.json["items"]] == ["Own"]

    def test_same_code_allowed_in_different_companies(self, client, headers_a, headers_b):
        payload = {"code": "777", "name": "Café", "cost_price_cents": 500, "sale_price_cents": 900}

        assert client.post("/api/products", headers=headers_a, json=payload).status_code == 201
        assert client.post("/api/products", headers=headers_b, json=payload).status_code == 201

    def test_foreign_product_is_not_found(self, client, db_session, headers_a, company_b, make_product):
        foreign = make_product(company_b, "001", name="Foreign")

        assert client.get(f"/api/products/{foreign.id}", headers=headers_a).status_code == 404
        assert client.put(f"/api/products/{foreign.id}", headers=headers_a, json={"name": "Mine"}).status_code == 404
        assert client.post(f"/api/products/{foreign.id}/deactivate", headers=headers_a).status_code == 404
        assert client.delete(f"/api/products/{foreign.id}", headers=headers_a).status_code == 404

        db_session.refresh(foreign)
        assert foreign.name == "Foreign"
        assert foreign.is_active is True

    def test_lookup_ignores_other_companies(self, client, headers_a, company_b, make_product):
        make_product(company_b, "123", barcode="7891000100103")

        assert client.get("/api/products/lookup?term=7891000100103", headers=headers_a).status_code == 404


class TestMovementIsolation:
    def test_movement_on_foreign_product(self, client, db_session, headers_a, company_b, make_product):
        foreign = make_product(company_b, "001", quantity_on_hand=10)

        resp = client.post("/api/movements", headers=headers_a, json={
            "product_id": foreign.id, "direction": "OUT", "quantity": 5,
        })

        assert resp.status_code == 404
        db_session.refresh(foreign)
        assert foreign.quantity_on_hand == 10
        assert db_session.query(Movement).count() == 0

    def test_delete_foreign_movement(self, client, db_session, headers_a, company_b, make_product):
        foreign = make_product(company_b, "001", quantity_on_hand=10)
        movement = stock_service.apply_movement(company_b.id, foreign.id, "OUT", 2)

        resp = client.delete(f"/api/movements/{movement['id']}", headers=headers_a)

        assert resp.status_code == 404
        assert db_session.query(Movement).count() == 1

    def test_listing_is_scoped(self, client, headers_a, company_a, company_b, make_product):
        own = make_product(company_a, "001")
        foreign = make_product(company_b, "001")
        stock_service.apply_movement(company_a.id, own.id, "IN", 1)
        stock_service.apply_movement(company_b.id, foreign.id, "IN", 1)
        stock_service.apply_movement(company_b.id, foreign.id, "OUT", 1)

        resp = client.get("/api/movements", headers=headers_a)

        assert resp.json["count"] == 1
        assert resp.json["items"][0]["product_id"] == own.id


class TestPosIsolation:
    def test_cart_with_foreign_product_is_rejected_atomically(
        self, client, db_session, headers_a, company_a, company_b, make_product
    ):
        own = make_product(company_a, "001", quantity_on_hand=10)
        foreign = make_product(company_b, "002", quantity_on_hand=10)

        resp = client.post("/api/pos/checkout", headers=headers_a, json={"items": [
            {"product_id": own.id, "quantity": 1},
            {"product_id": foreign.id, "quantity": 1},
        ]})

        assert resp.status_code == 404
        db_session.refresh(own)
        assert own.quantity_on_hand == 10
        assert db_session.query(Movement).count() == 0


class TestReportIsolation:
    def test_sales_report_uses_own_data_only(self, client, headers_a, headers_b, company_a, company_b, make_product):
        own = make_product(company_a, "001", sale_price_cents=1000)
        foreign = make_product(company_b, "001", sale_price_cents=5000)
        when = datetime(2024, 3, 10, 12, 0)
        stock_service.apply_movement(company_a.id, own.id, "OUT", 1, occurred_at=when)
        stock_service.apply_movement(company_b.id, foreign.id, "OUT", 2, occurred_at=when)

        query = "/api/reports/sales?start=2024-03-01&end=2024-03-31"
        report_a = client.get(query, headers=headers_a).json
        report_b = client.get(query, headers=headers_b).json

        assert report_a["total_revenue_cents"] == 1000
        assert report_b["total_revenue_cents"] == 10000
        assert report_a["orphaned_sale_count"] == 0

    def test_stock_report_uses_own_products_only(self, client, db_session, headers_a, company_a, company_b, make_product):
        make_product(company_a, "001", quantity_on_hand=1, cost_price_cents=100)
        make_product(company_b, "001", quantity_on_hand=50, cost_price_cents=100)

        report = client.get("/api/reports/stock", headers=headers_a).json

        assert report["active_products"] == 1
        assert report["stock_value_cents"] == 100
        assert db_session.query(Product).count() == 2


@pytest.mark.parametrize("method,path", [
    ("get", "/api/products"),
    ("post", "/api/products"),
    ("get", "/api/movements"),
    ("post", "/api/movements"),
    ("post", "/api/pos/checkout"),
    ("get", "/api/suppliers"),
    ("get", "/api/reports/sales"),
    ("get", "/api/reports/dashboard"),
    ("get", "/api/reports/export/pdf"),
    ("get", "/api/reports/export/excel"),
])
def test_endpoints_require_authentication(client, db_session, method, path):
    resp = getattr(client, method)(path, json={})
    assert resp.status_code == 401
