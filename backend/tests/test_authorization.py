"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Each role is denied the operations outside its capability set (403)
- Admin can perform privileged operations
- Logout revokes the token
"""

import pytest

from conftest import auth_headers, get_auth_token, sale_payload


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("GET", "/api/invoices"),
            ("POST", "/api/invoices"),
            ("GET", "/api/invoices/1/receipt"),
            ("GET", "/api/debts"),
            ("POST", "/api/debts/customers/1/payments"),
            ("GET", "/api/reports/dashboard"),
            ("GET", "/api/reports/sales"),
            ("GET", "/api/products"),
            ("GET", "/api/categories"),
            ("GET", "/api/customers"),
            ("GET", "/api/suppliers"),
            ("GET", "/api/settings"),
            ("PUT", "/api/settings"),
            ("GET", "/api/users"),
            ("PUT", "/api/users/1/role"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/invoices", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401


# =============================================================================
# LOGIN / LOGOUT
# =============================================================================


class TestLogin:
    def test_login_returns_token_and_permissions(self, client, sales_user):
        resp = client.post("/api/auth/login", json={"username": "seller", "password": "Password123!"})
        assert resp.status_code == 200
        body = resp.get_json()
        assert len(body["token"]) == 64
        assert body["user"]["role"] == "sales"
        assert "CREATE_SALE" in body["permissions"]

    def test_wrong_password(self, client, sales_user):
        resp = client.post("/api/auth/login", json={"username": "seller", "password": "nope"})
        assert resp.status_code == 401

    def test_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={"username": "seller"})
        assert resp.status_code == 400

    def test_non_object_body(self, client, db_session):
        resp = client.post("/api/auth/login", json=["seller", "Password123!"])
        assert resp.status_code == 400

    def test_me(self, client, accountant_headers):
        resp = client.get("/api/auth/me", headers=accountant_headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["username"] == "accountant"

    def test_logout_revokes_token(self, client, sales_user):
        headers = auth_headers(get_auth_token(client, "seller"))
        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401


# =============================================================================
# ROLE DENIALS - 403
# =============================================================================


class TestSalesRole:
    def test_cannot_create_purchase(self, client, sales_headers, product_a):
        resp = client.post(
            "/api/invoices",
            json=sale_payload((product_a.id, 1, 60), type="purchase"),
            headers=sales_headers,
        )
        assert resp.status_code == 403
        assert resp.get_json()["required_permission"] == "CREATE_PURCHASE"

    def test_can_create_sale(self, client, sales_headers, product_a):
        resp = client.post("/api/invoices", json=sale_payload((product_a.id, 1, 100)), headers=sales_headers)
        assert resp.status_code == 201

    def test_cannot_view_sales_report(self, client, sales_headers):
        assert client.get("/api/reports/sales", headers=sales_headers).status_code == 403

    def test_can_view_dashboard(self, client, sales_headers):
        assert client.get("/api/reports/dashboard", headers=sales_headers).status_code == 200

    def test_cannot_manage_products(self, client, sales_headers):
        resp = client.post("/api/products", json={"sku": "X", "name": "X"}, headers=sales_headers)
        assert resp.status_code == 403

    def test_cannot_change_settings(self, client, sales_headers):
        resp = client.put("/api/settings", json={"tax_rate_bps": 500}, headers=sales_headers)
        assert resp.status_code == 403


class TestAccountantRole:
    def test_can_view_reports(self, client, accountant_headers):
        assert client.get("/api/reports/sales?range=week", headers=accountant_headers).status_code == 200

    def test_cannot_create_sale(self, client, accountant_headers, product_a):
        resp = client.post("/api/invoices", json=sale_payload((product_a.id, 1, 100)), headers=accountant_headers)
        assert resp.status_code == 403

    def test_cannot_edit_customers(self, client, accountant_headers):
        resp = client.post("/api/customers", json={"name": "New"}, headers=accountant_headers)
        assert resp.status_code == 403


class TestWarehouseRole:
    def test_can_create_purchase(self, client, warehouse_headers, product_a):
        resp = client.post(
            "/api/invoices",
            json=sale_payload((product_a.id, 4, 60), type="purchase"),
            headers=warehouse_headers,
        )
        assert resp.status_code == 201
        assert resp.get_json()["type"] == "purchase"

    def test_cannot_create_sale(self, client, warehouse_headers, product_a):
        resp = client.post("/api/invoices", json=sale_payload((product_a.id, 1, 100)), headers=warehouse_headers)
        assert resp.status_code == 403

    def test_cannot_record_payment(self, client, warehouse_headers, customer):
        resp = client.post(
            f"/api/debts/customers/{customer.id}/payments",
            json={"amount_cents": 10},
            headers=warehouse_headers,
        )
        assert resp.status_code == 403


# =============================================================================
# ADMIN
# =============================================================================


class TestAdmin:
    def test_can_change_settings(self, client, admin_headers):
        resp = client.put("/api/settings", json={"tax_rate_bps": 500, "store_name": "Corner Shop"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["tax_rate_bps"] == 500

        assert client.get("/api/settings", headers=admin_headers).get_json()["store_name"] == "Corner Shop"

    def test_list_users(self, client, admin_headers, sales_user):
        resp = client.get("/api/users", headers=admin_headers)
        assert resp.status_code == 200
        body = resp.get_json()
        assert {u["username"] for u in body["users"]} == {"admin", "seller"}
        assert "warehouse" in body["roles"]

    def test_change_role_takes_effect(self, client, admin_headers, sales_user):
        seller_headers = auth_headers(get_auth_token(client, "seller"))
        assert client.get("/api/reports/sales", headers=seller_headers).status_code == 403

        resp = client.put(f"/api/users/{sales_user.id}/role", json={"role": "accountant"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["role"] == "accountant"

        assert client.get("/api/reports/sales", headers=seller_headers).status_code == 200

    def test_unknown_role(self, client, admin_headers, sales_user):
        resp = client.put(f"/api/users/{sales_user.id}/role", json={"role": "owner"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_unknown_user(self, client, admin_headers):
        resp = client.put("/api/users/999/role", json={"role": "sales"}, headers=admin_headers)
        assert resp.status_code == 404

    def test_cannot_demote_last_admin(self, client, admin_headers, admin_user):
        resp = client.put(f"/api/users/{admin_user.id}/role", json={"role": "sales"}, headers=admin_headers)
        assert resp.status_code == 400
        assert "last active admin" in resp.get_json()["error"]

    def test_non_admin_cannot_manage_users(self, client, accountant_headers, sales_user):
        assert client.get("/api/users", headers=accountant_headers).status_code == 403
        resp = client.put(f"/api/users/{sales_user.id}/role", json={"role": "admin"}, headers=accountant_headers)
        assert resp.status_code == 403

    def test_deactivated_user_loses_session(self, client, db_session, admin_user):
        headers = auth_headers(get_auth_token(client, "admin"))
        admin_user.is_active = False
        db_session.commit()
        assert client.get("/api/auth/me", headers=headers).status_code == 401


class TestSystem:
    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["checks"]["database"]["status"] == "healthy"
