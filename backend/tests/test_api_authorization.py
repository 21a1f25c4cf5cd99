"""
HTTP authorization tests.

Verifies:
- Unauthenticated requests return 401
- Seller role denied manager/admin operations (403)
- Admin role can perform privileged operations
- Login, current user and logout round trip
- Errors keep the JSON {"error": ...} shape
"""

import pytest

from conftest import PASSWORD, auth_headers, get_auth_token, make_sale


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/logout"),
            ("GET", "/api/stores"),
            ("POST", "/api/stores"),
            ("GET", "/api/inventory/sessions"),
            ("POST", "/api/inventory/sessions"),
            ("GET", "/api/returns"),
            ("GET", "/api/reports/overview"),
            ("GET", "/api/finance/summary"),
            ("GET", "/api/gamification/me"),
            ("GET", "/api/admin/users"),
            ("GET", "/api/admin/permissions"),
            ("GET", "/api/admin/audit-logs"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert "error" in resp.json

    def test_invalid_token(self, client, db_session):
        resp = client.get("/api/stores", headers=auth_headers("not-a-real-token"))
        assert resp.status_code == 401

    def test_health_is_public(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"


# =============================================================================
# LOGIN / LOGOUT
# =============================================================================


class TestSessionLifecycle:

    def test_login_requires_both_fields(self, client, seller_user):
        resp = client.post("/api/auth/login", json={"email": seller_user.email})
        assert resp.status_code == 400

    def test_wrong_password(self, client, seller_user):
        assert get_auth_token(client, seller_user.email, "Wrong-pass1!") is None

    def test_inactive_user_cannot_login(self, client, seller_user, db_session):
        seller_user.is_active = False
        db_session.commit()
        assert get_auth_token(client, seller_user.email) is None

    def test_me_returns_context(self, client, manager_user, store_a):
        headers = auth_headers(get_auth_token(client, manager_user.email, PASSWORD))
        resp = client.get("/api/auth/me", headers=headers)
        assert resp.status_code == 200
        assert resp.json["user"]["email"] == manager_user.email
        assert resp.json["context"]["role"] == "manager"
        assert resp.json["context"]["store_ids"] == [store_a.id]

    def test_logout_revokes_token(self, client, seller_user):
        headers = auth_headers(get_auth_token(client, seller_user.email))
        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401


# =============================================================================
# SELLER DENIED PRIVILEGED OPERATIONS (403)
# =============================================================================


class TestSellerDenied:
    """Seller role cannot perform manager or admin operations."""

    def test_cannot_create_store(self, client, seller_headers):
        resp = client.post("/api/stores", json={"name": "Pirate"}, headers=seller_headers)
        assert resp.status_code == 403
        assert resp.json["required_permission"] == "CREATE_STORE"

    def test_cannot_list_users(self, client, seller_headers):
        assert client.get("/api/admin/users", headers=seller_headers).status_code == 403

    def test_cannot_create_user(self, client, seller_headers):
        resp = client.post(
            "/api/admin/users",
            json={"email": "x@x.com", "name": "X", "password": "P@ssw0rd123!"},
            headers=seller_headers,
        )
        assert resp.status_code == 403

    def test_cannot_start_inventory(self, client, seller_headers, store_a):
        resp = client.post(
            "/api/inventory/sessions",
            json={"name": "Comptage", "store_id": store_a.id},
            headers=seller_headers,
        )
        assert resp.status_code == 403

    def test_cannot_award_points(self, client, seller_headers, seller_user):
        resp = client.post(
            "/api/gamification/award",
            json={"user_id": seller_user.id, "event_type": "sale_completed"},
            headers=seller_headers,
        )
        assert resp.status_code == 403

    def test_denial_is_audited(self, client, seller_headers, admin_headers):
        client.delete("/api/stores/1", headers=seller_headers)
        resp = client.get("/api/admin/audit-logs?action=PERMISSION_DENIED", headers=admin_headers)
        assert resp.status_code == 200
        assert len(resp.json) >= 1
        assert resp.json[0]["action"] == "PERMISSION_DENIED"

    def test_return_above_cap_rejected(self, client, db_session, seller_headers, store_a, seller_user):
        sale = make_sale(db_session, store=store_a, seller=seller_user, total=100000)
        resp = client.post(
            "/api/returns",
            json={"sale_id": sale.id, "store_id": store_a.id, "total_amount": 60000, "reason": "Défaut"},
            headers=seller_headers,
        )
        assert resp.status_code == 400
        assert "50 000 XOF" in resp.json["error"]


# =============================================================================
# PRIVILEGED OPERATIONS SUCCEED
# =============================================================================


class TestPrivilegedAccess:

    def test_admin_creates_store(self, client, admin_headers):
        resp = client.post("/api/stores", json={"name": "Saint-Louis Nord"}, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json["store"]["name"] == "Saint-Louis Nord"
        assert "Saint-Louis Nord" in resp.json["message"]

    def test_manager_starts_and_exports_inventory(self, client, manager_headers, store_a, products):
        resp = client.post(
            "/api/inventory/sessions",
            json={"name": "Comptage mensuel", "store_id": store_a.id},
            headers=manager_headers,
        )
        assert resp.status_code == 201
        session_id = resp.json["session"]["id"]
        assert len(resp.json["session"]["items"]) == len(products)

        again = client.post(
            "/api/inventory/sessions",
            json={"name": "Doublon", "store_id": store_a.id},
            headers=manager_headers,
        )
        assert again.status_code == 409

        export = client.get(f"/api/inventory/sessions/{session_id}/export?format=csv", headers=manager_headers)
        assert export.status_code == 200
        assert export.mimetype == "text/csv"
        assert f"inventaire-{session_id}.csv" in export.headers["Content-Disposition"]

    def test_messages_are_role_phrased(self, client, admin_headers, manager_headers, store_a, store_b):
        by_admin = client.post(
            "/api/inventory/sessions",
            json={"name": "A", "store_id": store_b.id},
            headers=admin_headers,
        ).json["message"]
        by_manager = client.post(
            "/api/inventory/sessions",
            json={"name": "B", "store_id": store_a.id},
            headers=manager_headers,
        ).json["message"]
        assert by_admin != by_manager

    def test_unknown_resource_is_404(self, client, admin_headers):
        resp = client.get("/api/stores/99999", headers=admin_headers)
        assert resp.status_code == 404
        assert "error" in resp.json

    def test_permission_catalogue(self, client, admin_headers):
        resp = client.get("/api/admin/permissions", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["STORES"]
        assert all("code" in p for p in resp.json["STORES"])

    def test_user_activation_requires_json_boolean(self, client, admin_headers, seller_user):
        path = f"/api/admin/users/{seller_user.id}/active"
        for value in ("false", 0, None):
            resp = client.put(path, json={"is_active": value}, headers=admin_headers)
            assert resp.status_code == 400
            assert resp.json["error"] == "is_active must be a boolean"
        assert get_auth_token(client, seller_user.email) is not None

        resp = client.put(path, json={"is_active": False}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["user"]["is_active"] is False
        assert get_auth_token(client, seller_user.email) is None
