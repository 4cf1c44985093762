"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Viewer role denied writes, staff role denied deletes (403)
- Only admins manage users
- Session lifecycle: login, logout, password change, deactivation
"""

import pytest

from conftest import PASSWORD, auth_headers, get_auth_token, make_user
from stockroom.models import SessionToken, User
from stockroom.models.auth import ROLE_STAFF


# =============================================================================
# UNAUTHENTICATED ACCESS: 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/categories"),
            ("POST", "/api/categories"),
            ("GET", "/api/products"),
            ("POST", "/api/products/import"),
            ("GET", "/api/suppliers"),
            ("DELETE", "/api/customers"),
            ("GET", "/api/warehouses"),
            ("GET", "/api/incoming-transactions"),
            ("POST", "/api/outgoing-transactions"),
            ("GET", "/api/product-requests"),
            ("GET", "/api/reports/incoming"),
            ("GET", "/api/dashboard/recap"),
            ("GET", "/api/users"),
            ("GET", "/api/auth/me"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json == {"success": False, "error": "Authentication required"}

    def test_unknown_token(self, client, db_session):
        resp = client.get("/api/products", headers=auth_headers("not-a-real-token"))
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid or expired token"

    def test_malformed_header(self, client, db_session):
        resp = client.get("/api/products", headers={"Authorization": "Token abc"})
        assert resp.status_code == 401


# =============================================================================
# ROLE HIERARCHY: 403
# =============================================================================


class TestViewerDenied:
    """Viewer can read but not write."""

    def test_can_read(self, client, viewer_headers):
        assert client.get("/api/products", headers=viewer_headers).status_code == 200
        assert client.get("/api/dashboard/recap", headers=viewer_headers).status_code == 200

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/categories"),
            ("POST", "/api/products"),
            ("PUT", "/api/products/1"),
            ("POST", "/api/suppliers"),
            ("POST", "/api/incoming-transactions"),
            ("POST", "/api/product-requests"),
            ("POST", "/api/warehouses"),
        ],
    )
    def test_cannot_write(self, client, viewer_headers, method, path):
        resp = getattr(client, method.lower())(path, json={}, headers=viewer_headers)
        assert resp.status_code == 403
        assert resp.json["requiredRole"] == "staff"


class TestStaffDenied:
    """Staff can write but not delete or manage users."""

    def test_can_write(self, client, staff_headers):
        resp = client.post("/api/categories", json={"categoryName": "Paint"}, headers=staff_headers)
        assert resp.status_code == 201

    @pytest.mark.parametrize(
        "path",
        [
            "/api/categories/1",
            "/api/products/1",
            "/api/suppliers/1",
            "/api/incoming-transactions/1",
            "/api/product-requests/1",
        ],
    )
    def test_cannot_delete(self, client, staff_headers, path):
        resp = client.delete(path, headers=staff_headers)
        assert resp.status_code == 403
        assert resp.json["requiredRole"] == "admin"

    def test_cannot_list_users(self, client, staff_headers):
        resp = client.get("/api/users", headers=staff_headers)
        assert resp.status_code == 403


# =============================================================================
# ADMIN USER MANAGEMENT
# =============================================================================


class TestAdminAccess:
    """Admin role can manage users."""

    def test_can_list_users(self, client, admin_headers, staff_user):
        resp = client.get("/api/users", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["totalCount"] == 2
        assert all("password_hash" not in u and "passwordHash" not in u for u in resp.json["data"])

    def test_create_user(self, client, admin_headers):
        resp = client.post(
            "/api/users",
            json={"name": "New", "email": "New@Inventory.com", "password": PASSWORD, "role": "staff"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json["data"]["email"] == "new@inventory.com"
        assert get_auth_token(client, "new@inventory.com") is not None

    @pytest.mark.parametrize(
        "payload,status",
        [
            ({"name": "X", "email": "x@inventory.com"}, 400),
            ({"name": "X", "email": "x@inventory.com", "password": "weak"}, 400),
            ({"name": "X", "email": "not-an-email", "password": PASSWORD}, 400),
            ({"name": "X", "email": "x@inventory.com", "password": PASSWORD, "role": "root"}, 400),
            ({"name": "X", "email": "admin@inventory.com", "password": PASSWORD}, 409),
        ],
    )
    def test_create_user_invalid(self, client, admin_headers, payload, status):
        resp = client.post("/api/users", json=payload, headers=admin_headers)
        assert resp.status_code == status

    def test_cannot_delete_self(self, client, admin_headers, admin_user):
        resp = client.delete(f"/api/users/{admin_user.id}", headers=admin_headers)
        assert resp.status_code == 400

    def test_cannot_demote_self(self, client, admin_headers, admin_user):
        resp = client.put(f"/api/users/{admin_user.id}", json={"role": "viewer"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_deactivation_ends_sessions(self, client, db_session, admin_headers, staff_user, staff_headers):
        resp = client.put(f"/api/users/{staff_user.id}", json={"status": "inactive"}, headers=admin_headers)

        assert resp.status_code == 200
        assert client.get("/api/products", headers=staff_headers).status_code == 401
        assert get_auth_token(client, staff_user.email) is None

    def test_delete_user(self, client, db_session, admin_headers, viewer_user):
        resp = client.delete(f"/api/users/{viewer_user.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert db_session.query(User).filter_by(email="viewer@inventory.com").first() is None


# =============================================================================
# SESSION LIFECYCLE
# =============================================================================


class TestSessions:

    def test_login_returns_token_and_permissions(self, client, staff_user):
        resp = client.post("/api/auth/login", json={"email": "STAFF@inventory.com", "password": PASSWORD})
        assert resp.status_code == 200
        body = resp.json
        assert body["user"]["role"] == ROLE_STAFF
        assert "delete" not in body["permissions"]
        assert len(body["token"]) == 64

    @pytest.mark.parametrize(
        "payload,status",
        [
            ({}, 400),
            ({"email": "staff@inventory.com"}, 400),
            ({"email": "staff@inventory.com", "password": "Wrong123!"}, 401),
            ({"email": "nobody@inventory.com", "password": PASSWORD}, 401),
        ],
    )
    def test_login_failures(self, client, staff_user, payload, status):
        resp = client.post("/api/auth/login", json=payload)
        assert resp.status_code == status
        if status == 401:
            assert resp.json["error"] == "Invalid email or password"

    def test_token_is_stored_hashed(self, client, db_session, staff_user):
        token = get_auth_token(client, staff_user.email)
        stored = db_session.query(SessionToken).one()
        assert stored.token_hash != token

    def test_logout_revokes_token(self, client, staff_headers):
        assert client.post("/api/auth/logout", headers=staff_headers).status_code == 200
        assert client.get("/api/auth/me", headers=staff_headers).status_code == 401
        assert client.post("/api/auth/logout", headers=staff_headers).status_code == 401

    def test_me(self, client, viewer_headers):
        resp = client.get("/api/auth/me", headers=viewer_headers)
        assert resp.json["user"]["email"] == "viewer@inventory.com"
        assert resp.json["permissions"] == ["read", "view_reports"]

    def test_change_password_keeps_only_current_session(self, client, staff_user):
        current = auth_headers(get_auth_token(client, staff_user.email))
        other = auth_headers(get_auth_token(client, staff_user.email))

        resp = client.post(
            "/api/auth/change-password",
            json={"currentPassword": PASSWORD, "newPassword": "Changed456!"},
            headers=current,
        )

        assert resp.status_code == 200
        assert client.get("/api/auth/me", headers=current).status_code == 200
        assert client.get("/api/auth/me", headers=other).status_code == 401
        assert get_auth_token(client, staff_user.email, "Changed456!") is not None
        assert get_auth_token(client, staff_user.email) is None

    @pytest.mark.parametrize(
        "payload",
        [
            {"currentPassword": "Wrong123!", "newPassword": "Changed456!"},
            {"currentPassword": PASSWORD, "newPassword": "short"},
            {"currentPassword": PASSWORD},
        ],
    )
    def test_change_password_rejected(self, client, staff_headers, payload):
        resp = client.post("/api/auth/change-password", json=payload, headers=staff_headers)
        assert resp.status_code == 400

    def test_update_profile(self, client, viewer_headers):
        resp = client.put("/api/auth/profile", json={"phone": "555-0999", "role": "admin"}, headers=viewer_headers)
        assert resp.status_code == 200
        assert resp.json["user"]["phone"] == "555-0999"
        assert resp.json["user"]["role"] == "viewer"

    def test_profile_email_must_be_unique(self, client, db_session, viewer_headers):
        make_user(ROLE_STAFF, "taken@inventory.com")
        resp = client.put("/api/auth/profile", json={"email": "taken@inventory.com"}, headers=viewer_headers)
        assert resp.status_code == 409


# =============================================================================
# PUBLIC ENDPOINTS, NO AUTH REQUIRED
# =============================================================================


class TestPublicEndpoints:
    """System health is public."""

    def test_health(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
        assert resp.json["checks"]["database"]["details"]["products"] == 0
