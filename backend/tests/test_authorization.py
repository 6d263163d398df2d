"""
Authorization gate tests.

Verifies:
- Protected endpoints return 401 without a token
- A USER-role account (no grants) is denied admin operations (403)
- The bootstrap admin can perform privileged operations
- Grant edits and role changes apply to live sessions
"""

import pytest

from conftest import DEFAULT_PASSWORD, auth_headers, get_auth_token
from shopadmin.extensions import db
from shopadmin.services import role_service


PROTECTED_ENDPOINTS = [
    ("GET", "/api/roles"),
    ("POST", "/api/roles"),
    ("GET", "/api/roles/permissions"),
    ("GET", "/api/users"),
    ("PATCH", "/api/users/1/role"),
    ("POST", "/api/categories"),
    ("POST", "/api/products"),
    ("PATCH", "/api/products/1/stock"),
    ("GET", "/api/inventory/low-stock"),
    ("PATCH", "/api/orders/1/status"),
    ("POST", "/api/orders/1/confirm-payment"),
    ("GET", "/api/orders/1/payment"),
    ("GET", "/api/dashboard/stats"),
    ("GET", "/api/settings"),
    ("PUT", "/api/settings"),
]


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize("method,path", PROTECTED_ENDPOINTS + [("GET", "/api/orders"), ("GET", "/api/auth/me")])
    def test_requires_auth(self, client, method, path):
        resp = getattr(client, method.lower())(path, json={})
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_public_catalog_is_open(self, client):
        assert client.get("/api/products").status_code == 200
        assert client.get("/api/categories").status_code == 200
        assert client.get("/api/health").status_code == 200


# =============================================================================
# USER ROLE DENIED ADMIN OPERATIONS - 403
# =============================================================================


class TestStaffDenied:
    """A fresh USER account holds no permissions."""

    @pytest.mark.parametrize("method,path", PROTECTED_ENDPOINTS)
    def test_forbidden(self, client, staff_headers, method, path):
        resp = getattr(client, method.lower())(path, json={}, headers=staff_headers)
        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"

    def test_forbidden_body_names_required_permissions(self, client, staff_headers):
        resp = client.post("/api/roles", json={}, headers=staff_headers)
        assert resp.json["code"] == "errors.common.forbidden"
        assert resp.json["required_permissions"] == ["roles.manage"]

    def test_can_list_own_orders(self, client, staff_headers):
        resp = client.get("/api/orders", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.json["items"] == []


# =============================================================================
# ADMIN ALLOWED
# =============================================================================


class TestAdminAllowed:

    @pytest.mark.parametrize("path", [
        "/api/roles",
        "/api/roles/permissions",
        "/api/users",
        "/api/inventory/low-stock",
        "/api/inventory/out-of-stock",
        "/api/orders",
        "/api/dashboard/stats",
        "/api/settings",
    ])
    def test_can_read(self, client, admin_headers, path):
        resp = client.get(path, headers=admin_headers)
        assert resp.status_code == 200, f"GET {path} returned {resp.status_code}"

    def test_can_create_role(self, client, admin_headers):
        resp = client.post("/api/roles", json={
            "name": "Warehouse",
            "key": "WAREHOUSE",
            "permissions": ["inventory.view", "inventory.manage"],
        }, headers=admin_headers)

        assert resp.status_code == 201
        assert resp.json["role"]["permissions"] == ["inventory.manage", "inventory.view"]


# =============================================================================
# LIVE RESOLUTION
# =============================================================================


class TestLiveResolution:

    def test_granting_permission_applies_without_relogin(self, client, staff_headers):
        assert client.get("/api/roles", headers=staff_headers).status_code == 403

        user_role = role_service.get_role_by_key("USER")
        role_service.update_role(user_role.id, {"permissions": ["roles.view"]})

        assert client.get("/api/roles", headers=staff_headers).status_code == 200

    def test_revoking_permission_applies_without_relogin(self, client, make_user):
        role_service.create_role("Support", "SUPPORT", permission_keys=["users.view"])
        make_user("support@example.com", role="SUPPORT")
        headers = auth_headers(get_auth_token(client, "support@example.com", DEFAULT_PASSWORD))
        assert client.get("/api/users", headers=headers).status_code == 200

        role = role_service.get_role_by_key("SUPPORT")
        role_service.update_role(role.id, {"permissions": []})

        assert client.get("/api/users", headers=headers).status_code == 403

    def test_role_change_uses_current_role(self, client, admin_headers, make_user):
        role_service.create_role("Support", "SUPPORT", permission_keys=["users.view"])
        user = make_user("mona@example.com")
        headers = auth_headers(get_auth_token(client, "mona@example.com", DEFAULT_PASSWORD))
        assert client.get("/api/users", headers=headers).status_code == 403

        resp = client.patch(f"/api/users/{user.id}/role", json={"role": "SUPPORT"}, headers=admin_headers)
        assert resp.status_code == 200

        assert client.get("/api/users", headers=headers).status_code == 200

    def test_deleted_role_fails_closed(self, client, make_user):
        role = role_service.create_role("Support", "SUPPORT", permission_keys=["users.view"])
        make_user("support@example.com", role="SUPPORT")
        headers = auth_headers(get_auth_token(client, "support@example.com", DEFAULT_PASSWORD))

        role_service.delete_role(role.id)

        assert client.get("/api/users", headers=headers).status_code == 403

    def test_deleted_user_fails_closed(self, client, make_user):
        user = make_user("staff@example.com")
        user_role = role_service.get_role_by_key("USER")
        role_service.update_role(user_role.id, {"permissions": ["roles.view"]})
        headers = auth_headers(get_auth_token(client, "staff@example.com", DEFAULT_PASSWORD))

        db.session.delete(user)
        db.session.commit()

        assert client.get("/api/roles", headers=headers).status_code == 403

    def test_admin_with_zero_grants_keeps_access(self, client, admin_headers):
        admin = role_service.get_role_by_key("ADMIN")
        role_service.update_role(admin.id, {"permissions": []})

        assert client.get("/api/roles", headers=admin_headers).status_code == 200
        assert client.get("/api/settings", headers=admin_headers).status_code == 200
