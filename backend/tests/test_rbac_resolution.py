"""
Permission resolution tests.

Verifies the two-step resolution:
- explicit grants are returned as-is
- ADMIN with no grants falls back to the full catalog
- every other role fails closed
"""

import pytest

from shopadmin.extensions import db
from shopadmin.models import Role, RolePermission
from shopadmin.permissions import get_all_permission_keys
from shopadmin.services import permission_service, role_service


def _clear_grants(role_key):
    role = db.session.query(Role).filter_by(key=role_key).first()
    db.session.query(RolePermission).filter_by(role_id=role.id).delete()
    db.session.commit()


class TestExplicitGrants:

    def test_missing_role_is_unresolved(self, app):
        assert permission_service.try_resolve_explicit_grants("GHOST") is None

    def test_empty_role_key_is_unresolved(self, app):
        assert permission_service.try_resolve_explicit_grants("") is None
        assert permission_service.try_resolve_explicit_grants(None) is None

    def test_role_without_grants_resolves_to_empty_set(self, app):
        assert permission_service.try_resolve_explicit_grants("USER") == set()

    def test_custom_role_resolves_to_its_grants(self, app):
        role_service.create_role("Warehouse", "WAREHOUSE", permission_keys=["inventory.view", "inventory.manage"])
        assert permission_service.resolve_permissions("WAREHOUSE") == {"inventory.view", "inventory.manage"}


class TestBootstrapFallback:

    def test_admin_with_all_grants_has_full_catalog(self, app):
        assert permission_service.resolve_permissions("ADMIN") == set(get_all_permission_keys())

    def test_admin_with_zero_grants_has_full_catalog(self, app):
        _clear_grants("ADMIN")
        assert permission_service.try_resolve_explicit_grants("ADMIN") == set()
        assert permission_service.resolve_permissions("ADMIN") == set(get_all_permission_keys())

    def test_admin_with_partial_grants_is_not_widened(self, app):
        role = db.session.query(Role).filter_by(key="ADMIN").first()
        role_service.update_role(role.id, {"permissions": ["orders.view"]})
        assert permission_service.resolve_permissions("ADMIN") == {"orders.view"}

    @pytest.mark.parametrize("role_key", ["USER", "GHOST", None])
    def test_other_roles_fail_closed(self, app, role_key):
        assert permission_service.resolve_permissions(role_key) == set()

    def test_fallback_is_pure(self):
        assert permission_service.apply_bootstrap_fallback("USER", None) == set()
        assert permission_service.apply_bootstrap_fallback("ADMIN", None) == set(get_all_permission_keys())
        assert permission_service.apply_bootstrap_fallback("USER", {"orders.view"}) == {"orders.view"}

    def test_has_any_permission(self, app):
        assert permission_service.has_any_permission("ADMIN", ["roles.manage"])
        assert not permission_service.has_any_permission("USER", ["roles.manage", "orders.view"])
