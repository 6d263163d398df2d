"""
Permission catalog tests.

Verifies:
- The static catalog is well formed and grouped by feature area
- Reconciliation is idempotent, refreshes metadata and never deletes rows
"""

from shopadmin.extensions import db
from shopadmin.models import Permission
from shopadmin.permissions import (
    PermissionGroup,
    get_all_permission_keys,
    get_permission_definition,
    get_permissions_by_group,
    list_permissions,
    validate_permission_key,
)
from shopadmin.services import permission_service


# =============================================================================
# STATIC CATALOG
# =============================================================================


class TestCatalog:

    def test_keys_are_unique(self):
        keys = get_all_permission_keys()
        assert len(keys) == len(set(keys))

    def test_keys_are_scoped_by_group(self):
        for perm in list_permissions():
            assert perm.key.startswith(perm.group + "."), perm.key

    def test_every_group_has_permissions(self):
        groups = [value for name, value in vars(PermissionGroup).items() if name.isupper()]
        for group in groups:
            assert get_permissions_by_group(group), group

    def test_lookup_helpers(self):
        definition = get_permission_definition("orders.manage")
        assert definition.group == PermissionGroup.ORDERS
        assert definition.to_dict()["key"] == "orders.manage"
        assert get_permission_definition("orders.destroy") is None
        assert validate_permission_key("roles.manage")
        assert not validate_permission_key("ROLES_MANAGE")

    def test_list_permissions_has_no_side_effects(self, app):
        before = db.session.query(Permission).count()
        list_permissions()
        assert db.session.query(Permission).count() == before


# =============================================================================
# RECONCILIATION
# =============================================================================


class TestReconciliation:

    def test_boot_creates_every_catalog_entry(self, app):
        stored = {perm.key for perm in db.session.query(Permission).all()}
        assert stored == set(get_all_permission_keys())

    def test_second_run_creates_nothing(self, app):
        assert permission_service.reconcile_catalog() == 0
        assert db.session.query(Permission).count() == len(get_all_permission_keys())

    def test_refreshes_label_but_keeps_id(self, app):
        perm = db.session.query(Permission).filter_by(key="orders.view").first()
        original_id = perm.id
        perm.label = "Stale label"
        perm.group = "misc"
        db.session.commit()

        permission_service.reconcile_catalog()

        perm = db.session.query(Permission).filter_by(key="orders.view").first()
        assert perm.id == original_id
        assert perm.label == get_permission_definition("orders.view").label
        assert perm.group == PermissionGroup.ORDERS

    def test_never_deletes_retired_keys(self, app):
        db.session.add(Permission(key="legacy.view", label="Legacy", group="legacy"))
        db.session.commit()

        permission_service.reconcile_catalog()

        assert db.session.query(Permission).filter_by(key="legacy.view").first() is not None
