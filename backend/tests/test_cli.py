"""
CLI command tests (flask system / perms / roles / users).
"""

from shopadmin.extensions import db
from shopadmin.models import User
from shopadmin.permissions import get_all_permission_keys


class TestSystemCommands:

    def test_init_is_idempotent(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["system", "init"])

        assert result.exit_code == 0
        assert "Permissions created: 0" in result.output
        assert "Grants created: 0" in result.output


class TestPermsCommands:

    def test_list_all(self, app):
        result = app.test_cli_runner().invoke(args=["perms", "list"])
        assert f"Total: {len(get_all_permission_keys())} permissions" in result.output

    def test_list_group(self, app):
        result = app.test_cli_runner().invoke(args=["perms", "list", "--group", "orders"])
        assert "orders.manage" in result.output
        assert "roles.manage" not in result.output

    def test_role_effective_permissions(self, app):
        result = app.test_cli_runner().invoke(args=["perms", "list", "--role", "ADMIN"])
        assert "explicit grants" in result.output

    def test_unknown_role(self, app):
        result = app.test_cli_runner().invoke(args=["perms", "list", "--role", "GHOST"])
        assert "not found" in result.output


class TestUsersCommands:

    def test_create_and_promote(self, app):
        runner = app.test_cli_runner()
        created = runner.invoke(args=[
            "users", "create",
            "--name", "Jane",
            "--email", "jane@example.com",
            "--password", "secret123",
        ])
        assert "PASS Created user jane@example.com" in created.output

        promoted = runner.invoke(args=["users", "set-role", "jane@example.com", "ADMIN"])
        assert "is now ADMIN" in promoted.output
        assert db.session.query(User).filter_by(email="jane@example.com").first().role == "ADMIN"

    def test_create_with_unknown_role(self, app):
        result = app.test_cli_runner().invoke(args=[
            "users", "create",
            "--name", "Jane",
            "--email", "jane@example.com",
            "--password", "secret123",
            "--role", "GHOST",
        ])
        assert "FAIL" in result.output
        assert db.session.query(User).count() == 0

    def test_roles_list(self, app):
        result = app.test_cli_runner().invoke(args=["roles", "list"])
        assert "ADMIN" in result.output
        assert "USER" in result.output
