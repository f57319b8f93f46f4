"""
CLI command tests (flask system / flask users).
"""

from posledger.extensions import db
from posledger.models import StoreSettings, User
from posledger.services.auth_service import verify_password


class TestSystemInit:
    def test_creates_settings_and_admin(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["system", "init", "--store-name", "Corner Shop"])

        assert result.exit_code == 0, result.output
        assert "DONE" in result.output

        settings = db.session.query(StoreSettings).one()
        assert settings.store_name == "Corner Shop"

        admin = db.session.query(User).filter_by(username="admin").one()
        assert admin.role == "admin"
        assert verify_password("Password123!", admin.password_hash)

    def test_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()
        runner.invoke(args=["system", "init"])
        result = runner.invoke(args=["system", "init"])

        assert result.exit_code == 0, result.output
        assert "already exists" in result.output
        assert db.session.query(User).count() == 1
        assert db.session.query(StoreSettings).count() == 1

    def test_weak_admin_password_fails(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["system", "init", "--admin-password", "short"])

        assert result.exit_code != 0
        assert db.session.query(User).count() == 0


class TestUserCommands:
    def test_create_user(self, app, db_session):
        result = app.test_cli_runner().invoke(args=[
            "users", "create",
            "--username", "cashier1",
            "--password", "Password123!",
            "--role", "accountant",
        ])

        assert result.exit_code == 0, result.output
        user = db.session.query(User).filter_by(username="cashier1").one()
        assert user.role == "accountant"

    def test_create_defaults_to_sales(self, app, db_session):
        result = app.test_cli_runner().invoke(args=[
            "users", "create", "--username", "cashier2", "--password", "Password123!",
        ])

        assert result.exit_code == 0, result.output
        assert db.session.query(User).filter_by(username="cashier2").one().role == "sales"

    def test_create_duplicate_fails(self, app, db_session, sales_user):
        result = app.test_cli_runner().invoke(args=[
            "users", "create", "--username", "seller", "--password", "Password123!",
        ])

        assert result.exit_code != 0
        assert "already exists" in result.output

    def test_unknown_role_rejected(self, app, db_session):
        result = app.test_cli_runner().invoke(args=[
            "users", "create", "--username", "x", "--password", "Password123!", "--role", "owner",
        ])
        assert result.exit_code != 0

    def test_set_role(self, app, db_session, sales_user):
        result = app.test_cli_runner().invoke(args=["users", "set-role", "--username", "seller", "--role", "warehouse"])

        assert result.exit_code == 0, result.output
        db.session.expire_all()
        assert db.session.query(User).filter_by(username="seller").one().role == "warehouse"

    def test_set_role_unknown_user(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["users", "set-role", "--username", "ghost", "--role", "sales"])
        assert result.exit_code != 0
        assert "User not found" in result.output

    def test_list(self, app, db_session, sales_user, warehouse_user):
        result = app.test_cli_runner().invoke(args=["users", "list"])

        assert result.exit_code == 0, result.output
        assert "seller" in result.output
        assert "keeper" in result.output
