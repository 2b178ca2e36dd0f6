"""
Flask CLI command tests (system, users, maintenance groups).
"""

from dealerops.models import Profile, Role


class TestSystemCommands:

    def test_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        first = runner.invoke(args=["system", "init"])
        assert first.exit_code == 0
        assert "PASS Created user: admin (admin@dealerops.local)" in first.output

        assert {r.name for r in db_session.query(Role).all()} == {"Admin", "Seller", "Transporter"}
        seller = db_session.query(Profile).filter_by(username="seller").one()
        assert seller.role_data.name == "Seller"

        second = runner.invoke(args=["system", "init"])
        assert second.exit_code == 0
        assert "already exists, skipping" in second.output
        assert db_session.query(Profile).count() == 3


class TestUserCommands:

    def test_create_links_default_role(self, app, seed, db_session):
        result = app.test_cli_runner().invoke(args=[
            "users", "create", "--email", "lot@dealerops.test", "--password", "Password123!",
            "--role", "transporter", "--username", "lotdriver",
        ])
        assert result.exit_code == 0
        assert "PASS Created user: lotdriver" in result.output

        db_session.expire_all()
        profile = db_session.query(Profile).filter_by(username="lotdriver").one()
        assert profile.role_data.name == "Transporter"

    def test_create_weak_password(self, app, seed):
        result = app.test_cli_runner().invoke(args=[
            "users", "create", "--email", "weak@dealerops.test", "--password", "weak", "--role", "seller",
        ])
        assert "FAIL Password validation failed" in result.output

    def test_create_duplicate(self, app, seed):
        result = app.test_cli_runner().invoke(args=[
            "users", "create", "--email", "seller@dealerops.test", "--password", "Password123!", "--role", "seller",
        ])
        assert "FAIL A user with this email or username already exists" in result.output

    def test_list(self, app, seed):
        result = app.test_cli_runner().invoke(args=["users", "list"])
        assert result.exit_code == 0
        for username in ("admin", "seller", "transporter"):
            assert username in result.output


class TestMaintenanceCommands:

    def test_cleanup_sessions(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-sessions", "--retention-days", "7"])
        assert result.exit_code == 0
        assert "Deleted 0 sessions older than 7 days." in result.output
