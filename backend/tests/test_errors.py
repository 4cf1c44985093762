"""
Error envelope and CLI tests.
"""

import pytest
from sqlalchemy.exc import IntegrityError, NoResultFound, OperationalError, SQLAlchemyError

from stockroom.errors import classify_db_error
from stockroom.models import User, Warehouse


class TestClassifyDbError:

    @pytest.mark.parametrize(
        "exc,status,kind",
        [
            (NoResultFound(), 404, "not_found"),
            (IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: products.part_number")), 409, "unique_constraint"),
            (IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed")), 409, "foreign_key_constraint"),
            (IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed: products.name")), 400, "missing_value"),
            (IntegrityError("INSERT", {}, Exception("CHECK constraint failed")), 409, "integrity_error"),
            (OperationalError("SELECT 1", {}, Exception("database is locked")), 500, "database_unavailable"),
            (SQLAlchemyError("boom"), 500, "database_error"),
        ],
    )
    def test_classification(self, exc, status, kind):
        info = classify_db_error(exc)
        assert (info.status, info.kind) == (status, kind)


class TestErrorEnvelope:

    def test_unknown_route_is_json(self, client, db_session):
        resp = client.get("/api/nope")
        assert resp.status_code == 404
        assert resp.json["success"] is False

    def test_wrong_method_is_json(self, client, db_session):
        resp = client.patch("/api/health")
        assert resp.status_code == 405
        assert resp.json["success"] is False

    def test_non_object_body_is_treated_as_empty(self, client, staff_headers):
        resp = client.post(
            "/api/categories",
            data="not json",
            content_type="application/json",
            headers=staff_headers,
        )
        assert resp.status_code == 400
        assert resp.json["error"] == "Category name is required"


class TestCli:

    def test_system_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        first = runner.invoke(args=["system", "init"])
        second = runner.invoke(args=["system", "init"])

        assert first.exit_code == 0, first.output
        assert "PASS Created admin: admin@inventory.com" in first.output
        assert "SKIP admin@inventory.com already exists" in second.output
        assert db_session.query(User).count() == 3
        assert db_session.query(Warehouse).count() == 1

    def test_users_create_and_list(self, app, db_session):
        runner = app.test_cli_runner()

        created = runner.invoke(args=[
            "users", "create",
            "--name", "Jane",
            "--email", "jane@inventory.com",
            "--password", "Password123!",
            "--role", "staff",
        ])
        listed = runner.invoke(args=["users", "list"])

        assert created.exit_code == 0, created.output
        assert "jane@inventory.com" in listed.output

    def test_users_create_weak_password_fails(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create",
            "--name", "Jane",
            "--email", "jane@inventory.com",
            "--password", "weak",
            "--role", "staff",
        ])
        assert result.exit_code != 0
        assert "Password must be at least 8 characters long" in result.output

    def test_cleanup_sessions(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-sessions"])
        assert result.exit_code == 0
        assert "Deleted 0 sessions" in result.output
