"""
Tests for superset_sdk.sql module.
"""

import pytest

from superset_sdk.core.errors import (
    DatabaseError,
    InvalidRequestError,
    ReadOnlyViolation,
    SqlExecutionError,
)
from superset_sdk.sql.client import DATABASE_PATH, EXECUTE_PATH, SqlClient, SqlExecuteRequest
from superset_sdk.sql.guard import WRITE_OPERATIONS, ReadOnlyGuard, validate_read_only


class TestReadOnlyGuard:
    """Tests for write-intent detection."""

    def test_select_passes(self):
        validate_read_only("SELECT * FROM t", True)

    def test_prefix_insert_is_rejected(self):
        with pytest.raises(ReadOnlyViolation) as exc_info:
            validate_read_only("  insert into t values (1)", True)
        assert exc_info.value.keyword == "INSERT"
        assert "INSERT operations are not allowed" in str(exc_info.value)
        assert "Only SELECT queries are permitted" in str(exc_info.value)

    def test_select_into_is_rejected(self):
        with pytest.raises(ReadOnlyViolation) as exc_info:
            validate_read_only("SELECT x INTO y FROM t", True)
        assert exc_info.value.keyword == "INTO"

    def test_embedded_keyword_is_rejected(self):
        with pytest.raises(ReadOnlyViolation) as exc_info:
            validate_read_only("WITH a AS (SELECT 1) SELECT * FROM a; drop table users", True)
        assert exc_info.value.keyword == "DROP"

    @pytest.mark.parametrize("op", WRITE_OPERATIONS)
    def test_every_write_prefix_is_rejected(self, op):
        with pytest.raises(ReadOnlyViolation, match=op):
            validate_read_only(f"{op.lower()} something", True)

    def test_whole_words_only(self):
        validate_read_only("SELECT last_update, created_at FROM updates_log", True)

    @pytest.mark.parametrize("sql", ["DROP TABLE t", "SELECT 1", "", "insert into t values (1)"])
    def test_disabled_always_passes(self, sql):
        validate_read_only(sql, False)

    def test_guard_object(self):
        ReadOnlyGuard(False).validate("DELETE FROM t")
        with pytest.raises(ReadOnlyViolation):
            ReadOnlyGuard(True).validate("DELETE FROM t")


class TestSqlExecuteRequest:
    """Tests for request validation and payload building."""

    def test_payload_forces_execution_mode(self):
        payload = SqlExecuteRequest(database_id=2, sql="SELECT 1", schema="public").to_payload()
        assert payload == {
            "database_id": 2,
            "sql": "SELECT 1",
            "schema": "public",
            "queryLimit": 1000,
            "runAsync": False,
            "expand_data": True,
            "select_as_cta": False,
            "ctas_method": "TABLE",
            "json": True,
        }

    def test_explicit_limit(self):
        assert SqlExecuteRequest(1, "SELECT 1", limit=10).to_payload()["queryLimit"] == 10

    @pytest.mark.parametrize("kwargs", [
        {"database_id": 0, "sql": "SELECT 1"},
        {"database_id": "1", "sql": "SELECT 1"},
        {"database_id": 1, "sql": "   "},
        {"database_id": 1, "sql": "SELECT 1", "limit": 0},
    ])
    def test_malformed_requests(self, kwargs):
        with pytest.raises(InvalidRequestError):
            SqlExecuteRequest(**kwargs).validate()


class TestSqlClient:
    """Tests for SqlClient against the fake server."""

    @pytest.mark.asyncio
    async def test_execute_sql_is_protected(self, password_client, fake, make_response):
        fake.routes[("POST", EXECUTE_PATH)] = make_response(
            200, {"status": "success", "data": [{"one": 1}], "columns": [{"name": "one"}]}
        )
        sql = SqlClient(password_client)

        result = await sql.execute_sql(SqlExecuteRequest(1, "SELECT 1 AS one", limit=5))

        assert result["data"] == [{"one": 1}]
        call = fake.calls_to(EXECUTE_PATH)[0]
        assert call["method"] == "POST"
        assert call["headers"]["X-CSRFToken"] == "csrf-1"
        assert call["json"]["queryLimit"] == 5
        assert call["json"]["runAsync"] is False

    @pytest.mark.asyncio
    async def test_read_only_violation_makes_no_call(self, read_only_client, fake):
        sql = SqlClient(read_only_client)

        with pytest.raises(ReadOnlyViolation):
            await sql.execute_sql(SqlExecuteRequest(1, "UPDATE t SET a = 1"))
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_invalid_request_makes_no_call(self, password_client, fake):
        with pytest.raises(InvalidRequestError):
            await SqlClient(password_client).execute_sql(SqlExecuteRequest(-1, "SELECT 1"))
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_execute_failure_is_reported(self, password_client, fake, make_response):
        fake.routes[("POST", EXECUTE_PATH)] = make_response(
            400, {"message": "relation \"nope\" does not exist", "error_type": "GENERIC_DB_ENGINE_ERROR"}
        )

        with pytest.raises(SqlExecutionError) as exc_info:
            await SqlClient(password_client).execute_sql(SqlExecuteRequest(9, "SELECT * FROM nope"))

        report = str(exc_info.value)
        assert "SQL Query:\nSELECT * FROM nope" in report
        assert "Database ID: 9" in report
        assert "HTTP Status: 400" in report
        assert "does not exist" in report

    @pytest.mark.asyncio
    async def test_get_databases(self, password_client, fake, make_response):
        rows = [{"id": 1, "database_name": "examples"}, {"id": 2, "database_name": "READER_pg"}]
        fake.routes[("GET", DATABASE_PATH)] = make_response(200, {"result": rows})

        assert await SqlClient(password_client).get_databases() == rows

    @pytest.mark.asyncio
    async def test_get_databases_read_only_filter(self, read_only_client, fake, make_response):
        rows = [
            {"id": 1, "database_name": "examples"},
            {"id": 2, "database_name": "READER_pg"},
            {"id": 3, "database_name": "READONLY_mysql"},
            {"id": 4, "database_name": None},
        ]
        fake.routes[("GET", DATABASE_PATH)] = make_response(200, {"result": rows})

        result = await SqlClient(read_only_client).get_databases()
        assert [db["id"] for db in result] == [2, 3]

    @pytest.mark.asyncio
    async def test_get_databases_failure(self, password_client, fake, make_response):
        fake.routes[("GET", DATABASE_PATH)] = make_response(500, {"message": "db down"})

        with pytest.raises(DatabaseError) as exc_info:
            await SqlClient(password_client).get_databases()
        assert "Database List Error" in str(exc_info.value)
        assert "Message: db down" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_get_databases_bad_payload(self, password_client, fake, make_response):
        fake.routes[("GET", DATABASE_PATH)] = make_response(200, text="<html/>", content_type="text/html")

        with pytest.raises(DatabaseError, match="Unexpected response payload"):
            await SqlClient(password_client).get_databases()
