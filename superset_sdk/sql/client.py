"""
superset_sdk.sql.client - SQL Lab and database access
======================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from superset_sdk.core.client import SupersetClient
from superset_sdk.core.diagnostics import format_database_error, format_sql_error
from superset_sdk.core.errors import (
    DatabaseError,
    InvalidRequestError,
    SqlExecutionError,
    SupersetError,
)
from superset_sdk.sql.guard import ReadOnlyGuard


EXECUTE_PATH = "/api/v1/sqllab/execute/"
DATABASE_PATH = "/api/v1/database/"

DEFAULT_QUERY_LIMIT = 1000
READ_ONLY_DATABASE_PREFIXES = ("READONLY", "READER")


@dataclass
class SqlExecuteRequest:
    """
    Parameters for a synchronous SQL Lab execution.

    Parameters
    ----------
    database_id : int
        Target database id
    sql : str
        SQL text
    schema : str, optional
        Default schema
    limit : int, optional
        Row cap (default: 1000)
    expand_data : bool
        Expand nested columns (default: True)
    """
    database_id: int
    sql: str
    schema: Optional[str] = None
    limit: Optional[int] = None
    expand_data: bool = True

    def validate(self) -> None:
        if not isinstance(self.database_id, int) or isinstance(self.database_id, bool) or self.database_id <= 0:
            raise InvalidRequestError(f"database_id must be a positive integer, got {self.database_id!r}")
        if not isinstance(self.sql, str) or not self.sql.strip():
            raise InvalidRequestError("sql must be a non-empty string")
        if self.limit is not None and self.limit <= 0:
            raise InvalidRequestError(f"limit must be positive, got {self.limit!r}")

    def to_payload(self) -> Dict[str, Any]:
        # execution mode is fixed regardless of caller input
        return {
            "database_id": self.database_id,
            "sql": self.sql,
            "schema": self.schema,
            "queryLimit": self.limit or DEFAULT_QUERY_LIMIT,
            "runAsync": False,
            "expand_data": self.expand_data,
            "select_as_cta": False,
            "ctas_method": "TABLE",
            "json": True,
        }


class SqlClient:
    """
    SQL execution and database listing on top of a :class:`SupersetClient`.

    In read-only mode, SQL is validated before any network call and the
    database list is restricted to READONLY*/READER* databases.
    """

    def __init__(self, client: SupersetClient) -> None:
        self.client = client
        self.guard = ReadOnlyGuard(client.read_only)
        self.logger = logging.getLogger("superset_sdk.sql")

    async def execute_sql(self, request: SqlExecuteRequest) -> Dict[str, Any]:
        """
        Execute SQL synchronously through SQL Lab.

        Raises
        ------
        InvalidRequestError
            Malformed request
        ReadOnlyViolation
            Write-intent SQL in read-only mode
        SqlExecutionError
            Any failure while executing, with a full diagnostic report
        """
        request.validate()
        self.guard.validate(request.sql)

        try:
            data = await self.client.protected_request("POST", EXECUTE_PATH, json=request.to_payload())
        except SupersetError as e:
            self.logger.error("SQL execution failed on database %s: %s", request.database_id, e)
            raise SqlExecutionError(format_sql_error(e, request.sql, request.database_id)) from e

        if not isinstance(data, dict):
            raise SqlExecutionError(
                format_sql_error(
                    f"Unexpected response payload: {data!r}"[:500], request.sql, request.database_id
                )
            )
        return data

    async def get_databases(self) -> List[Dict[str, Any]]:
        """List databases, filtered to reader databases in read-only mode."""
        try:
            data = await self.client.request("GET", DATABASE_PATH)
        except SupersetError as e:
            raise DatabaseError(format_database_error(e, "List")) from e

        databases = data.get("result") if isinstance(data, dict) else None
        if not isinstance(databases, list):
            raise DatabaseError(
                format_database_error(f"Unexpected response payload: {data!r}"[:500], "List")
            )

        if self.client.read_only:
            databases = [
                db for db in databases
                if str(db.get("database_name") or "").startswith(READ_ONLY_DATABASE_PREFIXES)
            ]
        return databases
