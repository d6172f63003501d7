"""
superset_sdk.api.models - Pydantic models for API requests/responses
=====================================================================
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from superset_sdk.sql.client import DEFAULT_QUERY_LIMIT, SqlExecuteRequest


EXAMPLE_DATABASE_ID = 1
EXAMPLE_SQL = "SELECT 1 AS one"


class SqlExecuteBody(BaseModel):
    """Request model for SQL Lab execution."""

    database_id: int = Field(
        description="Target database id",
        gt=0,
        json_schema_extra={"example": EXAMPLE_DATABASE_ID}
    )
    sql: str = Field(
        description="SQL text to execute",
        min_length=1,
        json_schema_extra={"example": EXAMPLE_SQL}
    )
    schema_name: Optional[str] = Field(
        default=None,
        alias="schema",
        description="Default schema for unqualified table names",
        json_schema_extra={"example": "public"}
    )
    limit: Optional[int] = Field(
        default=DEFAULT_QUERY_LIMIT,
        description="Row cap",
        gt=0,
        json_schema_extra={"example": 100}
    )
    expand_data: bool = Field(
        default=True,
        description="Expand nested columns"
    )

    def to_request(self) -> SqlExecuteRequest:
        return SqlExecuteRequest(
            database_id=self.database_id,
            sql=self.sql,
            schema=self.schema_name,
            limit=self.limit,
            expand_data=self.expand_data,
        )


class SqlExecuteResponse(BaseModel):
    """Response model for SQL Lab execution."""

    status: Optional[str] = None
    query_id: Optional[int] = None
    columns: List[Dict[str, Any]] = Field(default_factory=list)
    data: List[Dict[str, Any]] = Field(default_factory=list)
    row_count: int = 0


class DatabaseInfo(BaseModel):
    """A database visible to the configured account."""

    id: int
    database_name: str
    backend: Optional[str] = None


class DatabaseListResponse(BaseModel):
    """Response model for the database list."""

    read_only: bool
    count: int
    items: List[DatabaseInfo]
