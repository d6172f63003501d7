"""
superset_sdk.sql.guard - Read-only SQL validation
==================================================
"""

from __future__ import annotations

import re
from typing import Tuple

from superset_sdk.core.errors import ReadOnlyViolation


WRITE_OPERATIONS: Tuple[str, ...] = (
    "INSERT", "UPDATE", "DELETE", "DROP", "CREATE", "ALTER",
    "TRUNCATE", "REPLACE", "MERGE", "GRANT", "REVOKE",
)

# Only meaningful mid-statement: SELECT ... INTO new_table
EMBEDDED_WRITE_OPERATIONS: Tuple[str, ...] = WRITE_OPERATIONS + ("INTO",)

_EMBEDDED_PATTERNS = [
    (op, re.compile(rf"\b{op}\b", re.IGNORECASE)) for op in EMBEDDED_WRITE_OPERATIONS
]


def _violation(keyword: str) -> ReadOnlyViolation:
    return ReadOnlyViolation(
        keyword,
        f"Read-only mode: {keyword} operations are not allowed.\n"
        "Only SELECT queries are permitted in read-only mode.",
    )


def validate_read_only(sql: str, read_only: bool) -> None:
    """
    Reject write-intent SQL when read-only mode is enabled.

    The statement prefix is checked first, then every write keyword is
    searched for as a whole word anywhere in the text, which catches
    ``SELECT ... INTO`` and stacked statements.

    Raises
    ------
    ReadOnlyViolation
        Naming the offending keyword
    """
    if not read_only:
        return

    normalized = (sql or "").strip().upper()
    for op in WRITE_OPERATIONS:
        if normalized.startswith(op):
            raise _violation(op)

    for op, pattern in _EMBEDDED_PATTERNS:
        if pattern.search(normalized):
            raise _violation(op)


class ReadOnlyGuard:
    """Stateless validator bound to a read-only flag."""

    def __init__(self, read_only: bool) -> None:
        self.read_only = read_only

    def validate(self, sql: str) -> None:
        validate_read_only(sql, self.read_only)
