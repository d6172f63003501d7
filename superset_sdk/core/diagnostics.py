"""
superset_sdk.core.diagnostics - Error classification and formatting
====================================================================

Failures are first classified into one fixed shape, then formatted:

- JsonError: structured API error payload
- HtmlError: HTML page (usually auth proxy or infrastructure failure)
- TextError: any other body
- NetworkError: no response was received
- UnknownError: anything else that was raised

The formatters never raise; they always return a printable string.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Union

import requests

from superset_sdk.core.errors import SupersetUpstreamError, TransportError


TEXT_LIMIT = 500

_TITLE_RE = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)


@dataclass(frozen=True)
class JsonError:
    status: int
    reason: str
    payload: Any


@dataclass(frozen=True)
class HtmlError:
    status: int
    reason: str
    html: str


@dataclass(frozen=True)
class TextError:
    status: int
    reason: str
    text: str


@dataclass(frozen=True)
class NetworkError:
    code: str
    message: str


@dataclass(frozen=True)
class UnknownError:
    message: str


ErrorShape = Union[JsonError, HtmlError, TextError, NetworkError, UnknownError]


def _to_text(data: Any) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return str(data)


def _dumps(obj: Any) -> str:
    try:
        return json.dumps(obj, indent=2, default=str)
    except (TypeError, ValueError):
        return str(obj)


def classify(error: Any) -> ErrorShape:
    """Reduce an arbitrary failure to one of the error shapes."""
    if isinstance(error, SupersetUpstreamError):
        ctype = error.content_type.lower()
        if "text/html" in ctype:
            return HtmlError(error.status, error.reason, _to_text(error.data))
        if isinstance(error.data, (dict, list)):
            return JsonError(error.status, error.reason, error.data)
        return TextError(error.status, error.reason, _to_text(error.data))
    if isinstance(error, TransportError):
        return NetworkError(error.code, error.message)
    if isinstance(error, requests.RequestException):
        return NetworkError(type(error).__name__, str(error))
    if isinstance(error, BaseException):
        return UnknownError(str(error) or type(error).__name__)
    return UnknownError(str(error))


def _status_line(status: int, reason: str) -> str:
    return f"{status} {reason}".rstrip()


def _entry_message(entry: Any) -> str:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict) and entry.get("message"):
        return str(entry["message"])
    return json.dumps(entry, default=str)


def _format_shape(shape: ErrorShape) -> str:
    if isinstance(shape, NetworkError):
        return f"Network error ({shape.code}): {shape.message}"

    if isinstance(shape, UnknownError):
        return shape.message

    prefix = _status_line(shape.status, shape.reason)

    if isinstance(shape, HtmlError):
        match = _TITLE_RE.search(shape.html)
        title = match.group(1).strip() if match else ""
        if title and "superset" not in title.lower():
            return f"{prefix}: {title}"
        return f"{prefix}: Server returned HTML response (likely authentication or server error)"

    if isinstance(shape, JsonError):
        payload = shape.payload
        if isinstance(payload, dict) and payload.get("message"):
            message = payload["message"]
            if isinstance(message, (dict, list)):
                return f"{prefix}: {_dumps(message)}"
            return f"{prefix}: {message}"
        if isinstance(payload, dict) and isinstance(payload.get("errors"), list):
            joined = ", ".join(_entry_message(e) for e in payload["errors"])
            return f"{prefix}: {joined}"
        return f"{prefix}: {_dumps(payload)}"

    # TextError
    if not shape.text:
        return prefix
    text = shape.text
    if len(text) > TEXT_LIMIT:
        text = text[:TEXT_LIMIT] + "...[truncated]"
    return f"{prefix}: {text}"


def get_error_message(error: Any) -> str:
    """
    Produce a one-line diagnostic for any failure.

    Examples
    --------
    >>> get_error_message(TransportError("ConnectTimeout", "timed out"))
    'Network error (ConnectTimeout): timed out'
    """
    try:
        return _format_shape(classify(error))
    except Exception:
        return repr(error)


def _format_for_display(obj: Any) -> str:
    if obj is None or isinstance(obj, str):
        return str(obj)
    if isinstance(obj, list):
        return ", ".join(_format_for_display(item) for item in obj)
    if isinstance(obj, dict):
        if obj.get("message"):
            return str(obj["message"])
        parts = []
        for key, value in obj.items():
            if isinstance(value, list):
                parts.append(f"{key}: {', '.join(str(v) for v in value)}")
            else:
                parts.append(f"{key}: {_format_for_display(value)}")
        return "; ".join(parts)
    return str(obj)


def _json_payload(error: Any) -> Optional[dict]:
    if isinstance(error, SupersetUpstreamError) and isinstance(error.data, dict):
        return error.data
    return None


def _numbered(entries: List[Any], indent: str = "  ") -> List[str]:
    return [f"{indent}{i}. {_entry_message(e)}" for i, e in enumerate(entries, 1)]


# ---------------- operation formatters ----------------

def format_sql_error(error: Any, sql: Optional[str] = None, database_id: Optional[int] = None) -> str:
    """Multi-line report for a failed SQL Lab execution."""
    lines = ["SQL Execution Error"]
    if sql:
        lines += ["SQL Query:", sql, ""]
    if database_id:
        lines += [f"Database ID: {database_id}", ""]

    if not isinstance(error, SupersetUpstreamError):
        lines.append(f"Basic Error: {get_error_message(error)}")
        return "\n".join(lines) + "\n"

    lines.append(f"HTTP Status: {_status_line(error.status, error.reason)}")
    data = _json_payload(error)
    if data is None:
        lines.append(f"Response Data: {_to_text(error.data)}")
        return "\n".join(lines) + "\n"

    if data.get("message"):
        lines.append(f"Error Message: {_format_for_display(data['message'])}")
    if data.get("error_type"):
        lines.append(f"Error Type: {data['error_type']}")
    if data.get("level"):
        lines.append(f"Error Level: {data['level']}")

    extra = data.get("extra")
    issue_codes = extra.get("issue_codes") if isinstance(extra, dict) else None
    if isinstance(issue_codes, list):
        lines += ["", "Issue Codes:"]
        for i, issue in enumerate(issue_codes, 1):
            if isinstance(issue, dict):
                lines.append(f"  {i}. Code {issue.get('code')}: {issue.get('message')}")
            else:
                lines.append(f"  {i}. {issue}")

    errors = data.get("errors")
    if isinstance(errors, list):
        lines += ["", "Detailed Errors:"]
        for i, err in enumerate(errors, 1):
            lines.append(f"  {i}. {_entry_message(err)}")
            if isinstance(err, dict):
                if err.get("error_type"):
                    lines.append(f"     Type: {err['error_type']}")
                if err.get("level"):
                    lines.append(f"     Level: {err['level']}")

    if data.get("description"):
        lines += ["", f"Description: {data['description']}"]
    return "\n".join(lines) + "\n"


def format_dataset_error(error: Any, operation: str, dataset_id: Optional[int] = None) -> str:
    """Report for a failed dataset create/update/delete."""
    data = _json_payload(error)
    if data is None:
        return get_error_message(error)

    lines = [f"Dataset {operation} Error", ""]
    if dataset_id:
        lines.append(f"Dataset ID: {dataset_id}")
    lines += [f"Status: {_status_line(error.status, error.reason)}", ""]

    if error.status == 400:
        lines.append("Validation Errors:")
        for field, messages in data.items():
            lines.append(f"- {field}: {_format_for_display(messages)}")
        return "\n".join(lines) + "\n"

    if data.get("message"):
        lines.append(f"Message: {_format_for_display(data['message'])}")
    if isinstance(data.get("errors"), list):
        lines.append("Details:")
        lines += _numbered(data["errors"])
    return "\n".join(lines) + "\n"


_AUTH_HINTS = {
    401: ("Invalid username or password",
          "Please check your credentials in the client configuration"),
    403: ("Access forbidden",
          "Your account may not have sufficient permissions"),
    500: ("Server error during authentication",
          "Please check if Superset is running correctly"),
}

_DATABASE_HINTS = {
    404: ("Database not found", "Please check if the database ID is correct"),
    422: ("Request validation failed", None),
    500: ("Database connection or server error",
          "Please check database connectivity and server status"),
}


def format_auth_error(error: Any) -> str:
    """Report for a rejected login, with a remediation hint per status."""
    if not isinstance(error, SupersetUpstreamError):
        return get_error_message(error)

    lines = ["Authentication Error", "", f"Status: {_status_line(error.status, error.reason)}", ""]
    hint = _AUTH_HINTS.get(error.status)
    if hint:
        lines += [f"Reason: {hint[0]}", f"Solution: {hint[1]}"]

    data = _json_payload(error)
    if data and data.get("message"):
        lines += ["", f"Server Message: {_format_for_display(data['message'])}"]
    return "\n".join(lines) + "\n"


def format_database_error(error: Any, operation: str) -> str:
    """Report for a failed database list/lookup."""
    if not isinstance(error, SupersetUpstreamError):
        return get_error_message(error)

    lines = [f"Database {operation} Error", "", f"Status: {_status_line(error.status, error.reason)}", ""]
    hint = _DATABASE_HINTS.get(error.status)
    if hint:
        lines.append(f"Reason: {hint[0]}")
        if hint[1]:
            lines.append(f"Solution: {hint[1]}")

    data = _json_payload(error)
    if data is not None:
        if data.get("message"):
            lines += ["", f"Message: {_format_for_display(data['message'])}"]
        if isinstance(data.get("errors"), list):
            lines += ["", "Details:"]
            lines += _numbered(data["errors"])
        if not data.get("message") and not data.get("errors"):
            lines += ["", "Full Response:", _dumps(data)]
    return "\n".join(lines) + "\n"
