"""
superset_sdk.core.errors - Exception hierarchy
===============================================

Every error raised by the SDK derives from :class:`SupersetError`, so
callers can catch the whole family with one ``except`` clause.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class SupersetError(RuntimeError):
    """Base class for all SDK errors."""


class ConfigurationError(SupersetError):
    """Missing or conflicting credential material / connection settings."""


class AuthenticationError(SupersetError):
    """The login endpoint rejected the credentials."""


class CsrfTokenError(SupersetError):
    """The anti-forgery token could not be fetched."""


class InvalidRequestError(SupersetError):
    """A request body failed client-side validation."""


class ReadOnlyViolation(SupersetError):
    """
    SQL text with write intent was submitted while read-only mode is on.

    Attributes
    ----------
    keyword : str
        The write keyword that triggered the violation
    """

    def __init__(self, keyword: str, message: str) -> None:
        super().__init__(message)
        self.keyword = keyword


class TransportError(SupersetError):
    """
    No HTTP response was received (DNS failure, refused connection, timeout).

    Attributes
    ----------
    code : str
        Short transport error code, e.g. ``ConnectTimeout``
    message : str
        Underlying error text
    url : str
        The URL that was called
    """

    def __init__(self, code: str, message: str, url: str = "") -> None:
        super().__init__(f"Network error ({code}): {message}")
        self.code = code
        self.message = message
        self.url = url


class SupersetUpstreamError(SupersetError):
    """
    Exception raised when the Superset API returns an error status.

    Attributes
    ----------
    status : int
        HTTP status code
    reason : str
        HTTP reason phrase
    url : str
        The URL that was called
    content_type : str
        Declared response content type
    data : Any
        Decoded body (dict/list for JSON, str for text, bytes for broken JSON)
    headers : dict
        Response headers
    """

    def __init__(
        self,
        status: int,
        reason: str,
        url: str,
        *,
        content_type: str = "",
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        snippet = data if isinstance(data, str) else repr(data)
        super().__init__(f"Superset upstream error {status} for {url}: {snippet[:1200]}")
        self.status = status
        self.reason = reason or ""
        self.url = url
        self.content_type = content_type or ""
        self.data = data
        self.headers = headers or {}


class SupersetAuthorizationError(SupersetUpstreamError):
    """A 401 returned during an otherwise valid session."""


class SqlExecutionError(SupersetError):
    """SQL Lab execution failed; the message is a full diagnostic report."""


class DatabaseError(SupersetError):
    """A database listing/lookup call failed."""
