"""
Brandscope-specific runtime exceptions.
"""

from __future__ import annotations

import typing as t


class BrandscopeError(RuntimeError):
    """
    Base error for every failure surfaced by the client.

    Parameters
    ----------
    message : str
        User-facing error message.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ApiError(BrandscopeError):
    """
    Raised when the backend answers with a non-2xx status code.

    Parameters
    ----------
    message : str
        User-facing error message.
    status_code : int
        HTTP status code returned by the backend.
    url : str
        Requested URL.
    body : typing.Any
        Decoded error body (JSON when possible, text otherwise).
    """

    def __init__(self, message: str, *, status_code: int, url: str, body: t.Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url
        self.body = body


class NotFoundError(ApiError):
    """Raised on 404 responses."""


class BatchStartError(BrandscopeError):
    """Raised when the backend refuses to start a batch execution."""


class BatchFailedError(BrandscopeError):
    """
    Raised when a polled batch execution reaches the ``failed`` status.

    Parameters
    ----------
    message : str
        User-facing error message.
    batch_execution_id : str
        Identifier of the failed execution.
    """

    def __init__(self, message: str, *, batch_execution_id: str) -> None:
        super().__init__(message)
        self.batch_execution_id = batch_execution_id


class BatchTimeoutError(BrandscopeError):
    """
    Raised when a batch execution is still running after the poll budget.

    Parameters
    ----------
    batch_execution_id : str
        Identifier of the execution being polled.
    attempts : int
        Number of poll attempts performed.
    """

    def __init__(self, *, batch_execution_id: str, attempts: int) -> None:
        super().__init__(
            f"Batch execution {batch_execution_id} did not complete after {attempts} poll attempts"
        )
        self.batch_execution_id = batch_execution_id
        self.attempts = attempts


class MissingResultError(BrandscopeError):
    """
    Raised when required pipeline results are absent from a batch execution.

    Parameters
    ----------
    missing : list[str]
        Canonical names of the missing pipelines.
    """

    def __init__(self, *, missing: list[str]) -> None:
        super().__init__(
            "Missing batch results. Not all pipeline results are available: " + ", ".join(missing)
        )
        self.missing = missing


class ResultParseError(BrandscopeError):
    """Raised when a result payload is not a JSON object matching its pipeline models."""


def error_message_from_body(*, body: t.Any, default: str) -> str:
    """
    Extract a user-facing message from a decoded error body.

    Parameters
    ----------
    body : typing.Any
        Decoded JSON body or raw text.
    default : str
        Fallback message.

    Returns
    -------
    str
        ``error`` or ``message`` field when present, the raw text for string
        bodies, ``default`` otherwise.
    """
    if isinstance(body, dict):
        for key in ("error", "message"):
            value = body.get(key)
            if isinstance(value, list):
                value = ", ".join(str(item) for item in value)
            if value:
                return str(value)
        return default
    if isinstance(body, str) and body.strip():
        return body.strip()
    return default
