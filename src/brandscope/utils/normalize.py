"""Helpers normalizing backend fields stored either as JSON text or decoded values."""

import json
import typing as t

from brandscope.exceptions import ResultParseError


def parse_json_field(value: t.Any, *, field: str | None = None) -> t.Any:
    """
    Return the decoded form of a field that may arrive as JSON text.

    Parameters
    ----------
    value : typing.Any
        Raw field value: a JSON string, an already-decoded dict/list, or ``None``.
    field : str | None
        Field name used in error messages.

    Returns
    -------
    typing.Any
        Decoded value. Dicts, lists and ``None`` are returned unchanged.

    Raises
    ------
    ResultParseError
        If ``value`` is a string holding invalid JSON, or an unsupported type.
    """
    if value is None or isinstance(value, (dict, list)):
        return value
    label = field or "value"
    if isinstance(value, (str, bytes, bytearray)):
        try:
            return json.loads(value)
        except json.JSONDecodeError as error:
            raise ResultParseError(f"Could not decode {label} as JSON: {error.msg}") from error
    raise ResultParseError(f"Unsupported {label} type: {type(value).__name__}")


def ensure_list(value: t.Any) -> list:
    """
    Coerce a list-or-JSON-string field into a list.

    Lone strings that are not JSON are wrapped as a single item.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return []
        try:
            decoded = json.loads(stripped)
        except json.JSONDecodeError:
            return [value]
        if isinstance(decoded, list):
            return decoded
        if decoded is None:
            return []
        return [decoded]
    return [value]
