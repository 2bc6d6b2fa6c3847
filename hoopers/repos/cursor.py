"""Opaque cursor encoding for keyset pagination.

A cursor is base64 over compact UTF-8 JSON holding the last-seen row's `id`
plus the value of whichever sort field was active, e.g.
`{"id":"p-123","points":4200}`. There is no fixed key set across sort
fields; a missing sort-field key decodes as null.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING, Any

from hoopers.core.errors import CursorDecodeError

if TYPE_CHECKING:
    from hoopers.repos.sort_spec import SortField

ID_KEY = "id"

# Signed 64-bit range of an integer column
INTEGER_MIN = -(2**63)
INTEGER_MAX = 2**63 - 1


class ValueKind(str, Enum):
    """Wire representation of a sort field value."""

    INTEGER = "integer"
    STRING = "string"
    DATETIME = "datetime"
    DECIMAL = "decimal"


@dataclass(frozen=True)
class CursorState:
    """Position of the last row of a page: its id and primary sort value."""

    id: str
    field: str | None = None
    value: Any = None


def _value_to_wire(kind: ValueKind | None, value: Any) -> Any:
    if value is None:
        return None
    if kind is ValueKind.DATETIME or isinstance(value, datetime):
        return value.isoformat()
    if kind is ValueKind.DECIMAL or isinstance(value, Decimal):
        return str(value)
    return value


def _require_utf8(text: str, what: str) -> str:
    # JSON \ud800 escapes decode to lone surrogates, which no driver can bind
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise CursorDecodeError(f"Invalid cursor: {what} is not valid UTF-8") from e
    return text


def _value_from_wire(kind: ValueKind, raw: Any) -> Any:
    """Restore a JSON value to the field's Python type.

    Values the store could not compare against (integers wider than 64 bits,
    non-finite decimals, strings that are not valid UTF-8) are rejected too.

    Raises:
        CursorDecodeError: If the value does not fit the field kind
    """
    if raw is None:
        return None

    if kind is ValueKind.INTEGER:
        # bool is an int subclass but never a valid sort value
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise CursorDecodeError("Invalid cursor: expected integer sort value")
        if not INTEGER_MIN <= raw <= INTEGER_MAX:
            raise CursorDecodeError("Invalid cursor: integer sort value out of range")
        return raw

    if kind is ValueKind.STRING:
        if not isinstance(raw, str):
            raise CursorDecodeError("Invalid cursor: expected string sort value")
        return _require_utf8(raw, "sort value")

    if kind is ValueKind.DATETIME:
        if not isinstance(raw, str):
            raise CursorDecodeError("Invalid cursor: expected timestamp sort value")
        try:
            return datetime.fromisoformat(raw)
        except ValueError as e:
            raise CursorDecodeError("Invalid cursor: malformed timestamp") from e

    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        raise CursorDecodeError("Invalid cursor: expected decimal sort value")
    try:
        value = Decimal(str(raw))
    except InvalidOperation as e:
        raise CursorDecodeError("Invalid cursor: malformed decimal") from e
    if not value.is_finite():
        raise CursorDecodeError("Invalid cursor: decimal sort value must be finite")
    return value


def encode_cursor(state: CursorState, kind: ValueKind | None = None) -> str:
    """Encode a cursor state into an opaque token.

    Args:
        state: Position to encode
        kind: Value kind of the active sort field (inferred from the value if omitted)

    Returns:
        Base64-encoded cursor string
    """
    cursor_data: dict[str, Any] = {ID_KEY: str(state.id)}
    if state.field is not None:
        cursor_data[state.field] = _value_to_wire(kind, state.value)
    json_str = json.dumps(cursor_data, separators=(",", ":"), ensure_ascii=False)
    return base64.b64encode(json_str.encode("utf-8")).decode("ascii")


def _b64decode(token: str) -> bytes:
    """Decode standard or URL-safe base64, tolerating stripped padding."""
    normalized = token.strip().replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    return base64.b64decode(normalized.encode("ascii"), validate=True)


def decode_cursor(token: str, field: "SortField | None" = None) -> CursorState:
    """Decode a cursor token.

    Args:
        token: Base64-encoded cursor string
        field: Active sort field; its value kind is enforced. When omitted the
            single non-id key of the payload is taken as the field.

    Returns:
        The decoded CursorState

    Raises:
        CursorDecodeError: If the token is malformed, truncated or of the wrong shape
    """
    try:
        payload = json.loads(_b64decode(token).decode("utf-8"))
    except (UnicodeError, binascii.Error, ValueError) as e:
        raise CursorDecodeError(f"Invalid cursor: {e}") from e

    if not isinstance(payload, dict):
        raise CursorDecodeError("Invalid cursor: payload is not an object")

    cursor_id = payload.get(ID_KEY)
    if not isinstance(cursor_id, str) or not cursor_id:
        raise CursorDecodeError("Invalid cursor: missing id")
    _require_utf8(cursor_id, "id")

    if field is not None:
        return CursorState(
            id=cursor_id,
            field=field.name,
            value=_value_from_wire(field.kind, payload.get(field.name)),
        )

    others = [key for key in payload if key != ID_KEY]
    if len(others) != 1:
        return CursorState(id=cursor_id)
    return CursorState(id=cursor_id, field=others[0], value=payload[others[0]])
