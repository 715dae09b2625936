"""Record-array encoding used to carry result sets across the process boundary.

A result set travels as a JSON array of objects, one object per row, with columns in
projection order. Every value is either `null` or a string: the driver stringifies all
scalars before they leave the child process, so numbers, dates and booleans arrive as
text. The mapping is lossy by nature and callers must not expect typed values back.

Decoding is deliberately asymmetric. Result sets are decoded leniently on the read path
(garbage decodes to no rows), while write outcomes are always decoded strictly, since a
write must never be reported as successful on the strength of unreadable output.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

from informix_gateway.errors import DecodeError

logger = logging.getLogger(__name__)

CellValue = str | None
Row = dict[str, CellValue]
ResultSet = list[Row]


@dataclass(frozen=True)
class WriteOutcome:
    rows_affected: int
    success: bool


def escape_text(value: str) -> str:
    """Escape a value for a double-quoted string in the record-array encoding.

    Backslashes are escaped before quotes so the backslashes added for quotes are not doubled.
    """
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return "".join(_escape_control(char) for char in escaped)


def encode_result_set(rows: ResultSet) -> str:
    records = []
    for row in rows:
        entries = ",".join(f"{_quote(name)}:{_encode_value(value)}" for name, value in row.items())
        records.append("{" + entries + "}")
    return "[" + ",".join(records) + "]"


def decode_result_set(text: str, *, strict: bool = False) -> ResultSet:
    """Decode the record-array encoding back into rows.

    Args:
        text: The captured standard output of the child process.
        strict: When False, malformed or empty text decodes to an empty result set instead of raising.

    Returns:
        The decoded rows, in the order they were emitted.

    Raises:
        DecodeError: Only when `strict` is True and the text can't be parsed.
    """
    try:
        return _parse_result_set(text)
    except DecodeError as e:
        if strict:
            raise
        if text.strip():
            logger.warning("Discarding unreadable query output: %s", e)
        return []


def encode_write_outcome(outcome: WriteOutcome) -> str:
    return json.dumps({"rowsAffected": outcome.rows_affected, "success": outcome.success}, separators=(",", ":"))


def decode_write_outcome(text: str) -> WriteOutcome:
    data = _loads(text)
    if not isinstance(data, dict):
        raise DecodeError(f"Expected a write outcome object, got {type(data).__name__}")

    rows_affected = data.get("rowsAffected")
    success = data.get("success")
    if isinstance(rows_affected, bool) or not isinstance(rows_affected, int):
        raise DecodeError(f"Write outcome has no valid rowsAffected count: {text.strip()!r}")
    if not isinstance(success, bool):
        raise DecodeError(f"Write outcome has no valid success flag: {text.strip()!r}")

    return WriteOutcome(rows_affected=rows_affected, success=success)


def _parse_result_set(text: str) -> ResultSet:
    data = _loads(text)
    if not isinstance(data, list):
        raise DecodeError(f"Expected an array of records, got {type(data).__name__}")

    rows: ResultSet = []
    for record in data:
        if not isinstance(record, dict):
            raise DecodeError(f"Expected a record object, got {type(record).__name__}")
        for name, value in record.items():
            if value is not None and not isinstance(value, str):
                raise DecodeError(f"Column {name} holds a non-text value: {value!r}")
        rows.append(record)
    return rows


def _loads(text: str) -> Any:
    stripped = text.strip()
    if not stripped:
        raise DecodeError("Output is empty")
    try:
        return json.loads(stripped)
    except ValueError as e:
        raise DecodeError(f"Output is not a valid record encoding: {e}") from e


def _quote(value: str) -> str:
    return f'"{escape_text(value)}"'


def _encode_value(value: CellValue) -> str:
    return "null" if value is None else _quote(value)


def _escape_control(char: str) -> str:
    if char == "\n":
        return "\\n"
    if char == "\r":
        return "\\r"
    if char == "\t":
        return "\\t"
    if ord(char) < 0x20:
        return f"\\u{ord(char):04x}"
    return char
