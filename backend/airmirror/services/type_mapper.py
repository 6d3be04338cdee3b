"""
Airtable field type mapping and value coercion.

Pure functions only: no I/O, so the whole module is unit-testable and the
same field name always resolves to the same column.
"""

import json
import math
import re
from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, Numeric, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.types import TypeEngine


class ColumnType(StrEnum):
    """Destination column types; values are the Postgres DDL spelling."""

    TEXT = "text"
    NUMERIC = "numeric"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp with time zone"
    TEXT_ARRAY = "text[]"


TYPE_MAP: dict[str, ColumnType] = {
    "singleLineText": ColumnType.TEXT,
    "multilineText": ColumnType.TEXT,
    "richText": ColumnType.TEXT,
    "email": ColumnType.TEXT,
    "url": ColumnType.TEXT,
    "phoneNumber": ColumnType.TEXT,
    "number": ColumnType.NUMERIC,
    "percent": ColumnType.NUMERIC,
    "currency": ColumnType.NUMERIC,
    "duration": ColumnType.NUMERIC,
    "singleSelect": ColumnType.TEXT,
    "multipleSelects": ColumnType.TEXT_ARRAY,
    "date": ColumnType.TIMESTAMP,
    "dateTime": ColumnType.TIMESTAMP,
    "createdTime": ColumnType.TIMESTAMP,
    "lastModifiedTime": ColumnType.TIMESTAMP,
    "checkbox": ColumnType.BOOLEAN,
    "multipleRecordLinks": ColumnType.TEXT_ARRAY,
    "singleCollaborator": ColumnType.TEXT,
    "multipleCollaborators": ColumnType.TEXT_ARRAY,
    "multipleAttachments": ColumnType.TEXT_ARRAY,
    "attachment": ColumnType.TEXT_ARRAY,
    "formula": ColumnType.TEXT,
    "rollup": ColumnType.TEXT,
    "lookup": ColumnType.TEXT,
    "count": ColumnType.INTEGER,
    "rating": ColumnType.INTEGER,
    "autoNumber": ColumnType.INTEGER,
    "button": ColumnType.TEXT,
}

ATTACHMENT_TYPES = frozenset({"attachment", "multipleAttachments"})
LIST_TYPES = frozenset({"multipleRecordLinks", "multipleSelects"})
COLLABORATOR_TYPES = frozenset({"singleCollaborator", "multipleCollaborators"})
DATE_TYPES = frozenset({"date", "dateTime", "createdTime", "lastModifiedTime"})
NUMERIC_TYPES = frozenset({"number", "percent", "currency", "duration"})
INTEGER_TYPES = frozenset({"count", "rating", "autoNumber"})

# Columns owned by the mirror itself; never derived from Airtable fields.
RESERVED_COLUMNS = frozenset({"id", "airtable_id", "raw_json", "created_at", "updated_at", "deleted"})
RESERVED_PREFIX = "airtable_field_"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_]")
_NON_NUMERIC_CHARS = re.compile(r"[^0-9.\-]")


class _Missing:
    """Marker for a field the record does not carry at all."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def sanitize_name(name: str) -> str:
    """Turn an Airtable table or field name into a safe SQL identifier."""
    return _UNSAFE_CHARS.sub("_", name).lower()


def column_name(field_name: str) -> str:
    """Sanitized column name for a field, prefixed if it collides with a reserved column."""
    sanitized = sanitize_name(field_name)
    if sanitized in RESERVED_COLUMNS:
        return f"{RESERVED_PREFIX}{sanitized}"
    return sanitized


def map_type(declared_type: str) -> ColumnType:
    """Map an Airtable field type to a column type; unknown types fall back to text."""
    return TYPE_MAP.get(declared_type, ColumnType.TEXT)


def sqlalchemy_type(column_type: ColumnType) -> TypeEngine:
    """SQLAlchemy type used to bind values for a column type."""
    if column_type is ColumnType.NUMERIC:
        return Numeric(asdecimal=False)
    if column_type is ColumnType.INTEGER:
        return Integer()
    if column_type is ColumnType.BOOLEAN:
        return Boolean()
    if column_type is ColumnType.TIMESTAMP:
        return DateTime(timezone=True)
    if column_type is ColumnType.TEXT_ARRAY:
        return JSON().with_variant(ARRAY(Text), "postgresql")
    return Text()


def sanitize_numeric(value: Any) -> float:
    """
    Parse a numeric value, stripping decoration such as currency signs,
    thousands separators and percent signs.

    Never raises: anything unparsable, NaN or infinite becomes 0.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = _NON_NUMERIC_CHARS.sub("", value)
        try:
            number = float(cleaned)
        except ValueError:
            return 0.0
    else:
        return 0.0

    if not math.isfinite(number):
        return 0.0
    return number


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an Airtable date or dateTime into an aware UTC datetime."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _attachment_urls(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    urls = []
    for attachment in value:
        if not isinstance(attachment, dict):
            continue
        url = attachment.get("url") or (
            (attachment.get("thumbnails") or {}).get("large") or {}
        ).get("url")
        if url:
            urls.append(url)
    return urls


def _collaborator_label(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("email") or value.get("name") or value.get("id")
    if value is None:
        return None
    return str(value)


def coerce_value(value: Any, declared_type: str) -> Any:
    """
    Convert a raw Airtable value into something the mapped column accepts.

    A field absent from the record (MISSING) is None for every type. An
    explicit null on a numeric field is still coerced to 0.
    """
    if value is MISSING:
        return None

    if declared_type in ATTACHMENT_TYPES:
        return _attachment_urls(value)

    if declared_type in LIST_TYPES:
        return value if isinstance(value, list) else []

    if declared_type == "multipleCollaborators":
        if not isinstance(value, list):
            return []
        return [label for label in map(_collaborator_label, value) if label]

    if declared_type == "singleCollaborator":
        return _collaborator_label(value)

    if declared_type in DATE_TYPES:
        return parse_timestamp(value)

    if declared_type == "checkbox":
        return bool(value)

    if declared_type in NUMERIC_TYPES:
        return sanitize_numeric(value)

    if declared_type in INTEGER_TYPES:
        return int(sanitize_numeric(value))

    # Text columns only bind strings: formula, rollup and lookup results can
    # be numbers, booleans, arrays or objects
    if map_type(declared_type) is ColumnType.TEXT and value is not None and not isinstance(value, str):
        if isinstance(value, (list, dict, bool)):
            return json.dumps(value, default=str)
        return str(value)

    return value


def field_columns(fields: list[Any]) -> list[tuple[Any, str]]:
    """
    Pair each field with its column name.

    When two field names sanitize to the same column, the first field wins.
    """
    seen: set[str] = set()
    columns = []
    for field in fields:
        name = column_name(field.name)
        if name in seen:
            continue
        seen.add(name)
        columns.append((field, name))
    return columns
