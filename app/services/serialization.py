from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy.inspection import inspect as sa_inspect

HIDDEN_RESPONSE_FIELDS: dict[str, set[str]] = {
    "users": {"password_hash"},
}


def serialize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: serialize_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    return value


def hidden_response_fields(table_name: str) -> set[str]:
    return HIDDEN_RESPONSE_FIELDS.get(table_name, set())


def columns_map(model: type) -> dict[str, Any]:
    mapper = sa_inspect(model)
    return {column.key: column for column in mapper.columns}


def row_to_dict(row: Any, select: Iterable[str] | None = None) -> dict[str, Any]:
    mapper = sa_inspect(type(row))
    hidden = hidden_response_fields(mapper.local_table.name)
    wanted = None if select is None or "*" in select else set(select)
    return {
        column.key: serialize_value(getattr(row, column.key))
        for column in mapper.columns
        if column.key not in hidden and (wanted is None or column.key in wanted)
    }


def _related_to_dict(row: Any, relations: Iterable[str]) -> dict[str, Any]:
    return record_to_dict(row, relations={name: set() for name in relations})


def record_to_dict(
    row: Any,
    *,
    select: Iterable[str] | None = None,
    relations: dict[str, set[str]] | None = None,
    counts: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payload = row_to_dict(row, select)
    known = sa_inspect(type(row)).relationships
    for name, subpaths in (relations or {}).items():
        if name not in known:
            continue
        value = getattr(row, name)
        if value is None:
            payload[name] = None
        elif known[name].uselist:
            payload[name] = [_related_to_dict(item, subpaths) for item in value]
        else:
            payload[name] = _related_to_dict(value, subpaths)
    for label, value in (counts or {}).items():
        payload[label] = int(value or 0)
    return payload
