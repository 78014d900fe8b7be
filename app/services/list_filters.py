from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Literal

from sqlalchemy import and_, not_, or_
from sqlalchemy.inspection import inspect as sa_inspect
from sqlalchemy.orm import Query

from app.core.errors import BadRequestError
from app.core.strings import lang
from app.schemas.listing import QuerySpec
from app.services.serialization import hidden_response_fields

FilterMode = Literal["where", "where_not", "or_where"]

_LOG = logging.getLogger("app.listing")


def _bad_filter_value(column_key: str, kind: str) -> BadRequestError:
    return BadRequestError.for_field(column_key, lang(f"validation.{kind}", column_key))


def _integer_filter_value(column_key: str, value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise _bad_filter_value(column_key, "integer")


def _datetime_filter_value(column_key: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            raise _bad_filter_value(column_key, "date")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _column_python_type(column):
    try:
        return column.property.columns[0].type.python_type
    except (AttributeError, IndexError, NotImplementedError):
        return None


def coerce_filter_value(column, value):
    """Integer and datetime columns get typed values; text columns compare as given."""
    python_type = _column_python_type(column)
    if python_type is int:
        return _integer_filter_value(column.key, value)
    if python_type is datetime:
        return _datetime_filter_value(column.key, value)
    return value


def is_loosely_empty(value: Any) -> bool:
    """Empty string, "0", 0, None and empty containers all mean "no value"."""
    if value is None or value is False:
        return True
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    if isinstance(value, (int, float)):
        return value == 0
    return str(value) in {"", "0"}


def resolve_column(model, key: str):
    mapper = sa_inspect(model)
    if key not in mapper.column_attrs or key in hidden_response_fields(mapper.local_table.name):
        return None
    return getattr(model, key)


def where_predicate(column, value: Any, mode: FilterMode):
    if is_loosely_empty(value):
        return column.is_not(None) if mode == "where_not" else column.is_(None)
    if "," in str(value):
        values = [coerce_filter_value(column, item) for item in str(value).split(",")]
        return column.not_in(values) if mode == "where_not" else column.in_(values)
    coerced = coerce_filter_value(column, value)
    if mode == "where_not":
        return not_(column == coerced)
    return column == coerced


def build_filter_clause(model, spec: QuerySpec):
    clause = None
    for mode in ("where", "where_not", "or_where"):
        for key, value in getattr(spec, mode).items():
            column = resolve_column(model, key)
            if column is None:
                _LOG.debug("filter_field_skipped model=%s field=%s mode=%s", model.__name__, key, mode)
                continue
            predicate = where_predicate(column, value, mode)
            if clause is None:
                clause = predicate
            elif mode == "or_where":
                clause = or_(clause, predicate)
            else:
                clause = and_(clause, predicate)
    return clause


def apply_filters(query: Query, model, spec: QuerySpec) -> Query:
    clause = build_filter_clause(model, spec)
    if clause is None:
        return query
    return query.filter(clause)
