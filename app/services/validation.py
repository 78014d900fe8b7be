from __future__ import annotations

from typing import Any, Iterable, Mapping, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.core.security import verify_password
from app.core.strings import lang, mb_ucfirst
from app.db.session import Base

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_INTEGER_ERRORS = {"int_type", "int_parsing", "int_from_float"}


def _label(field: str) -> str:
    return field.replace("_", " ")


def _error_message(field: str, error: Mapping[str, Any]) -> str:
    label = _label(field)
    kind = error["type"]
    ctx = error.get("ctx") or {}
    if kind == "missing" or (error.get("input") is None and kind.endswith("_type")):
        return lang("validation.required", label)
    if kind == "value_error" and ctx.get("error") is not None:
        return str(ctx["error"])
    if kind == "string_too_long":
        return lang("validation.max", label, ctx.get("max_length"))
    if kind == "string_type":
        return lang("validation.string", label)
    if kind == "list_type":
        return lang("validation.array", label)
    if kind in _INTEGER_ERRORS:
        return lang("validation.integer", label)
    return mb_ucfirst(str(error.get("msg") or ""))


def error_map(exc: PydanticValidationError) -> dict[str, list[str]]:
    """Flatten pydantic errors into ``{"field": [...], "roles.1": [...]}``."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "body"
        errors.setdefault(field, []).append(_error_message(field, error))
    return errors


def parse_or_422(schema: type[SchemaT], data: Mapping[str, Any]) -> SchemaT:
    try:
        return schema.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise ValidationError(error_map(exc)) from exc


def raise_for_errors(errors: dict[str, list[str]]) -> None:
    if errors:
        raise ValidationError(errors)


def reference_column(table_name: str, column_name: str):
    return Base.metadata.tables[table_name].c[column_name]


def _count_rows(db: Session, table_name: str, column_name: str, value: Any, exclude_id: Any = None) -> int:
    target = reference_column(table_name, column_name)
    stmt = select(func.count()).select_from(target.table).where(target == value)
    if exclude_id is not None:
        stmt = stmt.where(target.table.c.id != exclude_id)
    return int(db.execute(stmt).scalar_one())


def already_exists(db: Session, table_name: str, attribute: str, value: Any, record_id: Any = None) -> bool:
    """True when a row of `table_name` other than `record_id` holds the value."""
    return _count_rows(db, table_name, attribute, value, exclude_id=record_id) > 0


def missing_references(
    db: Session, table_name: str, column_name: str, attribute: str, values: Iterable[Any]
) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for index, value in enumerate(values):
        if _count_rows(db, table_name, column_name, value) < 1:
            field = f"{attribute}.{index}"
            errors[field] = [lang("validation.exists", field)]
    return errors


def check_current_password(value: str, password_hash: str | None) -> None:
    if not verify_password(value, password_hash):
        raise ValidationError.for_field("current_password", lang("validation.current_password"))
