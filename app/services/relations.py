from __future__ import annotations

import logging
from typing import Any, Iterable

from sqlalchemy import func, select
from sqlalchemy.inspection import inspect as sa_inspect
from sqlalchemy.orm import Query, selectinload

from app.schemas.listing import RelationDirective

_LOG = logging.getLogger("app.listing")

COUNT_SUFFIX = "count"


def split_relation_tokens(value: str | Iterable[str] | None) -> list[str]:
    if value is None:
        return []
    items = [value] if isinstance(value, str) else list(value)
    tokens: list[str] = []
    for item in items:
        tokens.extend(str(item).split(","))
    return [token.strip() for token in tokens if token.strip()]


def parse_relations(value: str | Iterable[str] | None) -> list[RelationDirective]:
    """Parse ``with`` tokens: ``a``, ``a.count`` and ``a.b`` (one level of dots only)."""
    directives: list[RelationDirective] = []
    for token in split_relation_tokens(value):
        if "." not in token:
            directives.append(RelationDirective(kind="simple", name=token))
            continue
        parts = token.split(".")
        if len(parts) > 2:
            _LOG.warning("relation_token_truncated token=%s used=%s.%s", token, parts[0], parts[1])
        field, prop = parts[0], parts[1]
        if prop == COUNT_SUFFIX:
            directives.append(RelationDirective(kind="count", name=field))
        else:
            directives.append(RelationDirective(kind="nested", name=field, subpaths=split_relation_tokens(prop)))
    return directives


def relation_property(model, name: str):
    return sa_inspect(model).relationships.get(name)


def count_label(name: str) -> str:
    return f"{name}_{COUNT_SUFFIX}"


def count_column(model, name: str):
    rel = relation_property(model, name)
    if rel is None:
        return None
    source = rel.secondary if rel.secondary is not None else rel.mapper.local_table
    return (
        select(func.count())
        .select_from(source)
        .where(rel.primaryjoin)
        .correlate(sa_inspect(model).local_table)
        .scalar_subquery()
        .label(count_label(name))
    )


def loader_options(model, directive: RelationDirective) -> list[Any]:
    rel = relation_property(model, directive.name)
    if rel is None:
        return []
    attr = getattr(model, directive.name)
    if directive.kind == "simple":
        return [selectinload(attr)]
    options = []
    for sub in directive.subpaths:
        sub_rel = relation_property(rel.mapper.class_, sub)
        if sub_rel is None:
            _LOG.debug("relation_skipped model=%s relation=%s.%s", rel.mapper.class_.__name__, directive.name, sub)
            continue
        options.append(selectinload(attr).selectinload(getattr(rel.mapper.class_, sub)))
    return options


def apply_relations(query: Query, model, directives: list[RelationDirective]) -> tuple[Query, list[str]]:
    """Attach every count and eager-load directive, one batched call each.

    Returns the query and the labels of the added count columns, in the order
    they appear in each fetched row after the entity.
    """
    counts = []
    options = []
    for directive in directives:
        if relation_property(model, directive.name) is None:
            _LOG.debug("relation_skipped model=%s relation=%s", model.__name__, directive.name)
            continue
        if directive.kind == "count":
            if count_label(directive.name) not in {column.name for column in counts}:
                counts.append(count_column(model, directive.name))
        else:
            options.extend(loader_options(model, directive))
    if counts:
        query = query.add_columns(*counts)
    if options:
        query = query.options(*options)
    return query, [column.name for column in counts]


def relation_tree(directives: list[RelationDirective]) -> dict[str, set[str]]:
    """Relations to serialize for each loaded top-level relation."""
    tree: dict[str, set[str]] = {}
    for directive in directives:
        if directive.kind == "count":
            continue
        tree.setdefault(directive.name, set()).update(directive.subpaths)
    return tree
