from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from sqlalchemy import asc, desc, func
from sqlalchemy.inspection import inspect as sa_inspect
from sqlalchemy.orm import Query, Session

from app.core.errors import NotFoundError
from app.core.strings import lang
from app.schemas.listing import ListResult, QuerySpec
from app.services.list_filters import apply_filters, resolve_column
from app.services.list_params import split_csv
from app.services.relations import apply_relations, parse_relations, relation_tree
from app.services.serialization import record_to_dict

_LOG = logging.getLogger("app.listing")

SearchCallback = Callable[[Query, str], Query]
Transform = Callable[[dict[str, Any]], dict[str, Any]]


def search_by_name(query: Query, model, term: str) -> Query:
    column = resolve_column(model, "name")
    if column is None:
        return query
    return query.filter(func.lower(column).like(f"%{term.lower()}%"))


@dataclass(frozen=True)
class ResourceDefinition:
    """Per-resource hooks used by the generic list/show/destroy operations."""

    model: type
    base_query: Callable[[Session], Query] | None = None
    search: SearchCallback | None = None
    transform: Transform | None = None

    @property
    def name(self) -> str:
        return sa_inspect(self.model).local_table.name

    def list_query(self, db: Session) -> Query:
        if self.base_query is not None:
            return self.base_query(db)
        return db.query(self.model)

    def apply_search(self, query: Query, term: str) -> Query:
        if self.search is not None:
            return self.search(query, term)
        return search_by_name(query, self.model, term)


def apply_ordering(query: Query, model, spec: QuerySpec) -> Query:
    direction = desc if spec.order.direction == "desc" else asc
    for field in spec.order.fields:
        column = resolve_column(model, field)
        if column is None:
            _LOG.debug("order_field_skipped model=%s field=%s", model.__name__, field)
            continue
        query = query.order_by(direction(column))
    return query


def apply_window(query: Query, spec: QuerySpec) -> Query:
    if spec.take <= 0:
        return query
    return query.limit(spec.take).offset(spec.skip)


def _split_row(row: Any, count_labels: list[str]) -> tuple[Any, dict[str, Any]]:
    if not count_labels:
        return row, {}
    return row[0], dict(zip(count_labels, row[1:]))


def list_resource(db: Session, resource: ResourceDefinition, spec: QuerySpec) -> dict[str, Any]:
    model = resource.model
    query = resource.list_query(db)
    if spec.search:
        query = resource.apply_search(query, spec.search)
    query = apply_filters(query, model, spec)

    total = query.count()

    directives = parse_relations(spec.with_)
    query, count_labels = apply_relations(query, model, directives)
    query = apply_ordering(query, model, spec)
    query = apply_window(query, spec)

    relations = relation_tree(directives)
    select = None if spec.selects_all else spec.select
    collection = []
    for row in query.all():
        entity, counts = _split_row(row, count_labels)
        record = record_to_dict(entity, select=select, relations=relations, counts=counts)
        if resource.transform is not None:
            record = resource.transform(record)
        collection.append(record)

    _LOG.debug(
        "list_resource resource=%s total=%s page=%s take=%s returned=%s",
        resource.name,
        total,
        spec.page,
        spec.take,
        len(collection),
    )
    return ListResult(collection=collection, page=spec.page, take=spec.take, total=total).model_dump()


def _primary_key_column(model):
    return sa_inspect(model).primary_key[0]


def show_resource(db: Session, resource: ResourceDefinition, row_id: Any, params: Mapping[str, Any]) -> dict[str, Any]:
    model = resource.model
    select = split_csv(params.get("select")) if "select" in params else None
    directives = parse_relations(params.get("with")) if "with" in params else []

    query = db.query(model).filter(_primary_key_column(model) == row_id)
    query, count_labels = apply_relations(query, model, directives)
    row = query.first()
    if row is None:
        raise NotFoundError(message=lang("records.errors.not_found"))
    entity, counts = _split_row(row, count_labels)
    return record_to_dict(entity, select=select or None, relations=relation_tree(directives), counts=counts)


def destroy_resource(db: Session, resource: ResourceDefinition, row_id: Any) -> None:
    row = db.get(resource.model, row_id)
    if row is None:
        raise NotFoundError(message=lang("records.errors.not_found"))
    db.delete(row)
    db.commit()
    _LOG.info("resource_deleted resource=%s id=%s", resource.name, row_id)
