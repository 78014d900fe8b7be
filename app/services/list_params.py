from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from app.core.config import settings
from app.schemas.listing import OrderSpec, QuerySpec

RECOGNIZED_KEYS = ("take", "page", "order", "select", "where", "or_where", "where_not", "search", "with")
FILTER_KEYS = ("where", "where_not", "or_where")

_BRACKET_KEY_RE = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
_BRACKET_PART_RE = re.compile(r"\[([^\[\]]*)\]")
_INT_RE = re.compile(r"^[+-]?\d+$")


def _assign(node: dict, parts: list[str], value: Any) -> None:
    key = parts[0]
    if len(parts) == 1:
        node[key] = value
        return
    if len(parts) == 2 and parts[1] == "":
        existing = node.get(key)
        if not isinstance(existing, list):
            existing = []
            node[key] = existing
        existing.append(value)
        return
    child = node.get(key)
    if not isinstance(child, dict):
        child = {}
        node[key] = child
    _assign(child, parts[1:], value)


def parse_bracket_params(items: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Nest flat query-string pairs such as ``where[name]=x`` or ``with[]=roles``."""
    result: dict[str, Any] = {}
    for raw_key, value in items:
        match = _BRACKET_KEY_RE.match(str(raw_key or ""))
        if match is None:
            result[str(raw_key)] = value
            continue
        head, tail = match.groups()
        _assign(result, [head] + _BRACKET_PART_RE.findall(tail), value)
    return result


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value if value is not None else "").strip()
    if not _INT_RE.match(text):
        return None
    return int(text)


def split_csv(value: Any) -> list[str]:
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    parts: list[str] = []
    for item in items:
        parts.extend(str(item).split(","))
    return [part.strip() for part in parts if part.strip()]


def _filter_map(raw: Any) -> dict[str, str | None]:
    if not isinstance(raw, Mapping):
        return {}
    result: dict[str, str | None] = {}
    for key, value in raw.items():
        if isinstance(value, (list, tuple)):
            value = ",".join(str(item) for item in value)
        elif value is not None:
            value = str(value)
        result[str(key)] = value
    return result


def _order(raw: Any) -> OrderSpec:
    order = raw if isinstance(raw, Mapping) else {}
    by = order.get("by")
    if isinstance(by, (list, tuple)):
        by = ",".join(str(item) for item in by)
    fields = str(by).split(",") if by else ["id"]
    direction = "desc" if order.get("dir") == "desc" else "asc"
    return OrderSpec(fields=fields, direction=direction)


def _with(raw: Any) -> list[str]:
    if raw is None or raw == "":
        return []
    if isinstance(raw, (list, tuple)):
        return [str(item) for item in raw if item not in (None, "")]
    return [str(raw)]


def parse_list_params(params: Mapping[str, Any]) -> QuerySpec:
    args = {key: params[key] for key in RECOGNIZED_KEYS if key in params}

    take = _int_or_none(args.get("take"))
    if take is None:
        take = settings.LIST_DEFAULT_TAKE

    page = _int_or_none(args.get("page"))
    if page is None or page < 1:
        page = 1

    select = split_csv(args.get("select")) or ["*"]
    search = args.get("search")

    return QuerySpec(
        select=select,
        where=_filter_map(args.get("where")),
        where_not=_filter_map(args.get("where_not")),
        or_where=_filter_map(args.get("or_where")),
        with_=_with(args.get("with")),
        order=_order(args.get("order")),
        take=take,
        page=page,
        search=str(search) if search not in (None, "") else None,
    )
