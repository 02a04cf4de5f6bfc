"""
DevCamper Backend - Advanced Query Builder
============================================

What:  Turns list-endpoint query strings into filter, field-selection, sort
       and pagination clauses, runs the query, and returns a PageResult.
How:   Two steps, kept apart:
         1. parse_query_params(): pure function, query string → QuerySpec
         2. fetch_page(): executes COUNT + page SELECT for a QuerySpec
       Route handlers receive the QuerySpec as a FastAPI dependency
       (see `query_spec`), so nothing is stashed on the request object.

Query string grammar:
    field=value                 equality
    field[gt|gte|lt|lte]=value  comparisons
    field[ne]=value             not equal
    field[in]=a,b,c             membership
    location.city=Boston        dotted names resolve through the field map
    careers[in]=UI/UX,Business  list columns: eq / ne / in test membership
    select=name,description     only these keys in each item (plus id)
    sort=name,-average_cost     ascending / descending ("-" prefix)
    page=2&limit=10             pagination (defaults 1 and 25)

Example:
    GET /api/v1/bootcamps?average_cost[lte]=10000&location.city=Boston&sort=-average_cost

Pagination descriptors follow an offset window [start, end):
    previous is present when start > 0
    next     is present when end < total
"""

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from fastapi import Request
from pydantic import BaseModel
from sqlalchemy import JSON, Text, cast, false, func, inspect, not_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql.elements import ColumnElement

from devcamper.exceptions import ValidationError

logger = logging.getLogger(__name__)

RESERVED_PARAMS = {"select", "sort", "page", "limit"}
OPERATORS = {"eq", "gt", "gte", "lt", "lte", "ne", "in"}
LIST_OPERATORS = {"eq", "ne", "in"}

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 25
MAX_LIMIT = 100

_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


# ══════════════════════════════════════════════════════════════════════════
# Descriptors and results
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ResourceQuery:
    """
    Describes a queryable entity.

    Attributes:
        model:        ORM class to select from
        serializer:   Pydantic model each row is dumped through
        fields:       public name → column, for filters and sort
        populate:     loader options (e.g. selectinload) for eager joins
        default_sort: sort expression used when `sort` is absent
    """
    model: Type[Any]
    serializer: Type[BaseModel]
    fields: Mapping[str, InstrumentedAttribute]
    populate: Tuple[Any, ...] = ()
    default_sort: str = "-created_at"

    @property
    def selectable(self) -> List[str]:
        return list(self.serializer.model_fields)


@dataclass(frozen=True)
class FilterClause:
    field: str
    op: str
    value: Any


@dataclass(frozen=True)
class QuerySpec:
    """Parsed, validated query-string. Pure data; no SQL."""
    filters: Tuple[FilterClause, ...] = ()
    select: Optional[Tuple[str, ...]] = None
    sort: Tuple[Tuple[str, bool], ...] = ()  # (field, descending)
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT


@dataclass
class PageResult:
    """One page of serialized records plus pagination state."""
    items: List[Dict[str, Any]]
    total: int
    page: int
    limit: int

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def previous(self) -> Optional[Dict[str, int]]:
        if (self.page - 1) * self.limit > 0:
            return {"page": self.page - 1, "limit": self.limit}
        return None

    @property
    def next(self) -> Optional[Dict[str, int]]:
        if self.page * self.limit < self.total:
            return {"page": self.page + 1, "limit": self.limit}
        return None


def column_fields(
    model: Type[Any],
    aliases: Optional[Mapping[str, InstrumentedAttribute]] = None,
    exclude: Sequence[str] = (),
) -> Dict[str, InstrumentedAttribute]:
    """
    Field map of every column on `model`, plus `aliases`.

    JSON columns holding a list of strings (careers) are kept and filtered
    by membership; they cannot be compared or sorted.
    """
    fields: Dict[str, InstrumentedAttribute] = {}
    for attr in inspect(model).column_attrs:
        column = attr.columns[0]
        if attr.key in exclude or _python_type(column) in (None, dict):
            continue
        fields[attr.key] = getattr(model, attr.key)
    fields.update(aliases or {})
    return fields


# ══════════════════════════════════════════════════════════════════════════
# Parsing (pure)
# ══════════════════════════════════════════════════════════════════════════

def parse_query_params(
    params: Mapping[str, str],
    resource: ResourceQuery,
) -> QuerySpec:
    """
    Parse a query string into a QuerySpec.

    Args:
        params:   Query parameters. A Starlette QueryParams is read with
                  multi_items(), so repeated keys are all honoured.
        resource: Descriptor of the entity being listed.

    Raises:
        ValidationError: unknown fields/operators or values that do not fit
                         the column type. Every problem is reported at once.
    """
    items = params.multi_items() if hasattr(params, "multi_items") else list(params.items())
    errors: List[str] = []
    filters: List[FilterClause] = []
    reserved: Dict[str, str] = {}

    for key, raw in items:
        if key in RESERVED_PARAMS:
            reserved[key] = raw
            continue
        name, op = _split_key(key)
        if op not in OPERATORS:
            errors.append(f"Unknown operator '{op}' in '{key}'")
            continue
        column = resource.fields.get(name)
        if column is None:
            errors.append(f"Unknown filter field '{name}'")
            continue
        if is_list_column(column) and op not in LIST_OPERATORS:
            errors.append(f"Operator '{op}' is not supported for '{name}'")
            continue
        try:
            if op == "in":
                value: Any = tuple(_coerce(column, part.strip()) for part in raw.split(",") if part.strip())
            else:
                value = _coerce(column, raw)
        except ValueError:
            errors.append(f"Invalid value '{raw}' for '{name}'")
            continue
        filters.append(FilterClause(field=name, op=op, value=value))

    select_fields = _parse_select(reserved.get("select"), resource, errors)
    sort = _parse_sort(reserved.get("sort") or resource.default_sort, resource, errors)
    page = _parse_int(reserved.get("page"), "page", DEFAULT_PAGE, 1, None, errors)
    limit = _parse_int(reserved.get("limit"), "limit", DEFAULT_LIMIT, 1, MAX_LIMIT, errors)

    if errors:
        raise ValidationError(errors=errors, context={"query": dict(items)})

    return QuerySpec(
        filters=tuple(filters),
        select=select_fields,
        sort=sort,
        page=page,
        limit=limit,
    )


def _split_key(key: str) -> Tuple[str, str]:
    if key.endswith("]") and "[" in key:
        name, _, op = key[:-1].partition("[")
        return name, op
    return key, "eq"


def _python_type(column: Any) -> Optional[type]:
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


def is_list_column(attr: InstrumentedAttribute) -> bool:
    return isinstance(attr.property.columns[0].type, JSON)


def _coerce(attr: InstrumentedAttribute, raw: str) -> Any:
    """Convert a query-string value to the column's Python type."""
    py_type = _python_type(attr.property.columns[0])
    if py_type is bool:
        lowered = raw.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(raw)
    if py_type is int:
        return int(raw)
    if py_type is float:
        return float(raw)
    if py_type is datetime:
        return datetime.fromisoformat(raw)
    if py_type is uuid.UUID:
        return uuid.UUID(raw)
    if py_type in (dict, list):
        raise ValueError(raw)
    return raw


def _parse_select(
    raw: Optional[str], resource: ResourceQuery, errors: List[str]
) -> Optional[Tuple[str, ...]]:
    if not raw:
        return None
    requested = [f.strip() for f in raw.split(",") if f.strip()]
    unknown = [f for f in requested if f not in resource.selectable]
    if unknown:
        errors.append(f"Unknown select field(s): {', '.join(unknown)}")
    fields = ["id"] + [f for f in requested if f != "id"]
    return tuple(fields)


def _parse_sort(
    raw: str, resource: ResourceQuery, errors: List[str]
) -> Tuple[Tuple[str, bool], ...]:
    sort: List[Tuple[str, bool]] = []
    for part in (p.strip() for p in raw.split(",")):
        if not part:
            continue
        descending = part.startswith("-")
        name = part.lstrip("-+")
        if name not in resource.fields:
            errors.append(f"Unknown sort field '{name}'")
            continue
        if is_list_column(resource.fields[name]):
            errors.append(f"Cannot sort by '{name}'")
            continue
        sort.append((name, descending))
    return tuple(sort)


def _parse_int(
    raw: Optional[str],
    name: str,
    default: int,
    minimum: int,
    maximum: Optional[int],
    errors: List[str],
) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        errors.append(f"'{name}' must be an integer")
        return default
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f">= {minimum}" if maximum is None else f"between {minimum} and {maximum}"
        errors.append(f"'{name}' must be {bounds}")
        return default
    return value


# ══════════════════════════════════════════════════════════════════════════
# Execution
# ══════════════════════════════════════════════════════════════════════════

def list_contains(column: InstrumentedAttribute, value: str) -> ColumnElement:
    """
    True when the JSON list in `column` has `value` as an element.

    The list is stored as json.dumps text, so the quoted element is a
    substring of the column text on both SQLite and PostgreSQL.
    """
    return cast(column, Text).contains(json.dumps(value), autoescape=True)


def build_list_condition(column: InstrumentedAttribute, clause: FilterClause) -> ColumnElement:
    if clause.op == "in":
        return or_(false(), *(list_contains(column, v) for v in clause.value))
    if clause.op == "ne":
        return not_(list_contains(column, clause.value))
    return list_contains(column, clause.value)


def build_conditions(resource: ResourceQuery, spec: QuerySpec) -> List[ColumnElement]:
    conditions: List[ColumnElement] = []
    for clause in spec.filters:
        column = resource.fields[clause.field]
        if is_list_column(column):
            conditions.append(build_list_condition(column, clause))
        elif clause.op == "eq":
            conditions.append(column == clause.value)
        elif clause.op == "ne":
            conditions.append(column != clause.value)
        elif clause.op == "gt":
            conditions.append(column > clause.value)
        elif clause.op == "gte":
            conditions.append(column >= clause.value)
        elif clause.op == "lt":
            conditions.append(column < clause.value)
        elif clause.op == "lte":
            conditions.append(column <= clause.value)
        elif clause.op == "in":
            conditions.append(column.in_(clause.value))
    return conditions


def build_order(resource: ResourceQuery, spec: QuerySpec) -> List[ColumnElement]:
    order = [
        resource.fields[name].desc() if descending else resource.fields[name].asc()
        for name, descending in spec.sort
    ]
    # Tie-breaker so rows with equal sort keys keep a stable page order.
    if "id" not in {name for name, _ in spec.sort}:
        order.append(resource.model.id.asc())
    return order


def project(item: Dict[str, Any], fields: Optional[Sequence[str]]) -> Dict[str, Any]:
    if fields is None:
        return item
    return {key: item[key] for key in fields if key in item}


async def fetch_page(
    db: AsyncSession,
    resource: ResourceQuery,
    spec: QuerySpec,
    base_conditions: Sequence[ColumnElement] = (),
) -> PageResult:
    """
    Run the query described by `spec` and return one page.

    Args:
        base_conditions: Extra WHERE clauses fixed by the route (for example
                         a parent id), applied before the user's filters.
    """
    conditions = [*base_conditions, *build_conditions(resource, spec)]

    total = await db.scalar(
        select(func.count()).select_from(resource.model).where(*conditions)
    ) or 0

    stmt = (
        select(resource.model)
        .where(*conditions)
        .order_by(*build_order(resource, spec))
        .offset((spec.page - 1) * spec.limit)
        .limit(spec.limit)
        .options(*resource.populate)
    )
    rows = (await db.execute(stmt)).scalars().all()

    items = [
        project(resource.serializer.model_validate(row).model_dump(mode="json"), spec.select)
        for row in rows
    ]
    logger.debug(
        "Fetched %d/%d %s (page=%d, limit=%d)",
        len(items), total, resource.model.__tablename__, spec.page, spec.limit,
    )
    return PageResult(items=items, total=total, page=spec.page, limit=spec.limit)


def query_spec(resource: ResourceQuery) -> Callable[[Request], QuerySpec]:
    """
    FastAPI dependency factory: parses the request's query string for
    `resource`.

    Usage:
        @router.get("")
        async def list_items(spec: QuerySpec = Depends(query_spec(ITEM_QUERY))):
            ...
    """

    def dependency(request: Request) -> QuerySpec:
        return parse_query_params(request.query_params, resource)

    return dependency
