"""
Report Query Translator

Turns a FilterSpec into a StoreQuery (predicates, ordering, offset and
limit) and compiles StoreQuery objects into parameterized SQL. Values are
always bound through ? placeholders; column names only come from the entity
catalogue.

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .entities import EntityDefinition
    from .filters import FilterSpec


class Operator(Enum):
    """Predicate operators understood by the store"""
    IN = "in"
    GTE = "gte"
    LTE = "lte"
    CONTAINS_ANY = "contains_any"


@dataclass(frozen=True)
class Predicate:
    """
    One store predicate.

    IN: column is one of value (a tuple)
    GTE / LTE: column compared against value
    CONTAINS_ANY: value (a string) is a case-insensitive substring of any
    of columns
    """
    operator: Operator
    value: Any
    column: Optional[str] = None
    columns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SortSpec:
    """One ORDER BY term; expression is a column or catalogue-defined SQL expression"""
    expression: str
    descending: bool = False


@dataclass(frozen=True)
class StoreQuery:
    """Everything the store needs to fetch one page (or the full set)"""
    table: str
    predicates: Tuple[Predicate, ...] = ()
    sort: Tuple[SortSpec, ...] = ()
    offset: int = 0
    limit: Optional[int] = None
    base_conditions: Tuple[str, ...] = ()
    include_total: bool = True


def translate_filters(
    spec: "FilterSpec",
    entity: "EntityDefinition",
    paginate: bool = True,
    limit: Optional[int] = None,
    default_order: Optional[Tuple[SortSpec, ...]] = None
) -> StoreQuery:
    """
    Translate a filter specification into a store query.

    Args:
        spec: Normalized filter specification
        entity: Catalogue entry supplying table, searchable columns and default order
        paginate: Apply the spec's page window; False fetches the whole filtered set
        limit: Upper bound on rows when not paginating (the export cap)
        default_order: Ordering used when the spec names no sort column;
            the entity's default order when None

    Returns:
        StoreQuery with predicates in a stable order: sets, ranges, period, keyword
    """
    predicates: List[Predicate] = []

    for column, values in spec.sets:
        if values:
            predicates.append(Predicate(Operator.IN, tuple(values), column=column))

    for column, value_range in spec.ranges:
        if value_range.min is not None:
            predicates.append(Predicate(Operator.GTE, value_range.min, column=column))
        if value_range.max is not None:
            predicates.append(Predicate(Operator.LTE, value_range.max, column=column))

    if spec.created_since:
        predicates.append(Predicate(Operator.GTE, spec.created_since, column=entity.date_column))

    if spec.keyword and entity.search_columns:
        predicates.append(Predicate(Operator.CONTAINS_ANY, spec.keyword, columns=tuple(entity.search_columns)))

    if spec.sort_by:
        sort = [SortSpec(spec.sort_by, spec.sort_direction == "desc")]
    else:
        sort = list(entity.default_order if default_order is None else default_order)

    # Primary key tie-break keeps pagination stable across equal sort keys
    if not any(term.expression == entity.primary_key for term in sort):
        sort.append(SortSpec(entity.primary_key, sort[-1].descending if sort else False))

    if paginate:
        offset = (spec.page - 1) * spec.page_size
        page_limit = spec.page_size
    else:
        offset = 0
        page_limit = limit

    return StoreQuery(
        table=entity.table,
        predicates=tuple(predicates),
        sort=tuple(sort),
        offset=offset,
        limit=page_limit,
        base_conditions=tuple(entity.base_conditions),
    )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_where_clause(query: StoreQuery) -> Tuple[str, List[Any]]:
    """
    Build the WHERE clause and params for a store query.

    Returns:
        Tuple of (where_clause, params_list); the clause is empty when there
        are no conditions
        Example: ("WHERE district IN (?, ?) AND age >= ?", ["Bekwai", "Gushegu", 20])
    """
    conditions = list(query.base_conditions)
    params: List[Any] = []

    for predicate in query.predicates:
        if predicate.operator == Operator.IN:
            placeholders = ", ".join("?" for _ in predicate.value)
            conditions.append(f"{predicate.column} IN ({placeholders})")
            params.extend(predicate.value)
        elif predicate.operator == Operator.GTE:
            conditions.append(f"{predicate.column} >= ?")
            params.append(predicate.value)
        elif predicate.operator == Operator.LTE:
            conditions.append(f"{predicate.column} <= ?")
            params.append(predicate.value)
        elif predicate.operator == Operator.CONTAINS_ANY:
            # CASEFOLD() is registered on every pooled connection
            pattern = f"%{_escape_like(str(predicate.value).casefold())}%"
            matches = [f"CASEFOLD({column}) LIKE ? ESCAPE '\\'" for column in predicate.columns]
            conditions.append(f"({' OR '.join(matches)})")
            params.extend([pattern] * len(predicate.columns))

    where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return where_clause, params


def build_order_clause(query: StoreQuery) -> str:
    """ORDER BY clause for a store query, empty when unsorted"""
    if not query.sort:
        return ""
    terms = [f"{term.expression} {'DESC' if term.descending else 'ASC'}" for term in query.sort]
    return f"ORDER BY {', '.join(terms)}"


def build_select_sql(query: StoreQuery) -> Tuple[str, List[Any]]:
    """SELECT statement and params for the rows of a store query"""
    where_clause, params = build_where_clause(query)
    parts = [f"SELECT * FROM {query.table}"]
    if where_clause:
        parts.append(where_clause)
    order_clause = build_order_clause(query)
    if order_clause:
        parts.append(order_clause)
    if query.limit is not None:
        parts.append("LIMIT ? OFFSET ?")
        params = params + [query.limit, query.offset]
    elif query.offset:
        parts.append("LIMIT -1 OFFSET ?")
        params = params + [query.offset]
    return " ".join(parts), params


def build_count_sql(query: StoreQuery) -> Tuple[str, List[Any]]:
    """SELECT COUNT(*) statement and params for the total of a store query"""
    where_clause, params = build_where_clause(query)
    sql = f"SELECT COUNT(*) FROM {query.table}"
    if where_clause:
        sql = f"{sql} {where_clause}"
    return sql, params
