"""
Report Filters

Builds the immutable FilterSpec a report request is answered from. Raw input
comes either from URL query parameters (a multi-value field repeats its key)
or from a JSON filters object. Filtering is permissive: unknown keys are
ignored and malformed values are dropped with a debug log, never turned into
an error for the caller.

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from ..config import config, ReportConfig
from ..exceptions import InvalidFilterValue
from .entities import EntityDefinition, FilterField

logger = logging.getLogger(__name__)

KEYWORD_KEYS = ('keyword', 'search', 'q')
PERIOD_MONTHS = {'month': 1, 'quarter': 3, 'year': 12}
ALL_VALUES = 'all'

_MISSING = object()


@dataclass(frozen=True)
class NumericRange:
    """Inclusive numeric bounds, each optional"""
    min: Optional[float] = None
    max: Optional[float] = None

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {'min': self.min, 'max': self.max}


@dataclass(frozen=True)
class FilterSpec:
    """
    Normalized, immutable report filter.

    sets and ranges are keyed by store column and kept in catalogue order,
    so two specs built from the same input compare equal and translate to
    the same predicates.
    """
    entity: str
    sets: Tuple[Tuple[str, Tuple[Any, ...]], ...] = ()
    ranges: Tuple[Tuple[str, NumericRange], ...] = ()
    keyword: Optional[str] = None
    period: str = ALL_VALUES
    created_since: Optional[str] = None
    sort_by: Optional[str] = None
    sort_direction: str = "asc"
    page: int = 1
    page_size: int = 10

    def to_dict(self) -> Dict[str, Any]:
        """Echo of the applied filters for API responses"""
        filters: Dict[str, Any] = {column: list(values) for column, values in self.sets}
        filters.update({column: value_range.to_dict() for column, value_range in self.ranges})
        return {
            'entity': self.entity,
            'filters': filters,
            'keyword': self.keyword,
            'period': self.period,
            'createdSince': self.created_since,
            'sortBy': self.sort_by,
            'sortDirection': self.sort_direction,
            'page': self.page,
            'pageSize': self.page_size,
        }


def _scalar(value: Any) -> Any:
    """Last element of a repeated query parameter, or the value itself"""
    if isinstance(value, (list, tuple)):
        return value[-1] if value else None
    return value


def _lookup(raw: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return _MISSING


def _coerce(field_name: str, value: Any, value_type: Callable[[Any], Any]) -> Any:
    try:
        return value_type(value)
    except (TypeError, ValueError) as e:
        raise InvalidFilterValue(field_name, value, str(e)) from e


def _drop(error: InvalidFilterValue):
    logger.debug(f"Dropping filter predicate: {error}")


def _is_all(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lower() in (ALL_VALUES, '')


def parse_set_values(filter_field: FilterField, value: Any) -> Tuple[Any, ...]:
    """
    Allowed values for a set field, deduplicated in input order.

    Blank entries and the literal 'all' mean no constraint and are skipped;
    malformed entries are dropped one by one.

    Raises:
        InvalidFilterValue: when the value is not a scalar or a list of scalars
    """
    if isinstance(value, Mapping):
        raise InvalidFilterValue(filter_field.name, value, "expected a value or list of values")
    items = list(value) if isinstance(value, (list, tuple, set, frozenset)) else [value]

    allowed: List[Any] = []
    for item in items:
        if item is None or _is_all(item):
            continue
        try:
            coerced = _coerce(filter_field.name, item, filter_field.value_type)
        except InvalidFilterValue as e:
            _drop(e)
            continue
        if coerced not in allowed:
            allowed.append(coerced)
    return tuple(allowed)


def _bound(filter_field: FilterField, value: Any) -> Optional[float]:
    value = _scalar(value)
    if value is _MISSING or value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return _coerce(filter_field.name, value, filter_field.value_type)
    except InvalidFilterValue as e:
        _drop(e)
        return None


def parse_range(filter_field: FilterField, raw: Mapping[str, Any]) -> Optional[NumericRange]:
    """
    Range for a numeric field, from {"age": {"min", "max"}}, minAge / maxAge
    or age_min / age_max. Each bound is independently optional.
    """
    suffix = filter_field.name[0].upper() + filter_field.name[1:]
    min_value = _lookup(raw, (f"min{suffix}", f"{filter_field.column}_min", f"min_{filter_field.column}"))
    max_value = _lookup(raw, (f"max{suffix}", f"{filter_field.column}_max", f"max_{filter_field.column}"))

    nested = _lookup(raw, filter_field.keys)
    if nested is not _MISSING and nested is not None:
        if isinstance(nested, Mapping):
            if min_value is _MISSING:
                min_value = nested.get('min', _MISSING)
            if max_value is _MISSING:
                max_value = nested.get('max', _MISSING)
        else:
            _drop(InvalidFilterValue(filter_field.name, nested, "expected {min, max}"))

    value_range = NumericRange(_bound(filter_field, min_value), _bound(filter_field, max_value))
    if value_range.min is None and value_range.max is None:
        return None
    return value_range


def parse_keyword(raw: Mapping[str, Any]) -> Optional[str]:
    value = _scalar(_lookup(raw, KEYWORD_KEYS))
    if value is _MISSING or value is None:
        return None
    if isinstance(value, (dict, list, bool)):
        _drop(InvalidFilterValue('keyword', value, "expected text"))
        return None
    keyword = str(value).strip()
    return keyword or None


def subtract_months(day: date, months: int) -> date:
    """Same day-of-month N months earlier, clamped to the month's length"""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def parse_period(raw: Mapping[str, Any], today: Optional[date] = None) -> Tuple[str, Optional[str]]:
    """
    Relative creation window.

    Returns:
        Tuple of (period, created_since) where created_since is an ISO date
        or None for 'all'
    """
    value = _scalar(_lookup(raw, ('period',)))
    if value is _MISSING or value is None:
        return ALL_VALUES, None
    period = str(value).strip().lower()
    if period not in PERIOD_MONTHS:
        if period != ALL_VALUES:
            _drop(InvalidFilterValue('period', value, "expected all, month, quarter or year"))
        return ALL_VALUES, None
    cutoff = subtract_months(today or date.today(), PERIOD_MONTHS[period])
    return period, cutoff.isoformat()


def parse_positive_int(value: Any, default: int, field_name: str = 'page') -> int:
    """Positive integer or the default for anything else"""
    value = _scalar(value)
    if value is _MISSING or value is None or value == '':
        return default
    if isinstance(value, bool):
        _drop(InvalidFilterValue(field_name, value, "not a number"))
        return default
    try:
        number = int(value) if isinstance(value, int) else int(str(value).strip())
    except (TypeError, ValueError):
        _drop(InvalidFilterValue(field_name, value, "not a whole number"))
        return default
    if number < 1:
        _drop(InvalidFilterValue(field_name, value, "must be >= 1"))
        return default
    return number


def build_filter_spec(
    entity: EntityDefinition,
    raw: Optional[Mapping[str, Any]] = None,
    page: Any = None,
    page_size: Any = None,
    sort_by: Optional[str] = None,
    sort_direction: Optional[str] = None,
    today: Optional[date] = None,
    report_config: Optional[ReportConfig] = None
) -> FilterSpec:
    """
    Build a normalized FilterSpec for an entity.

    Args:
        entity: Catalogue entry the filters apply to
        raw: Field name to value(s); query-string values may be lists
        page: 1-based page number (falls back to raw['page'])
        page_size: Page size (falls back to raw['pageSize'] / raw['page_size'])
        sort_by: Sort column (falls back to raw['sortBy'])
        sort_direction: 'asc' or 'desc' (falls back to raw['sortDirection'])
        today: Reference date for the period window
        report_config: Page size defaults and maximum

    Returns:
        FilterSpec; never raises for malformed input
    """
    raw = raw or {}
    report_config = report_config or config.reports

    sets: List[Tuple[str, Tuple[Any, ...]]] = []
    for filter_field in entity.set_fields:
        value = _lookup(raw, filter_field.keys)
        if value is _MISSING:
            continue
        try:
            allowed = parse_set_values(filter_field, value)
        except InvalidFilterValue as e:
            _drop(e)
            continue
        if allowed:
            sets.append((filter_field.column, allowed))

    ranges: List[Tuple[str, NumericRange]] = []
    for filter_field in entity.range_fields:
        value_range = parse_range(filter_field, raw)
        if value_range is not None:
            ranges.append((filter_field.column, value_range))

    period, created_since = parse_period(raw, today)

    if sort_by is None:
        sort_by = _scalar(_lookup(raw, ('sortBy', 'sort_by')))
    sort_column = None
    if sort_by is not _MISSING and sort_by is not None:
        sort_column = entity.resolve_column(sort_by if isinstance(sort_by, str) else None)
        if sort_column is None:
            _drop(InvalidFilterValue('sortBy', sort_by, f"not a column of {entity.name}"))

    if sort_direction is None:
        sort_direction = _scalar(_lookup(raw, ('sortDirection', 'sort_direction')))
    direction = "desc" if isinstance(sort_direction, str) and sort_direction.strip().lower() == "desc" else "asc"

    if page is None:
        page = _lookup(raw, ('page',))
    if page_size is None:
        page_size = _lookup(raw, ('pageSize', 'page_size', 'limit'))

    page_number = parse_positive_int(page, 1, 'page')
    size = min(
        parse_positive_int(page_size, report_config.default_page_size, 'pageSize'),
        report_config.max_page_size
    )

    return FilterSpec(
        entity=entity.name,
        sets=tuple(sets),
        ranges=tuple(ranges),
        keyword=parse_keyword(raw),
        period=period,
        created_since=created_since,
        sort_by=sort_column,
        sort_direction=direction,
        page=page_number,
        page_size=size,
    )
