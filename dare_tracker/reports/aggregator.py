"""
Report Aggregator

Summary statistics over report records: group-by-count with an
"Uncategorized" bucket, feasibility score averaging, and the bucketed counts
(age groups, revenue tiers, business stages) used by the dashboard summary.
Nothing here raises on bad data; malformed values fall into the
uncategorized bucket or count as not rated.

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

import math
from collections import Counter, OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..database_schema import FEASIBILITY_SCORE_COLUMNS

UNCATEGORIZED = "Uncategorized"

AGE_GROUPS: List[str] = ['Under 18', '18-24', '25-34', '35-44', '45+']

REVENUE_TIERS: List[str] = ['Low (0-500 GHS)', 'Medium (501-1000 GHS)', 'High (1000+ GHS)']

BUSINESS_STAGES: List[str] = ['New', 'Developing', 'Established']

ONE_DECIMAL = Decimal("0.1")


@dataclass
class AggregateResult:
    """Group counts plus overall total and optional mean score"""
    groups: Dict[str, int] = field(default_factory=dict)
    total: int = 0
    mean_score: Optional[float] = None
    group_by: Optional[str] = None
    scope: str = "page"
    truncated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'groupBy': self.group_by,
            'scope': self.scope,
            'groups': dict(self.groups),
            'total': self.total,
        }
        if self.mean_score is not None:
            result['meanScore'] = self.mean_score
        if self.truncated:
            result['truncated'] = True
        return result


def _group_key(value: Any) -> str:
    if value is None:
        return UNCATEGORIZED
    if isinstance(value, str):
        value = value.strip()
        return value or UNCATEGORIZED
    if isinstance(value, float) and math.isnan(value):
        return UNCATEGORIZED
    return str(value)


def group_counts(
    records: Iterable[Mapping[str, Any]],
    field_name: str,
    label: Optional[Callable[[Any], Optional[str]]] = None
) -> Dict[str, int]:
    """
    Count records per distinct value of a field.

    Null, blank or missing values, and values the optional label function
    maps to None, are counted under "Uncategorized". Groups keep the order
    in which they are first seen.
    """
    counts: Dict[str, int] = OrderedDict()
    for record in records:
        value = record.get(field_name)
        if label is not None:
            value = label(value)
        key = _group_key(value)
        counts[key] = counts.get(key, 0) + 1
    return dict(counts)


def to_score(value: Any) -> float:
    """Numeric sub-score, or 0 (not rated) for anything unusable"""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def _mean_half_up(values: Sequence[float]) -> float:
    """Mean rounded half-up to one decimal place, computed in decimal: 1.15 -> 1.2"""
    mean = sum(Decimal(str(value)) for value in values) / len(values)
    return float(mean.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP))


def average_score(record: Mapping[str, Any], fields: Sequence[str] = FEASIBILITY_SCORE_COLUMNS) -> float:
    """
    Average of the rated sub-scores of one record.

    Zero, negative, missing and non-numeric scores are "not rated" and left
    out. Returns 0 when nothing is rated, otherwise the mean rounded to one
    decimal place.
    """
    rated = [score for score in (to_score(record.get(name)) for name in fields) if score > 0]
    if not rated:
        return 0.0
    return _mean_half_up(rated)


def mean_score(records: Sequence[Mapping[str, Any]], fields: Sequence[str] = FEASIBILITY_SCORE_COLUMNS) -> float:
    """Mean of per-record scores over the records that have any rating"""
    scores = [average_score(record, fields) for record in records]
    rated = [score for score in scores if score > 0]
    if not rated:
        return 0.0
    return _mean_half_up(rated)


def aggregate(
    records: Sequence[Mapping[str, Any]],
    field_name: Optional[str] = None,
    score_fields: Optional[Sequence[str]] = None,
    label: Optional[Callable[[Any], Optional[str]]] = None,
    scope: str = "page"
) -> AggregateResult:
    """Build an AggregateResult over records"""
    result = AggregateResult(total=len(records), group_by=field_name, scope=scope)
    if field_name:
        result.groups = group_counts(records, field_name, label)
    if score_fields:
        result.mean_score = mean_score(records, score_fields)
    return result


def bucket_counts(
    values: Iterable[Any],
    classify: Callable[[Any], str],
    buckets: Sequence[str]
) -> List[Dict[str, Any]]:
    """Classify values into a fixed, ordered set of named buckets"""
    counts = Counter(classify(value) for value in values)
    return [{'name': bucket, 'value': counts.get(bucket, 0)} for bucket in buckets]


def age_group(age: Any) -> str:
    """Age bucket; a missing or unreadable age counts as 0"""
    years = to_score(age)
    if years < 18:
        return 'Under 18'
    if years <= 24:
        return '18-24'
    if years <= 34:
        return '25-34'
    if years <= 44:
        return '35-44'
    return '45+'


def revenue_tier(revenue: Any) -> str:
    """Revenue tier in GHS; missing revenue is Low"""
    amount = to_score(revenue)
    if amount <= 500:
        return 'Low (0-500 GHS)'
    if amount <= 1000:
        return 'Medium (501-1000 GHS)'
    return 'High (1000+ GHS)'


def business_stage(business_model: Any) -> str:
    """Stage guessed from keywords in the free-text business model"""
    text = (business_model or '').lower() if isinstance(business_model, str) else ''
    if 'new' in text or 'startup' in text:
        return 'New'
    if 'grow' in text or 'develop' in text:
        return 'Developing'
    return 'Established'


def age_group_counts(records: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    return bucket_counts((r.get('age') for r in records), age_group, AGE_GROUPS)


def revenue_tier_counts(revenues: Iterable[Any]) -> List[Dict[str, Any]]:
    return bucket_counts(revenues, revenue_tier, REVENUE_TIERS)


def business_stage_counts(records: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    return bucket_counts((r.get('business_model') for r in records), business_stage, BUSINESS_STAGES)


def named_counts(
    records: Iterable[Mapping[str, Any]],
    field_name: str,
    names: Sequence[str],
    match_case: bool = True
) -> List[Dict[str, Any]]:
    """Counts for a fixed list of names, in that order, ignoring other values"""
    if match_case:
        counts = Counter(record.get(field_name) for record in records)
        return [{'name': name, 'value': counts.get(name, 0)} for name in names]
    counts = Counter(
        value.strip().lower() for value in (record.get(field_name) for record in records)
        if isinstance(value, str)
    )
    return [{'name': name, 'value': counts.get(name.lower(), 0)} for name in names]


def average_value(values: Iterable[Any]) -> Tuple[float, int]:
    """Mean of the positive numeric values and how many there were"""
    numbers = [number for number in (to_score(value) for value in values) if number]
    if not numbers:
        return 0.0, 0
    return sum(numbers) / len(numbers), len(numbers)
