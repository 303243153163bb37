"""
Report Handlers (Business Logic Layer)

Report flows built on the filter, query, aggregation and export layers.
ReportSession runs the list flow (one page plus optional aggregate) and the
export flow (whole filtered set, capped, serialized to a file). SummaryReports
computes the dashboard summary charts over filtered youth and business sets.
Neither keeps any per-request state.

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

import re
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import config, ReportConfig
from ..exceptions import ExportTooLarge
from . import aggregator
from .aggregator import AggregateResult
from .entities import EntityDefinition, YOUTH, BUSINESSES
from .exporter import ExportFile, export_records, parse_format
from .filters import FilterSpec, build_filter_spec
from .models import RecordModel
from .query import SortSpec, translate_filters

logger = logging.getLogger(__name__)

AGGREGATE_SCOPES = ('page', 'full')
MONTH_NAMES = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']


@dataclass
class ReportResult:
    """One page of typed records with the total across all pages"""
    records: List[RecordModel]
    total: int
    page: int
    page_size: int
    aggregate: Optional[AggregateResult] = None
    filters: Optional[FilterSpec] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'records': [record.model_dump(by_alias=True, mode='json') for record in self.records],
            'total': self.total,
            'page': self.page,
            'pageSize': self.page_size,
        }
        if self.aggregate is not None:
            result['aggregate'] = self.aggregate.to_dict()
        if self.filters is not None:
            result['appliedFilters'] = self.filters.to_dict()
        return result


class ReportSession:
    """
    Orchestrates the list and export flows for any catalogued entity.

    Holds only its collaborators: the store (anything with
    fetch(StoreQuery) -> StorePage and count(StoreQuery) -> int, normally a
    ReportService) and the report settings.
    """

    def __init__(self, store, report_config: Optional[ReportConfig] = None):
        self.store = store
        self.report_config = report_config or config.reports
        self.logger = logging.getLogger(self.__class__.__name__)

    def fetch_all(
        self,
        entity: EntityDefinition,
        spec: FilterSpec,
        default_order: Optional[Tuple[SortSpec, ...]] = None
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Whole filtered set, bounded by the export row cap.

        Returns:
            Tuple of (records as plain dicts, total matching rows); total can
            exceed the number of records when the cap was hit
        """
        query = translate_filters(
            spec, entity, paginate=False, limit=self.report_config.export_row_cap, default_order=default_order
        )
        page = self.store.fetch(query)
        records = [entity.to_record(row).model_dump() for row in page.rows]
        total = page.total if page.total is not None else len(records)
        return records, total

    def _aggregate_scope(self, aggregate: Optional[str], group_by: Optional[str]) -> Optional[str]:
        if aggregate is None or (isinstance(aggregate, str) and not aggregate.strip()):
            return 'page' if group_by else None
        scope = str(aggregate).strip().lower()
        if scope not in AGGREGATE_SCOPES:
            self.logger.debug(f"Ignoring unknown aggregate scope {aggregate!r}")
            return 'page' if group_by else None
        return scope

    def list_records(
        self,
        entity: EntityDefinition,
        spec: FilterSpec,
        aggregate: Optional[str] = None,
        group_by: Optional[str] = None
    ) -> ReportResult:
        """
        List flow: one page of records plus optional aggregate.

        Args:
            entity: Catalogue entry to report on
            spec: Filter specification (carries page and page size)
            aggregate: 'page' or 'full'; defaults to 'page' when group_by is set
            group_by: Field to group-by-count (wire or column name)

        Raises:
            DataAccessFailure: if the store fetch fails
        """
        query = translate_filters(spec, entity)
        page = self.store.fetch(query)
        records = [entity.to_record(row) for row in page.rows]
        total = page.total if page.total is not None else query.offset + len(records)

        result = ReportResult(
            records=records, total=total, page=spec.page, page_size=spec.page_size, filters=spec
        )

        scope = self._aggregate_scope(aggregate, group_by)
        if scope is None:
            return result

        column = entity.resolve_column(group_by, computed=True) if group_by else None
        if group_by and column is None:
            self.logger.debug(f"Ignoring unknown group-by field {group_by!r} for {entity.name}")

        truncated = False
        if scope == 'full':
            rows, full_total = self.fetch_all(entity, spec)
            truncated = full_total > len(rows)
        else:
            rows = [record.model_dump() for record in records]

        result.aggregate = aggregator.aggregate(
            rows,
            field_name=column,
            score_fields=entity.score_fields or None,
            label=entity.group_labels.get(column) if column else None,
            scope=scope
        )
        result.aggregate.truncated = truncated
        return result

    def export(
        self,
        entity: EntityDefinition,
        spec: FilterSpec,
        export_format: Any,
        timestamp: Optional[datetime] = None,
        template: Any = None
    ) -> ExportFile:
        """
        Export flow: whole filtered set serialized to the requested format.

        The format and template are checked before the store is touched, and
        the matching rows are counted before any are fetched. Pagination in
        the spec is ignored. An empty set gives a header-only file.

        Args:
            entity: Catalogue entry to export
            spec: Filter specification
            export_format: excel, csv or json
            timestamp: Appended to the filename when given (or when
                timestamp_filenames is on)
            template: Named export layout; None uses the entity's own columns

        Raises:
            UnsupportedFormat: for formats outside excel, csv and json
            UnsupportedTemplate: for template names the entity does not define
            ExportTooLarge: when the filtered set exceeds the export row cap
            DataAccessFailure: if the store count or fetch fails
        """
        export_format = parse_format(export_format)
        layout = entity.export_layout(template)
        row_cap = self.report_config.export_row_cap

        total = self.store.count(translate_filters(spec, entity, paginate=False))
        if total > row_cap:
            self.logger.warning(f"Refusing {entity.name} export of {total} rows (cap {row_cap})")
            raise ExportTooLarge(total, row_cap)

        records, _ = self.fetch_all(entity, spec, default_order=layout.order)

        if timestamp is None and self.report_config.timestamp_filenames:
            timestamp = datetime.now()

        return export_records(
            records,
            layout.columns,
            export_format,
            report_name=layout.report_name,
            sheet_name=layout.sheet_name,
            timestamp=timestamp
        )

    def filter_options(self, entity: EntityDefinition) -> Dict[str, List[Any]]:
        """Distinct stored values of each set-typed field, keyed by wire name"""
        return {
            filter_field.name: self.store.distinct_values(
                entity.table, filter_field.column, entity.base_conditions
            )
            for filter_field in entity.set_fields
        }


def _canonical(value: Optional[str], names: Sequence[str]) -> Optional[str]:
    """Case-insensitive match against known names; None means no constraint"""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == 'all':
        return None
    for name in names:
        if name.lower() == text.lower():
            return name
    return text


def _year_month(value: Any) -> Optional[Tuple[int, int]]:
    if isinstance(value, (datetime, date)):
        return value.year, value.month
    if isinstance(value, str):
        match = re.match(r"^(\d{4})-(\d{2})", value)
        if match:
            return int(match.group(1)), int(match.group(2))
    return None


class SummaryReports:
    """Handlers for the dashboard summary report"""

    REPORT_TYPES = ('summary', 'participants', 'businesses', 'performance', 'all')

    def __init__(self, session: ReportSession):
        self.session = session
        self.report_config = session.report_config
        self.logger = logging.getLogger(self.__class__.__name__)

    def get_report(
        self,
        period: str = 'all',
        district: Optional[str] = 'all',
        model: Optional[str] = 'all',
        report_type: str = 'summary',
        today: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Summary charts over youth (filtered by period and district) and
        businesses (filtered by district and DARE model).

        Args:
            period: all, month, quarter or year (youth registration window)
            district: District name, case-insensitive, or 'all'
            model: DARE model name, case-insensitive, or 'all'
            report_type: summary, participants, businesses, performance or all
            today: Reference date for the period window

        Raises:
            DataAccessFailure: if any store fetch fails
        """
        report_type = (report_type or 'summary').strip().lower()
        if report_type not in self.REPORT_TYPES:
            self.logger.debug(f"Unknown summary type {report_type!r}, using summary")
            report_type = 'summary'

        district_name = _canonical(district, self.report_config.districts)
        model_name = _canonical(model, self.report_config.dare_models)

        youth_spec = build_filter_spec(
            YOUTH,
            {'district': district_name or [], 'period': period},
            today=today,
            report_config=self.report_config
        )
        business_spec = build_filter_spec(
            BUSINESSES,
            {'district': district_name or [], 'dareModel': model_name or []},
            report_config=self.report_config
        )

        youth, youth_total = self.session.fetch_all(YOUTH, youth_spec)
        businesses, business_total = self.session.fetch_all(BUSINESSES, business_spec)
        if youth_total > len(youth) or business_total > len(businesses):
            self.logger.warning("Summary computed over a capped record set")

        report: Dict[str, Any] = {}
        if report_type in ('summary', 'all'):
            report.update(self._summary_section(youth, businesses))
        if report_type in ('participants', 'all'):
            report.update(self._participants_section(youth))
        if report_type in ('businesses', 'all'):
            report.update(self._businesses_section(businesses))
        if report_type in ('performance', 'all'):
            report.update(self._performance_section())
        return report

    def _summary_section(self, youth: List[Dict[str, Any]], businesses: List[Dict[str, Any]]) -> Dict[str, Any]:
        revenues = [revenue for _, revenue in self.session.store.tracking_revenue()]
        average_revenue, _ = aggregator.average_value(revenues)

        registrations = [0] * 12
        for profile in youth:
            year_month = _year_month(profile.get('created_at'))
            if year_month:
                registrations[year_month[1] - 1] += 1

        return {
            'summary': {
                'totalYouth': len(youth),
                'totalBusinesses': len(businesses),
                'averageRevenue': round(average_revenue, 2),
                'activeDistricts': len({p['district'] for p in youth if p.get('district')}),
            },
            'businessByDistrict': aggregator.named_counts(businesses, 'district', self.report_config.districts),
            'youthRegistrationData': [
                {'month': month, 'count': registrations[index]} for index, month in enumerate(MONTH_NAMES)
            ],
            'businessModelData': aggregator.named_counts(businesses, 'dare_model', self.report_config.dare_models),
            'genderDistributionData': aggregator.named_counts(youth, 'gender', ['Male', 'Female'], match_case=False),
        }

    def _participants_section(self, youth: List[Dict[str, Any]]) -> Dict[str, Any]:
        completed, in_progress = aggregator.named_counts(
            youth, 'training_status', ['Completed', 'In Progress'], match_case=False
        )
        not_started = sum(
            1 for p in youth
            if not p.get('training_status') or str(p['training_status']).strip().lower() == 'not started'
        )
        return {
            'participantsByDistrict': aggregator.named_counts(youth, 'district', self.report_config.districts),
            'ageGroupData': aggregator.age_group_counts(youth),
            'trainingStatusData': [completed, in_progress, {'name': 'Not Started', 'value': not_started}],
        }

    def _businesses_section(self, businesses: List[Dict[str, Any]]) -> Dict[str, Any]:
        business_ids = [b['id'] for b in businesses if b.get('id') is not None]
        latest = self.session.store.latest_revenue(business_ids)
        return {
            'revenueTierData': aggregator.revenue_tier_counts(latest.get(b.get('id')) for b in businesses),
            'businessStageData': aggregator.business_stage_counts(businesses),
        }

    def _performance_section(self) -> Dict[str, Any]:
        monthly: Dict[Tuple[int, int], List[float]] = {}
        for tracking_date, revenue in self.session.store.tracking_revenue():
            year_month = _year_month(tracking_date)
            amount = aggregator.to_score(revenue)
            if year_month is None or not amount:
                continue
            monthly.setdefault(year_month, []).append(amount)

        return {
            'revenueGrowthData': [
                {'name': f"{MONTH_NAMES[month - 1]} {year}", 'value': sum(amounts) / len(amounts)}
                for (year, month), amounts in sorted(monthly.items())
            ]
        }
