"""
Reports Module

Filtered report engine for the DARE YIW Tracker: filter specifications,
query translation, aggregation, export and the report flows behind the
/api/reports endpoints.

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

from .router import router as reports_router
from .filters import FilterSpec, NumericRange, build_filter_spec
from .query import StoreQuery, translate_filters
from .handlers import ReportResult, ReportSession, SummaryReports
from .exporter import ExportFormat, ExportFile, ColumnSpec, export_records
from .aggregator import AggregateResult, UNCATEGORIZED
from .entities import ENTITIES, get_entity
from .models import ReportResponse, FilterOptions

__all__ = [
    "reports_router",
    "FilterSpec",
    "NumericRange",
    "build_filter_spec",
    "StoreQuery",
    "translate_filters",
    "ReportResult",
    "ReportSession",
    "SummaryReports",
    "ExportFormat",
    "ExportFile",
    "ColumnSpec",
    "export_records",
    "AggregateResult",
    "UNCATEGORIZED",
    "ENTITIES",
    "get_entity",
    "ReportResponse",
    "FilterOptions",
]
