"""
Report Engine Exceptions

Error taxonomy for the filtered report engine. InvalidFilterValue is always
recovered inside filter parsing; the others surface to callers.

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

from typing import Any, Iterable


class ReportEngineError(Exception):
    """Base class for report engine errors"""


class InvalidFilterValue(ReportEngineError):
    """A filter value has the wrong shape for its field type"""

    def __init__(self, field: str, value: Any, reason: str = "malformed value"):
        super().__init__(f"Invalid value for filter '{field}': {value!r} ({reason})")
        self.field = field
        self.value = value
        self.reason = reason


class DataAccessFailure(ReportEngineError):
    """The data store fetch failed"""

    def __init__(self, message: str, table: str = None):
        prefix = f"[{table}] " if table else ""
        super().__init__(f"{prefix}{message}")
        self.table = table
        self.message = message


class UnsupportedFormat(ReportEngineError):
    """Export format outside the supported set"""

    def __init__(self, requested: Any, supported: Iterable[str] = ()):
        supported = sorted(supported)
        detail = f"; supported formats: {', '.join(supported)}" if supported else ""
        super().__init__(f"Unsupported export format: {requested!r}{detail}")
        self.requested = requested
        self.supported = supported


class UnsupportedTemplate(ReportEngineError):
    """Export template name the entity does not define"""

    def __init__(self, requested: Any, supported: Iterable[str] = ()):
        supported = sorted(supported)
        detail = f"; available templates: {', '.join(supported)}" if supported else "; no templates available"
        super().__init__(f"Unknown export template: {requested!r}{detail}")
        self.requested = requested
        self.supported = supported


class ExportTooLarge(ReportEngineError):
    """Filtered set exceeds the export row cap"""

    def __init__(self, row_count: int, row_cap: int):
        super().__init__(
            f"Export would contain {row_count} rows, above the limit of {row_cap}. "
            f"Narrow your filters and try again."
        )
        self.row_count = row_count
        self.row_cap = row_cap


__all__ = [
    "ReportEngineError",
    "InvalidFilterValue",
    "DataAccessFailure",
    "UnsupportedFormat",
    "UnsupportedTemplate",
    "ExportTooLarge",
]
