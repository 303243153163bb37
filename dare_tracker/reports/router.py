"""
Report Router (API Layer)

FastAPI router for the report engine: list, query, export and filter-options
endpoints for every catalogued entity, plus the dashboard summary. Filters
never cause an HTTP error; engine errors map to 400 (unsupported format or
export template), 413 (export too large) and 503 (data access failure,
retryable).

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Query, Depends, Request, Response
from fastapi.responses import JSONResponse

from ..exceptions import (
    ReportEngineError,
    UnsupportedFormat,
    UnsupportedTemplate,
    ExportTooLarge,
    DataAccessFailure,
)
from .entities import EntityDefinition, get_entity
from .filters import build_filter_spec
from .handlers import ReportSession, SummaryReports
from .models import ReportQueryRequest, ExportRequest, ReportResponse, FilterOptions
from .service import ReportService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/reports", tags=["reports"])

RETRY_AFTER_SECONDS = 5


# Dependency to get report service
def get_report_service():
    """Get report service instance backed by the application's database manager"""
    from ..app import app_state
    return ReportService(app_state["db_manager"])


def get_report_session(service: ReportService = Depends(get_report_service)) -> ReportSession:
    return ReportSession(service)


def _entity_or_404(name: str) -> EntityDefinition:
    entity = get_entity(name)
    if entity is None:
        raise HTTPException(status_code=404, detail=f"Unknown report entity: {name}")
    return entity


def _query_filters(request: Request) -> Dict[str, Any]:
    """Query parameters as a dict of value lists; repeated keys keep every value"""
    return {key: request.query_params.getlist(key) for key in request.query_params.keys()}


def _body_filters(filters: Any) -> Dict[str, Any]:
    if isinstance(filters, dict):
        return filters
    if filters is not None:
        logger.debug(f"Ignoring non-object filters: {filters!r}")
    return {}


def _error_response(error: ReportEngineError) -> JSONResponse:
    """Map engine errors to HTTP responses"""
    if isinstance(error, (UnsupportedFormat, UnsupportedTemplate)):
        logger.info(f"Rejected export: {error}")
        return JSONResponse(status_code=400, content={"detail": str(error), "supported": error.supported})
    if isinstance(error, ExportTooLarge):
        logger.info(f"Rejected export: {error}")
        return JSONResponse(
            status_code=413,
            content={"detail": str(error), "rowCount": error.row_count, "rowCap": error.row_cap}
        )
    if isinstance(error, DataAccessFailure):
        logger.error(f"Report data access failed: {error}")
        return JSONResponse(
            status_code=503,
            content={"detail": "Report data is temporarily unavailable", "retryable": True},
            headers={"Retry-After": str(RETRY_AFTER_SECONDS)}
        )
    logger.error(f"Report engine error: {error}")
    return JSONResponse(status_code=500, content={"detail": str(error)})


def _export_response(
    session: ReportSession,
    entity: EntityDefinition,
    spec,
    export_format: Any,
    template: Any = None
) -> Response:
    try:
        export_file = session.export(entity, spec, export_format, template=template)
    except ReportEngineError as e:
        return _error_response(e)
    return Response(
        content=export_file.content,
        media_type=export_file.media_type,
        headers={"Content-Disposition": export_file.content_disposition}
    )


# ============================================================================
# SUMMARY ENDPOINT
# ============================================================================

@router.get("/summary")
async def get_summary(
    period: str = Query("all", description="all, month, quarter or year"),
    district: str = Query("all"),
    model: str = Query("all", description="DARE model"),
    report_type: str = Query("summary", alias="type", description="summary, participants, businesses, performance or all"),
    session: ReportSession = Depends(get_report_session)
):
    """Get dashboard summary charts"""
    handler = SummaryReports(session)
    try:
        return handler.get_report(period=period, district=district, model=model, report_type=report_type)
    except ReportEngineError as e:
        return _error_response(e)


# ============================================================================
# ENTITY REPORT ENDPOINTS
# ============================================================================

@router.get("/{entity}/filter-options", response_model=FilterOptions)
async def get_filter_options(
    entity: str,
    session: ReportSession = Depends(get_report_session)
):
    """Get distinct values for each set-typed filter field"""
    definition = _entity_or_404(entity)
    try:
        options = session.filter_options(definition)
    except ReportEngineError as e:
        return _error_response(e)
    return FilterOptions(entity=definition.name, options=options)


@router.get("/{entity}/export")
async def export_report_get(
    entity: str,
    request: Request,
    export_format: str = Query("excel", alias="format"),
    template: Optional[str] = Query(None, description="Named export layout, e.g. mastercard or participant"),
    session: ReportSession = Depends(get_report_session)
):
    """Export the full filtered set; filters come from query parameters"""
    definition = _entity_or_404(entity)
    spec = build_filter_spec(definition, _query_filters(request))
    return _export_response(session, definition, spec, export_format, template)


@router.post("/{entity}/export")
async def export_report(
    entity: str,
    body: Optional[ExportRequest] = None,
    session: ReportSession = Depends(get_report_session)
):
    """Export the full filtered set; filters come from the JSON body"""
    definition = _entity_or_404(entity)
    body = body or ExportRequest()
    spec = build_filter_spec(
        definition,
        _body_filters(body.filters),
        sort_by=body.sort_by,
        sort_direction=body.sort_direction
    )
    return _export_response(session, definition, spec, body.format, body.template)


@router.post("/{entity}/query", response_model=ReportResponse)
async def query_report(
    entity: str,
    body: Optional[ReportQueryRequest] = None,
    session: ReportSession = Depends(get_report_session)
):
    """List one page of records; filters come from the JSON body"""
    definition = _entity_or_404(entity)
    body = body or ReportQueryRequest()
    spec = build_filter_spec(
        definition,
        _body_filters(body.filters),
        page=body.page,
        page_size=body.page_size,
        sort_by=body.sort_by,
        sort_direction=body.sort_direction
    )
    try:
        result = session.list_records(definition, spec, aggregate=body.aggregate, group_by=body.group_by)
    except ReportEngineError as e:
        return _error_response(e)
    return result.to_dict()


@router.get("/{entity}", response_model=ReportResponse)
async def list_report(
    entity: str,
    request: Request,
    aggregate: Optional[str] = Query(None, description="page or full"),
    group_by: Optional[str] = Query(None, alias="groupBy"),
    session: ReportSession = Depends(get_report_session)
):
    """List one page of records; filters, page and pageSize come from query parameters"""
    definition = _entity_or_404(entity)
    spec = build_filter_spec(definition, _query_filters(request))
    try:
        result = session.list_records(definition, spec, aggregate=aggregate, group_by=group_by)
    except ReportEngineError as e:
        return _error_response(e)
    return result.to_dict()
