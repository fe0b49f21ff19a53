"""FastAPI entrypoint for reporting HTTP endpoints."""

from __future__ import annotations

import logging
from datetime import date, datetime
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from backend.factory import build_report_service
from backend.reporting.formatting import export_filename
from backend.services.reports import ReportService
from shared import config as _config
from shared.models import (
    AggregatedReport,
    DailyReport,
    InventoryResult,
    LastPriceResult,
    ReportFilters,
    ReportStats,
    ToolError,
    ToolErrorCode,
    TransactionSearchResult,
)


logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_report_service() -> ReportService:
    """Return the process-wide report service."""

    return build_report_service()


def _raise_for_tool_error(result: object) -> None:
    if not isinstance(result, ToolError):
        return
    status_code = 404 if result.code == ToolErrorCode.NOT_FOUND else 400
    raise HTTPException(status_code=status_code, detail=result.message)


def report_filters_from_query(
    periodo: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    material: str | None = None,
    tipo: str | None = None,
    forma_pagamento: str | None = None,
    cliente: str | None = None,
    valor_min: str | None = None,
    valor_max: str | None = None,
    search_term: str | None = None,
) -> ReportFilters:
    """Build report criteria from query parameters; blank values mean no constraint."""

    try:
        return ReportFilters(
            periodo=periodo,
            start_date=start_date,
            end_date=end_date,
            material=material,
            tipo=tipo,
            forma_pagamento=forma_pagamento,
            cliente=cliente,
            valor_min=valor_min,
            valor_max=valor_max,
            search_term=search_term,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc


app = FastAPI(title="Império Sucata Reports API")

ALLOW_ORIGINS = _config.cors_allow_origins()


@app.middleware("http")
async def log_http_requests(request: Request, call_next):
    """Log incoming requests, HTTP status codes and unexpected errors."""

    logger.info("http_request_received method=%s path=%s", request.method, request.url.path)
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "http_request_failed method=%s path=%s",
            request.method,
            request.url.path,
        )
        raise

    logger.info(
        "http_response_sent method=%s path=%s status_code=%s",
        request.method,
        request.url.path,
        response.status_code,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info("cors_allow_origins=%s", ALLOW_ORIGINS)


@app.exception_handler(Exception)
async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """Return a JSON 500 response for unhandled exceptions."""

    logger.exception(
        "unhandled_exception method=%s path=%s exception_type=%s message=%s",
        request.method,
        request.url.path,
        type(exc).__name__,
        str(exc),
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.get("/health")
def health() -> dict[str, str]:
    """Healthcheck endpoint."""

    return {"status": "ok"}


@app.get("/reports/transactions", response_model=TransactionSearchResult)
def get_report_transactions(
    filters: ReportFilters = Depends(report_filters_from_query),
) -> TransactionSearchResult:
    result = get_report_service().search_transactions(filters)
    _raise_for_tool_error(result)
    return result


@app.get("/reports/summary", response_model=ReportStats)
def get_report_summary(filters: ReportFilters = Depends(report_filters_from_query)) -> ReportStats:
    logger.info(
        "reports_summary_requested",
        extra={"periodo": filters.periodo.value if filters.periodo else None},
    )
    result = get_report_service().summary(filters)
    _raise_for_tool_error(result)
    return result


@app.get("/reports/export.csv")
def get_report_csv(filters: ReportFilters = Depends(report_filters_from_query)) -> Response:
    result = get_report_service().export_csv(filters)
    _raise_for_tool_error(result)

    filename = export_filename("csv", datetime.now())
    return Response(
        content=result.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/reports/export.pdf")
def get_report_pdf(filters: ReportFilters = Depends(report_filters_from_query)) -> Response:
    logger.info(
        "reports_pdf_requested",
        extra={"periodo": filters.periodo.value if filters.periodo else None},
    )
    result = get_report_service().export_pdf(filters)
    _raise_for_tool_error(result)

    filename = export_filename("pdf", datetime.now())
    return Response(
        content=result,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


@app.get("/reports/daily/{day}", response_model=DailyReport)
def get_daily_report(day: date) -> DailyReport:
    result = get_report_service().daily_report(day)
    _raise_for_tool_error(result)
    return result


@app.get("/reports/aggregated", response_model=AggregatedReport)
def get_aggregated_report(
    start_date: date,
    end_date: date,
    material: str | None = None,
) -> AggregatedReport:
    result = get_report_service().aggregated_report(start_date, end_date, material=material)
    _raise_for_tool_error(result)
    return result


@app.get("/inventory", response_model=InventoryResult)
def get_inventory() -> InventoryResult:
    result = get_report_service().inventory()
    _raise_for_tool_error(result)
    return result


@app.get("/transactions/last-price", response_model=LastPriceResult)
def get_last_price(material: str, tipo: str) -> LastPriceResult:
    result = get_report_service().last_price(material, tipo)
    _raise_for_tool_error(result)
    return result
