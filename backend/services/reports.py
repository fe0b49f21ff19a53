"""Report service composing the store, filter pipeline, aggregator and exports.

Public methods return either a result model or a ``ToolError``; store
failures never escape as exceptions.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time

from backend.reporting.csv_export import transactions_to_csv
from backend.reporting.financial_report import FinancialReportData, generate_financial_report_pdf
from backend.reporting.formatting import format_date_br
from backend.repositories.transactions_repository import TransactionsRepository
from backend.services.inventory import find_low_stock, last_unit_price, project_inventory
from backend.services.report_filters import filter_transactions
from backend.services.report_stats import build_daily_report, calculate_report_stats, merge_daily_reports
from shared.models import (
    AggregatedReport,
    DailyReport,
    DateRange,
    InventoryResult,
    LastPriceResult,
    ReportFilters,
    ReportPeriod,
    ReportStats,
    ToolError,
    ToolErrorCode,
    Transaction,
    TransactionSearchResult,
    TransactionType,
)
from shared.text_utils import material_key, normalize_text


logger = logging.getLogger(__name__)


_PERIOD_LABELS: dict[ReportPeriod, str] = {
    ReportPeriod.TODOS: "Todo o período",
    ReportPeriod.HOJE: "Hoje",
    ReportPeriod.SEMANA: "Esta semana",
    ReportPeriod.MES: "Este mês",
    ReportPeriod.TRIMESTRE: "Este trimestre",
    ReportPeriod.ANO: "Este ano",
}


def period_label(filters: ReportFilters) -> str:
    """Return a human readable label of the date criteria of ``filters``."""

    if filters.periodo in _PERIOD_LABELS:
        return _PERIOD_LABELS[filters.periodo]
    if filters.start_date and filters.end_date:
        return f"{format_date_br(filters.start_date)} a {format_date_br(filters.end_date)}"
    if filters.start_date:
        return f"A partir de {format_date_br(filters.start_date)}"
    if filters.end_date:
        return f"Até {format_date_br(filters.end_date)}"
    return _PERIOD_LABELS[ReportPeriod.TODOS]


def _store_bounds(filters: ReportFilters) -> tuple[datetime | None, datetime | None]:
    """Return the custom date range to push down to the store, if any."""

    if filters.periodo not in (None, ReportPeriod.PERSONALIZADO):
        return None, None
    start = datetime.combine(filters.start_date, time.min) if filters.start_date else None
    end = datetime.combine(filters.end_date, time.max) if filters.end_date else None
    return start, end


@dataclass(slots=True)
class ReportService:
    transactions_repository: TransactionsRepository
    company_name: str = "IMPÉRIO SUCATA"
    pdf_transactions_limit: int = 250
    min_stock_levels: Mapping[str, int] | None = None
    default_min_stock_level: int = 10

    def _filtered(self, filters: ReportFilters, now: datetime | None) -> list[Transaction]:
        start, end = _store_bounds(filters)
        transactions = self.transactions_repository.list_transactions(start=start, end=end)
        return filter_transactions(transactions, filters, now=now)

    def search_transactions(
        self, filters: ReportFilters, *, now: datetime | None = None
    ) -> TransactionSearchResult | ToolError:
        try:
            items = self._filtered(filters, now)
        except Exception as exc:
            logger.warning("reports_search_failed", extra={"error": str(exc)})
            return ToolError(code=ToolErrorCode.BACKEND_ERROR, message=str(exc))
        return TransactionSearchResult(items=items, total=len(items), filters=filters)

    def summary(self, filters: ReportFilters, *, now: datetime | None = None) -> ReportStats | ToolError:
        try:
            items = self._filtered(filters, now)
        except Exception as exc:
            logger.warning("reports_summary_failed", extra={"error": str(exc)})
            return ToolError(code=ToolErrorCode.BACKEND_ERROR, message=str(exc))
        return calculate_report_stats(items)

    def export_csv(self, filters: ReportFilters, *, now: datetime | None = None) -> str | ToolError:
        try:
            items = self._filtered(filters, now)
        except Exception as exc:
            logger.warning("reports_csv_export_failed", extra={"error": str(exc)})
            return ToolError(code=ToolErrorCode.BACKEND_ERROR, message=str(exc))

        logger.info("reports_csv_exported", extra={"rows": len(items)})
        return transactions_to_csv(items)

    def export_pdf(self, filters: ReportFilters, *, now: datetime | None = None) -> bytes | ToolError:
        try:
            items = self._filtered(filters, now)
            report = FinancialReportData(
                period_label=period_label(filters),
                stats=calculate_report_stats(items),
                transactions=items,
                company_name=self.company_name,
                transactions_limit=self.pdf_transactions_limit,
                generated_at=now or datetime.now(),
            )
            pdf_bytes = generate_financial_report_pdf(report)
        except Exception as exc:
            logger.warning("reports_pdf_export_failed", extra={"error": str(exc)})
            return ToolError(code=ToolErrorCode.BACKEND_ERROR, message=str(exc))

        logger.info("reports_pdf_exported", extra={"rows": len(items), "size_bytes": len(pdf_bytes)})
        return pdf_bytes

    def daily_report(self, day: date) -> DailyReport | ToolError:
        try:
            transactions = self.transactions_repository.list_transactions(
                start=datetime.combine(day, time.min),
                end=datetime.combine(day, time.max),
            )
        except Exception as exc:
            logger.warning("reports_daily_failed", extra={"day": day.isoformat(), "error": str(exc)})
            return ToolError(code=ToolErrorCode.BACKEND_ERROR, message=str(exc))
        return build_daily_report(transactions, day)

    def aggregated_report(
        self, start_date: date, end_date: date, *, material: str | None = None
    ) -> AggregatedReport | ToolError:
        if start_date > end_date:
            return ToolError(
                code=ToolErrorCode.VALIDATION_ERROR,
                message="start_date must be on or before end_date",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )

        try:
            transactions = self.transactions_repository.list_transactions(
                start=datetime.combine(start_date, time.min),
                end=datetime.combine(end_date, time.max),
            )
        except Exception as exc:
            logger.warning("reports_aggregated_failed", extra={"error": str(exc)})
            return ToolError(code=ToolErrorCode.BACKEND_ERROR, message=str(exc))

        days = sorted({t.data.date() for t in transactions if t.data is not None})
        snapshots = [
            build_daily_report(transactions, day) for day in days if start_date <= day <= end_date
        ]
        material_filter = material.strip() if material and material.strip() else None
        merged = merge_daily_reports(snapshots, material=material_filter)
        return AggregatedReport(
            **dict(merged),
            period=DateRange(start_date=start_date, end_date=end_date),
            material=material_key(material_filter) if material_filter else None,
        )

    def inventory(self) -> InventoryResult | ToolError:
        try:
            transactions = self.transactions_repository.list_transactions()
        except Exception as exc:
            logger.warning("inventory_failed", extra={"error": str(exc)})
            return ToolError(code=ToolErrorCode.BACKEND_ERROR, message=str(exc))

        items = project_inventory(transactions)
        low_stock = find_low_stock(
            items,
            min_levels=self.min_stock_levels,
            default_min=self.default_min_stock_level,
        )
        if low_stock:
            logger.info("inventory_low_stock_detected", extra={"materials": [item.material for item in low_stock]})
        return InventoryResult(items=items, low_stock=low_stock)

    def last_price(self, material: str, tipo: str) -> LastPriceResult | ToolError:
        normalized_tipo = normalize_text(tipo)
        if normalized_tipo not in {member.value for member in TransactionType}:
            return ToolError(
                code=ToolErrorCode.VALIDATION_ERROR,
                message=f"Unknown transaction type: {tipo}",
                details={"allowed": [member.value for member in TransactionType]},
            )
        if not normalize_text(material):
            return ToolError(code=ToolErrorCode.VALIDATION_ERROR, message="material is required")

        try:
            transactions = self.transactions_repository.list_transactions()
        except Exception as exc:
            logger.warning("last_price_failed", extra={"error": str(exc)})
            return ToolError(code=ToolErrorCode.BACKEND_ERROR, message=str(exc))

        result = last_unit_price(transactions, material, normalized_tipo)
        if result is None:
            return ToolError(
                code=ToolErrorCode.NOT_FOUND,
                message="No transaction found for material and type",
                details={"material": material_key(material), "tipo": normalized_tipo},
            )
        return result

