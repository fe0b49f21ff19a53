"""Contract tests for the report service boundary."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from backend.services.reports import ReportService, period_label
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
from tests.fakes import FIXED_NOW, FakeTransactionsRepository


def _service(repository: FakeTransactionsRepository | None = None) -> ReportService:
    return ReportService(transactions_repository=repository or FakeTransactionsRepository())


def test_search_transactions_returns_filtered_items() -> None:
    result = _service().search_transactions(ReportFilters(periodo="mes"), now=FIXED_NOW)

    assert isinstance(result, TransactionSearchResult)
    assert [item.id for item in result.items] == ["t3", "t2", "t1"]
    assert result.total == 3


def test_custom_range_is_pushed_down_to_repository() -> None:
    repository = FakeTransactionsRepository()

    _service(repository).summary(ReportFilters(start_date=date(2025, 3, 10), end_date=date(2025, 3, 10)))

    assert repository.calls == [
        {"start": datetime(2025, 3, 10, 0, 0), "end": datetime(2025, 3, 10, 23, 59, 59, 999999)}
    ]


def test_named_period_reads_whole_store() -> None:
    repository = FakeTransactionsRepository()

    _service(repository).summary(ReportFilters(periodo="ano", start_date=date(2025, 3, 10)), now=FIXED_NOW)

    assert repository.calls == [{"start": None, "end": None}]


def test_summary_aggregates_filtered_transactions() -> None:
    result = _service().summary(ReportFilters(material="ferro"))

    assert isinstance(result, ReportStats)
    assert result.total_profit == Decimal("60")
    assert result.total_transactions == 2


def test_store_failure_becomes_backend_error() -> None:
    service = _service(FakeTransactionsRepository(error=RuntimeError("Supabase request failed with status 500: boom")))

    for result in (
        service.search_transactions(ReportFilters()),
        service.summary(ReportFilters()),
        service.export_csv(ReportFilters()),
        service.export_pdf(ReportFilters()),
        service.daily_report(date(2025, 3, 10)),
        service.inventory(),
    ):
        assert isinstance(result, ToolError)
        assert result.code == ToolErrorCode.BACKEND_ERROR
        assert "status 500" in result.message


def test_export_csv_lists_filtered_rows() -> None:
    result = _service().export_csv(ReportFilters(tipo="compra"))

    assert isinstance(result, str)
    assert len(result.split("\n")) == 3


def test_export_pdf_returns_pdf_bytes() -> None:
    result = _service().export_pdf(ReportFilters(periodo="todos"), now=FIXED_NOW)

    assert isinstance(result, bytes)
    assert result.startswith(b"%PDF")


def test_daily_report_for_one_day() -> None:
    result = _service().daily_report(date(2025, 3, 11))

    assert isinstance(result, DailyReport)
    assert result.total_expenses == Decimal("15")
    assert result.expenses_count == 1


def test_aggregated_report_merges_days_in_range() -> None:
    result = _service().aggregated_report(date(2025, 2, 1), date(2025, 3, 31), material="Ferro")

    assert isinstance(result, AggregatedReport)
    assert result.total_transactions == 4
    assert result.total_purchases == Decimal("360")
    assert set(result.material_stats) == {"ferro"}
    assert result.material == "ferro"
    assert result.period.start_date == date(2025, 2, 1)
    assert [day.date for day in result.daily_breakdown] == [
        date(2025, 2, 20),
        date(2025, 3, 10),
        date(2025, 3, 11),
    ]


def test_aggregated_report_rejects_inverted_range() -> None:
    result = _service().aggregated_report(date(2025, 3, 31), date(2025, 3, 1))

    assert isinstance(result, ToolError)
    assert result.code == ToolErrorCode.VALIDATION_ERROR


def test_inventory_reports_low_stock() -> None:
    result = _service().inventory()

    assert isinstance(result, InventoryResult)
    assert {alert.material for alert in result.low_stock} == {"aluminio", "cobre", "ferro"}


def test_last_price_validates_type_and_reports_missing() -> None:
    service = _service()

    found = service.last_price("ferro", "Compra")
    invalid = service.last_price("ferro", "troca")
    missing = service.last_price("inox", "venda")

    assert isinstance(found, LastPriceResult)
    assert found.preco_unitario == Decimal("0.80")
    assert isinstance(invalid, ToolError) and invalid.code == ToolErrorCode.VALIDATION_ERROR
    assert isinstance(missing, ToolError) and missing.code == ToolErrorCode.NOT_FOUND


def test_period_label_describes_criteria() -> None:
    assert period_label(ReportFilters(periodo="mes")) == "Este mês"
    assert period_label(ReportFilters(start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))) == (
        "01/01/2025 a 31/01/2025"
    )
    assert period_label(ReportFilters()) == "Todo o período"
