"""Smoke tests for financial report PDF rendering."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from backend.reporting.financial_report import (
    FinancialReportData,
    _build_counterparty_table,
    _build_payments_table,
    _build_top_materials_table,
    generate_financial_report_pdf,
)
from backend.reporting.formatting import format_brl, format_percent, format_ratio
from backend.services.report_stats import calculate_report_stats
from shared.models import TransactionType
from tests.fakes import FIXED_TRANSACTIONS, make_transaction


def test_generate_financial_report_pdf_returns_pdf_bytes() -> None:
    pdf_bytes = generate_financial_report_pdf(
        FinancialReportData(
            period_label="Este mês",
            stats=calculate_report_stats(FIXED_TRANSACTIONS),
            transactions=list(FIXED_TRANSACTIONS),
            generated_at=datetime(2025, 3, 12, 15, 0),
        )
    )

    assert pdf_bytes.startswith(b"%PDF")
    assert len(pdf_bytes) > 1000


def test_generate_financial_report_pdf_handles_empty_period() -> None:
    pdf_bytes = generate_financial_report_pdf(
        FinancialReportData(period_label="Hoje", stats=calculate_report_stats([]), transactions=[])
    )

    assert pdf_bytes.startswith(b"%PDF")


def test_generate_financial_report_pdf_truncates_long_lists() -> None:
    transactions = [
        make_transaction(f"t{index}", TransactionType.VENDA, "10", data=datetime(2025, 1, 1), cliente="A & B")
        for index in range(30)
    ]

    pdf_bytes = generate_financial_report_pdf(
        FinancialReportData(
            period_label="01/01/2025 a 31/01/2025",
            stats=calculate_report_stats(transactions),
            transactions=transactions,
            transactions_limit=10,
        )
    )

    assert pdf_bytes.startswith(b"%PDF")


def test_currency_and_percent_use_brazilian_separators() -> None:
    assert format_brl(calculate_report_stats(FIXED_TRANSACTIONS).total_purchases) == "R$ 360,00"
    assert format_brl(Decimal("1234567.891")) == "R$ 1.234.567,89"
    assert format_percent(Decimal("0.125")) == "12,5%"
    assert format_ratio(Decimal("0.4444")) == "0,44"


def test_analysis_tables_list_rankings_and_payment_split() -> None:
    stats = calculate_report_stats(FIXED_TRANSACTIONS)

    materials = _build_top_materials_table(stats)._cellvalues
    payments = _build_payments_table(stats)._cellvalues
    suppliers = _build_counterparty_table(
        "Fornecedor",
        [(supplier.nome, supplier, supplier.custo_medio) for supplier in stats.top_suppliers],
        "Custo médio",
    )._cellvalues

    assert [row[0] for row in materials[1:]] == ["Ferro", "Alumínio", "Outros", "Cobre"]
    assert materials[1][3:] == ["R$ 1,25", "R$ 0,80", "150,0%"]
    assert payments[0][2:4] == ["Vendas", "Compras"]
    assert ["Pix", "2", "R$ 100,00", "R$ 320,00", "R$ 420,00"] == payments[1][:5]
    assert suppliers[1] == ["Eletro Reciclagem", "1", "10.00", "R$ 320,00", "R$ 320,00"]
