"""Aggregation of transactions into report statistics and daily snapshots."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from shared.models import (
    CounterpartyStats,
    DailyBreakdown,
    DailyReport,
    MaterialStats,
    PaymentStats,
    PerformanceMetrics,
    RankedMaterial,
    ReportStats,
    TopClient,
    TopSupplier,
    Transaction,
    TransactionType,
)
from shared.text_utils import first_non_empty, material_key


UNKNOWN_COUNTERPARTY = "Não informado"
TOP_MATERIALS_LIMIT = 15
TOP_COUNTERPARTIES_LIMIT = 10


def _ratio(numerator: Decimal, denominator: Decimal | int) -> Decimal:
    if denominator > 0:
        return numerator / Decimal(denominator)
    return Decimal("0")


def _add_counterparty(
    analysis: dict[str, CounterpartyStats], name: str, value: Decimal, quantity: Decimal
) -> None:
    entry = analysis.setdefault(name, CounterpartyStats())
    entry.total += value
    entry.transacoes += 1
    entry.quantidade += quantity


def _ranked_by_total(analysis: dict[str, CounterpartyStats]) -> list[tuple[str, CounterpartyStats]]:
    ordered = sorted(analysis.items(), key=lambda item: item[1].total, reverse=True)
    return ordered[:TOP_COUNTERPARTIES_LIMIT]


def _finalize(stats: ReportStats, days: dict[date, DailyBreakdown]) -> ReportStats:
    # Expenses are reported apart and never reduce profit.
    stats.total_profit = stats.total_sales - stats.total_purchases
    stats.profit_margin = _ratio(stats.total_profit, stats.total_sales)

    for material in stats.material_stats.values():
        material.lucro = material.vendas - material.compras
        material.margem = _ratio(material.lucro, material.vendas)
        material.roi = _ratio(material.lucro, material.compras)
        material.preco_medio_venda = _ratio(material.vendas, material.quantidade_vendas)
        material.preco_medio_compra = _ratio(material.compras, material.quantidade_compras)

    for day in days.values():
        day.profit = day.sales - day.purchases

    stats.daily_breakdown = sorted(days.values(), key=lambda day: day.date)

    by_profit = sorted(stats.material_stats.items(), key=lambda item: item[1].lucro, reverse=True)
    stats.top_materials = [
        RankedMaterial(material=key, **material.model_dump()) for key, material in by_profit[:TOP_MATERIALS_LIMIT]
    ]
    stats.top_clients = [
        TopClient(nome=name, ticket_medio=_ratio(entry.total, entry.transacoes), **entry.model_dump())
        for name, entry in _ranked_by_total(stats.client_analysis)
    ]
    stats.top_suppliers = [
        TopSupplier(nome=name, custo_medio=_ratio(entry.total, entry.transacoes), **entry.model_dump())
        for name, entry in _ranked_by_total(stats.supplier_analysis)
    ]
    stats.performance_metrics = PerformanceMetrics(
        ticket_medio_venda=_ratio(stats.total_sales, stats.sales_count),
        ticket_medio_compra=_ratio(stats.total_purchases, stats.purchases_count),
        rotatividade_estoque=_ratio(stats.total_sales, stats.total_purchases),
    )
    return stats


def calculate_report_stats(transactions: Iterable[Transaction] | None) -> ReportStats:
    """Compute totals, rankings and per-material, per-payment and per-day breakdowns in one pass."""

    stats = ReportStats()
    days: dict[date, DailyBreakdown] = {}

    for transaction in transactions or []:
        value = transaction.valor_total
        quantity = transaction.quantidade
        stats.total_transactions += 1

        material = stats.material_stats.setdefault(material_key(transaction.material), MaterialStats())
        material.quantidade += quantity
        material.transacoes += 1

        payment = stats.payment_stats.setdefault(transaction.payment_method, PaymentStats())
        payment.count += 1
        payment.total += value

        day = None
        if transaction.data is not None:
            day_key = transaction.data.date()
            day = days.setdefault(day_key, DailyBreakdown(date=day_key))
            day.transactions += 1

        if transaction.tipo is TransactionType.VENDA:
            stats.total_sales += value
            stats.sales_count += 1
            material.vendas += value
            material.quantidade_vendas += quantity
            payment.sales += value
            client = first_non_empty(transaction.cliente, transaction.vendedor) or UNKNOWN_COUNTERPARTY
            _add_counterparty(stats.client_analysis, client, value, quantity)
            if day is not None:
                day.sales += value
        elif transaction.tipo is TransactionType.COMPRA:
            stats.total_purchases += value
            stats.purchases_count += 1
            material.compras += value
            material.quantidade_compras += quantity
            payment.purchases += value
            supplier = first_non_empty(transaction.fornecedor) or UNKNOWN_COUNTERPARTY
            _add_counterparty(stats.supplier_analysis, supplier, value, quantity)
            if day is not None:
                day.purchases += value
        else:
            stats.total_expenses += value
            stats.expenses_count += 1
            if day is not None:
                day.expenses += value

    return _finalize(stats, days)


def build_daily_report(transactions: Iterable[Transaction] | None, day: date) -> DailyReport:
    """Return the snapshot of every transaction dated on ``day``."""

    same_day = [t for t in transactions or [] if t.data is not None and t.data.date() == day]
    stats = calculate_report_stats(same_day)
    return DailyReport.model_validate({**stats.model_dump(), "date": day})


def _merge_counterparties(
    target: dict[str, CounterpartyStats], source: dict[str, CounterpartyStats]
) -> None:
    for name, entry in source.items():
        merged = target.setdefault(name, CounterpartyStats())
        merged.total += entry.total
        merged.transacoes += entry.transacoes
        merged.quantidade += entry.quantidade


def merge_daily_reports(reports: Iterable[DailyReport], *, material: str | None = None) -> ReportStats:
    """Merge daily snapshots into one period report.

    Totals, counts and the material, payment, client and supplier maps are
    summed. Profit, averages and rankings are derived again from the merged
    values. ``daily_breakdown`` holds one entry per snapshot. When
    ``material`` is given the material map is restricted to it.
    """

    merged = ReportStats()
    days: dict[date, DailyBreakdown] = {}

    for report in sorted(reports, key=lambda item: item.date):
        merged.total_sales += report.total_sales
        merged.total_purchases += report.total_purchases
        merged.total_expenses += report.total_expenses
        merged.total_transactions += report.total_transactions
        merged.sales_count += report.sales_count
        merged.purchases_count += report.purchases_count
        merged.expenses_count += report.expenses_count

        for key, source in report.material_stats.items():
            target = merged.material_stats.setdefault(key, MaterialStats())
            target.vendas += source.vendas
            target.compras += source.compras
            target.quantidade += source.quantidade
            target.quantidade_vendas += source.quantidade_vendas
            target.quantidade_compras += source.quantidade_compras
            target.transacoes += source.transacoes

        for method, source_payment in report.payment_stats.items():
            target_payment = merged.payment_stats.setdefault(method, PaymentStats())
            target_payment.count += source_payment.count
            target_payment.total += source_payment.total
            target_payment.sales += source_payment.sales
            target_payment.purchases += source_payment.purchases

        _merge_counterparties(merged.client_analysis, report.client_analysis)
        _merge_counterparties(merged.supplier_analysis, report.supplier_analysis)

        day = days.setdefault(report.date, DailyBreakdown(date=report.date))
        day.sales += report.total_sales
        day.purchases += report.total_purchases
        day.expenses += report.total_expenses
        day.transactions += report.total_transactions

    if material is not None:
        key = material_key(material)
        merged.material_stats = {
            name: stats for name, stats in merged.material_stats.items() if name == key
        }

    return _finalize(merged, days)
