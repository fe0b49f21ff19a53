"""Report filter pipeline over in-memory transaction snapshots.

Every filter is a pure function taking a list of transactions and returning
the kept subset in the same order. A transaction that lacks the field a
filter needs is dropped by that filter; unparseable numeric bounds leave the
list untouched. ``filter_transactions`` folds the active filters in a fixed
order and sorts the survivors by date, newest first.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, time, timedelta
from functools import partial, reduce

from shared.models import ReportFilters, ReportPeriod, Transaction
from shared.parsing import format_plain_number, parse_number_prefix
from shared.text_utils import normalize_text


TransactionStep = Callable[[list[Transaction]], list[Transaction]]


def period_start(periodo: ReportPeriod, today: date) -> date | None:
    """Return the first calendar day covered by a named period."""

    if periodo is ReportPeriod.HOJE:
        return today
    if periodo is ReportPeriod.SEMANA:
        # Weeks start on Sunday.
        return today - timedelta(days=(today.weekday() + 1) % 7)
    if periodo is ReportPeriod.MES:
        return today.replace(day=1)
    if periodo is ReportPeriod.TRIMESTRE:
        return date(today.year, ((today.month - 1) // 3) * 3 + 1, 1)
    if periodo is ReportPeriod.ANO:
        return date(today.year, 1, 1)
    return None


def filter_by_period(
    transactions: Sequence[Transaction], periodo: ReportPeriod, now: datetime
) -> list[Transaction]:
    start_day = period_start(periodo, now.date())
    if start_day is None:
        return list(transactions)

    start = datetime.combine(start_day, time.min)
    if periodo is ReportPeriod.HOJE:
        end = start + timedelta(days=1)
        return [t for t in transactions if t.data is not None and start <= t.data < end]
    return [t for t in transactions if t.data is not None and start <= t.data <= now]


def filter_by_start_date(transactions: Sequence[Transaction], start_date: date) -> list[Transaction]:
    start = datetime.combine(start_date, time.min)
    return [t for t in transactions if t.data is not None and t.data >= start]


def filter_by_end_date(transactions: Sequence[Transaction], end_date: date) -> list[Transaction]:
    end = datetime.combine(end_date, time.max)
    return [t for t in transactions if t.data is not None and t.data <= end]


def filter_by_material(transactions: Sequence[Transaction], material: str) -> list[Transaction]:
    expected = normalize_text(material)
    return [t for t in transactions if t.material and normalize_text(t.material) == expected]


def filter_by_type(transactions: Sequence[Transaction], tipo: str) -> list[Transaction]:
    expected = normalize_text(tipo)
    return [t for t in transactions if t.tipo.value == expected]


def filter_by_payment_method(transactions: Sequence[Transaction], forma_pagamento: str) -> list[Transaction]:
    expected = normalize_text(forma_pagamento)
    return [t for t in transactions if t.payment_method == expected]


def filter_by_counterparty(transactions: Sequence[Transaction], cliente: str) -> list[Transaction]:
    needle = normalize_text(cliente)

    def _matches(transaction: Transaction) -> bool:
        names = (transaction.cliente, transaction.fornecedor, transaction.vendedor)
        return any(name and needle in name.lower() for name in names)

    return [t for t in transactions if _matches(t)]


def filter_by_min_value(transactions: Sequence[Transaction], valor_min: str) -> list[Transaction]:
    bound = parse_number_prefix(valor_min)
    if bound is None:
        return list(transactions)
    return [t for t in transactions if t.valor_total >= bound]


def filter_by_max_value(transactions: Sequence[Transaction], valor_max: str) -> list[Transaction]:
    bound = parse_number_prefix(valor_max)
    if bound is None:
        return list(transactions)
    return [t for t in transactions if t.valor_total <= bound]


def _searchable_fields(transaction: Transaction) -> list[str]:
    fields = [
        transaction.material,
        transaction.cliente,
        transaction.fornecedor,
        transaction.vendedor,
        transaction.forma_pagamento,
        transaction.tipo.value,
        transaction.observacoes,
    ]
    if transaction.valor_total:
        fields.append(format_plain_number(transaction.valor_total))
    if transaction.quantidade:
        fields.append(format_plain_number(transaction.quantidade))
    return [field.lower() for field in fields if field]


def filter_by_search_term(transactions: Sequence[Transaction], search_term: str) -> list[Transaction]:
    needle = normalize_text(search_term)
    return [t for t in transactions if any(needle in field for field in _searchable_fields(t))]


def sort_by_date_desc(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Sort newest first; undated transactions go last in their original order."""
    return sorted(
        transactions,
        key=lambda t: (t.data is not None, t.data or datetime.min),
        reverse=True,
    )


def _active_steps(filters: ReportFilters, now: datetime) -> list[TransactionStep]:
    steps: list[TransactionStep] = []

    if filters.periodo in (None, ReportPeriod.PERSONALIZADO):
        if filters.start_date is not None:
            steps.append(partial(filter_by_start_date, start_date=filters.start_date))
        if filters.end_date is not None:
            steps.append(partial(filter_by_end_date, end_date=filters.end_date))
    elif filters.periodo is not ReportPeriod.TODOS:
        steps.append(partial(filter_by_period, periodo=filters.periodo, now=now))

    if filters.material is not None:
        steps.append(partial(filter_by_material, material=filters.material))
    if filters.tipo is not None:
        steps.append(partial(filter_by_type, tipo=filters.tipo))
    if filters.forma_pagamento is not None:
        steps.append(partial(filter_by_payment_method, forma_pagamento=filters.forma_pagamento))
    if filters.cliente is not None:
        steps.append(partial(filter_by_counterparty, cliente=filters.cliente))
    if filters.valor_min is not None:
        steps.append(partial(filter_by_min_value, valor_min=filters.valor_min))
    if filters.valor_max is not None:
        steps.append(partial(filter_by_max_value, valor_max=filters.valor_max))
    if filters.search_term is not None:
        steps.append(partial(filter_by_search_term, search_term=filters.search_term))
    return steps


def filter_transactions(
    transactions: Iterable[Transaction] | None,
    filters: ReportFilters | None = None,
    *,
    now: datetime | None = None,
) -> list[Transaction]:
    """Apply every active criterion of ``filters`` and sort by date descending."""

    criteria = filters or ReportFilters()
    current = now or datetime.now()
    steps = _active_steps(criteria, current)
    kept = reduce(lambda rows, step: step(rows), steps, list(transactions or []))
    return sort_by_date_desc(kept)
