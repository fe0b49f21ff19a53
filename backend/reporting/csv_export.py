"""CSV export of filtered transactions."""

from __future__ import annotations

import csv
from collections.abc import Iterable
from io import StringIO

from backend.reporting.formatting import format_date_br, format_fixed
from shared.models import Transaction


CSV_HEADERS = (
    "Data",
    "Tipo",
    "Material",
    "Quantidade (kg)",
    "Preço/kg (R$)",
    "Valor Total (R$)",
    "Cliente/Fornecedor",
)


def transaction_csv_row(transaction: Transaction) -> list[str]:
    return [
        format_date_br(transaction.data),
        transaction.tipo.label,
        transaction.material or "",
        format_fixed(transaction.quantidade),
        format_fixed(transaction.preco_unitario),
        format_fixed(transaction.valor_total),
        transaction.counterparty or "N/A",
    ]


def transactions_to_csv(transactions: Iterable[Transaction]) -> str:
    """Render a header line plus one line per transaction, without a trailing newline."""

    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for transaction in transactions:
        writer.writerow(transaction_csv_row(transaction))
    return buffer.getvalue().removesuffix("\n")
