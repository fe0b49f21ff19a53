"""Transaction store adapters.

Repositories only fetch. Report semantics (periods, matching, sorting) live
in ``backend.services.report_filters``; a date range passed here just narrows
what is read from the store.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol

from pydantic import ValidationError

from backend.db.supabase_client import SupabaseClient
from shared.models import Transaction, TransactionType


logger = logging.getLogger(__name__)


TRANSACTION_COLUMNS = (
    "id",
    "tipo",
    "material",
    "quantidade",
    "precoUnitario",
    "valorTotal",
    "cliente",
    "fornecedor",
    "vendedor",
    "formaPagamento",
    "numeroTransacao",
    "observacoes",
    "data",
)


class TransactionsRepository(Protocol):
    def list_transactions(
        self, *, start: datetime | None = None, end: datetime | None = None
    ) -> list[Transaction]:
        """Return stored transactions, restricted to ``[start, end]`` when given."""


def _demo_transactions() -> list[Transaction]:
    return [
        Transaction(
            id="seed-1",
            tipo=TransactionType.COMPRA,
            material="ferro",
            quantidade=Decimal("350"),
            preco_unitario=Decimal("0.90"),
            valor_total=Decimal("315.00"),
            fornecedor="Carlos Ferragens",
            forma_pagamento="dinheiro",
            data=datetime(2025, 1, 10, 9, 30),
        ),
        Transaction(
            id="seed-2",
            tipo=TransactionType.VENDA,
            material="ferro",
            quantidade=Decimal("300"),
            preco_unitario=Decimal("1.25"),
            valor_total=Decimal("375.00"),
            cliente="Siderúrgica Norte",
            forma_pagamento="pix",
            data=datetime(2025, 1, 11, 14, 0),
        ),
        Transaction(
            id="seed-3",
            tipo=TransactionType.COMPRA,
            material="cobre",
            quantidade=Decimal("40"),
            preco_unitario=Decimal("32.00"),
            valor_total=Decimal("1280.00"),
            fornecedor="Eletro Reciclagem",
            forma_pagamento="pix",
            data=datetime(2025, 1, 11, 16, 45),
        ),
        Transaction(
            id="seed-4",
            tipo=TransactionType.DESPESA,
            material="outros",
            valor_total=Decimal("120.00"),
            vendedor="Posto Central",
            observacoes="Combustível do caminhão",
            data=datetime(2025, 1, 12, 8, 15),
        ),
    ]


class InMemoryTransactionsRepository:
    """In-memory store used for local development and tests."""

    def __init__(self, transactions: Iterable[Transaction] | None = None) -> None:
        self._seed: list[Transaction] = (
            list(transactions) if transactions is not None else _demo_transactions()
        )

    def list_transactions(
        self, *, start: datetime | None = None, end: datetime | None = None
    ) -> list[Transaction]:
        rows = list(self._seed)
        if start is not None:
            rows = [row for row in rows if row.data is not None and row.data >= start]
        if end is not None:
            rows = [row for row in rows if row.data is not None and row.data <= end]
        return rows


class SupabaseTransactionsRepository:
    """Supabase repository reading the transactions table through PostgREST."""

    def __init__(self, client: SupabaseClient, table: str = "transactions", page_size: int = 1000) -> None:
        self._client = client
        self._table = table
        self._page_size = page_size

    @staticmethod
    def _timestamp(value: datetime) -> str:
        # PostgREST reads offset-less literals in the session zone (UTC), not ours.
        return value.astimezone().isoformat()

    def _build_query(
        self, *, start: datetime | None = None, end: datetime | None = None
    ) -> list[tuple[str, str | int]]:
        query: list[tuple[str, str | int]] = [("select", ",".join(TRANSACTION_COLUMNS))]
        if start is not None:
            query.append(("data", f"gte.{self._timestamp(start)}"))
        if end is not None:
            query.append(("data", f"lte.{self._timestamp(end)}"))
        query.append(("order", "data.desc.nullslast"))
        return query

    def list_transactions(
        self, *, start: datetime | None = None, end: datetime | None = None
    ) -> list[Transaction]:
        rows = self._client.get_all_rows(
            table=self._table,
            query=self._build_query(start=start, end=end),
            page_size=self._page_size,
        )
        transactions = [self._parse_row(row) for row in rows]
        return [transaction for transaction in transactions if transaction is not None]

    @staticmethod
    def _parse_row(row: dict[str, Any]) -> Transaction | None:
        try:
            return Transaction.model_validate(row)
        except ValidationError as exc:
            logger.warning(
                "transaction_row_skipped",
                extra={"transaction_id": row.get("id"), "error_count": exc.error_count()},
            )
            return None
