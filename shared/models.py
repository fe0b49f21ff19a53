"""Pydantic contracts shared across the reporting backend and HTTP API."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.parsing import parse_datetime
from shared.text_utils import first_non_empty, normalize_text


DEFAULT_PAYMENT_METHOD = "dinheiro"


class ToolErrorCode(str, Enum):
    """Stable error codes for service results across layers."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    BACKEND_ERROR = "BACKEND_ERROR"
    NOT_FOUND = "NOT_FOUND"


class ToolError(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: ToolErrorCode
    message: str
    details: dict[str, object] | None = None


class DateRange(BaseModel):
    model_config = ConfigDict(extra="forbid")

    start_date: date
    end_date: date


class TransactionType(str, Enum):
    """Kind of a recorded business operation."""

    COMPRA = "compra"
    VENDA = "venda"
    DESPESA = "despesa"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Transaction(BaseModel):
    """One purchase, sale or expense as read from the transaction store."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: str
    tipo: TransactionType
    material: str | None = None
    quantidade: Decimal = Decimal("0")
    preco_unitario: Decimal = Field(default=Decimal("0"), alias="precoUnitario")
    valor_total: Decimal = Field(default=Decimal("0"), alias="valorTotal")
    cliente: str | None = None
    fornecedor: str | None = None
    vendedor: str | None = None
    forma_pagamento: str | None = Field(default=None, alias="formaPagamento")
    numero_transacao: str | None = Field(default=None, alias="numeroTransacao")
    observacoes: str | None = None
    data: datetime | None = None

    @field_validator("id", "numero_transacao", mode="before")
    @classmethod
    def stringify_identifiers(cls, value: object) -> object:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("tipo", mode="before")
    @classmethod
    def normalize_tipo(cls, value: object) -> object:
        if isinstance(value, str):
            return normalize_text(value)
        return value

    @field_validator("quantidade", "preco_unitario", "valor_total", mode="before")
    @classmethod
    def default_missing_amounts(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return Decimal("0")
        return value

    @field_validator("data", mode="before")
    @classmethod
    def parse_data(cls, value: object) -> datetime | None:
        return parse_datetime(value)

    @property
    def payment_method(self) -> str:
        """Normalized payment method, cash when none was recorded."""
        return normalize_text(self.forma_pagamento) or DEFAULT_PAYMENT_METHOD

    @property
    def counterparty(self) -> str | None:
        return first_non_empty(self.cliente, self.fornecedor, self.vendedor)


class ReportPeriod(str, Enum):
    """Named relative date ranges for report filtering."""

    TODOS = "todos"
    HOJE = "hoje"
    SEMANA = "semana"
    MES = "mes"
    TRIMESTRE = "trimestre"
    ANO = "ano"
    PERSONALIZADO = "personalizado"


class ReportFilters(BaseModel):
    """Optional report criteria; ``None`` means no constraint on that dimension."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    periodo: ReportPeriod | None = None
    start_date: date | None = Field(default=None, alias="startDate")
    end_date: date | None = Field(default=None, alias="endDate")
    material: str | None = None
    tipo: str | None = None
    forma_pagamento: str | None = Field(default=None, alias="formaPagamento")
    cliente: str | None = None
    valor_min: str | None = Field(default=None, alias="valorMin")
    valor_max: str | None = Field(default=None, alias="valorMax")
    search_term: str | None = Field(default=None, alias="searchTerm")

    @field_validator(
        "material",
        "tipo",
        "forma_pagamento",
        "cliente",
        "valor_min",
        "valor_max",
        "search_term",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value: object) -> object:
        if value is None:
            return None
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("periodo", mode="before")
    @classmethod
    def normalize_periodo(cls, value: object) -> object:
        if isinstance(value, str):
            return normalize_text(value) or None
        return value

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_dates(cls, value: object) -> object:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and not value.strip():
            return None
        return value


class MaterialStats(BaseModel):
    vendas: Decimal = Decimal("0")
    compras: Decimal = Decimal("0")
    quantidade: Decimal = Decimal("0")
    quantidade_vendas: Decimal = Decimal("0")
    quantidade_compras: Decimal = Decimal("0")
    lucro: Decimal = Decimal("0")
    transacoes: int = 0
    margem: Decimal = Decimal("0")
    preco_medio_venda: Decimal = Decimal("0")
    preco_medio_compra: Decimal = Decimal("0")
    roi: Decimal = Decimal("0")


class RankedMaterial(MaterialStats):
    material: str


class PaymentStats(BaseModel):
    count: int = 0
    total: Decimal = Decimal("0")
    sales: Decimal = Decimal("0")
    purchases: Decimal = Decimal("0")


class CounterpartyStats(BaseModel):
    total: Decimal = Decimal("0")
    transacoes: int = 0
    quantidade: Decimal = Decimal("0")


class TopClient(CounterpartyStats):
    nome: str
    ticket_medio: Decimal = Decimal("0")


class TopSupplier(CounterpartyStats):
    nome: str
    custo_medio: Decimal = Decimal("0")


class PerformanceMetrics(BaseModel):
    ticket_medio_venda: Decimal = Decimal("0")
    ticket_medio_compra: Decimal = Decimal("0")
    rotatividade_estoque: Decimal = Decimal("0")


class DailyBreakdown(BaseModel):
    date: date
    sales: Decimal = Decimal("0")
    purchases: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")
    transactions: int = 0


class ReportStats(BaseModel):
    """Totals and breakdowns computed over a set of transactions."""

    total_sales: Decimal = Decimal("0")
    total_purchases: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    total_profit: Decimal = Decimal("0")
    profit_margin: Decimal = Decimal("0")
    total_transactions: int = 0
    sales_count: int = 0
    purchases_count: int = 0
    expenses_count: int = 0
    material_stats: dict[str, MaterialStats] = Field(default_factory=dict)
    payment_stats: dict[str, PaymentStats] = Field(default_factory=dict)
    daily_breakdown: list[DailyBreakdown] = Field(default_factory=list)
    client_analysis: dict[str, CounterpartyStats] = Field(default_factory=dict)
    supplier_analysis: dict[str, CounterpartyStats] = Field(default_factory=dict)
    top_materials: list[RankedMaterial] = Field(default_factory=list)
    top_clients: list[TopClient] = Field(default_factory=list)
    top_suppliers: list[TopSupplier] = Field(default_factory=list)
    performance_metrics: PerformanceMetrics = Field(default_factory=PerformanceMetrics)


class DailyReport(ReportStats):
    date: date


class AggregatedReport(ReportStats):
    period: DateRange
    material: str | None = None


class TransactionSearchResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    items: list[Transaction]
    total: int
    filters: ReportFilters


class InventoryItem(BaseModel):
    material: str
    quantidade: Decimal = Decimal("0")
    preco_compra: Decimal | None = None
    preco_venda: Decimal | None = None
    updated_at: datetime | None = None


class LowStockMaterial(BaseModel):
    model_config = ConfigDict(extra="forbid")

    material: str
    quantidade: Decimal
    minimo: Decimal
    nivel: Literal["critico", "baixo"]


class InventoryResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    items: list[InventoryItem]
    low_stock: list[LowStockMaterial]


class LastPriceResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    material: str
    tipo: TransactionType
    preco_unitario: Decimal
    data: datetime | None = None
