"""Inventory projection from transactions and low-stock detection."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal

from backend.services.report_filters import filter_by_material, filter_by_type, sort_by_date_desc
from shared.models import InventoryItem, LastPriceResult, LowStockMaterial, Transaction, TransactionType
from shared.text_utils import material_key


DEFAULT_MIN_STOCK_LEVELS: dict[str, int] = {
    "ferro": 100,
    "aluminio": 80,
    "cobre": 50,
    "latinha": 200,
    "panela": 25,
    "bloco2": 15,
    "chapa": 50,
    "perfil pintado": 30,
    "perfil natural": 30,
    "bloco": 20,
    "metal": 60,
    "inox": 30,
    "bateria": 40,
    "motor_gel": 10,
    "roda": 15,
    "papelao": 100,
    "rad_metal": 35,
    "rad_cobre": 30,
    "rad_chapa": 25,
    "tela": 50,
    "antimonio": 10,
    "cabo_ai": 40,
    "tubo_limpo": 20,
}


def project_inventory(transactions: Iterable[Transaction] | None) -> list[InventoryItem]:
    """Return stock per material: purchases add quantity, sales remove it.

    Expenses do not move stock. Levels are not clamped, so selling more than
    was bought shows up as a negative quantity.
    """

    ordered = sorted(
        transactions or [],
        key=lambda t: (t.data is not None, t.data or datetime.min),
    )
    items: dict[str, InventoryItem] = {}

    for transaction in ordered:
        if transaction.tipo is TransactionType.DESPESA:
            continue

        key = material_key(transaction.material)
        item = items.setdefault(key, InventoryItem(material=key))
        if transaction.tipo is TransactionType.COMPRA:
            item.quantidade += transaction.quantidade
            item.preco_compra = transaction.preco_unitario
        else:
            item.quantidade -= transaction.quantidade
            item.preco_venda = transaction.preco_unitario
        if transaction.data is not None:
            item.updated_at = transaction.data

    return sorted(items.values(), key=lambda item: item.material)


def find_low_stock(
    levels: Iterable[InventoryItem],
    min_levels: Mapping[str, int] | None = None,
    default_min: int = 10,
) -> list[LowStockMaterial]:
    """Return materials at or below their minimum, lowest stock first."""

    thresholds = DEFAULT_MIN_STOCK_LEVELS if min_levels is None else min_levels
    alerts: list[LowStockMaterial] = []

    for item in levels:
        minimum = Decimal(thresholds.get(item.material, default_min))
        if item.quantidade > minimum:
            continue
        alerts.append(
            LowStockMaterial(
                material=item.material,
                quantidade=item.quantidade,
                minimo=minimum,
                nivel="critico" if item.quantidade < minimum / 2 else "baixo",
            )
        )

    return sorted(alerts, key=lambda alert: alert.quantidade)


def last_unit_price(
    transactions: Iterable[Transaction] | None, material: str, tipo: TransactionType | str
) -> LastPriceResult | None:
    """Return the unit price of the most recent matching transaction."""

    tipo_value = tipo.value if isinstance(tipo, TransactionType) else tipo
    matches = filter_by_type(filter_by_material(list(transactions or []), material), tipo_value)
    if not matches:
        return None

    latest = sort_by_date_desc(matches)[0]
    return LastPriceResult(
        material=material_key(material),
        tipo=latest.tipo,
        preco_unitario=latest.preco_unitario,
        data=latest.data,
    )
