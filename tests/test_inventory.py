"""Unit tests for inventory projection and low-stock alerts."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from backend.services.inventory import find_low_stock, last_unit_price, project_inventory
from shared.models import InventoryItem, TransactionType
from tests.fakes import FIXED_TRANSACTIONS, make_transaction


def test_purchases_add_sales_remove_and_expenses_are_ignored() -> None:
    items = {item.material: item for item in project_inventory(FIXED_TRANSACTIONS)}

    assert set(items) == {"aluminio", "cobre", "ferro"}
    assert items["ferro"].quantidade == Decimal("-30")
    assert items["cobre"].quantidade == Decimal("10")
    assert items["aluminio"].quantidade == Decimal("-12")


def test_last_prices_follow_chronological_order() -> None:
    transactions = [
        make_transaction("new", TransactionType.COMPRA, "90", data=datetime(2025, 2, 1), quantidade="100", preco_unitario="0.90"),
        make_transaction("old", TransactionType.COMPRA, "80", data=datetime(2025, 1, 1), quantidade="100", preco_unitario="0.80"),
    ]

    [item] = project_inventory(transactions)

    assert item.quantidade == Decimal("200")
    assert item.preco_compra == Decimal("0.90")
    assert item.preco_venda is None
    assert item.updated_at == datetime(2025, 2, 1)


def test_low_stock_levels_use_default_minimums() -> None:
    levels = [
        InventoryItem(material="ferro", quantidade=Decimal("100")),
        InventoryItem(material="cobre", quantidade=Decimal("20")),
        InventoryItem(material="latinha", quantidade=Decimal("500")),
        InventoryItem(material="sucata mista", quantidade=Decimal("4")),
    ]

    alerts = {alert.material: alert for alert in find_low_stock(levels)}

    assert set(alerts) == {"ferro", "cobre", "sucata mista"}
    assert alerts["ferro"].nivel == "baixo"
    assert alerts["ferro"].minimo == Decimal("100")
    assert alerts["cobre"].nivel == "critico"
    assert alerts["sucata mista"].minimo == Decimal("10")
    assert alerts["sucata mista"].nivel == "critico"


def test_low_stock_accepts_custom_thresholds() -> None:
    levels = [InventoryItem(material="ferro", quantidade=Decimal("5"))]

    assert find_low_stock(levels, min_levels={"ferro": 5})[0].nivel == "baixo"
    assert find_low_stock(levels, min_levels={}, default_min=4) == []


def test_low_stock_is_sorted_by_quantity() -> None:
    levels = [
        InventoryItem(material="cobre", quantidade=Decimal("30")),
        InventoryItem(material="ferro", quantidade=Decimal("-5")),
    ]

    assert [alert.material for alert in find_low_stock(levels)] == ["ferro", "cobre"]


def test_last_unit_price_picks_most_recent_match() -> None:
    transactions = [
        *FIXED_TRANSACTIONS,
        make_transaction("later", TransactionType.COMPRA, "90", data=datetime(2025, 3, 12), material=" FERRO", preco_unitario="0.95"),
    ]

    result = last_unit_price(transactions, "ferro", TransactionType.COMPRA)

    assert result is not None
    assert result.preco_unitario == Decimal("0.95")
    assert result.data == datetime(2025, 3, 12)
    assert result.material == "ferro"


def test_last_unit_price_returns_none_without_match() -> None:
    assert last_unit_price(FIXED_TRANSACTIONS, "cobre", "venda") is None
