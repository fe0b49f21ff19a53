"""Number and date formatting shared by report exports."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP


_CENTS = Decimal("0.01")


def quantize_cents(value: Decimal) -> Decimal:
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def format_fixed(value: Decimal) -> str:
    """Return ``value`` with exactly two decimals and a dot separator."""
    return f"{quantize_cents(value):.2f}"


def format_brl(value: Decimal) -> str:
    """Return ``value`` as Brazilian currency, e.g. ``R$ 1.234,56``."""
    grouped = f"{quantize_cents(value):,.2f}"
    localized = grouped.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R$ {localized}"


def format_ratio(value: Decimal) -> str:
    return format_fixed(value).replace(".", ",")


def format_percent(ratio: Decimal) -> str:
    percent = (ratio * Decimal("100")).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return f"{percent}%".replace(".", ",")


def format_date_br(value: date | datetime | None) -> str:
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y")


def export_filename(extension: str, generated_at: datetime) -> str:
    return f"relatorio_imperio_sucata_{generated_at.strftime('%d-%m-%Y')}.{extension}"
