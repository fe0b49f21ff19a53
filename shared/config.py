"""Configuration helpers for environment variables."""

from __future__ import annotations

import os
import logging

from dotenv import load_dotenv


logger = logging.getLogger(__name__)


DEFAULT_COMPANY_NAME = "IMPÉRIO SUCATA"


def _should_load_dotenv() -> bool:
    """Return whether local dotenv loading should run."""
    app_env = os.getenv("APP_ENV", "dev").strip().lower()
    return app_env in {"dev", "local"}


if _should_load_dotenv():
    load_dotenv()


def get_env(name: str, default: str | None = None) -> str | None:
    """Return a raw environment value or default."""
    return os.getenv(name, default)


def _get_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw_value = (get_env(name, "") or "").strip()
    if not raw_value:
        return default

    try:
        value = int(raw_value)
    except ValueError:
        logger.warning("config_invalid_integer name=%s value=%s; using default %s", name, raw_value, default)
        return default

    if value < minimum:
        logger.warning("config_integer_below_minimum name=%s value=%s; using default %s", name, value, default)
        return default
    return value


def app_env() -> str:
    """Return the current application environment."""
    return (get_env("APP_ENV", "dev") or "dev").strip() or "dev"


def cors_allow_origins() -> list[str]:
    """Return CORS allowed origins from env with safe environment defaults."""
    raw_origins = get_env("CORS_ALLOW_ORIGINS", "") or ""
    parsed_origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]

    if parsed_origins:
        return parsed_origins

    if app_env().strip().lower() in {"dev", "local"}:
        return ["http://localhost:5173", "http://127.0.0.1:5173"]

    ui_origin = (get_env("UI_ORIGIN", "") or "").strip()
    if ui_origin:
        return [ui_origin]

    logger.warning(
        "cors_allow_origins_empty_in_prod app_env=%s; define CORS_ALLOW_ORIGINS or UI_ORIGIN",
        app_env(),
    )

    return []


def supabase_url() -> str | None:
    """Return Supabase URL when configured."""
    return get_env("SUPABASE_URL")


def supabase_service_role_key() -> str | None:
    """Return Supabase service role key when configured."""
    return get_env("SUPABASE_SERVICE_ROLE_KEY")


def supabase_anon_key() -> str | None:
    """Return Supabase anon key when configured."""
    return get_env("SUPABASE_ANON_KEY")


def transactions_table() -> str:
    """Return the PostgREST table holding transactions."""
    return (get_env("TRANSACTIONS_TABLE", "transactions") or "").strip() or "transactions"


def default_min_stock_level() -> int:
    """Return the low-stock threshold for materials without a specific minimum."""
    return _get_int("DEFAULT_MIN_STOCK_LEVEL", 10)


def report_company_name() -> str:
    """Return the company name printed on exported reports."""
    return (get_env("REPORT_COMPANY_NAME", "") or "").strip() or DEFAULT_COMPANY_NAME


def pdf_transactions_limit() -> int:
    """Return how many transactions the PDF detail table lists at most."""
    return _get_int("PDF_TRANSACTIONS_LIMIT", 250, minimum=1)
