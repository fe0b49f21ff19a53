"""Composition root for backend services."""

from __future__ import annotations

import logging

from backend.db.supabase_client import SupabaseClient, SupabaseSettings
from backend.repositories.transactions_repository import (
    InMemoryTransactionsRepository,
    SupabaseTransactionsRepository,
    TransactionsRepository,
)
from backend.services.reports import ReportService
from shared import config


logger = logging.getLogger(__name__)


def build_transactions_repository() -> TransactionsRepository:
    """Return the Supabase repository when configured, else the in-memory demo store."""

    supabase_url = config.supabase_url()
    supabase_key = config.supabase_service_role_key()
    if supabase_url and supabase_key:
        supabase_client = SupabaseClient(
            settings=SupabaseSettings(
                url=supabase_url,
                service_role_key=supabase_key,
                anon_key=config.supabase_anon_key(),
            )
        )
        return SupabaseTransactionsRepository(client=supabase_client, table=config.transactions_table())

    logger.info("transactions_repository_in_memory app_env=%s", config.app_env())
    return InMemoryTransactionsRepository()


def build_report_service() -> ReportService:
    return ReportService(
        transactions_repository=build_transactions_repository(),
        company_name=config.report_company_name(),
        pdf_transactions_limit=config.pdf_transactions_limit(),
        default_min_stock_level=config.default_min_stock_level(),
    )
