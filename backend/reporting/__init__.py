"""Reporting utilities for backend-generated documents."""

from backend.reporting.csv_export import CSV_HEADERS, transactions_to_csv
from backend.reporting.financial_report import FinancialReportData, generate_financial_report_pdf

__all__ = ["CSV_HEADERS", "FinancialReportData", "generate_financial_report_pdf", "transactions_to_csv"]
