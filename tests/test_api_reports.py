"""Tests for reporting endpoints exposed by backend.api."""

from fastapi.testclient import TestClient

import backend.api as reports_api
from backend.api import app
from backend.services.reports import ReportService
from shared.models import ReportFilters, ReportPeriod, ToolError, ToolErrorCode
from tests.fakes import FakeTransactionsRepository


client = TestClient(app)


def _use_fake_store(monkeypatch, repository: FakeTransactionsRepository | None = None) -> None:
    service = ReportService(transactions_repository=repository or FakeTransactionsRepository())
    monkeypatch.setattr(reports_api, "get_report_service", lambda: service)


def test_health() -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_report_transactions_maps_query_params_to_filters(monkeypatch) -> None:
    captured: dict[str, ReportFilters] = {}

    class _Service:
        def search_transactions(self, filters: ReportFilters):
            captured["filters"] = filters
            return ToolError(code=ToolErrorCode.VALIDATION_ERROR, message="invalid")

    monkeypatch.setattr(reports_api, "get_report_service", lambda: _Service())

    response = client.get(
        "/reports/transactions",
        params={"periodo": "personalizado", "start_date": "2025-03-01", "material": "", "valor_min": "abc"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "invalid"
    filters = captured["filters"]
    assert filters.start_date.isoformat() == "2025-03-01"
    assert filters.material is None
    assert filters.valor_min == "abc"


def test_report_transactions_returns_items(monkeypatch) -> None:
    _use_fake_store(monkeypatch)

    response = client.get("/reports/transactions", params={"tipo": "venda"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["total"] == 2
    assert [item["id"] for item in payload["items"]] == ["t1", "t5"]


def test_report_summary_returns_stats(monkeypatch) -> None:
    _use_fake_store(monkeypatch)

    response = client.get("/reports/summary", params={"material": "ferro"})

    assert response.status_code == 200
    payload = response.json()
    assert float(payload["total_profit"]) == 60.0
    assert payload["material_stats"]["ferro"]["transacoes"] == 2


def test_invalid_period_is_rejected_by_validation(monkeypatch) -> None:
    _use_fake_store(monkeypatch)

    response = client.get("/reports/summary", params={"periodo": "decada"})

    assert response.status_code == 422
    assert response.json()["detail"][0]["loc"] == ["periodo"]


def test_period_query_is_normalized_by_filters(monkeypatch) -> None:
    captured: list[ReportFilters] = []

    class _Service:
        def summary(self, filters: ReportFilters):
            captured.append(filters)
            return ToolError(code=ToolErrorCode.VALIDATION_ERROR, message="stop")

    monkeypatch.setattr(reports_api, "get_report_service", lambda: _Service())

    upper = client.get("/reports/summary", params={"periodo": " HOJE "})
    blank = client.get("/reports/summary", params={"periodo": ""})

    assert upper.status_code == 400
    assert blank.status_code == 400
    assert [filters.periodo for filters in captured] == [ReportPeriod.HOJE, None]


def test_export_csv_is_an_attachment(monkeypatch) -> None:
    _use_fake_store(monkeypatch)

    response = client.get("/reports/export.csv", params={"tipo": "despesa"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    assert response.text.split("\n")[1].endswith(",Posto Central")


def test_export_pdf_returns_pdf(monkeypatch) -> None:
    _use_fake_store(monkeypatch)

    response = client.get("/reports/export.pdf", params={"periodo": "todos"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_store_failure_maps_to_http_400(monkeypatch) -> None:
    _use_fake_store(monkeypatch, FakeTransactionsRepository(error=RuntimeError("store offline")))

    response = client.get("/reports/summary")

    assert response.status_code == 400
    assert response.json()["detail"] == "store offline"


def test_daily_and_aggregated_reports(monkeypatch) -> None:
    _use_fake_store(monkeypatch)

    daily = client.get("/reports/daily/2025-03-10")
    aggregated = client.get(
        "/reports/aggregated",
        params={"start_date": "2025-03-01", "end_date": "2025-03-31", "material": "ferro"},
    )
    inverted = client.get("/reports/aggregated", params={"start_date": "2025-03-31", "end_date": "2025-03-01"})

    assert daily.status_code == 200
    assert daily.json()["date"] == "2025-03-10"
    assert daily.json()["total_transactions"] == 2
    assert aggregated.status_code == 200
    assert list(aggregated.json()["material_stats"]) == ["ferro"]
    assert inverted.status_code == 400


def test_inventory_endpoint(monkeypatch) -> None:
    _use_fake_store(monkeypatch)

    response = client.get("/inventory")

    assert response.status_code == 200
    materials = {item["material"] for item in response.json()["items"]}
    assert materials == {"aluminio", "cobre", "ferro"}


def test_last_price_not_found_maps_to_http_404(monkeypatch) -> None:
    _use_fake_store(monkeypatch)

    found = client.get("/transactions/last-price", params={"material": "cobre", "tipo": "compra"})
    missing = client.get("/transactions/last-price", params={"material": "inox", "tipo": "compra"})

    assert found.status_code == 200
    assert float(found.json()["preco_unitario"]) == 32.0
    assert missing.status_code == 404
