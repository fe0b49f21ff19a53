"""Unit tests for Supabase client query encoding, paging and error normalization."""

from __future__ import annotations

import json
from io import BytesIO
from urllib.error import HTTPError

import pytest

from backend.db.supabase_client import SupabaseClient, SupabaseSettings


def _build_client(**overrides) -> SupabaseClient:
    return SupabaseClient(
        SupabaseSettings(url="https://example.supabase.co", service_role_key="service-role", **overrides)
    )


class _Response:
    def __init__(self, payload: object, headers: dict[str, str] | None = None) -> None:
        self._body = json.dumps(payload).encode("utf-8")
        self.headers = headers or {}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def read(self) -> bytes:
        return self._body


def test_get_rows_uses_doseq_for_repeated_query_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _build_client()

    def _fake_urlopen(request, timeout):
        assert "data=gte.2025-01-01" in request.full_url
        assert "data=lte.2025-01-31" in request.full_url
        assert request.get_header("Apikey") == "service-role"
        assert timeout == 30.0
        return _Response([])

    monkeypatch.setattr("backend.db.supabase_client.urlopen", _fake_urlopen)

    rows, total = client.get_rows(
        table="transactions",
        query=[("data", "gte.2025-01-01"), ("data", "lte.2025-01-31")],
        with_count=False,
    )

    assert rows == []
    assert total is None


def test_get_rows_parses_exact_count(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _build_client()
    monkeypatch.setattr(
        "backend.db.supabase_client.urlopen",
        lambda _request, timeout: _Response([{"id": "1"}], headers={"content-range": "0-0/17"}),
    )

    rows, total = client.get_rows(table="transactions", query={"select": "id"}, with_count=True)

    assert rows == [{"id": "1"}]
    assert total == 17


def test_get_rows_includes_status_and_body_on_http_error(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _build_client()

    def _raise_http_error(_request, timeout):
        raise HTTPError(
            url="https://example.supabase.co/rest/v1/transactions",
            code=400,
            msg="Bad Request",
            hdrs=None,
            fp=BytesIO(b"Bad Request from Supabase"),
        )

    monkeypatch.setattr("backend.db.supabase_client.urlopen", _raise_http_error)

    with pytest.raises(RuntimeError, match="status 400") as error:
        client.get_rows(table="transactions", query={"select": "*"}, with_count=False)

    assert "Bad Request from Supabase" in str(error.value)


def test_get_rows_requires_anon_key_when_requested() -> None:
    client = _build_client()

    with pytest.raises(ValueError, match="Missing Supabase API key"):
        client.get_rows(table="transactions", query={}, with_count=False, use_anon_key=True)


def test_get_all_rows_follows_offset_pages(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _build_client()
    requested_urls: list[str] = []
    pages = [[{"id": "1"}, {"id": "2"}], [{"id": "3"}]]

    def _fake_urlopen(request, timeout):
        requested_urls.append(request.full_url)
        return _Response(pages[len(requested_urls) - 1])

    monkeypatch.setattr("backend.db.supabase_client.urlopen", _fake_urlopen)

    rows = client.get_all_rows(table="transactions", query=[("select", "*")], page_size=2)

    assert [row["id"] for row in rows] == ["1", "2", "3"]
    assert "limit=2&offset=0" in requested_urls[0]
    assert "limit=2&offset=2" in requested_urls[1]
