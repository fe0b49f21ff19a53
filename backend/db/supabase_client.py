"""Minimal read-only Supabase PostgREST client used by backend repositories."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.error import HTTPError
from urllib.parse import urlencode
from urllib.request import Request, urlopen


logger = logging.getLogger(__name__)

QueryParams = dict[str, str | int] | list[tuple[str, str | int]]


@dataclass(slots=True)
class SupabaseSettings:
    url: str
    service_role_key: str
    anon_key: str | None = None
    timeout_seconds: float = 30.0


class SupabaseClient:
    def __init__(self, settings: SupabaseSettings) -> None:
        self.settings = settings

    def _headers(self, *, with_count: bool, use_anon_key: bool) -> dict[str, str]:
        api_key = self.settings.anon_key if use_anon_key else self.settings.service_role_key
        if not api_key:
            raise ValueError("Missing Supabase API key for requested mode")
        return {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
            "Prefer": "count=exact" if with_count else "return=representation",
        }

    def get_rows(
        self,
        *,
        table: str,
        query: QueryParams,
        with_count: bool,
        use_anon_key: bool = False,
    ) -> tuple[list[dict[str, Any]], int | None]:
        """Fetch rows from PostgREST and optionally parse exact row count."""

        encoded_query = urlencode(query, doseq=True)
        request = Request(
            url=f"{self.settings.url.rstrip('/')}/rest/v1/{table}?{encoded_query}",
            headers=self._headers(with_count=with_count, use_anon_key=use_anon_key),
            method="GET",
        )
        try:
            with urlopen(request, timeout=self.settings.timeout_seconds) as response:  # noqa: S310 - URL comes from trusted env config
                rows = json.loads(response.read().decode("utf-8"))
                total: int | None = None
                if with_count:
                    content_range = response.headers.get("content-range")
                    if content_range and "/" in content_range:
                        _, total_str = content_range.split("/", maxsplit=1)
                        if total_str.isdigit():
                            total = int(total_str)
                return rows, total
        except HTTPError as exc:
            body = exc.read().decode("utf-8", errors="replace")[:500]
            raise RuntimeError(
                f"Supabase request failed with status {exc.code}: {body}"
            ) from exc

    def get_all_rows(
        self,
        *,
        table: str,
        query: list[tuple[str, str | int]],
        page_size: int = 1000,
    ) -> list[dict[str, Any]]:
        """Fetch every row matching ``query`` using limit/offset pages."""

        rows: list[dict[str, Any]] = []
        offset = 0
        while True:
            page, _ = self.get_rows(
                table=table,
                query=[*query, ("limit", page_size), ("offset", offset)],
                with_count=False,
            )
            rows.extend(page)
            if len(page) < page_size:
                break
            offset += page_size

        logger.debug("supabase_rows_fetched table=%s count=%s", table, len(rows))
        return rows
