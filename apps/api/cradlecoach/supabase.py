from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, List, Optional

import httpx
from fastapi import HTTPException


@lru_cache
def _supabase_config() -> tuple[str, str]:
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY")
    if not url or not key:
        raise RuntimeError("Missing SUPABASE_URL/SUPABASE_SERVICE_ROLE_KEY for log access.")
    return url.rstrip("/"), key


async def _describe_response(resp: httpx.Response) -> str:
    try:
        return resp.text or "<empty response>"
    except httpx.ResponseNotRead:
        return "<unable to read response>"


async def _raise_supabase_error(
    resp: httpx.Response,
    action: str,
    *,
    object_label: Optional[str] = None,
) -> None:
    detail = await _describe_response(resp)
    label = f" ({object_label})" if object_label else ""
    status = resp.status_code if resp.status_code >= 400 else 500
    raise HTTPException(
        status_code=status,
        detail=f"Supabase {action} failed{label}: status={resp.status_code}, body={detail}",
    )


@dataclass
class SupabaseClient:
    """Read access to the child and activity-log tables over PostgREST."""

    base_url: str
    api_key: str

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    async def request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        url = f"{self.base_url}/rest/v1/{table}"
        async with httpx.AsyncClient(timeout=15.0) as client:
            return await client.request(method, url, params=params, headers=self._headers())

    async def select(self, table: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        resp = await self.request("GET", table, params=params)
        if resp.status_code >= 400:
            await _raise_supabase_error(resp, "select", object_label=f"table={table}")
        return resp.json()


@lru_cache
def get_admin_client() -> SupabaseClient:
    base_url, key = _supabase_config()
    return SupabaseClient(base_url=base_url, api_key=key)
