# -*- coding: utf-8 -*-
"""
rest_store.py — Banco remoto via API REST (PostgREST / Supabase).

Mesmo contrato do SqliteStore (db.py):
- read_all(table, order_by=None) -> GET  /rest/v1/<table>?select=*&order=<col>.asc
- insert(table, row)             -> POST /rest/v1/<table>
- update(table, id, values)      -> PATCH  /rest/v1/<table>?id=eq.<id>
- delete(table, id)              -> DELETE /rest/v1/<table>?id=eq.<id>
- upsert(table, row)             -> sem id: insert; com id: POST com resolution=merge-duplicates

Status HTTP fora de 2xx (ou falha de rede) vira StoreError com a mensagem do servidor.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional

import requests

from exceptions import StoreError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15


# =========================
# Helpers de Token/Headers
# =========================

def _resolve_key(key: Optional[str]) -> Optional[str]:
    """Chave explícita -> os.environ['SUPABASE_KEY']."""
    if key:
        return key
    return os.environ.get("SUPABASE_KEY")


def _rest_headers(key: Optional[str], access_token: Optional[str] = None) -> dict:
    headers = {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "User-Agent": "agenda-cirurgias/1.0",
    }
    if key:
        headers["apikey"] = key
        headers["Authorization"] = f"Bearer {access_token or key}"
    return headers


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or data.get("hint") or json.dumps(data))
    return str(data)


class RestStore:
    def __init__(
        self,
        base_url: str,
        key: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.key = _resolve_key(key)
        self.access_token = access_token
        self.timeout = timeout
        self._session = session or requests.Session()

    def _url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _request(self, method: str, table: str, params: Optional[dict] = None,
                 payload: Any = None, prefer: Optional[str] = None) -> Any:
        headers = _rest_headers(self.key, self.access_token)
        if prefer:
            headers["Prefer"] = prefer
        try:
            resp = self._session.request(
                method, self._url(table), headers=headers, params=params,
                json=payload, timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StoreError(f"Falha de comunicação com o banco: {e}") from e

        if not 200 <= resp.status_code < 300:
            msg = _error_message(resp)
            logger.debug("%s %s -> %s %s", method, table, resp.status_code, msg)
            raise StoreError(msg, status=resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise StoreError(f"Resposta inválida do banco ({table}).", status=resp.status_code) from e

    # =========================
    # Contrato do banco
    # =========================

    def read_all(self, table: str, order_by: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"select": "*"}
        if order_by:
            params["order"] = f"{order_by}.asc"
        data = self._request("GET", table, params=params)
        return list(data or [])

    def insert(self, table: str, row: Dict[str, Any]) -> str:
        data = self._request("POST", table, payload=row, prefer="return=representation")
        created = (data or [{}])[0]
        return str(created.get("id") or row.get("id") or "")

    def update(self, table: str, record_id: str, values: Dict[str, Any]) -> None:
        data = self._request(
            "PATCH", table, params={"id": f"eq.{record_id}"},
            payload=values, prefer="return=representation",
        )
        if not data:
            raise StoreError(f"Registro não encontrado em {table}: {record_id}", status=404)

    def delete(self, table: str, record_id: str) -> int:
        data = self._request(
            "DELETE", table, params={"id": f"eq.{record_id}"}, prefer="return=representation",
        )
        return len(data or [])

    def upsert(self, table: str, row: Dict[str, Any]) -> str:
        if not row.get("id"):
            return self.insert(table, row)
        data = self._request(
            "POST", table, payload=row,
            prefer="resolution=merge-duplicates,return=representation",
        )
        return str(((data or [{}])[0]).get("id") or row["id"])
