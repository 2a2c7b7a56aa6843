# -*- coding: utf-8 -*-
"""
settings.py — Configuração via variáveis de ambiente.

Variáveis:
- DB_DIR / STREAMLIT_DB_DIR: diretório do SQLite (fallback ./data -> /tmp).
- AGENDA_DB_FILE: nome do arquivo .db (padrão agenda.db).
- AGENDA_STORE: 'sqlite' (padrão) ou 'rest'.
- SUPABASE_URL / SUPABASE_KEY: endpoint REST (PostgREST) e chave anon.
- AGENDA_TOAST_SECONDS: tempo de exibição das notificações (padrão 5).
- AGENDA_LOG_LEVEL: nível do logging (padrão INFO).
"""

from __future__ import annotations

import logging
import os
import tempfile
from typing import Optional

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

DEFAULT_TOAST_SECONDS = 5.0


def resolve_db_dir() -> str:
    """Diretório gravável do banco: env -> ./data -> tempdir."""
    db_dir = os.environ.get("DB_DIR") or os.environ.get("STREAMLIT_DB_DIR")
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
        return db_dir
    candidate = os.path.join(BASE_DIR, "data")
    try:
        os.makedirs(candidate, exist_ok=True)
        return candidate
    except OSError:
        fallback = os.path.join(tempfile.gettempdir(), "agenda_cirurgias_db")
        os.makedirs(fallback, exist_ok=True)
        return fallback


def db_path() -> str:
    return os.path.join(resolve_db_dir(), os.environ.get("AGENDA_DB_FILE", "agenda.db"))


def toast_seconds() -> float:
    raw = os.environ.get("AGENDA_TOAST_SECONDS")
    if not raw:
        return DEFAULT_TOAST_SECONDS
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_TOAST_SECONDS
    return value if value > 0 else DEFAULT_TOAST_SECONDS


def rest_credentials() -> tuple:
    """(url, key) do endpoint REST; ambos obrigatórios quando AGENDA_STORE=rest."""
    url = (os.environ.get("SUPABASE_URL") or "").strip().rstrip("/")
    key = (os.environ.get("SUPABASE_KEY") or "").strip()
    if not url or not key:
        raise RuntimeError("SUPABASE_URL e SUPABASE_KEY devem ser definidos no ambiente.")
    return url, key


def configure_logging(level: Optional[str] = None) -> None:
    name = (level or os.environ.get("AGENDA_LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_store():
    """Instancia o banco configurado em AGENDA_STORE."""
    kind = (os.environ.get("AGENDA_STORE") or "sqlite").strip().lower()
    if kind == "rest":
        from rest_store import RestStore

        url, key = rest_credentials()
        return RestStore(url, key)
    if kind == "sqlite":
        from db import SqliteStore

        store = SqliteStore(db_path())
        store.init_db()
        return store
    raise RuntimeError(f"AGENDA_STORE inválido: {kind!r} (use 'sqlite' ou 'rest').")
