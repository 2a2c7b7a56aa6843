# -*- coding: utf-8 -*-
"""
db.py — Banco SQLite da agenda (implementação local do contrato de banco remoto).

Principais recursos:
- Caminho estável e gravável (settings.db_path: DB_DIR via env -> ./data -> /tmp).
- PRAGMAs úteis (WAL, synchronous).
- Cinco coleções: doctors, surgeries, hospitals, insurance_plans, user_profiles.
- Contrato: read_all (com ordenação), insert, update (por id), delete (por id),
  upsert (sem id -> insert; com id -> insert ou update).
- Colunas de lista (participatingIds, materials) gravadas como JSON.
- Manutenção: VACUUM robusto e reset total do arquivo.

Erros do driver viram StoreError com a mensagem original.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from exceptions import StoreError

logger = logging.getLogger(__name__)

# tabela -> colunas graváveis (além de 'id')
TABLES: Dict[str, tuple] = {
    "doctors": ("name", "color"),
    "hospitals": ("name",),
    "insurance_plans": ("name",),
    "user_profiles": ("doctor_id", "is_admin"),
    "surgeries": (
        "patientName", "mainSurgeonId", "participatingIds", "dateTime",
        "hospitalId", "insuranceId", "authStatus", "surgeryStatus",
        "totalValue", "materials", "notes",
    ),
}

JSON_COLUMNS = {"surgeries": ("participatingIds", "materials")}
BOOL_COLUMNS = {"user_profiles": ("is_admin",)}
TIMESTAMPED = ("surgeries",)


def _check_table(table: str) -> tuple:
    try:
        return TABLES[table]
    except KeyError:
        raise StoreError(f"Tabela desconhecida: {table}") from None


def _encode(table: str, row: Dict[str, Any]) -> Dict[str, Any]:
    cols = _check_table(table)
    out = {c: row[c] for c in cols if c in row}
    for c in JSON_COLUMNS.get(table, ()):
        if c in out:
            out[c] = json.dumps(out[c] if out[c] is not None else [], ensure_ascii=False)
    for c in BOOL_COLUMNS.get(table, ()):
        if c in out:
            out[c] = 1 if out[c] else 0
    return out


def _decode(table: str, row: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(row)
    for c in JSON_COLUMNS.get(table, ()):
        raw = out.get(c)
        out[c] = json.loads(raw) if raw else []
    for c in BOOL_COLUMNS.get(table, ()):
        out[c] = bool(out.get(c))
    return out


class SqliteStore:
    """Banco local; mesma interface do RestStore (rest_store.py)."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._engine: Optional[Engine] = None

    # =========================================================================
    # ENGINE
    # =========================================================================

    def ensure_db_writable(self) -> None:
        """Garante que o diretório e o arquivo do DB são graváveis."""
        dir_path = os.path.dirname(self.db_path) or "."
        try:
            os.makedirs(dir_path, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Falha ao criar o diretório do DB {dir_path}: {e}") from e
        if not os.access(dir_path, os.W_OK):
            raise StoreError(f"Diretório do DB não é gravável: {dir_path}")
        if os.path.exists(self.db_path) and not os.access(self.db_path, os.W_OK):
            raise StoreError(f"Arquivo do DB não é gravável: {self.db_path}")

    def get_engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_engine(
                f"sqlite:///{self.db_path}",
                future=True,
                echo=False,
                connect_args={"check_same_thread": False},
            )
        return self._engine

    def dispose_engine(self) -> None:
        if self._engine is not None:
            try:
                self._engine.dispose()
            finally:
                self._engine = None

    # =========================================================================
    # INIT / MANUTENÇÃO
    # =========================================================================

    def init_db(self) -> None:
        """Cria as tabelas caso não existam e aplica PRAGMAs."""
        self.ensure_db_writable()
        try:
            with self.get_engine().begin() as conn:
                conn.execute(text("PRAGMA journal_mode=WAL"))
                conn.execute(text("PRAGMA synchronous=NORMAL"))
                conn.execute(text("""
                    CREATE TABLE IF NOT EXISTS doctors (
                        id    TEXT PRIMARY KEY,
                        name  TEXT NOT NULL,
                        color TEXT
                    );
                """))
                conn.execute(text("""
                    CREATE TABLE IF NOT EXISTS hospitals (
                        id   TEXT PRIMARY KEY,
                        name TEXT NOT NULL
                    );
                """))
                conn.execute(text("""
                    CREATE TABLE IF NOT EXISTS insurance_plans (
                        id   TEXT PRIMARY KEY,
                        name TEXT NOT NULL
                    );
                """))
                conn.execute(text("""
                    CREATE TABLE IF NOT EXISTS user_profiles (
                        id        TEXT PRIMARY KEY,
                        doctor_id TEXT,
                        is_admin  INTEGER DEFAULT 0
                    );
                """))
                # sem FOREIGN KEY: referências órfãs são permitidas (exibidas como 'Desconhecido')
                conn.execute(text("""
                    CREATE TABLE IF NOT EXISTS surgeries (
                        id               TEXT PRIMARY KEY,
                        patientName      TEXT NOT NULL,
                        mainSurgeonId    TEXT NOT NULL,
                        participatingIds TEXT,
                        dateTime         TEXT NOT NULL,
                        hospitalId       TEXT,
                        insuranceId      TEXT,
                        authStatus       TEXT,
                        surgeryStatus    TEXT,
                        totalValue       REAL DEFAULT 0,
                        materials        TEXT,
                        notes            TEXT,
                        created_at       TEXT,
                        updated_at       TEXT
                    );
                """))
                conn.execute(text("CREATE INDEX IF NOT EXISTS ix_surgeries_datetime ON surgeries (dateTime)"))
        except SQLAlchemyError as e:
            raise StoreError(f"Falha ao criar o banco: {e}") from e

    def vacuum(self) -> None:
        """
        Manutenção fora de transação: wal_checkpoint(TRUNCATE), VACUUM, optimize.
        Usa sqlite3 com conexão curta após descartar a engine.
        """
        if not os.path.exists(self.db_path):
            raise FileNotFoundError(self.db_path)
        self.ensure_db_writable()
        self.dispose_engine()
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
            conn.execute("VACUUM")
            conn.execute("PRAGMA optimize")
        finally:
            conn.close()

    def hard_reset(self) -> None:
        """Fecha a engine, remove o arquivo .db (e WAL/SHM) e recria o schema vazio."""
        self.dispose_engine()
        for suffix in ("", "-wal", "-shm"):
            path = self.db_path + suffix
            if os.path.exists(path):
                try:
                    os.remove(path)
                except OSError as e:
                    raise StoreError(f"Falha ao remover {path}: {e}") from e
        self.init_db()

    def delete_all(self, table: str) -> int:
        """Apaga todos os registros da tabela; retorna a quantidade apagada."""
        _check_table(table)
        self.ensure_db_writable()
        try:
            with self.get_engine().begin() as conn:
                total = conn.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar_one()
                conn.execute(text(f"DELETE FROM {table}"))
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        return int(total or 0)

    # =========================================================================
    # CONTRATO DO BANCO
    # =========================================================================

    def read_all(self, table: str, order_by: Optional[str] = None) -> List[Dict[str, Any]]:
        cols = _check_table(table)
        sql = f"SELECT * FROM {table}"
        if order_by:
            if order_by != "id" and order_by not in cols:
                raise StoreError(f"Coluna de ordenação inválida: {order_by}")
            sql += f" ORDER BY {order_by}"
        try:
            with self.get_engine().connect() as conn:
                rows = conn.execute(text(sql)).mappings().all()
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        logger.debug("read_all %s -> %d linhas", table, len(rows))
        return [_decode(table, dict(r)) for r in rows]

    def insert(self, table: str, row: Dict[str, Any]) -> str:
        values = _encode(table, row)
        values["id"] = str(row.get("id") or uuid.uuid4().hex)
        if table in TIMESTAMPED:
            now = datetime.now().isoformat(timespec="seconds")
            values["created_at"] = values["updated_at"] = now
        names = list(values)
        sql = f"INSERT INTO {table} ({', '.join(names)}) VALUES ({', '.join(':' + n for n in names)})"
        self.ensure_db_writable()
        try:
            with self.get_engine().begin() as conn:
                conn.execute(text(sql), values)
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        logger.debug("insert %s id=%s", table, values["id"])
        return values["id"]

    def update(self, table: str, record_id: str, values: Dict[str, Any]) -> None:
        data = _encode(table, values)
        if table in TIMESTAMPED:
            data["updated_at"] = datetime.now().isoformat(timespec="seconds")
        if not data:
            raise StoreError("Nada para atualizar.")
        assignments = ", ".join(f"{c}=:{c}" for c in data)
        data["_id"] = str(record_id)
        self.ensure_db_writable()
        try:
            with self.get_engine().begin() as conn:
                res = conn.execute(text(f"UPDATE {table} SET {assignments} WHERE id=:_id"), data)
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        if not res.rowcount:
            raise StoreError(f"Registro não encontrado em {table}: {record_id}", status=404)
        logger.debug("update %s id=%s", table, record_id)

    def delete(self, table: str, record_id: str) -> int:
        _check_table(table)
        self.ensure_db_writable()
        try:
            with self.get_engine().begin() as conn:
                res = conn.execute(text(f"DELETE FROM {table} WHERE id=:i"), {"i": str(record_id)})
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        logger.debug("delete %s id=%s (%d)", table, record_id, res.rowcount or 0)
        return res.rowcount or 0

    def upsert(self, table: str, row: Dict[str, Any]) -> str:
        """Sem 'id' -> insert. Com 'id' -> update se existir, senão insert com esse id."""
        _check_table(table)
        record_id = row.get("id")
        if not record_id:
            return self.insert(table, row)
        try:
            with self.get_engine().connect() as conn:
                exists = conn.execute(
                    text(f"SELECT 1 FROM {table} WHERE id=:i"), {"i": str(record_id)}
                ).fetchone()
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        if exists:
            self.update(table, record_id, {k: v for k, v in row.items() if k != "id"})
            return str(record_id)
        return self.insert(table, row)
