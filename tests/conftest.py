# -*- coding: utf-8 -*-
from __future__ import annotations

import copy
import itertools
from datetime import datetime

import pytest

from exceptions import StoreError
from models import AuthStatus, Surgery, SurgeryStatus
from notifications import Notifier


class FakeStore:
    """Banco em memória com o mesmo contrato do SqliteStore/RestStore."""

    def __init__(self, tables=None):
        self.tables = {t: [] for t in ("doctors", "surgeries", "hospitals", "insurance_plans", "user_profiles")}
        for t, rows in (tables or {}).items():
            self.tables[t] = [dict(r) for r in rows]
        self._ids = itertools.count(1)
        self.fail_writes = None
        self.fail_reads = None
        self.writes = []
        self.reads = []

    def _write(self, op, table):
        self.writes.append((op, table))
        if self.fail_writes:
            raise StoreError(self.fail_writes)

    def read_all(self, table, order_by=None):
        self.reads.append(table)
        if self.fail_reads:
            raise StoreError(self.fail_reads)
        rows = copy.deepcopy(self.tables[table])
        if order_by:
            rows.sort(key=lambda r: r.get(order_by) or "")
        return rows

    def insert(self, table, row):
        self._write("insert", table)
        row = dict(row)
        row.setdefault("id", f"{table[:1]}{next(self._ids)}")
        self.tables[table].append(row)
        return row["id"]

    def update(self, table, record_id, values):
        self._write("update", table)
        for r in self.tables[table]:
            if r["id"] == record_id:
                r.update(values)
                return
        raise StoreError(f"Registro não encontrado em {table}: {record_id}", status=404)

    def delete(self, table, record_id):
        self._write("delete", table)
        before = len(self.tables[table])
        self.tables[table] = [r for r in self.tables[table] if r["id"] != record_id]
        return before - len(self.tables[table])

    def upsert(self, table, row):
        if not row.get("id"):
            return self.insert(table, row)
        self._write("upsert", table)
        for r in self.tables[table]:
            if r["id"] == row["id"]:
                r.update(row)
                return r["id"]
        self.tables[table].append(dict(row))
        return row["id"]


class FakeAuth:
    def __init__(self):
        self.signed_out = 0

    def sign_out(self):
        self.signed_out += 1


class FakeClock:
    def __init__(self, t=1000.0):
        self.t = t

    def __call__(self):
        return self.t

    def advance(self, seconds):
        self.t += seconds


def make_surgery(sid="s1", when="2024-03-15T10:00", **kw) -> Surgery:
    base = dict(
        id=sid,
        patient_name=kw.pop("patient_name", "Maria Souza"),
        main_surgeon_id=kw.pop("main_surgeon_id", "D1"),
        date_time=datetime.fromisoformat(when),
        hospital_id=kw.pop("hospital_id", "H1"),
        insurance_id=kw.pop("insurance_id", "P1"),
    )
    base.update(kw)
    return Surgery(**base)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier(clock):
    return Notifier(timeout=5, clock=clock)


@pytest.fixture
def reference_rows():
    return {
        "doctors": [
            {"id": "D1", "name": "Dr. Ana", "color": "#3b82f6"},
            {"id": "D2", "name": "Dr. Bruno", "color": "#10b981"},
        ],
        "hospitals": [
            {"id": "H1", "name": "Hospital Central"},
            {"id": "H2", "name": "Santa Casa"},
        ],
        "insurance_plans": [
            {"id": "P1", "name": "Unimed"},
            {"id": "P2", "name": "Bradesco Saúde"},
        ],
        "user_profiles": [
            {"id": "U1", "doctor_id": "D1", "is_admin": True},
        ],
        "surgeries": [
            {
                "id": "S1", "patientName": "Maria Souza", "mainSurgeonId": "D1",
                "participatingIds": ["D2"], "dateTime": "2024-03-15T10:00",
                "hospitalId": "H1", "insuranceId": "P1",
                "authStatus": AuthStatus.LIBERADO.value,
                "surgeryStatus": SurgeryStatus.AGENDADA.value,
                "totalValue": 1500.0, "materials": [{"name": "Placa", "quantity": 2}],
                "notes": "",
            },
        ],
    }


@pytest.fixture
def store(reference_rows):
    return FakeStore(reference_rows)


@pytest.fixture
def auth():
    return FakeAuth()
