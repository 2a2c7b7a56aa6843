# -*- coding: utf-8 -*-
import os

import pytest

from db import SqliteStore
from exceptions import StoreError
from models import Surgery
from notifications import Notifier
from sync import Session, SyncController


@pytest.fixture
def sqlite_store(tmp_path):
    s = SqliteStore(str(tmp_path / "agenda.db"))
    s.init_db()
    yield s
    s.dispose_engine()


def _surgery_row(**kw):
    row = {
        "patientName": "Maria", "mainSurgeonId": "D1", "participatingIds": ["D2"],
        "dateTime": "2024-03-15T10:00:00", "hospitalId": "H1", "insuranceId": "P1",
        "authStatus": "Pendente", "surgeryStatus": "Agendada", "totalValue": 120.0,
        "materials": [{"name": "Placa", "quantity": 2}], "notes": "",
    }
    row.update(kw)
    return row


def test_insert_and_read_ordered(sqlite_store):
    sqlite_store.insert("hospitals", {"name": "Santa Casa"})
    sqlite_store.insert("hospitals", {"name": "Albert Einstein"})
    assert [h["name"] for h in sqlite_store.read_all("hospitals", order_by="name")] == [
        "Albert Einstein", "Santa Casa",
    ]


def test_json_columns_round_trip(sqlite_store):
    sid = sqlite_store.insert("surgeries", _surgery_row())
    [row] = sqlite_store.read_all("surgeries")
    assert row["id"] == sid
    assert row["participatingIds"] == ["D2"]
    assert row["materials"] == [{"name": "Placa", "quantity": 2}]
    assert row["created_at"] and row["updated_at"]
    assert Surgery.from_row(row).materials[0].quantity == 2


def test_upsert_without_id_inserts_and_with_id_updates(sqlite_store):
    sid = sqlite_store.upsert("surgeries", _surgery_row())
    assert sqlite_store.upsert("surgeries", _surgery_row(id=sid, patientName="Maria Clara")) == sid
    rows = sqlite_store.read_all("surgeries")
    assert len(rows) == 1 and rows[0]["patientName"] == "Maria Clara"
    assert sqlite_store.upsert("surgeries", _surgery_row(id="fixo")) == "fixo"
    assert len(sqlite_store.read_all("surgeries")) == 2


def test_update_and_delete_by_id(sqlite_store):
    pid = sqlite_store.insert("user_profiles", {"doctor_id": "D1", "is_admin": True})
    assert sqlite_store.read_all("user_profiles")[0]["is_admin"] is True
    sqlite_store.update("user_profiles", pid, {"is_admin": False})
    assert sqlite_store.read_all("user_profiles")[0]["is_admin"] is False
    assert sqlite_store.delete("user_profiles", pid) == 1
    assert sqlite_store.delete("user_profiles", pid) == 0


def test_update_missing_record_raises(sqlite_store):
    with pytest.raises(StoreError):
        sqlite_store.update("doctors", "nope", {"name": "X"})


def test_unknown_table_and_order_column(sqlite_store):
    with pytest.raises(StoreError):
        sqlite_store.read_all("pacientes")
    with pytest.raises(StoreError):
        sqlite_store.read_all("doctors", order_by="name; DROP TABLE doctors")


def test_delete_all_and_hard_reset(sqlite_store):
    sqlite_store.insert("doctors", {"name": "A"})
    sqlite_store.insert("doctors", {"name": "B"})
    assert sqlite_store.delete_all("doctors") == 2
    sqlite_store.insert("doctors", {"name": "C"})
    sqlite_store.hard_reset()
    assert os.path.exists(sqlite_store.db_path)
    assert sqlite_store.read_all("doctors") == []


def test_vacuum_runs_on_existing_db(sqlite_store):
    sqlite_store.insert("doctors", {"name": "A"})
    sqlite_store.vacuum()
    assert len(sqlite_store.read_all("doctors")) == 1


def test_sync_controller_over_sqlite(sqlite_store):
    d1 = sqlite_store.insert("doctors", {"name": "Dr. Ana", "color": "#3b82f6"})
    sqlite_store.insert("user_profiles", {"id": "U1", "doctor_id": d1, "is_admin": False})
    notifier = Notifier(timeout=5)
    c = SyncController(sqlite_store, notifier)
    assert c.start_session(Session("U1"))
    assert c.add_hospital("Hospital Central")
    hid = c.data.hospitals[0].id
    new = Surgery.from_row(_surgery_row(mainSurgeonId=d1, participatingIds=[], hospitalId=hid))
    assert c.save_cirurgia(new)
    [s] = c.data.surgeries
    assert s.hospital_id == hid and s.id


def test_unwritable_location_is_reported_as_notification(tmp_path):
    blocker = tmp_path / "arquivo"
    blocker.write_text("não é diretório")
    broken = SqliteStore(str(blocker / "dados" / "agenda.db"))
    with pytest.raises(StoreError, match="diretório do DB"):
        broken.insert("hospitals", {"name": "Hospital Central"})

    notifier = Notifier(timeout=5)
    c = SyncController(broken, notifier)
    assert not c.add_hospital("Hospital Central")
    [n] = notifier.active()
    assert n.kind == "error" and n.message.startswith("Erro ao adicionar hospital:")
