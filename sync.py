# -*- coding: utf-8 -*-
"""
sync.py — Controlador de sincronização (escrita -> recarga completa -> troca do estado).

Fluxo de toda mutação (salvar/mover cirurgia, incluir/excluir cadastros):
  1) valida localmente (ValidationError -> notificação de erro, nada é enviado);
  2) UMA escrita no banco remoto (StoreError -> notificação de erro, estado intacto);
  3) recarga completa das cinco coleções;
  4) troca atômica do snapshot em memória (AppData imutável, uma atribuição);
  5) UMA notificação de sucesso.

Sem retry, sem atualização otimista: a tela sempre mostra um snapshot confirmado pelo banco.
Falha na carga inicial da sessão é fatal: notifica, faz sign-out e limpa o estado.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from aggregation import DashboardMetrics, ReportMetrics, dashboard_metrics, report_metrics
from calendar_grid import ViewMode, build_grid
from exceptions import SessionError, StoreError, ValidationError
from filters import filter_cirurgias, filter_relatorio, grid_buckets, search_cirurgias, surgeries_on
from models import (
    ALL,
    AdvancedFilters,
    Doctor,
    Hospital,
    InsurancePlan,
    Surgery,
    UserProfile,
    validate_cirurgia,
)
from notifications import Notifier
from reschedule import DropEvent, apply_drop

logger = logging.getLogger(__name__)

# (tabela, coluna de ordenação)
COLLECTIONS: Tuple[Tuple[str, Optional[str]], ...] = (
    ("doctors", "name"),
    ("surgeries", None),
    ("hospitals", "name"),
    ("insurance_plans", "name"),
    ("user_profiles", None),
)

DOCTOR_COLORS = ("#3b82f6", "#10b981", "#8b5cf6", "#f59e0b", "#ef4444", "#64748b")


class RemoteStore(Protocol):
    def read_all(self, table: str, order_by: Optional[str] = None) -> List[Dict[str, Any]]: ...
    def insert(self, table: str, row: Dict[str, Any]) -> str: ...
    def update(self, table: str, record_id: str, values: Dict[str, Any]) -> None: ...
    def delete(self, table: str, record_id: str) -> int: ...
    def upsert(self, table: str, row: Dict[str, Any]) -> str: ...


class AuthClient(Protocol):
    def sign_out(self) -> None: ...


@dataclass(frozen=True)
class Session:
    user_id: str
    access_token: str = ""


@dataclass(frozen=True)
class AppData:
    """Snapshot de uma leitura completa bem-sucedida."""
    doctors: Tuple[Doctor, ...] = ()
    surgeries: Tuple[Surgery, ...] = ()
    hospitals: Tuple[Hospital, ...] = ()
    insurance_plans: Tuple[InsurancePlan, ...] = ()
    user_profiles: Tuple[UserProfile, ...] = ()
    profile: Optional[UserProfile] = None


def _parse_surgeries(rows: List[Dict[str, Any]]) -> Tuple[Surgery, ...]:
    parsed = []
    for row in rows:
        try:
            parsed.append(Surgery.from_row(row))
        except ValidationError as e:
            logger.warning("Cirurgia %s ignorada na recarga: %s", row.get("id"), e)
    return tuple(parsed)


def _require_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Informe o nome.")
    return name


class SyncController:
    def __init__(self, store: RemoteStore, notifier: Notifier, auth: Optional[AuthClient] = None):
        self.store = store
        self.notifier = notifier
        self.auth = auth
        self.session: Optional[Session] = None
        self.data = AppData()

    # =========================================================================
    # SESSÃO / RECARGA
    # =========================================================================

    @property
    def ready(self) -> bool:
        """Sem sessão ou sem perfil -> nada é renderizado."""
        return self.session is not None and self.data.profile is not None

    def load_snapshot(self) -> AppData:
        """Lê as cinco coleções; qualquer StoreError propaga sem tocar no estado."""
        raw = {table: self.store.read_all(table, order_by=order) for table, order in COLLECTIONS}
        doctors = tuple(Doctor.from_row(r) for r in raw["doctors"])
        profiles = tuple(UserProfile.from_row(r, doctors) for r in raw["user_profiles"])
        profile = None
        if self.session is not None:
            profile = next((p for p in profiles if p.id == self.session.user_id), None)
        logger.debug(
            "recarga: %d médicos, %d cirurgias, %d hospitais, %d convênios, %d perfis",
            len(doctors), len(raw["surgeries"]), len(raw["hospitals"]),
            len(raw["insurance_plans"]), len(profiles),
        )
        return AppData(
            doctors=doctors,
            surgeries=_parse_surgeries(raw["surgeries"]),
            hospitals=tuple(Hospital.from_row(r) for r in raw["hospitals"]),
            insurance_plans=tuple(InsurancePlan.from_row(r) for r in raw["insurance_plans"]),
            user_profiles=profiles,
            profile=profile,
        )

    def start_session(self, session: Optional[Session]) -> bool:
        """Carga inicial. Sem sessão: estado vazio, sem erro. Falha: notifica e faz sign-out."""
        self.session = session
        if session is None:
            self.data = AppData()
            return False
        try:
            snapshot = self.load_snapshot()
            if snapshot.profile is None:
                raise SessionError("Perfil do usuário não encontrado. Realizando logout.")
        except (StoreError, SessionError) as e:
            logger.warning("Falha na carga da sessão %s: %s", session.user_id, e)
            self.notifier.error(f"Erro ao carregar dados: {e}")
            self.end_session()
            return False
        self.data = snapshot
        logger.info("Sessão iniciada para %s", snapshot.profile.name)
        return True

    def end_session(self) -> None:
        if self.auth is not None:
            self.auth.sign_out()
        self.session = None
        self.data = AppData()

    def reload(self) -> AppData:
        snapshot = self.load_snapshot()
        self.data = snapshot
        return snapshot

    def _mutate(self, write: Callable[[], Any], success_msg: str, error_prefix: str) -> bool:
        """Escrita -> recarga -> troca de estado -> notificação (uma por tentativa)."""
        try:
            write()
            snapshot = self.load_snapshot()
        except (ValidationError, StoreError) as e:
            logger.warning("%s: %s", error_prefix, e)
            self.notifier.error(f"{error_prefix}: {e}")
            return False
        self.data = snapshot
        self.notifier.success(success_msg)
        return True

    # =========================================================================
    # CIRURGIAS
    # =========================================================================

    def save_cirurgia(self, surgery: Surgery, surgery_id: Optional[str] = None) -> bool:
        """Upsert: sem id -> nova cirurgia; com id -> atualização."""
        if surgery_id:
            surgery = replace(surgery, id=surgery_id)
        is_update = bool(surgery.id)

        def write():
            validate_cirurgia(surgery)
            logger.info("Gravando cirurgia %s (%s)", surgery.id or "<nova>", surgery.patient_name)
            self.store.upsert("surgeries", surgery.to_row())

        msg = "Cirurgia atualizada!" if is_update else "Cirurgia salva!"
        return self._mutate(write, msg, "Erro")

    def move_cirurgia(self, surgery_id: str, new_date: date, view_mode: ViewMode = ViewMode.MONTH) -> bool:
        """Arrastar-e-soltar: mantém o horário, troca o dia. Mesmo dia também grava."""
        def write():
            moved = apply_drop(self.data.surgeries, DropEvent(surgery_id, new_date), view_mode)
            logger.info("Movendo cirurgia %s para %s", surgery_id, moved.date_time.isoformat())
            self.store.update("surgeries", surgery_id, {"dateTime": moved.to_row()["dateTime"]})

        return self._mutate(write, "Cirurgia movida com sucesso!", "Erro ao mover cirurgia")

    # =========================================================================
    # CADASTROS
    # =========================================================================

    def add_doctor(self, name: str) -> bool:
        def write():
            color = DOCTOR_COLORS[len(self.data.doctors) % len(DOCTOR_COLORS)]
            self.store.insert("doctors", {"name": _require_name(name), "color": color})

        return self._mutate(write, "Médico adicionado!", "Erro ao adicionar médico")

    def delete_doctor(self, doctor_id: str) -> bool:
        return self._mutate(lambda: self.store.delete("doctors", doctor_id),
                            "Médico excluído!", "Erro ao excluir médico")

    def add_hospital(self, name: str) -> bool:
        return self._mutate(lambda: self.store.insert("hospitals", {"name": _require_name(name)}),
                            "Hospital adicionado!", "Erro ao adicionar hospital")

    def delete_hospital(self, hospital_id: str) -> bool:
        return self._mutate(lambda: self.store.delete("hospitals", hospital_id),
                            "Hospital excluído!", "Erro ao excluir hospital")

    def add_plan(self, name: str) -> bool:
        return self._mutate(lambda: self.store.insert("insurance_plans", {"name": _require_name(name)}),
                            "Convênio adicionado!", "Erro ao adicionar convênio")

    def delete_plan(self, plan_id: str) -> bool:
        return self._mutate(lambda: self.store.delete("insurance_plans", plan_id),
                            "Convênio excluído!", "Erro ao excluir convênio")

    # =========================================================================
    # VISÕES DERIVADAS DO SNAPSHOT
    # =========================================================================

    def calendar(
        self,
        reference_date: date,
        view_mode: ViewMode = ViewMode.MONTH,
        doctor_filter: str = ALL,
        advanced: Optional[AdvancedFilters] = None,
    ):
        grid = build_grid(reference_date, view_mode)
        visible = filter_cirurgias(self.data.surgeries, doctor_filter, advanced)
        return grid_buckets(grid, visible)

    def surgeries_for_day(self, day: date) -> List[Surgery]:
        return surgeries_on(self.data.surgeries, day)

    def search(self, query: str) -> List[Surgery]:
        return search_cirurgias(self.data.surgeries, query)

    def dashboard(self, now: Optional[datetime] = None) -> DashboardMetrics:
        return dashboard_metrics(self.data.surgeries, now or datetime.now())

    def report(self, start: Optional[date] = None, end: Optional[date] = None,
               doctor_id: str = ALL) -> Tuple[List[Surgery], ReportMetrics]:
        subset = filter_relatorio(self.data.surgeries, start, end, doctor_id)
        return subset, report_metrics(subset, self.data.hospitals)
