# -*- coding: utf-8 -*-
"""
models.py — Entidades da agenda (cirurgias e cadastros) e validação local.

Principais recursos:
- Cirurgia (Surgery) imutável, com materiais e médicos participantes.
- Cadastros referenciados por id: Doctor, Hospital, InsurancePlan, UserProfile.
- Conversão linha do banco <-> entidade (colunas camelCase do banco remoto).
- Validação antes de qualquer escrita remota (ValidationError).
- Lookup com valor padrão para referências órfãs (nunca levanta erro).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from dateutil import parser as dtparser

from exceptions import ValidationError

ALL = "all"

UNKNOWN_LABEL = "Desconhecido"
NA_LABEL = "N/A"
DEFAULT_USER_NAME = "Usuário"
DEFAULT_SURGERY_TIME = time(10, 0)


class AuthStatus(str, Enum):
    PENDENTE = "Pendente"
    LIBERADO = "Liberado"
    RECUSADO = "Recusado"


class SurgeryStatus(str, Enum):
    AGENDADA = "Agendada"
    REALIZADA = "Realizada"
    CANCELADA = "Cancelada"


# Extensão documentada: o fluxo de gravação NÃO aplica esta tabela.
STATUS_TRANSITIONS: Dict[SurgeryStatus, Tuple[SurgeryStatus, ...]] = {
    SurgeryStatus.AGENDADA: (SurgeryStatus.REALIZADA, SurgeryStatus.CANCELADA),
    SurgeryStatus.REALIZADA: (),
    SurgeryStatus.CANCELADA: (),
}


def can_transition(old: SurgeryStatus, new: SurgeryStatus) -> bool:
    if old == new:
        return True
    return new in STATUS_TRANSITIONS.get(SurgeryStatus(old), ())


# =============================================================================
# HELPERS
# =============================================================================

def _safe_str(v, default: str = "") -> str:
    if v is None:
        return default
    if isinstance(v, float) and math.isnan(v):
        return default
    return str(v).strip()


def _safe_float(v, default: float = 0.0) -> float:
    try:
        if v is None:
            return default
        f = float(str(v).strip())
        return default if math.isnan(f) else f
    except (TypeError, ValueError):
        return default


def _row_list(row: Mapping[str, Any], key: str) -> list:
    """Coluna JSON de lista; qualquer outro formato levanta TypeError."""
    value = row.get(key)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"{key} deveria ser uma lista, recebido {type(value).__name__}")
    return list(value)


def parse_datetime(value) -> datetime:
    """
    Converte o timestamp do banco para datetime local ingênuo (sem tz).
    Aceita 'YYYY-MM-DDTHH:MM', com segundos e/ou offset UTC.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time())
    else:
        text = _safe_str(value)
        if not text:
            raise ValidationError("Data/hora da cirurgia ausente.")
        try:
            dt = dtparser.isoparse(text)
        except ValueError:
            try:
                dt = dtparser.parse(text, dayfirst=True)
            except (ValueError, OverflowError) as e:
                raise ValidationError(f"Data/hora inválida: {text!r}") from e
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def format_datetime(dt: datetime) -> str:
    """Forma canônica gravada no banco."""
    return dt.replace(microsecond=0).isoformat(timespec="seconds")


# =============================================================================
# ENTIDADES
# =============================================================================

@dataclass(frozen=True)
class Material:
    name: str
    quantity: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Material":
        q = row.get("quantity")
        try:
            quantity = int(q)
        except (TypeError, ValueError):
            quantity = 0
        return cls(name=_safe_str(row.get("name")), quantity=quantity)

    def to_row(self) -> Dict[str, Any]:
        return {"name": self.name, "quantity": self.quantity}


@dataclass(frozen=True)
class Doctor:
    id: str
    name: str
    color: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Doctor":
        return cls(id=_safe_str(row.get("id")), name=_safe_str(row.get("name")),
                   color=_safe_str(row.get("color")))


@dataclass(frozen=True)
class Hospital:
    id: str
    name: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Hospital":
        return cls(id=_safe_str(row.get("id")), name=_safe_str(row.get("name")))


@dataclass(frozen=True)
class InsurancePlan:
    id: str
    name: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "InsurancePlan":
        return cls(id=_safe_str(row.get("id")), name=_safe_str(row.get("name")))


@dataclass(frozen=True)
class UserProfile:
    """Representante logado (1:1 com um Doctor)."""
    id: str
    doctor_id: str
    is_admin: bool = False
    name: str = DEFAULT_USER_NAME

    @classmethod
    def from_row(cls, row: Mapping[str, Any], doctors: Sequence[Doctor] = ()) -> "UserProfile":
        doctor_id = _safe_str(row.get("doctor_id"))
        return cls(
            id=_safe_str(row.get("id")),
            doctor_id=doctor_id,
            is_admin=bool(row.get("is_admin") or False),
            name=lookup_name(doctors, doctor_id, DEFAULT_USER_NAME),
        )

    @property
    def role_label(self) -> str:
        return "Administrador" if self.is_admin else "Representante"


@dataclass(frozen=True)
class Surgery:
    id: Optional[str]
    patient_name: str
    main_surgeon_id: str
    date_time: datetime
    hospital_id: str = ""
    insurance_id: str = ""
    participating_ids: Tuple[str, ...] = ()
    auth_status: AuthStatus = AuthStatus.PENDENTE
    surgery_status: SurgeryStatus = SurgeryStatus.AGENDADA
    total_value: float = 0.0
    materials: Tuple[Material, ...] = ()
    notes: str = ""

    @property
    def day(self) -> date:
        return self.date_time.date()

    @property
    def doctor_ids(self) -> Tuple[str, ...]:
        return (self.main_surgeon_id,) + tuple(self.participating_ids)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Surgery":
        """Linha do banco (colunas camelCase) -> Surgery. Status desconhecido levanta ValidationError."""
        try:
            auth = AuthStatus(_safe_str(row.get("authStatus"), AuthStatus.PENDENTE.value))
            status = SurgeryStatus(_safe_str(row.get("surgeryStatus"), SurgeryStatus.AGENDADA.value))
        except ValueError as e:
            raise ValidationError(f"Status inválido: {e}") from e
        raw_id = row.get("id")
        try:
            participants = tuple(_safe_str(p) for p in _row_list(row, "participatingIds") if _safe_str(p))
            materials = tuple(Material.from_row(m) for m in _row_list(row, "materials"))
        except (TypeError, AttributeError) as e:
            raise ValidationError(f"Lista de participantes ou materiais malformada: {e}") from e
        return cls(
            id=_safe_str(raw_id) or None,
            patient_name=_safe_str(row.get("patientName")),
            main_surgeon_id=_safe_str(row.get("mainSurgeonId")),
            participating_ids=participants,
            date_time=parse_datetime(row.get("dateTime")),
            hospital_id=_safe_str(row.get("hospitalId")),
            insurance_id=_safe_str(row.get("insuranceId")),
            auth_status=auth,
            surgery_status=status,
            total_value=_safe_float(row.get("totalValue")),
            materials=materials,
            notes=_safe_str(row.get("notes")),
        )

    def to_row(self) -> Dict[str, Any]:
        """Surgery -> payload do banco. Sem 'id' quando a cirurgia é nova (upsert vira insert)."""
        row: Dict[str, Any] = {
            "patientName": self.patient_name,
            "mainSurgeonId": self.main_surgeon_id,
            "participatingIds": list(self.participating_ids),
            "dateTime": format_datetime(self.date_time),
            "hospitalId": self.hospital_id,
            "insuranceId": self.insurance_id,
            "authStatus": AuthStatus(self.auth_status).value,
            "surgeryStatus": SurgeryStatus(self.surgery_status).value,
            "totalValue": float(self.total_value),
            "materials": [m.to_row() for m in self.materials],
            "notes": self.notes,
        }
        if self.id:
            row["id"] = self.id
        return row

    def with_date_time(self, dt: datetime) -> "Surgery":
        return replace(self, date_time=dt)


@dataclass(frozen=True)
class AdvancedFilters:
    """Filtros de campo da agenda; 'all' = sem restrição."""
    auth_status: str = ALL
    surgery_status: str = ALL
    hospital_id: str = ALL
    insurance_id: str = ALL

    FIELDS = ("auth_status", "surgery_status", "hospital_id", "insurance_id")

    def without(self, field_name: str) -> "AdvancedFilters":
        if field_name not in self.FIELDS:
            raise KeyError(field_name)
        return replace(self, **{field_name: ALL})

    def reset(self) -> "AdvancedFilters":
        return AdvancedFilters()

    def is_empty(self) -> bool:
        return all(getattr(self, f) == ALL for f in self.FIELDS)


# =============================================================================
# LOOKUP COM PADRÃO
# =============================================================================

def index_by_id(entities: Iterable[Any]) -> Dict[str, Any]:
    return {e.id: e for e in entities}


def lookup_name(entities: Iterable[Any], entity_id: Optional[str], default: str = NA_LABEL) -> str:
    """Nome do cadastro pelo id; referência órfã (ou vazia) devolve 'default'."""
    if not entity_id:
        return default
    for e in entities:
        if e.id == entity_id:
            return e.name or default
    return default


def surgery_tooltip(
    s: Surgery,
    doctors: Sequence[Doctor] = (),
    hospitals: Sequence[Hospital] = (),
    plans: Sequence[InsurancePlan] = (),
) -> str:
    """Texto de detalhe exibido ao passar o mouse sobre a cirurgia no calendário."""
    participants = ", ".join(
        name for name in (lookup_name(doctors, pid, "") for pid in s.participating_ids) if name
    )
    lines = [
        f"Paciente: {s.patient_name}",
        f"Data: {s.date_time.strftime('%d/%m/%Y, %H:%M:%S')}",
        f"Hospital: {lookup_name(hospitals, s.hospital_id)}",
        f"Convênio: {lookup_name(plans, s.insurance_id)}",
        f"Representante: {lookup_name(doctors, s.main_surgeon_id)}",
    ]
    if participants:
        lines.append(f"Equipe: {participants}")
    lines.append(f"Status Cirurgia: {SurgeryStatus(s.surgery_status).value}")
    lines.append(f"Status Autorização: {AuthStatus(s.auth_status).value}")
    return "\n".join(lines)


# =============================================================================
# VALIDAÇÃO
# =============================================================================

def validate_material(name: str, quantity) -> Material:
    """Regra do formulário 'Adicionar material'."""
    name = _safe_str(name)
    try:
        qty = int(quantity)
    except (TypeError, ValueError):
        qty = 0
    if not name or qty <= 0:
        raise ValidationError("Preencha o nome e a quantidade do material.")
    return Material(name=name, quantity=qty)


def validate_cirurgia(s: Surgery) -> Surgery:
    """Levanta ValidationError na primeira regra violada; devolve a própria cirurgia."""
    if not _safe_str(s.patient_name):
        raise ValidationError("O nome do paciente é obrigatório.")
    if not _safe_str(s.main_surgeon_id):
        raise ValidationError("É obrigatório selecionar um representante.")
    if s.main_surgeon_id in s.participating_ids:
        raise ValidationError("O médico principal não pode constar entre os participantes.")
    try:
        value = float(s.total_value)
    except (TypeError, ValueError):
        value = None
    if value is None or not math.isfinite(value) or value < 0:
        raise ValidationError("O valor total não pode ser negativo.")
    for m in s.materials:
        validate_material(m.name, m.quantity)
    try:
        AuthStatus(s.auth_status)
        SurgeryStatus(s.surgery_status)
    except ValueError as e:
        raise ValidationError(f"Status inválido: {e}") from e
    if not isinstance(s.date_time, datetime):
        raise ValidationError("Data/hora da cirurgia ausente.")
    return s


def new_cirurgia_defaults(
    day: date,
    doctors: Sequence[Doctor] = (),
    hospitals: Sequence[Hospital] = (),
    plans: Sequence[InsurancePlan] = (),
) -> Surgery:
    """Estado inicial do formulário de nova cirurgia (10:00 do dia escolhido)."""
    return Surgery(
        id=None,
        patient_name="",
        main_surgeon_id=doctors[0].id if doctors else "",
        date_time=datetime.combine(day, DEFAULT_SURGERY_TIME),
        hospital_id=hospitals[0].id if hospitals else "",
        insurance_id=plans[0].id if plans else "",
    )


def toggle_participant(s: Surgery, doctor_id: str) -> Surgery:
    ids: List[str] = list(s.participating_ids)
    if doctor_id in ids:
        ids.remove(doctor_id)
    else:
        ids.append(doctor_id)
    return replace(s, participating_ids=tuple(ids))
