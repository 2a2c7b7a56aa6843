# -*- coding: utf-8 -*-
"""
filters.py — Filtros sobre a coleção de cirurgias.

Estágios independentes (nunca mesclados entre si):
- filter_cirurgias: médico + filtros avançados da agenda (preserva a ordem original).
- group_by_day / surgeries_on: agrupamento por dia, ordenado por horário.
- search_cirurgias: busca por nome do paciente (consulta vazia -> lista vazia).
- filter_relatorio: período inclusivo (fim até 23:59:59.999999) + médico, usado nos relatórios.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from models import ALL, AdvancedFilters, Surgery

# campo do filtro avançado -> atributo da cirurgia
_ADVANCED_FIELDS = (
    ("auth_status", "auth_status"),
    ("surgery_status", "surgery_status"),
    ("hospital_id", "hospital_id"),
    ("insurance_id", "insurance_id"),
)


def _value(v) -> str:
    # enums (str) comparam pelo valor
    return getattr(v, "value", v)


def matches_doctor(s: Surgery, doctor_filter: str) -> bool:
    if not doctor_filter or doctor_filter == ALL:
        return True
    return doctor_filter == s.main_surgeon_id or doctor_filter in s.participating_ids


def matches_advanced(s: Surgery, filters: AdvancedFilters) -> bool:
    for filter_name, attr in _ADVANCED_FIELDS:
        wanted = _value(getattr(filters, filter_name))
        if wanted == ALL:
            continue
        if _value(getattr(s, attr)) != wanted:
            return False
    return True


def filter_cirurgias(
    surgeries: Iterable[Surgery],
    doctor_filter: str = ALL,
    advanced: Optional[AdvancedFilters] = None,
) -> List[Surgery]:
    advanced = advanced or AdvancedFilters()
    return [s for s in surgeries if matches_doctor(s, doctor_filter) and matches_advanced(s, advanced)]


def active_filters(advanced: AdvancedFilters) -> List[Tuple[str, str]]:
    """Pares (campo, valor) que restringem — usados nos chips de filtro."""
    return [(f, _value(getattr(advanced, f))) for f, _ in _ADVANCED_FIELDS
            if _value(getattr(advanced, f)) != ALL]


# =============================================================================
# AGRUPAMENTO POR DIA
# =============================================================================

def _by_time(surgeries: Iterable[Surgery]) -> List[Surgery]:
    return sorted(surgeries, key=lambda s: s.date_time)


def group_by_day(surgeries: Iterable[Surgery]) -> Dict[date, List[Surgery]]:
    buckets: Dict[date, List[Surgery]] = defaultdict(list)
    for s in surgeries:
        buckets[s.day].append(s)
    return {d: _by_time(items) for d, items in buckets.items()}


def surgeries_on(surgeries: Iterable[Surgery], day: date) -> List[Surgery]:
    if isinstance(day, datetime):
        day = day.date()
    return _by_time(s for s in surgeries if s.day == day)


def grid_buckets(grid: Sequence[Optional[date]], surgeries: Iterable[Surgery]) -> List[Tuple[Optional[date], List[Surgery]]]:
    """Associa cada célula da grade às cirurgias do dia (célula vazia -> lista vazia)."""
    buckets = group_by_day(surgeries)
    return [(d, buckets.get(d, []) if d is not None else []) for d in grid]


# =============================================================================
# BUSCA E RELATÓRIOS
# =============================================================================

def search_cirurgias(surgeries: Iterable[Surgery], query: str) -> List[Surgery]:
    if not (query or "").strip():
        return []
    q = query.lower()
    return [s for s in surgeries if q in (s.patient_name or "").lower()]


def _as_day(v) -> Optional[date]:
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    return date.fromisoformat(str(v).strip())


def filter_relatorio(
    surgeries: Iterable[Surgery],
    start: Optional[date] = None,
    end: Optional[date] = None,
    doctor_id: str = ALL,
) -> List[Surgery]:
    """
    Filtro da tela de relatórios. O fim do período é inclusivo até o último instante do dia,
    de modo que uma cirurgia às 23:30 da data final entra no resultado.
    """
    start_d, end_d = _as_day(start), _as_day(end)
    lower = datetime.combine(start_d, time.min) if start_d else None
    upper = datetime.combine(end_d, time.max) if end_d else None

    result = []
    for s in surgeries:
        if lower is not None and s.date_time < lower:
            continue
        if upper is not None and s.date_time > upper:
            continue
        if not matches_doctor(s, doctor_id):
            continue
        result.append(s)
    return result
