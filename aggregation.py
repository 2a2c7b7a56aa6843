# -*- coding: utf-8 -*-
"""
aggregation.py — Indicadores do Dashboard e dos Relatórios.

Dashboard (coleção completa, ancorado em 'now'):
- surgeries_today: cirurgias do dia, por horário.
- pending_auth_count: autorizações 'Pendente'.
- month_revenue: soma de totalValue das 'Realizada' no mês/ano corrente.

Relatórios (sobre o subconjunto já filtrado por filters.filter_relatorio):
- total_revenue, surgeries_by_hospital (desc), total_surgeries, realized_surgeries_count.

Todas as funções aceitam coleção vazia e devolvem zeros/vazios.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Sequence, Tuple

import pandas as pd

from models import (
    UNKNOWN_LABEL,
    AuthStatus,
    Doctor,
    Hospital,
    InsurancePlan,
    Surgery,
    SurgeryStatus,
    lookup_name,
)

DISPLAY_COLS = [
    "id", "Data_Cirurgia", "Paciente", "Medico", "Participantes", "Hospital",
    "Convenio", "Autorizacao", "Status", "Valor_Total", "Materiais", "Observacoes",
]


@dataclass(frozen=True)
class DashboardMetrics:
    surgeries_today: List[Surgery] = field(default_factory=list)
    pending_auth_count: int = 0
    month_revenue: float = 0.0


@dataclass(frozen=True)
class ReportMetrics:
    total_revenue: float = 0.0
    surgeries_by_hospital: Dict[str, int] = field(default_factory=dict)
    total_surgeries: int = 0
    realized_surgeries_count: int = 0


# =============================================================================
# DATAFRAMES
# =============================================================================

def _metrics_frame(surgeries: Sequence[Surgery]) -> pd.DataFrame:
    """
    Frame mínimo para agregações; tipos fixos para funcionar mesmo vazio.
    Datas ficam como objetos date: datetime64[ns] só cobre 1677-2262.
    """
    return pd.DataFrame({
        "day": pd.Series([s.day for s in surgeries], dtype="object"),
        "year": pd.Series([s.date_time.year for s in surgeries], dtype="int64"),
        "month": pd.Series([s.date_time.month for s in surgeries], dtype="int64"),
        "auth_status": pd.Series([AuthStatus(s.auth_status).value for s in surgeries], dtype="object"),
        "surgery_status": pd.Series([SurgeryStatus(s.surgery_status).value for s in surgeries], dtype="object"),
        "hospital_id": pd.Series([s.hospital_id for s in surgeries], dtype="object"),
        "total_value": pd.Series([float(s.total_value or 0) for s in surgeries], dtype="float64"),
    })


def to_dataframe(
    surgeries: Sequence[Surgery],
    doctors: Sequence[Doctor] = (),
    hospitals: Sequence[Hospital] = (),
    plans: Sequence[InsurancePlan] = (),
) -> pd.DataFrame:
    """Tabela de exibição/exportação com nomes resolvidos (órfãos -> 'Desconhecido')."""
    rows = []
    for s in surgeries:
        rows.append({
            "id": s.id or "",
            "Data_Cirurgia": s.date_time,
            "Paciente": s.patient_name,
            "Medico": lookup_name(doctors, s.main_surgeon_id, UNKNOWN_LABEL),
            "Participantes": ", ".join(
                lookup_name(doctors, pid, UNKNOWN_LABEL) for pid in s.participating_ids
            ),
            "Hospital": lookup_name(hospitals, s.hospital_id, UNKNOWN_LABEL),
            "Convenio": lookup_name(plans, s.insurance_id, UNKNOWN_LABEL),
            "Autorizacao": AuthStatus(s.auth_status).value,
            "Status": SurgeryStatus(s.surgery_status).value,
            "Valor_Total": float(s.total_value or 0),
            "Materiais": "; ".join(f"{m.name} ({m.quantity})" for m in s.materials),
            "Observacoes": s.notes,
        })
    return pd.DataFrame(rows, columns=DISPLAY_COLS)


# =============================================================================
# DASHBOARD
# =============================================================================

def dashboard_metrics(surgeries: Sequence[Surgery], now: datetime) -> DashboardMetrics:
    surgeries = list(surgeries)
    if not surgeries:
        return DashboardMetrics()

    df = _metrics_frame(surgeries)
    today = now.date()

    is_today = (df["day"] == today).to_numpy()
    todays = sorted((s for s, hit in zip(surgeries, is_today) if hit), key=lambda s: s.date_time)

    pending = int((df["auth_status"] == AuthStatus.PENDENTE.value).sum())

    in_month = (
        (df["surgery_status"] == SurgeryStatus.REALIZADA.value)
        & (df["year"] == now.year)
        & (df["month"] == now.month)
    )
    revenue = float(df.loc[in_month, "total_value"].sum())

    return DashboardMetrics(surgeries_today=todays, pending_auth_count=pending, month_revenue=revenue)


# =============================================================================
# RELATÓRIOS
# =============================================================================

def surgeries_by_hospital(surgeries: Sequence[Surgery], hospitals: Sequence[Hospital] = ()) -> Dict[str, int]:
    """Contagem por nome do hospital, ordem decrescente (empate: ordem alfabética)."""
    if not surgeries:
        return {}
    names = {h.id: h.name for h in hospitals}
    df = _metrics_frame(surgeries)
    df["hospital"] = df["hospital_id"].map(lambda hid: names.get(hid) or UNKNOWN_LABEL)
    counts = df.groupby("hospital").size().sort_values(ascending=False, kind="mergesort")
    return {str(k): int(v) for k, v in counts.items()}


def report_metrics(filtered: Sequence[Surgery], hospitals: Sequence[Hospital] = ()) -> ReportMetrics:
    filtered = list(filtered)
    if not filtered:
        return ReportMetrics()

    df = _metrics_frame(filtered)
    realized = df[df["surgery_status"] == SurgeryStatus.REALIZADA.value]

    return ReportMetrics(
        total_revenue=float(realized["total_value"].sum()),
        surgeries_by_hospital=surgeries_by_hospital(filtered, hospitals),
        total_surgeries=len(df),
        realized_surgeries_count=len(realized),
    )


def chart_series(metrics: ReportMetrics) -> Tuple[List[str], List[int]]:
    """(rótulos, valores) para o gráfico de pizza 'Cirurgias por Hospital'."""
    items = list(metrics.surgeries_by_hospital.items())
    return [k for k, _ in items], [v for _, v in items]


def format_brl(value: float) -> str:
    """1234.5 -> 'R$ 1.234,50'."""
    s = f"{float(value or 0):,.2f}"
    return "R$ " + s.replace(",", "X").replace(".", ",").replace("X", ".")
