# -*- coding: utf-8 -*-
"""
calendar_grid.py — Grade do calendário (mês / semana) da agenda.

- Semana começa no domingo.
- Mês: células vazias (None) antes do dia 1, depois um slot por dia; sem preenchimento no fim.
- Semana: 7 datas consecutivas a partir do domingo anterior (ou igual) à data de referência.
- Navegação opera só sobre a data de referência (mês a mês ou 7 em 7 dias).
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from enum import Enum
from typing import List, Optional, Union

from dateutil.relativedelta import relativedelta

MESES = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)

DIAS_SEMANA = ("Dom", "Seg", "Ter", "Qua", "Qui", "Sex", "Sáb")


class ViewMode(str, Enum):
    MONTH = "month"
    WEEK = "week"


def _as_date(d: Union[date, datetime]) -> date:
    return d.date() if isinstance(d, datetime) else d


def sunday_offset(d: date) -> int:
    """Posição do dia na semana iniciada no domingo (domingo=0 ... sábado=6)."""
    return (d.weekday() + 1) % 7


def build_month_grid(reference_date: Union[date, datetime]) -> List[Optional[date]]:
    ref = _as_date(reference_date)
    first = ref.replace(day=1)
    days_in_month = calendar.monthrange(first.year, first.month)[1]
    grid: List[Optional[date]] = [None] * sunday_offset(first)
    grid.extend(first.replace(day=d) for d in range(1, days_in_month + 1))
    return grid


def build_week_grid(reference_date: Union[date, datetime]) -> List[date]:
    ref = _as_date(reference_date)
    start = ref - timedelta(days=sunday_offset(ref))
    return [start + timedelta(days=i) for i in range(7)]


def build_grid(reference_date, view_mode: ViewMode) -> List[Optional[date]]:
    if ViewMode(view_mode) == ViewMode.MONTH:
        return build_month_grid(reference_date)
    return list(build_week_grid(reference_date))


def navigate(reference_date: Union[date, datetime], view_mode: ViewMode, step: int) -> date:
    """
    Avança/volta 'step' períodos. No mês, o dia é limitado ao tamanho do mês de destino
    (31/01 + 1 mês = 29/02 em ano bissexto).
    """
    ref = _as_date(reference_date)
    if ViewMode(view_mode) == ViewMode.MONTH:
        return ref + relativedelta(months=step)
    return ref + timedelta(days=7 * step)


def prev_period(reference_date, view_mode: ViewMode) -> date:
    return navigate(reference_date, view_mode, -1)


def next_period(reference_date, view_mode: ViewMode) -> date:
    return navigate(reference_date, view_mode, 1)


def is_draggable(view_mode: ViewMode) -> bool:
    """Arrastar cirurgias só é permitido na visão mensal."""
    return ViewMode(view_mode) == ViewMode.MONTH


def grid_title(reference_date, view_mode: ViewMode) -> str:
    ref = _as_date(reference_date)
    if ViewMode(view_mode) == ViewMode.MONTH:
        return f"{MESES[ref.month - 1]} de {ref.year}"
    week = build_week_grid(ref)
    return f"{week[0]:%d/%m} – {week[-1]:%d/%m/%Y}"
