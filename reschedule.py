# -*- coding: utf-8 -*-
"""
reschedule.py — Reagendamento por arrastar-e-soltar.

O gesto vira um DropEvent (id da cirurgia, dia de destino); o novo horário
preserva hora/minuto originais e troca apenas ano/mês/dia.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Union

from calendar_grid import ViewMode, is_draggable
from exceptions import ValidationError
from models import Surgery


@dataclass(frozen=True)
class DropEvent:
    surgery_id: str
    target_date: date


def reschedule(surgery: Surgery, new_date: Union[date, datetime]) -> datetime:
    if isinstance(new_date, datetime):
        new_date = new_date.date()
    return surgery.date_time.replace(year=new_date.year, month=new_date.month, day=new_date.day)


def apply_drop(surgeries: Iterable[Surgery], event: DropEvent, view_mode: ViewMode = ViewMode.MONTH) -> Surgery:
    """
    Resolve o DropEvent contra a coleção atual e devolve a cópia reagendada.
    Soltar no mesmo dia devolve uma cópia idêntica (a gravação acontece assim mesmo).
    """
    if not is_draggable(view_mode):
        raise ValidationError("Só é possível mover cirurgias na visão mensal.")
    for s in surgeries:
        if s.id == event.surgery_id:
            return s.with_date_time(reschedule(s, event.target_date))
    raise ValidationError(f"Cirurgia não encontrada: {event.surgery_id}")
