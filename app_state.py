# -*- coding: utf-8 -*-
"""
app_state.py — Estado de interface do app (tema, tela, painéis, filtros da agenda).

Um único AppState imutável, atualizado por dispatch(state, action, payload),
que devolve um novo estado. Nada de variáveis globais de UI.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Callable, Dict, Optional

from calendar_grid import ViewMode, next_period, prev_period
from models import ALL, AdvancedFilters, UserProfile

VIEWS = ("dashboard", "agenda", "relatorios", "cadastros", "admin")


@dataclass(frozen=True)
class ReportFilters:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    doctor_id: str = ALL


@dataclass(frozen=True)
class AppState:
    theme: str = "light"
    current_view: str = "dashboard"
    search_query: str = ""
    reference_date: date = field(default_factory=date.today)
    view_mode: ViewMode = ViewMode.MONTH
    doctor_filter: str = ALL
    advanced_filters: AdvancedFilters = field(default_factory=AdvancedFilters)
    filter_panel_open: bool = False
    day_panel_date: Optional[date] = None
    modal_open: bool = False
    modal_date: Optional[date] = None
    editing_surgery_id: Optional[str] = None
    report_filters: ReportFilters = field(default_factory=ReportFilters)


def visible_views(profile: Optional[UserProfile]):
    """'admin' só aparece para administradores."""
    if profile is not None and profile.is_admin:
        return VIEWS
    return tuple(v for v in VIEWS if v != "admin")


def _navigate(s: AppState, view) -> AppState:
    if view not in VIEWS:
        raise ValueError(f"Tela desconhecida: {view!r}")
    return replace(s, current_view=view)


def _open_new_surgery(s: AppState, day) -> AppState:
    return replace(s, modal_open=True, modal_date=day, editing_surgery_id=None, day_panel_date=None)


def _open_edit_surgery(s: AppState, surgery_id) -> AppState:
    return replace(s, modal_open=True, editing_surgery_id=surgery_id, day_panel_date=None)


def _select_search_result(s: AppState, surgery_id) -> AppState:
    return replace(_open_edit_surgery(s, surgery_id), search_query="")


_REDUCERS: Dict[str, Callable[[AppState, Any], AppState]] = {
    "navigate": _navigate,
    "toggle_theme": lambda s, _: replace(s, theme="dark" if s.theme == "light" else "light"),
    "set_search": lambda s, q: replace(s, search_query=q or ""),
    "select_search_result": _select_search_result,
    "calendar_prev": lambda s, _: replace(s, reference_date=prev_period(s.reference_date, s.view_mode)),
    "calendar_next": lambda s, _: replace(s, reference_date=next_period(s.reference_date, s.view_mode)),
    "calendar_today": lambda s, today: replace(s, reference_date=today or date.today()),
    "set_view_mode": lambda s, mode: replace(s, view_mode=ViewMode(mode)),
    "set_doctor_filter": lambda s, doctor_id: replace(s, doctor_filter=doctor_id or ALL),
    "toggle_filter_panel": lambda s, _: replace(s, filter_panel_open=not s.filter_panel_open),
    "apply_filters": lambda s, f: replace(s, advanced_filters=f, filter_panel_open=False),
    "remove_filter": lambda s, name: replace(s, advanced_filters=s.advanced_filters.without(name)),
    "reset_filters": lambda s, _: replace(s, advanced_filters=AdvancedFilters()),
    "open_day_panel": lambda s, day: replace(s, day_panel_date=day),
    "close_day_panel": lambda s, _: replace(s, day_panel_date=None),
    "open_new_surgery": _open_new_surgery,
    "open_edit_surgery": _open_edit_surgery,
    "close_modal": lambda s, _: replace(s, modal_open=False, editing_surgery_id=None, modal_date=None),
    "set_report_filters": lambda s, rf: replace(s, report_filters=rf),
}


def dispatch(state: AppState, action: str, payload: Any = None) -> AppState:
    try:
        reducer = _REDUCERS[action]
    except KeyError:
        raise ValueError(f"Ação desconhecida: {action!r}") from None
    return reducer(state, payload)
