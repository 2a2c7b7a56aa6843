# -*- coding: utf-8 -*-
"""
export.py — Exportação do relatório de cirurgias (Excel por hospital e CSV).

Entrada: DataFrame de aggregation.to_dataframe (colunas Data_Cirurgia, Paciente, Hospital, ...).
"""

import io
import re
from typing import Optional

import pandas as pd

from aggregation import ReportMetrics, format_brl

# ---------------- Helpers de formatação ----------------

_INVALID_SHEET_CHARS_RE = re.compile(r'[:\\/?*\[\]]')

TECH_COLS = ["id"]


def _sanitize_sheet_name(name: str, fallback: str = "Dados") -> str:
    """
    Limpa o nome da aba para atender restrições do Excel:
    - remove caracteres inválidos: : \\ / ? * [ ]
    - limita a 31 caracteres
    - se vazio após limpeza, usa fallback
    """
    name = _INVALID_SHEET_CHARS_RE.sub("", str(name or "").strip())
    if not name:
        name = fallback
    return name[:31]


_DATE_COLS = ("Data_Cirurgia",)
_MONEY_COLS = ("Valor_Total",)


def _cell_text(x) -> str:
    if x is None or x is pd.NaT or (isinstance(x, float) and pd.isna(x)):
        return ""
    if hasattr(x, "strftime"):
        return x.strftime("%d/%m/%Y %H:%M")
    return str(x)


def _write_sheet(writer: pd.ExcelWriter, sheet_name: str, df: pd.DataFrame):
    """
    Aba com cabeçalho congelado, autofiltro, Valor_Total em reais e larguras ajustadas.
    Datas vão como texto 'dd/mm/aaaa HH:MM'.
    """
    if df is None or df.empty:
        return

    df = df.copy()
    for c in df.columns:
        if c in _DATE_COLS or df[c].dtype == "object":
            df[c] = df[c].map(_cell_text)

    df.to_excel(writer, sheet_name=sheet_name, index=False)
    book = writer.book
    sheet = writer.sheets[sheet_name]

    header_fmt = book.add_format({"bold": True, "bg_color": "#DCE6F1", "border": 1})
    money_fmt = book.add_format({"num_format": '"R$" #,##0.00'})
    for col_num, title in enumerate(df.columns):
        sheet.write(0, col_num, title, header_fmt)
    sheet.freeze_panes(1, 0)
    sheet.autofilter(0, 0, len(df), len(df.columns) - 1)

    for i, col in enumerate(df.columns):
        width = max([len(str(col))] + [len(_cell_text(v)) for v in df[col]]) + 2
        sheet.set_column(i, i, max(12, min(width, 60)), money_fmt if col in _MONEY_COLS else None)


def _unique_sheet_name(name: str, used: set) -> str:
    # nomes truncados em 31 caracteres podem colidir
    candidate, n = name, 2
    while candidate.lower() in used:
        suffix = f" ({n})"
        candidate = name[:31 - len(suffix)] + suffix
        n += 1
    used.add(candidate.lower())
    return candidate


def _summary_frame(metrics: ReportMetrics) -> pd.DataFrame:
    rows = [
        ("Faturamento Total", format_brl(metrics.total_revenue)),
        ("Total de Cirurgias", metrics.total_surgeries),
        ("Cirurgias Realizadas", metrics.realized_surgeries_count),
    ]
    rows += [(f"Hospital: {k}", v) for k, v in metrics.surgeries_by_hospital.items()]
    return pd.DataFrame(rows, columns=["Indicador", "Valor"])


# ---------------- Exportações ----------------

def to_formatted_excel_cirurgias(df: pd.DataFrame, metrics: Optional[ReportMetrics] = None) -> io.BytesIO:
    """
    Excel com uma aba por Hospital (ordenada por Data_Cirurgia, Paciente) e,
    se 'metrics' for informado, uma aba 'Resumo' no início.
    """
    output = io.BytesIO()

    with pd.ExcelWriter(output, engine="xlsxwriter") as writer:
        if metrics is not None:
            _write_sheet(writer, "Resumo", _summary_frame(metrics))

        if df is None or df.empty:
            pd.DataFrame({"Aviso": ["Nenhum dado encontrado para os filtros selecionados"]}).to_excel(
                writer, sheet_name="Cirurgias", index=False
            )
        elif "Hospital" not in df.columns:
            _write_sheet(writer, "Cirurgias", df.drop(columns=TECH_COLS, errors="ignore"))
        else:
            df_aux = df.copy()
            df_aux["Hospital"] = (
                df_aux["Hospital"]
                .fillna("Sem_Hospital")
                .astype(str)
                .str.strip()
                .replace("", "Sem_Hospital")
            )
            used = {"resumo"} if metrics is not None else set()
            for hosp in sorted(df_aux["Hospital"].unique()):
                dfh = df_aux[df_aux["Hospital"] == hosp].drop(columns=TECH_COLS, errors="ignore")
                order_cols = [c for c in ["Data_Cirurgia", "Paciente"] if c in dfh.columns]
                if order_cols:
                    dfh = dfh.sort_values(order_cols, kind="mergesort")
                sheet_name = _unique_sheet_name(_sanitize_sheet_name(hosp, fallback="Sem_Hospital"), used)
                _write_sheet(writer, sheet_name, dfh)

    output.seek(0)
    return output


def to_csv_bytes(df: pd.DataFrame) -> bytes:
    """CSV ';' com BOM UTF-8 (abre direto no Excel pt-BR), datas 'dd/mm/aaaa HH:MM'."""
    if df is None:
        df = pd.DataFrame()
    out = df.drop(columns=TECH_COLS, errors="ignore")
    return out.to_csv(sep=";", index=False, date_format="%d/%m/%Y %H:%M", decimal=",").encode("utf-8-sig")
