# -*- coding: utf-8 -*-
from aggregation import report_metrics, to_dataframe
from conftest import make_surgery
from export import _sanitize_sheet_name, _unique_sheet_name, to_csv_bytes, to_formatted_excel_cirurgias
from models import Doctor, Hospital, SurgeryStatus

HOSPITALS = [Hospital("H1", "Hospital Central"), Hospital("H2", "Santa Casa")]
DOCTORS = [Doctor("D1", "Dr. Ana")]


def _frame():
    items = [
        make_surgery("a", "2024-01-10T10:00", hospital_id="H1", surgery_status=SurgeryStatus.REALIZADA,
                     total_value=1234.5),
        make_surgery("b", "2024-01-11T08:30", hospital_id="H2", patient_name="João"),
    ]
    return items, to_dataframe(items, DOCTORS, HOSPITALS)


def test_excel_export_is_xlsx():
    items, df = _frame()
    out = to_formatted_excel_cirurgias(df, report_metrics(items, HOSPITALS))
    assert out.getvalue()[:2] == b"PK"


def test_excel_export_with_empty_frame():
    out = to_formatted_excel_cirurgias(to_dataframe([]))
    assert out.getvalue()[:2] == b"PK"


def test_csv_export_uses_semicolon_and_brazilian_dates():
    _, df = _frame()
    text = to_csv_bytes(df).decode("utf-8-sig")
    lines = text.splitlines()
    assert lines[0].startswith("Data_Cirurgia;Paciente;Medico")
    assert "10/01/2024 10:00" in lines[1]
    assert "1234,5" in lines[1]
    assert "id" not in lines[0].split(";")


def test_sheet_names():
    assert _sanitize_sheet_name("Hosp: São/Paulo [SP]") == "Hosp SãoPaulo SP"
    assert _sanitize_sheet_name("???") == "Dados"
    assert len(_sanitize_sheet_name("x" * 50)) == 31
    used = set()
    assert _unique_sheet_name("Central", used) == "Central"
    assert _unique_sheet_name("Central", used) == "Central (2)"
