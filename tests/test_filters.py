# -*- coding: utf-8 -*-
from datetime import date

from conftest import make_surgery
from filters import (
    active_filters,
    filter_cirurgias,
    filter_relatorio,
    grid_buckets,
    group_by_day,
    search_cirurgias,
    surgeries_on,
)
from models import ALL, AdvancedFilters, AuthStatus, SurgeryStatus


def _collection():
    return [
        make_surgery("s1", "2024-03-15T14:00", main_surgeon_id="D1", participating_ids=("D2",),
                     auth_status=AuthStatus.LIBERADO, hospital_id="H1"),
        make_surgery("s2", "2024-03-15T08:00", main_surgeon_id="D2", patient_name="João Lima",
                     auth_status=AuthStatus.PENDENTE, hospital_id="H2", insurance_id="P2"),
        make_surgery("s3", "2024-03-16T09:30", main_surgeon_id="D3", patient_name="Ana Maria",
                     surgery_status=SurgeryStatus.REALIZADA, hospital_id="H1"),
    ]


def test_all_filters_return_original_collection_in_order():
    items = _collection()
    assert filter_cirurgias(items, ALL, AdvancedFilters()) == items
    assert filter_cirurgias(items) == items


def test_doctor_filter_matches_main_or_participant():
    items = _collection()
    assert [s.id for s in filter_cirurgias(items, "D2")] == ["s1", "s2"]
    assert [s.id for s in filter_cirurgias(items, "D3")] == ["s3"]
    assert filter_cirurgias(items, "D9") == []


def test_advanced_filters_conjunction():
    matching = make_surgery("ok", auth_status=AuthStatus.LIBERADO, hospital_id="H1")
    other = make_surgery("no", auth_status=AuthStatus.LIBERADO, hospital_id="H2")
    result = filter_cirurgias([matching, other], ALL, AdvancedFilters(auth_status="Liberado", hospital_id="H1"))
    assert result == [matching]


def test_advanced_filters_accept_enum_values():
    items = _collection()
    f = AdvancedFilters(surgery_status=SurgeryStatus.REALIZADA)
    assert [s.id for s in filter_cirurgias(items, ALL, f)] == ["s3"]


def test_doctor_and_advanced_filters_combine():
    items = _collection()
    f = AdvancedFilters(insurance_id="P2")
    assert [s.id for s in filter_cirurgias(items, "D2", f)] == ["s2"]
    assert filter_cirurgias(items, "D1", f) == []


def test_active_filters_and_chip_removal():
    f = AdvancedFilters(auth_status="Pendente", hospital_id="H2")
    assert active_filters(f) == [("auth_status", "Pendente"), ("hospital_id", "H2")]
    assert active_filters(f.without("auth_status")) == [("hospital_id", "H2")]
    assert f.reset().is_empty()


def test_group_by_day_sorts_each_bucket_by_time():
    buckets = group_by_day(_collection())
    assert [s.id for s in buckets[date(2024, 3, 15)]] == ["s2", "s1"]
    assert [s.id for s in buckets[date(2024, 3, 16)]] == ["s3"]


def test_surgeries_on_and_grid_buckets():
    items = _collection()
    assert [s.id for s in surgeries_on(items, date(2024, 3, 15))] == ["s2", "s1"]
    cells = grid_buckets([None, date(2024, 3, 15), date(2024, 3, 17)], items)
    assert cells[0] == (None, [])
    assert [s.id for s in cells[1][1]] == ["s2", "s1"]
    assert cells[2] == (date(2024, 3, 17), [])


def test_search_is_case_insensitive_substring():
    items = _collection()
    assert [s.id for s in search_cirurgias(items, "MARIA")] == ["s1", "s3"]
    assert [s.id for s in search_cirurgias(items, "lim")] == ["s2"]


def test_empty_search_returns_nothing():
    items = _collection()
    assert search_cirurgias(items, "") == []
    assert search_cirurgias(items, "   ") == []


def test_search_matches_query_as_typed():
    items = _collection()
    assert [s.id for s in search_cirurgias(items, " maria")] == ["s3"]
    assert [s.id for s in search_cirurgias(items, "MARIA ")] == ["s1"]
    assert search_cirurgias(items, None) == []


def test_report_range_end_is_inclusive_through_end_of_day():
    late = make_surgery("late", "2024-01-31T23:30")
    after = make_surgery("after", "2024-02-01T00:00")
    before = make_surgery("before", "2023-12-31T23:59")
    result = filter_relatorio([late, after, before], date(2024, 1, 1), date(2024, 1, 31))
    assert result == [late]


def test_report_range_accepts_iso_strings_and_open_bounds():
    items = _collection()
    assert [s.id for s in filter_relatorio(items, "2024-03-16", None)] == ["s3"]
    assert [s.id for s in filter_relatorio(items, None, "2024-03-15")] == ["s1", "s2"]
    assert filter_relatorio(items, "", "") == items


def test_report_doctor_filter():
    items = _collection()
    assert [s.id for s in filter_relatorio(items, doctor_id="D2")] == ["s1", "s2"]


def test_report_filter_ignores_calendar_advanced_filters():
    items = _collection()
    calendar_view = filter_cirurgias(items, ALL, AdvancedFilters(hospital_id="H2"))
    report = filter_relatorio(items, date(2024, 3, 1), date(2024, 3, 31))
    assert len(calendar_view) == 1
    assert len(report) == 3
