from datetime import datetime

import pytest

from ciclus_rd.backend.domain import User
from ciclus_rd.backend.filters import (
    ALL,
    ReportFilters,
    filter_reports,
    foreman_options,
    is_visible,
    matches_date,
    matches_search,
    supervisor_options,
)
from ciclus_rd.shared.enums import DateMode, RDStatus, Shift, UserRole


def test_admin_sees_everything(make_report, admin):
    reports = [make_report(id="a", foreman_id="x", supervisor_id="y"), make_report(id="b")]
    assert {r.id for r in filter_reports(reports, admin)} == {"a", "b"}


def test_supervisor_sees_assigned_and_own(make_report, supervisor):
    assigned = make_report(id="assigned")
    own = make_report(id="own", foreman_id="u-sup", supervisor_id=None)
    other = make_report(id="other", foreman_id="x", supervisor_id="someone-else")

    visible = {r.id for r in filter_reports([assigned, own, other], supervisor)}
    assert visible == {"assigned", "own"}


def test_foreman_sees_only_own(make_report, foreman):
    mine = make_report(id="mine")
    theirs = make_report(id="theirs", foreman_id="other-enc")
    assert [r.id for r in filter_reports([mine, theirs], foreman)] == ["mine"]
    assert not is_visible(theirs, foreman.user_id, UserRole.ENCARREGADO)


def test_month_and_day_filters(make_report):
    report = make_report(date=datetime(2024, 5, 10, 23, 59))
    assert matches_date(report, DateMode.MONTH, "2024-05")
    assert not matches_date(report, DateMode.MONTH, "2024-06")
    assert matches_date(report, DateMode.DAY, "2024-05-10")
    assert not matches_date(report, DateMode.DAY, "2024-05-11")
    assert matches_date(report, DateMode.DAY, "")


def test_month_values_are_normalised_before_matching(make_report):
    october = make_report(date=datetime(2024, 10, 3))
    january = make_report(date=datetime(2024, 1, 20))
    assert not matches_date(october, DateMode.MONTH, "2024-1")
    assert matches_date(january, DateMode.MONTH, "2024-1")
    assert matches_date(january, DateMode.MONTH, "2024-01-05")

    assert ReportFilters(date_value="2024-1").date_value == "2024-01"
    assert ReportFilters(date_value=" 2024-01-05 ").date_value == "2024-01"
    assert ReportFilters(date_mode=DateMode.DAY, date_value="2024-01-05").date_value == "2024-01-05"


@pytest.mark.parametrize("mode, value", [
    (DateMode.MONTH, "maio"),
    (DateMode.MONTH, "2024-13"),
    (DateMode.MONTH, "2024-"),
    (DateMode.DAY, "2024-02-30"),
    (DateMode.DAY, "10/05/2024"),
])
def test_unparsable_date_values_are_rejected(mode, value):
    with pytest.raises(ValueError):
        ReportFilters(date_mode=mode, date_value=value)


def test_search_is_case_insensitive_over_name_registration_and_address(make_report):
    report = make_report(street="Rua das Flores", neighborhood="Centro")
    assert matches_search(report, "flores")
    assert matches_search(report, "CENTRO")
    assert matches_search(report, "joão")
    assert matches_search(report, "2001")
    assert matches_search(report, "   ")
    assert not matches_search(report, "vileta")


def test_status_and_analytics_selectors(make_report, admin):
    reports = [
        make_report(id="p", status=RDStatus.PENDING, shift=Shift.DIURNO),
        make_report(id="a", status=RDStatus.APPROVED, shift=Shift.NOTURNO),
        make_report(id="r", status=RDStatus.REJECTED, foreman_id="enc-2", supervisor_note="x"),
    ]
    assert [r.id for r in filter_reports(reports, admin, ReportFilters(status=RDStatus.APPROVED))] == ["a"]
    assert len(filter_reports(reports, admin, ReportFilters(status=ALL))) == 3
    assert [r.id for r in filter_reports(reports, admin, ReportFilters(shift=Shift.NOTURNO))] == ["a"]
    assert [r.id for r in filter_reports(reports, admin, ReportFilters(foreman_id="enc-2"))] == ["r"]
    assert filter_reports(reports, admin, ReportFilters(supervisor_id="nobody")) == []


def test_results_are_newest_first(make_report, admin):
    reports = [
        make_report(id="old", date=datetime(2024, 5, 1)),
        make_report(id="new", date=datetime(2024, 5, 20)),
        make_report(id="mid", date=datetime(2024, 5, 10)),
    ]
    assert [r.id for r in filter_reports(reports, admin)] == ["new", "mid", "old"]


def test_filtering_is_idempotent(make_report, supervisor):
    reports = [make_report(id=str(i), foreman_id="u-enc" if i % 2 else "x") for i in range(6)]
    filters = ReportFilters(date_value="2024-05", search="rua")
    once = filter_reports(reports, supervisor, filters)
    assert filter_reports(once, supervisor, filters) == once


def test_context_month():
    assert ReportFilters(date_mode=DateMode.DAY, date_value="2024-05-10").context_month == "2024-05"
    assert ReportFilters(date_value="2024-05").context_month == "2024-05"


def test_supervisor_options_include_referenced_ids(make_report):
    users = [
        User(id="u-sup", name="Carlos", registration="1", role=UserRole.SUPERVISOR),
        User(id="u-cco", name="Central", registration="2", role=UserRole.CCO),
    ]
    reports = [
        make_report(supervisor_id="u-cco"),
        make_report(supervisor_id="abcdef", supervisor_name=None),
    ]
    options = dict(supervisor_options(reports, users))
    assert options["u-sup"] == "Carlos"
    assert options["u-cco"] == "Central"
    assert options["abcdef"] == "Supervisor (ID: abcd)"


def test_foreman_options_sorted_by_name(make_report):
    reports = [
        make_report(foreman_id="2", foreman_name="Zé"),
        make_report(foreman_id="1", foreman_name="ana"),
        make_report(foreman_id="2", foreman_name="Zé"),
    ]
    assert foreman_options(reports) == [("1", "ana"), ("2", "Zé")]
