"""
Ciclus RD - Report Filter
Role visibility, date, status, free-text and analytics selectors.
Pure functions of (reports, actor, filters).
"""

from datetime import date
from typing import Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, model_validator

from ciclus_rd.backend.domain import Report
from ciclus_rd.shared.enums import DateMode, RDStatus, Shift, UserRole
from ciclus_rd.shared.utils import day_key, month_key, parse_month

ALL = "ALL"


def normalize_date_value(mode: DateMode, value: str) -> str:
    """Canonical YYYY-MM (month mode) or YYYY-MM-DD (day mode); ValueError if unparsable"""
    value = (value or "").strip()
    if not value:
        return ""
    if mode == DateMode.MONTH:
        year, month = parse_month(value)
        return f"{year:04d}-{month:02d}"
    return date.fromisoformat(value).isoformat()


class ReportFilters(BaseModel):
    """Filter set shared by the dashboard and the analytics screen"""

    status: Union[RDStatus, Literal["ALL"]] = ALL
    date_mode: DateMode = DateMode.MONTH
    date_value: str = ""  # YYYY-MM in month mode, YYYY-MM-DD in day mode; empty = any date
    search: str = ""

    # Analytics selectors
    supervisor_id: Optional[str] = None
    foreman_id: Optional[str] = None
    shift: Optional[Shift] = None

    @model_validator(mode="after")
    def normalize_date(self):
        self.date_value = normalize_date_value(self.date_mode, self.date_value)
        return self

    @property
    def context_month(self) -> str:
        """Year-month the date selection falls in"""
        return self.date_value[:7]


def is_visible(report: Report, user_id: str, role: UserRole) -> bool:
    """Role-based visibility, applied before any other predicate"""
    if role == UserRole.CCO:
        return True

    is_my_creation = report.foreman_id == user_id
    if role == UserRole.SUPERVISOR:
        return is_my_creation or report.supervisor_id == user_id
    return is_my_creation


def matches_date(report: Report, mode: DateMode, value: str) -> bool:
    value = normalize_date_value(mode, value)
    if not value:
        return True
    if mode == DateMode.MONTH:
        return month_key(report.date) == value
    return day_key(report.date) == value


def matches_search(report: Report, term: str) -> bool:
    term = (term or "").strip().lower()
    if not term:
        return True
    haystack = (
        report.foreman_name,
        report.foreman_registration or "",
        report.street or "",
        report.neighborhood or "",
    )
    return any(term in field.lower() for field in haystack)


def matches(report: Report, filters: ReportFilters) -> bool:
    """Every non-visibility predicate, ANDed"""
    if filters.status != ALL and report.status != filters.status:
        return False
    if not matches_date(report, filters.date_mode, filters.date_value):
        return False
    if filters.supervisor_id and report.supervisor_id != filters.supervisor_id:
        return False
    if filters.foreman_id and report.foreman_id != filters.foreman_id:
        return False
    if filters.shift and report.shift != filters.shift:
        return False
    return matches_search(report, filters.search)


def filter_reports(reports: Iterable[Report], actor, filters: Optional[ReportFilters] = None) -> List[Report]:
    """
    Visible subset of reports for actor (anything with user_id and role),
    newest first
    """
    filters = filters or ReportFilters()
    visible = [
        report for report in reports
        if is_visible(report, actor.user_id, actor.role) and matches(report, filters)
    ]
    return sorted(visible, key=lambda report: report.date, reverse=True)


def supervisor_options(reports: Iterable[Report], users) -> List[tuple]:
    """
    (id, name) pairs for the supervisor selector: every Supervisor profile plus
    any supervisor id referenced by a report
    """
    names = {user.id: user.name for user in users}
    options = {user.id: user.name for user in users if user.role == UserRole.SUPERVISOR}
    for report in reports:
        sup_id = report.supervisor_id
        if sup_id and sup_id not in options:
            options[sup_id] = names.get(sup_id) or report.supervisor_name or f"Supervisor (ID: {sup_id[:4]})"
    return list(options.items())


def foreman_options(reports: Iterable[Report]) -> List[tuple]:
    """(id, name) pairs of foremen that submitted reports, sorted by name"""
    options = {}
    for report in reports:
        options.setdefault(report.foreman_id, report.foreman_name)
    return sorted(options.items(), key=lambda item: item[1].lower())
