"""
Screen smoke tests: each view is built against a stub page with real services
on the in-memory backend, then rendered with data and clicked through.
"""

import dataclasses
from datetime import datetime
from types import SimpleNamespace

import flet as ft
import pytest

from ciclus_rd.backend.domain import Employee, ProductionMetrics
from ciclus_rd.backend.services import EmployeeService, ReportSync, UserService
from ciclus_rd.backend.services.geocoding_service import AddressSuggestion
from ciclus_rd.frontend import app as app_module
from ciclus_rd.frontend.app import CiclusApp
from ciclus_rd.frontend.form_controller import AddressField, FormState
from ciclus_rd.frontend.navigation import AdminTab, ViewName
from ciclus_rd.frontend.views.admin import AdminView
from ciclus_rd.frontend.views.analytics import AnalyticsView
from ciclus_rd.frontend.views.dashboard import DashboardView
from ciclus_rd.frontend.views.login import LoginView
from ciclus_rd.frontend.views.report_form import ReportFormView
from ciclus_rd.shared.auth import AuthContext
from ciclus_rd.shared.config import Settings
from ciclus_rd.shared.enums import RDStatus, UserRole
from ciclus_rd.shared.utils import days_in_month


class StubPage:
    """Keeps the view stack and open dialogs of an ft.Page; no flet session behind it"""

    def __init__(self):
        self.views = []
        self.dialogs = []
        self.updates = 0
        self.web = False
        self.platform = None

    def update(self):
        self.updates += 1

    def show_dialog(self, dialog):
        self.dialogs.append(dialog)

    def pop_dialog(self):
        return self.dialogs.pop() if self.dialogs else None

    def run_thread(self, handler, *args):
        handler(*args)


def walk(control):
    """Every control reachable from `control` through its fields"""
    yield control
    for field in dataclasses.fields(control):
        value = getattr(control, field.name, None)
        for child in value if isinstance(value, list) else [value]:
            if isinstance(child, ft.BaseControl):
                yield from walk(child)


def texts(control):
    found = []
    for node in walk(control):
        for name in ("value", "content", "label", "tooltip"):
            value = getattr(node, name, None)
            if isinstance(value, str):
                found.append(value)
    return found


def of_type(control, cls):
    return [node for node in walk(control) if isinstance(node, cls)]


@pytest.fixture
def people(backend, admin):
    users = UserService(backend)
    cco = users.create(admin, "Central CCO", "admin", "segredo1", UserRole.CCO)
    supervisor = users.create(admin, "Carlos Supervisor", "1001", "segredo1", UserRole.SUPERVISOR, "S10")
    foreman = users.create(admin, "João Encarregado", "2001", "segredo1", UserRole.ENCARREGADO, "S10")
    other = users.create(admin, "Maria Encarregada", "2002", "segredo1", UserRole.ENCARREGADO, "S01")
    EmployeeService(backend).save(
        AuthContext.from_user(supervisor),
        Employee(name="Pedro Gari", registration="3001", role="Gari", foreman_id=foreman.id),
    )
    return SimpleNamespace(cco=cco, supervisor=supervisor, foreman=foreman, other=other)


@pytest.fixture
def this_month_reports(backend, people, make_report):
    now = datetime.now()
    sync = ReportSync(backend)
    reports = [
        make_report(id="RD-A", date=now, created_at=now, foreman_id=people.foreman.id,
                    foreman_name=people.foreman.name, supervisor_id=people.supervisor.id,
                    supervisor_name=people.supervisor.name, metrics=ProductionMetrics(capina_m=2000)),
        make_report(id="RD-B", date=now, created_at=now, foreman_id=people.other.id,
                    foreman_name=people.other.name, supervisor_id=people.supervisor.id,
                    supervisor_name=people.supervisor.name, street="Rua do Porto",
                    metrics=ProductionMetrics(capina_m=500, rocagem_m2=300)),
    ]
    for report in reports:
        sync.upsert(report)
    return reports


class QuietMonitor:
    """Connection monitor that never polls"""

    def __init__(self, backend, on_status=None, interval=None):
        self.online = True

    def start(self):
        pass

    def stop(self, timeout=2.0):
        pass


@pytest.fixture
def app(backend, monkeypatch):
    monkeypatch.setattr(app_module, "ConnectionMonitor", QuietMonitor)
    app = CiclusApp(StubPage(), backend)
    yield app
    app.shutdown()


def test_initialize_shows_login_and_signs_in(app, people):
    app.initialize()
    assert isinstance(app.active_screen, LoginView)
    assert isinstance(app.page.views[-1], ft.View)

    screen = app.active_screen
    screen.registration_field.value = "2001"
    screen.password_field.value = "errada"
    screen.do_login()
    assert screen.error_text.visible
    assert app.auth_context is None

    screen.password_field.value = "segredo1"
    screen.do_login()
    assert app.auth_context.user_id == people.foreman.id
    assert app.session_token
    assert isinstance(app.active_screen, DashboardView)


@pytest.mark.parametrize("role_name", ["cco", "supervisor", "foreman"])
@pytest.mark.parametrize("requested", list(ViewName))
def test_every_view_builds_for_every_role(app, people, role_name, requested):
    app.login(getattr(people, role_name))
    app.navigate(requested)
    assert len(app.page.views) == 1
    assert isinstance(app.page.views[-1], ft.View)
    assert app.page.views[-1].controls


def test_report_form_renders_nearby_streets_and_suggestions(app, people):
    app.login(people.foreman)
    app.navigate(ViewName.REPORT_FORM)
    screen = app.active_screen
    assert isinstance(screen, ReportFormView)
    assert any("Pedro Gari" in text for text in texts(screen.attendance_column))

    controller = screen.controller
    controller.nearby_streets = ["Rua A", "Rua B"]
    controller.suggestions[AddressField.STREET] = [
        AddressSuggestion(display_name="Rua das Flores, Centro", street="Rua das Flores", neighborhood="Centro"),
    ]
    screen.refresh()

    assert "Rua das Flores, Centro" in texts(screen.street_suggestions)
    assert len(screen.nearby_row.controls) == 2
    chips = of_type(screen.nearby_row, ft.Chip)
    fixers = of_type(screen.nearby_row, ft.IconButton)
    assert len(chips) == 2 and len(fixers) == 2

    chips[0].on_select(None)
    chips[1].on_select(None)
    assert screen.perimeter_field.value == "Entre Rua A e Rua B"
    assert all(chip.selected for chip in of_type(screen.nearby_row, ft.Chip))

    fixers[1].on_click(None)
    assert screen.street_field.value == "Rua B"
    assert controller.draft.street == "Rua B"

    suggestion_tile = of_type(screen.street_suggestions, ft.ListTile)[0]
    suggestion_tile.on_click(None)
    assert controller.draft.neighborhood == "Centro"


def test_report_form_failed_submit_offers_retry(app, people):
    app.login(people.foreman)
    app.navigate(ViewName.REPORT_FORM)
    screen = app.active_screen
    screen.controller.state = FormState.FAILED
    screen.render()
    assert screen.save_button.content == "Tentar novamente"
    assert not screen.save_button.disabled


def test_report_form_without_gps_disables_capture(app, people):
    app.login(people.foreman)
    app.navigate(ViewName.REPORT_FORM)
    gps = [b for b in of_type(app.page.views[-1], ft.IconButton) if b.tooltip == "Capturar GPS"]
    assert len(gps) == 1 and gps[0].disabled


def test_dashboard_lists_expands_and_rejects(app, people, this_month_reports):
    app.login(people.cco)
    screen = app.active_screen
    assert isinstance(screen, DashboardView)
    assert len(screen.list_column.controls) == 2
    assert len(screen.totals_row.controls) == 5

    screen.toggle("RD-A")
    details = texts(screen.list_column)
    assert f"Encarregado: {people.foreman.name}" in details
    assert "Aprovar" in details and "Recusar" in details

    screen.reject(screen.store.find("RD-A"))
    dialog = app.page.dialogs[-1]
    assert isinstance(dialog, ft.AlertDialog)
    reason, confirm = dialog.content, dialog.actions[-1]

    confirm.on_click(None)
    assert reason.error
    assert app.page.dialogs[-1] is dialog

    reason.value = "Fotos ausentes"
    confirm.on_click(None)
    assert isinstance(app.page.dialogs[-1], ft.SnackBar)
    assert screen.store.find("RD-A").status == RDStatus.REJECTED
    assert ReportSync(app.backend).get("RD-A").supervisor_note == "Fotos ausentes"


def test_dashboard_month_filter_accepts_short_month(app, people, this_month_reports):
    app.login(people.cco)
    screen = app.active_screen
    now = datetime.now()
    screen.set_filter(date_value=f"{now.year}-{now.month}")
    assert screen.filters.date_value == now.strftime("%Y-%m")
    assert len(screen.list_column.controls) == 2

    screen.set_filter(date_value="maio")
    assert screen.filters.date_value == now.strftime("%Y-%m")


def test_analytics_renders_cards_chart_and_rankings(app, people, this_month_reports):
    app.login(people.cco)
    app.navigate(ViewName.ANALYTICS)
    screen = app.active_screen
    assert isinstance(screen, AnalyticsView)

    now = datetime.now()
    assert len(screen.chart.controls) == days_in_month(now.year, now.month)
    assert len(screen.cards_row.controls) == 5
    assert len(screen.goals_row.controls) == 2

    ranking = texts(screen.ranking_column)
    assert people.supervisor.name in ranking
    assert "2 RDs" in ranking

    screen.set_ranking_tab("foremen")
    ranking = [tile.title.value for tile in of_type(screen.ranking_column, ft.ListTile)]
    assert ranking == [people.foreman.name, people.other.name]


def test_admin_lists_employees_and_users(app, people):
    app.login(people.cco)
    app.navigate(ViewName.ADMIN)
    screen = app.active_screen
    assert isinstance(screen, AdminView)
    assert "Pedro Gari" in texts(screen.content)

    screen.switch_tab(AdminTab.USERS)
    names = texts(screen.content)
    for user in (people.cco, people.supervisor, people.foreman, people.other):
        assert user.name in names
    deletable = [b for b in of_type(screen.content, ft.IconButton) if b.tooltip == "Excluir" and not b.disabled]
    assert len(deletable) == 3

    screen.edit_user(None)
    assert isinstance(app.page.dialogs[-1], ft.AlertDialog)


def test_supervisor_admin_stays_on_employees(app, people):
    app.login(people.supervisor)
    app.navigate(ViewName.ADMIN)
    screen = app.active_screen
    screen.switch_tab(AdminTab.USERS)
    assert screen.selected_tab == AdminTab.EMPLOYEES
    assert len(screen.tab_row.controls) == 1


def test_admin_reflects_new_employee(app, people):
    app.login(people.cco)
    app.navigate(ViewName.ADMIN)
    EmployeeService(app.backend).save(
        AuthContext.from_user(people.cco), Employee(name="Zeca Pintor", registration="3002", role="Pintor"),
    )
    assert "Zeca Pintor" in texts(app.active_screen.content)


@pytest.mark.parametrize("token_settings", [
    {"jwt_expiration_hours": -1},
    {"secret_key": "outra-chave"},
])
def test_invalid_session_token_returns_to_login(app, people, token_settings):
    app.login(people.cco)
    stale = Settings(**{"secret_key": app.settings.secret_key, **token_settings})
    app.session_token = app.auth_context.to_token(stale)

    app.navigate(ViewName.ANALYTICS)
    assert app.current_view == ViewName.LOGIN
    assert isinstance(app.active_screen, LoginView)
    assert app.auth_context is None and app.store is None
    assert isinstance(app.page.dialogs[-1], ft.SnackBar)


def test_valid_session_survives_navigation(app, people):
    app.login(people.cco)
    app.navigate(ViewName.ANALYTICS)
    app.navigate(ViewName.ADMIN)
    assert app.current_view == ViewName.ADMIN
    assert app.session_valid()

    app.logout()
    assert app.session_token is None
    assert not app.session_valid()
