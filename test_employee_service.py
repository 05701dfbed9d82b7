import pytest

from ciclus_rd.backend.domain import Employee
from ciclus_rd.backend.services import EmployeeService
from ciclus_rd.shared.enums import DEFAULT_EMPLOYEE_ROLES
from ciclus_rd.shared.errors import ValidationError


@pytest.fixture
def employees(backend):
    return EmployeeService(backend)


def test_save_new_employee_defaults_supervisor_to_actor(employees, supervisor):
    saved = employees.save(supervisor, Employee(name=" Pedro ", registration="3001", role="Gari"))
    assert saved.id
    assert saved.name == "Pedro"
    assert saved.supervisor_id == supervisor.user_id
    assert [e.name for e in employees.list()] == ["Pedro"]


def test_update_keeps_supervisor(employees, supervisor, admin):
    saved = employees.save(supervisor, Employee(name="Pedro", registration="3001", role="Gari"))
    updated = employees.save(admin, saved.model_copy(update={"role": "Roçador", "supervisor_id": None}))
    assert updated.role == "Roçador"
    assert updated.supervisor_id == supervisor.user_id


def test_required_fields(employees, supervisor):
    with pytest.raises(ValidationError):
        employees.save(supervisor, Employee(name="Pedro", registration="", role="Gari"))


def test_foreman_cannot_manage_employees(employees, foreman, supervisor):
    with pytest.raises(PermissionError):
        employees.save(foreman, Employee(name="Pedro", registration="3001", role="Gari"))
    saved = employees.save(supervisor, Employee(name="Pedro", registration="3001", role="Gari"))
    with pytest.raises(PermissionError):
        employees.delete(foreman, saved.id)


def test_delete(employees, supervisor):
    saved = employees.save(supervisor, Employee(name="Pedro", registration="3001", role="Gari"))
    assert employees.delete(supervisor, saved.id) is True
    assert employees.delete(supervisor, saved.id) is False
    assert employees.list() == []


def test_existing_roles_merge_defaults_and_custom(employees, supervisor):
    employees.save(supervisor, Employee(name="Pedro", registration="3001", role="Operador de Trator"))
    roles = employees.existing_roles()
    assert "Operador de Trator" in roles
    assert set(DEFAULT_EMPLOYEE_ROLES) <= set(roles)
    assert roles == sorted(roles)


def test_subscribe_notifies_on_save(employees, supervisor):
    calls = []
    employees.subscribe(lambda: calls.append(1))
    employees.save(supervisor, Employee(name="Pedro", registration="3001", role="Gari"))
    assert calls == [1]


def test_roster_for_linked_employees_all_present(employees):
    team = [
        Employee(id="e1", name="Pedro", registration="1", role="Gari", foreman_id="u-enc"),
        Employee(id="e2", name="Ana", registration="2", role="Pintor", supervisor_id="u-enc"),
        Employee(id="e3", name="Zé", registration="3", role="Gari", foreman_id="other"),
    ]
    roster = employees.roster_for("u-enc", team)
    assert [r.employee_id for r in roster] == ["e1", "e2"]
    assert all(r.present for r in roster)


def test_roster_falls_back_to_everyone(employees):
    team = [Employee(id="e3", name="Zé", registration="3", role="Gari", foreman_id="other")]
    assert [r.employee_id for r in employees.roster_for("u-enc", team)] == ["e3"]
