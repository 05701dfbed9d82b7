"""
Shared pytest fixtures: in-memory backend, sample actors and a report factory
"""

from datetime import datetime

import pytest

from ciclus_rd.backend.database import create_backend
from ciclus_rd.backend.domain import AttendanceRecord, ProductionMetrics, Report, User
from ciclus_rd.shared.auth import AuthContext
from ciclus_rd.shared.config import Settings
from ciclus_rd.shared.enums import RDStatus, UserRole


@pytest.fixture
def config(tmp_path):
    return Settings(
        database_url="sqlite://",
        photo_dir=str(tmp_path / "photos"),
        log_file=str(tmp_path / "logs" / "test.log"),
        admin_functions_enabled=True,
    )


@pytest.fixture
def backend(config):
    backend = create_backend(config)
    yield backend
    backend.dispose()


@pytest.fixture
def admin_user():
    return User(id="u-cco", name="Central CCO", registration="admin", role=UserRole.CCO)


@pytest.fixture
def supervisor_user():
    return User(id="u-sup", name="Carlos Supervisor", registration="1001", role=UserRole.SUPERVISOR, team="S10")


@pytest.fixture
def foreman_user():
    return User(id="u-enc", name="João Encarregado", registration="2001", role=UserRole.ENCARREGADO, team="S10")


@pytest.fixture
def admin(admin_user):
    return AuthContext.from_user(admin_user)


@pytest.fixture
def supervisor(supervisor_user):
    return AuthContext.from_user(supervisor_user)


@pytest.fixture
def foreman(foreman_user):
    return AuthContext.from_user(foreman_user)


def build_report(**overrides) -> Report:
    """A pending report by u-enc assigned to u-sup; any field can be overridden"""
    data = dict(
        id="RD-1",
        date=datetime(2024, 5, 10, 8, 30),
        foreman_id="u-enc",
        foreman_name="João Encarregado",
        foreman_registration="2001",
        supervisor_id="u-sup",
        supervisor_name="Carlos Supervisor",
        status=RDStatus.PENDING,
        street="Rua das Flores",
        neighborhood="Centro",
        metrics=ProductionMetrics(capina_m=100),
        team_attendance=[
            AttendanceRecord(employee_id="e1", name="Pedro", registration="3001", role="Gari", present=True),
            AttendanceRecord(employee_id="e2", name="Ana", registration="3002", role="Pintor", present=False),
        ],
        created_at=datetime(2024, 5, 10, 9, 0),
    )
    data.update(overrides)
    return Report(**data)


@pytest.fixture
def make_report():
    return build_report
