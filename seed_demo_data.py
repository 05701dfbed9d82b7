"""
Seed script for a demo database
3 accounts + 4 employees + one month of RDs
"""

from datetime import datetime, timedelta

from loguru import logger

from ciclus_rd.backend.database import create_backend
from ciclus_rd.backend.domain import Employee, ProductionMetrics, Report
from ciclus_rd.backend.services import EmployeeService, ReportSync, UserService
from ciclus_rd.shared.auth import AuthContext
from ciclus_rd.shared.config import settings
from ciclus_rd.shared.enums import Base, RDStatus, ServiceCategory, Shift, UserRole

DEMO_PASSWORD = "ciclus123"

ACCOUNTS = [
    ("Administrador Mestre", "admin", UserRole.CCO, None),
    ("Carlos Supervisor", "1001", UserRole.SUPERVISOR, "S10"),
    ("João Encarregado", "2001", UserRole.ENCARREGADO, "S10"),
]

EMPLOYEES = [
    ("Pedro Alves", "3001", "Gari"),
    ("Marcos Lima", "3002", "Roçador"),
    ("Ana Souza", "3003", "Pintor"),
    ("Rafael Costa", "3004", "Ajudante"),
]

STREETS = [
    ("Rua das Flores", "Centro"),
    ("Avenida Brasil", "Vila Nova"),
    ("Rua São João", "Providência"),
]


def seed_demo_data(backend, days: int = 20):
    """Create accounts, a roster and a few weeks of reports"""
    system = AuthContext(user_id="system", name="Sistema", registration="system", role=UserRole.CCO)
    users = UserService(backend)
    employees = EmployeeService(backend)
    reports = ReportSync(backend)

    created = {}
    for name, registration, role, team in ACCOUNTS:
        created[role] = users.create(system, name, registration, DEMO_PASSWORD, role, team)
    supervisor = created[UserRole.SUPERVISOR]
    foreman = created[UserRole.ENCARREGADO]
    supervisor_auth = AuthContext.from_user(supervisor)

    for name, registration, role in EMPLOYEES:
        employees.save(supervisor_auth, Employee(
            name=name, registration=registration, role=role,
            supervisor_id=supervisor.id, foreman_id=foreman.id, team="S10",
        ))
    roster = employees.roster_for(foreman.id)

    start = datetime.now().replace(hour=8, minute=0, second=0, microsecond=0) - timedelta(days=days)
    statuses = [RDStatus.APPROVED, RDStatus.APPROVED, RDStatus.PENDING, RDStatus.REJECTED]
    for offset in range(days):
        street, neighborhood = STREETS[offset % len(STREETS)]
        status = statuses[offset % len(statuses)]
        reports.upsert(Report(
            date=start + timedelta(days=offset),
            foreman_id=foreman.id,
            foreman_name=foreman.name,
            foreman_registration=foreman.registration,
            supervisor_id=supervisor.id,
            supervisor_name=supervisor.name,
            status=status,
            base=Base.NORTE if offset % 2 else Base.SUL,
            shift=Shift.DIURNO,
            team="S10",
            service_category=ServiceCategory.CAPINACAO_GRUPO,
            street=street,
            neighborhood=neighborhood,
            metrics=ProductionMetrics(
                capina_m=1800 + (offset % 5) * 100,
                rocagem_m2=1000,
                pintura_vias_m=10,
                pintura_postes_und=5,
            ),
            team_attendance=roster,
            supervisor_note="Fotos ilegíveis" if status == RDStatus.REJECTED else None,
        ))

    logger.success(f"Demo data created: {len(ACCOUNTS)} accounts, {len(EMPLOYEES)} employees, {days} RDs")


if __name__ == "__main__":
    seed_demo_data(create_backend(settings))
