"""
Ciclus RD - Enums and Constants
Type-safe enumerations for the application
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles with hierarchy"""
    CCO = "CCO (Admin)"             # Operations center, full access
    SUPERVISOR = "Supervisor"       # Reviews RDs, manages employees
    ENCARREGADO = "Encarregado"     # Foreman, submits RDs

    @property
    def level(self) -> int:
        """Role hierarchy level (higher = more permissions)"""
        levels = {
            UserRole.CCO: 100,
            UserRole.SUPERVISOR: 60,
            UserRole.ENCARREGADO: 40,
        }
        return levels.get(self, 0)

    def can_access_role(self, target_role: "UserRole") -> bool:
        """Check if this role can access/manage target role"""
        return self.level >= target_role.level


class RDStatus(str, Enum):
    """Report lifecycle status"""
    PENDING = "Pendente"
    APPROVED = "Aprovado"
    REJECTED = "Recusado"


class ServiceCategory(str, Enum):
    CAPINACAO_GRUPO = "Capinação e Raspagem (Grupo)"
    ROCAGEM = "Roçagem"
    MUTIRAO = "Mutirão (Geral)"
    VARRICAO = "Varrição"


class Base(str, Enum):
    """Operational base (work location group)"""
    NORTE = "Norte - Providência"
    SUL = "Sul - Vileta"


class Shift(str, Enum):
    DIURNO = "Diurno"
    NOTURNO = "Noturno"


class DateMode(str, Enum):
    """Date filter granularity"""
    MONTH = "month"
    DAY = "day"


class SegmentType(str, Enum):
    CAPINA = "CAPINA"
    ROCAGEM = "ROCAGEM"


class PhotoKind(str, Enum):
    """The three mandatory evidence photos"""
    INITIAL = "initial"
    PROGRESS = "progress"
    FINAL = "final"


class Permission(str, Enum):
    """Granular permissions"""
    # Reports
    REPORT_VIEW = "report:view"
    REPORT_CREATE = "report:create"
    REPORT_REVIEW = "report:review"
    REPORT_DELETE = "report:delete"
    REPORT_EXPORT = "report:export"
    REPORT_TOTALS = "report:totals"

    # Analytics
    ANALYTICS_VIEW = "analytics:view"

    # Employee management
    EMPLOYEE_VIEW = "employee:view"
    EMPLOYEE_CREATE = "employee:create"
    EMPLOYEE_EDIT = "employee:edit"
    EMPLOYEE_DELETE = "employee:delete"

    # User management
    USER_VIEW = "user:view"
    USER_CREATE = "user:create"
    USER_EDIT = "user:edit"
    USER_DELETE = "user:delete"


# Role-to-Permission mapping
ROLE_PERMISSIONS = {
    UserRole.CCO: [p for p in Permission if p != Permission.REPORT_CREATE],

    UserRole.SUPERVISOR: [
        # Reports
        Permission.REPORT_VIEW,
        Permission.REPORT_CREATE,
        Permission.REPORT_REVIEW,
        Permission.REPORT_EXPORT,
        Permission.REPORT_TOTALS,
        # Employee
        Permission.EMPLOYEE_VIEW,
        Permission.EMPLOYEE_CREATE,
        Permission.EMPLOYEE_EDIT,
        Permission.EMPLOYEE_DELETE,
        # Users (foreman picker)
        Permission.USER_VIEW,
    ],

    UserRole.ENCARREGADO: [
        Permission.REPORT_VIEW,
        Permission.REPORT_CREATE,
    ],
}


# Team catalogue: team code and cycle length in days
TEAMS = [
    ("S10", 42),
    ("S01", 28),
    ("S08", 35),
    ("S04", 28),
    ("S07", 35),
    ("S16", 35),
    ("S17", 42),
    ("S11", 42),
    ("S19", 42),
    ("S15", 28),
    ("S03", 28),
    ("S05", 28),
    ("S14", 42),
    ("S02", 28),
    ("S06", 28),
    ("S09", 35),
    ("S12", 42),
    ("S18", 35),
]

TEAM_NAMES = [name for name, _ in TEAMS]

DEFAULT_EMPLOYEE_ROLES = ["Ajudante", "Gari", "Pintor", "Roçador", "OP. Roçadeira", "ASG", "Motorista"]

# Reserved login that can never be deleted
RESERVED_ADMIN_REGISTRATION = "admin"

# Ranking bucket for reports without a supervisor/foreman id
UNKNOWN_KEY = "unknown"
UNKNOWN_LABEL = "S/ Identificação"
