"""
Ciclus RD - Models Package
"""

from ciclus_rd.backend.models.report import ReportRow, SCHEMA_VERSION
from ciclus_rd.backend.models.employee import EmployeeRow
from ciclus_rd.backend.models.user import Profile
from ciclus_rd.backend.models.audit import AuditLog

__all__ = [
    "ReportRow",
    "SCHEMA_VERSION",
    "EmployeeRow",
    "Profile",
    "AuditLog",
]
