"""
Ciclus RD - Backend Services
"""

from ciclus_rd.backend.services.report_service import ReportSync, new_report_id
from ciclus_rd.backend.services.employee_service import EmployeeService
from ciclus_rd.backend.services.user_service import UserService
from ciclus_rd.backend.services.photo_service import PhotoStorage
from ciclus_rd.backend.services.geocoding_service import AddressSuggestion, GeocodingClient
from ciclus_rd.backend.services.connection_monitor import ConnectionMonitor
from ciclus_rd.backend.services.export_service import ExportService

__all__ = [
    "ReportSync",
    "new_report_id",
    "EmployeeService",
    "UserService",
    "PhotoStorage",
    "AddressSuggestion",
    "GeocodingClient",
    "ConnectionMonitor",
    "ExportService",
]
