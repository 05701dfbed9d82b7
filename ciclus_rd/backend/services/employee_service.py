"""
Ciclus RD - Employee Service
Worker profiles, role catalogue and attendance roster prefill
"""

from typing import Callable, List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from ciclus_rd.backend.domain import AttendanceRecord, Employee
from ciclus_rd.backend.feed import Subscription
from ciclus_rd.backend.models.audit import AuditLog
from ciclus_rd.backend.models.employee import EmployeeRow
from ciclus_rd.shared.auth import AuthContext, require_permission
from ciclus_rd.shared.enums import DEFAULT_EMPLOYEE_ROLES, Permission
from ciclus_rd.shared.errors import BackendWriteError, ValidationError


def _to_employee(row: EmployeeRow) -> Employee:
    return Employee(
        id=row.id,
        name=row.name,
        registration=row.registration,
        role=row.role,
        supervisor_id=row.supervisor_id,
        foreman_id=row.foreman_id,
        team=row.team,
    )


class EmployeeService:
    """Employee management service"""

    TOPIC = EmployeeRow.__tablename__

    def __init__(self, backend):
        self.backend = backend

    def list(self) -> List[Employee]:
        """All employees by name; empty on read failure"""
        try:
            with self.backend.session() as db:
                return [_to_employee(row) for row in db.query(EmployeeRow).order_by(EmployeeRow.name).all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to load employees: {e}")
            return []

    def subscribe(self, on_change: Callable[[], None]) -> Subscription:
        return self.backend.feed.subscribe(self.TOPIC, on_change)

    def save(self, auth: AuthContext, employee: Employee) -> Employee:
        """Create (no id) or update an employee"""
        required = Permission.EMPLOYEE_EDIT if employee.id else Permission.EMPLOYEE_CREATE
        if not auth.has_permission(required):
            raise PermissionError("Você não tem permissão para gerenciar colaboradores")

        name = employee.name.strip()
        registration = employee.registration.strip()
        role = employee.role.strip()
        if not name or not registration or not role:
            raise ValidationError("Nome, matrícula e função são obrigatórios")

        try:
            with self.backend.session() as db:
                row = db.get(EmployeeRow, employee.id) if employee.id else None
                if row is None:
                    row = EmployeeRow(supervisor_id=employee.supervisor_id or auth.user_id)
                    db.add(row)
                    action, old_values = "create_employee", None
                else:
                    old_values = row.to_dict()
                    action = "update_employee"
                    if employee.supervisor_id:
                        row.supervisor_id = employee.supervisor_id

                row.name = name
                row.registration = registration
                row.role = role
                row.foreman_id = employee.foreman_id
                row.team = employee.team or None
                db.flush()

                db.add(AuditLog.record(
                    auth, action, "employee", row.id,
                    f"Colaborador salvo: {name} (Mat: {registration})",
                    old_values=old_values, new_values=row.to_dict(),
                ))
                saved = _to_employee(row)
        except SQLAlchemyError as e:
            raise BackendWriteError(f"Falha ao salvar colaborador: {e}") from e

        logger.info(f"User {auth.name} saved employee: {name} ({role})")
        return saved

    @require_permission(Permission.EMPLOYEE_DELETE)
    def delete(self, auth: AuthContext, employee_id: str) -> bool:
        try:
            with self.backend.session() as db:
                row = db.get(EmployeeRow, employee_id)
                if row is None:
                    return False
                db.add(AuditLog.record(
                    auth, "delete_employee", "employee", row.id,
                    f"Colaborador excluído: {row.name}", old_values=row.to_dict(),
                ))
                db.delete(row)
        except SQLAlchemyError as e:
            raise BackendWriteError(f"Falha ao excluir colaborador: {e}") from e

        logger.warning(f"User {auth.name} deleted employee: {employee_id}")
        return True

    def existing_roles(self) -> List[str]:
        """Default job roles plus every role already in use, sorted"""
        roles = set(DEFAULT_EMPLOYEE_ROLES)
        roles.update(employee.role for employee in self.list() if employee.role)
        return sorted(roles)

    def roster_for(self, user_id: str, employees: Optional[List[Employee]] = None) -> List[AttendanceRecord]:
        """
        Attendance prefill for a new report: employees linked to the user,
        falling back to everybody when nobody is linked. Everyone starts present.
        """
        employees = self.list() if employees is None else employees
        team = [e for e in employees if user_id in (e.supervisor_id, e.foreman_id)]
        if not team:
            team = employees
        return [
            AttendanceRecord(
                employee_id=e.id,
                name=e.name,
                registration=e.registration,
                role=e.role,
                present=True,
            )
            for e in team
        ]
