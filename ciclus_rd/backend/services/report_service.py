"""
Ciclus RD - Report Sync Client
CRUD and change subscription for the reports table
"""

import uuid
from typing import Callable, List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from ciclus_rd.backend import lifecycle
from ciclus_rd.backend.domain import Report
from ciclus_rd.backend.feed import Subscription
from ciclus_rd.backend.mapper import ReportMapper
from ciclus_rd.backend.models.audit import AuditLog
from ciclus_rd.backend.models.report import ReportRow
from ciclus_rd.shared.auth import AuthContext, require_permission
from ciclus_rd.shared.enums import Permission, RDStatus
from ciclus_rd.shared.errors import BackendWriteError


def new_report_id() -> str:
    """Collision-resistant report identifier"""
    return f"RD-{uuid.uuid4().hex.upper()}"


class ReportSync:
    """Request/response wrapper around the reports table"""

    TOPIC = ReportRow.__tablename__

    def __init__(self, backend):
        self.backend = backend

    def list(self) -> List[Report]:
        """All reports, newest creation first. Read failures yield an empty list."""
        try:
            with self.backend.session() as db:
                rows = [row.to_dict() for row in db.query(ReportRow).order_by(ReportRow.created_at.desc()).all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to load RDs: {e}")
            return []

        reports = []
        for row in rows:
            try:
                reports.append(ReportMapper.from_row(row))
            except ValueError as e:
                logger.error(f"Skipping unreadable RD {row.get('id')}: {e}")
        return reports

    def get(self, report_id: str) -> Optional[Report]:
        try:
            with self.backend.session() as db:
                row = db.get(ReportRow, report_id)
                data = row.to_dict() if row else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load RD {report_id}: {e}")
            return None
        return ReportMapper.from_row(data) if data else None

    def upsert(self, report: Report, auth: Optional[AuthContext] = None) -> Report:
        """
        Create the report when it has no id yet (one is generated), otherwise
        overwrite the stored row. Returns the persisted report.
        """
        if not report.id:
            report = report.model_copy(update={"id": new_report_id()})
        row = ReportMapper.to_row(report)

        try:
            with self.backend.session() as db:
                existing = db.get(ReportRow, report.id)
                if existing is None:
                    db.add(ReportRow(**row))
                    action, description = "create_rd", f"RD criado: {report.id}"
                else:
                    existing.apply(row)
                    action, description = "update_rd", f"RD atualizado: {report.id}"

                if auth:
                    db.add(AuditLog.record(
                        auth, action, "rd", report.id, description,
                        new_values={"status": report.status.value},
                    ))
        except SQLAlchemyError as e:
            raise BackendWriteError(f"Falha ao salvar RD: {e}") from e

        logger.info(f"RD saved: {report.id} (foreman={report.foreman_name}, status={report.status.value})")
        return report

    def remove(self, report_id: str) -> bool:
        """Delete by id; False when nothing matched"""
        try:
            with self.backend.session() as db:
                row = db.get(ReportRow, report_id)
                deleted = row is not None
                if deleted:
                    db.delete(row)
        except SQLAlchemyError as e:
            raise BackendWriteError(f"Falha ao excluir RD: {e}") from e

        if deleted:
            logger.warning(f"RD deleted: {report_id}")
        return bool(deleted)

    def subscribe(self, on_change: Callable[[], None]) -> Subscription:
        """Called with no payload after any insert/update/delete on reports"""
        return self.backend.feed.subscribe(self.TOPIC, on_change)

    def update_status(self, auth: AuthContext, report_id: str, status: RDStatus,
                      note: Optional[str] = None) -> Report:
        """Review decision (or resubmission) with the lifecycle guards applied"""
        report = self.get(report_id)
        if report is None:
            raise ValueError(f"RD não encontrado: {report_id}")

        old_status = report.status
        updated = lifecycle.transition(report, auth, status, note)

        try:
            with self.backend.session() as db:
                row = db.get(ReportRow, report_id)
                if row is None:
                    raise ValueError(f"RD não encontrado: {report_id}")
                row.status = updated.status.value
                row.supervisor_note = updated.supervisor_note
                db.add(AuditLog.record(
                    auth, "review_rd", "rd", report_id,
                    f"RD {report_id}: {old_status.value} -> {updated.status.value}",
                    old_values={"status": old_status.value},
                    new_values={"status": updated.status.value, "supervisor_note": updated.supervisor_note},
                ))
        except SQLAlchemyError as e:
            raise BackendWriteError(f"Falha ao atualizar status do RD: {e}") from e

        logger.info(f"User {auth.name} set RD {report_id} to {updated.status.value}")
        return updated

    @require_permission(Permission.REPORT_DELETE)
    def delete(self, auth: AuthContext, report_id: str) -> bool:
        """Admin deletion, from any status"""
        lifecycle.ensure_can_delete(auth)
        try:
            with self.backend.session() as db:
                row = db.get(ReportRow, report_id)
                deleted = row is not None
                if deleted:
                    db.delete(row)
                    db.add(AuditLog.record(auth, "delete_rd", "rd", report_id, f"RD excluído: {report_id}"))
        except SQLAlchemyError as e:
            raise BackendWriteError(f"Falha ao excluir RD: {e}") from e

        if deleted:
            logger.warning(f"User {auth.name} deleted RD: {report_id}")
        return bool(deleted)
