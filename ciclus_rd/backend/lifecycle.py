"""
Ciclus RD - Report lifecycle
Pending -> Approved | Rejected, Rejected -> Pending on resubmission by the
foreman, deletion by an admin from any state.
"""

from typing import Optional

from ciclus_rd.backend.domain import Report
from ciclus_rd.shared.enums import RDStatus, UserRole
from ciclus_rd.shared.errors import TransitionError, ValidationError


def can_review(report: Report, actor) -> bool:
    """Assigned supervisor or admin, and only while the report is pending"""
    if report.status != RDStatus.PENDING:
        return False
    return actor.role == UserRole.CCO or (
        actor.role == UserRole.SUPERVISOR and report.supervisor_id == actor.user_id
    )


def can_resubmit(report: Report, actor) -> bool:
    return report.status != RDStatus.APPROVED and report.foreman_id == actor.user_id


def can_edit(report: Report, actor) -> bool:
    """
    The foreman edits their own report until it is approved; reviewers may
    only correct a report that is still pending
    """
    if report.status == RDStatus.APPROVED:
        return False
    if report.foreman_id == actor.user_id:
        return True
    return report.status == RDStatus.PENDING and can_review(report, actor)


def can_delete(actor) -> bool:
    return actor.role == UserRole.CCO


def _ensure_reviewer(report: Report, actor):
    if report.status != RDStatus.PENDING:
        raise TransitionError(f"RD {report.id} já está {report.status.value.lower()}")
    if not can_review(report, actor):
        raise PermissionError("Apenas o supervisor responsável ou o CCO pode avaliar este RD")


def approve(report: Report, actor) -> Report:
    _ensure_reviewer(report, actor)
    return report.model_copy(update={"status": RDStatus.APPROVED, "supervisor_note": None})


def reject(report: Report, actor, note: Optional[str]) -> Report:
    """A rejection always carries a non-blank reason"""
    note = (note or "").strip()
    if not note:
        raise ValidationError("Informe o motivo da recusa")
    _ensure_reviewer(report, actor)
    return report.model_copy(update={"status": RDStatus.REJECTED, "supervisor_note": note})


def resubmit(report: Report, actor) -> Report:
    """Full resubmission of an edited draft by its foreman; clears the rejection note"""
    if report.status == RDStatus.APPROVED:
        raise TransitionError("RD aprovado não pode ser alterado")
    if report.foreman_id != actor.user_id:
        raise PermissionError("Apenas o encarregado que enviou o RD pode corrigi-lo")
    return report.model_copy(update={"status": RDStatus.PENDING, "supervisor_note": None})


def transition(report: Report, actor, status: RDStatus, note: Optional[str] = None) -> Report:
    """Apply a review decision or a resubmission, enforcing every guard"""
    if status == RDStatus.APPROVED:
        return approve(report, actor)
    if status == RDStatus.REJECTED:
        return reject(report, actor, note)
    return resubmit(report, actor)


def ensure_can_edit(report: Report, actor):
    if report.status == RDStatus.APPROVED:
        raise TransitionError("RD aprovado não pode ser alterado")
    if not can_edit(report, actor):
        raise PermissionError("Você não pode editar este RD")


def ensure_can_delete(actor):
    if not can_delete(actor):
        raise PermissionError("Apenas o CCO pode excluir RDs")
