import pytest

from ciclus_rd.backend import lifecycle
from ciclus_rd.shared.auth import AuthContext
from ciclus_rd.shared.enums import RDStatus, UserRole
from ciclus_rd.shared.errors import TransitionError, ValidationError


def test_assigned_supervisor_and_admin_review_pending(make_report, supervisor, admin, foreman):
    report = make_report()
    assert lifecycle.can_review(report, supervisor)
    assert lifecycle.can_review(report, admin)
    assert not lifecycle.can_review(report, foreman)

    other_sup = AuthContext("u-sup-2", "Outro", "1009", UserRole.SUPERVISOR)
    assert not lifecycle.can_review(report, other_sup)


def test_approve_clears_note_and_returns_copy(make_report, supervisor):
    report = make_report()
    approved = lifecycle.approve(report, supervisor)
    assert approved.status == RDStatus.APPROVED
    assert approved.supervisor_note is None
    assert report.status == RDStatus.PENDING


def test_reject_requires_reason(make_report, supervisor):
    with pytest.raises(ValidationError):
        lifecycle.reject(make_report(), supervisor, "  ")
    rejected = lifecycle.reject(make_report(), supervisor, " Fotos ilegíveis ")
    assert rejected.status == RDStatus.REJECTED
    assert rejected.supervisor_note == "Fotos ilegíveis"


def test_only_pending_reports_are_reviewed(make_report, admin):
    for status in (RDStatus.APPROVED, RDStatus.REJECTED):
        with pytest.raises(TransitionError):
            lifecycle.transition(make_report(status=status, supervisor_note="x"), admin, RDStatus.APPROVED)


def test_resubmit_by_foreman_clears_note(make_report, foreman, supervisor):
    rejected = make_report(status=RDStatus.REJECTED, supervisor_note="Refazer")
    resubmitted = lifecycle.transition(rejected, foreman, RDStatus.PENDING)
    assert resubmitted.status == RDStatus.PENDING
    assert resubmitted.supervisor_note is None

    with pytest.raises(PermissionError):
        lifecycle.resubmit(rejected, supervisor)
    with pytest.raises(TransitionError):
        lifecycle.resubmit(make_report(status=RDStatus.APPROVED), foreman)

    assert lifecycle.can_resubmit(rejected, foreman)
    assert not lifecycle.can_resubmit(rejected, supervisor)
    assert not lifecycle.can_resubmit(make_report(status=RDStatus.APPROVED), foreman)


def test_edit_rules(make_report, foreman, supervisor, admin):
    pending = make_report()
    rejected = make_report(status=RDStatus.REJECTED, supervisor_note="x")
    approved = make_report(status=RDStatus.APPROVED)

    assert lifecycle.can_edit(pending, foreman)
    assert lifecycle.can_edit(rejected, foreman)
    assert not lifecycle.can_edit(approved, foreman)

    assert lifecycle.can_edit(pending, supervisor)
    assert lifecycle.can_edit(pending, admin)
    assert not lifecycle.can_edit(rejected, supervisor)

    with pytest.raises(TransitionError):
        lifecycle.ensure_can_edit(approved, admin)
    with pytest.raises(PermissionError):
        lifecycle.ensure_can_edit(rejected, admin)


def test_delete_is_admin_only(supervisor, admin):
    assert lifecycle.can_delete(admin)
    with pytest.raises(PermissionError):
        lifecycle.ensure_can_delete(supervisor)
