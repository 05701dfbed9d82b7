"""
Ciclus RD - Report Store
Client-side report collection for one signed-in session: re-fetches on change
notifications, tracks backend reachability, and applies review decisions
optimistically with rollback when the write fails.
"""

from typing import Callable, List, Optional

from loguru import logger

from ciclus_rd.backend import lifecycle
from ciclus_rd.backend.domain import Report
from ciclus_rd.backend.filters import ReportFilters, filter_reports
from ciclus_rd.shared.enums import RDStatus


class ReportStore:
    def __init__(self, sync, actor, monitor=None, on_change: Optional[Callable[[], None]] = None):
        self.sync = sync
        self.actor = actor
        self.monitor = monitor
        self.on_change = on_change
        self.reports: List[Report] = []
        self.loading = False
        self._subscription = None

    @property
    def attached(self) -> bool:
        return self._subscription is not None

    @property
    def online(self) -> Optional[bool]:
        return self.monitor.online if self.monitor else None

    def _notify(self):
        if self.on_change:
            self.on_change()

    def attach(self):
        """Initial load, change subscription and reachability poll"""
        if self.attached:
            return
        self._subscription = self.sync.subscribe(self.refresh)
        if self.monitor:
            self.monitor.start()
        self.refresh()

    def detach(self):
        """Release the subscription and stop the poll"""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        if self.monitor:
            self.monitor.stop()

    def refresh(self):
        self.loading = True
        self._notify()
        try:
            self.reports = self.sync.list()
        finally:
            self.loading = False
        self._notify()

    def visible(self, filters: Optional[ReportFilters] = None) -> List[Report]:
        return filter_reports(self.reports, self.actor, filters)

    def find(self, report_id: str) -> Optional[Report]:
        for report in self.reports:
            if report.id == report_id:
                return report
        return None

    def _replace(self, report: Report):
        self.reports = [report if r.id == report.id else r for r in self.reports]

    def update_status(self, report_id: str, status: RDStatus, note: Optional[str] = None) -> Report:
        """
        Apply the transition locally first. Guard and validation failures never
        reach the backend; a failed write restores the previous report and is
        re-raised to the caller.
        """
        current = self.find(report_id)
        if current is None:
            raise ValueError(f"RD não encontrado: {report_id}")

        updated = lifecycle.transition(current, self.actor, status, note)
        self._replace(updated)
        self._notify()

        try:
            return self.sync.update_status(self.actor, report_id, status, note)
        except Exception as e:
            logger.error(f"Status update for RD {report_id} failed, rolling back: {e}")
            self._replace(current)
            self._notify()
            raise

    def delete(self, report_id: str) -> bool:
        lifecycle.ensure_can_delete(self.actor)
        deleted = self.sync.delete(self.actor, report_id)
        self.reports = [r for r in self.reports if r.id != report_id]
        self._notify()
        return deleted
