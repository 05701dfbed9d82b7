"""
Ciclus RD - Metrics Aggregator
Totals, per-day series, averages, rankings and goal balance over a filtered
report collection. Every function is pure.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from ciclus_rd.backend.domain import ProductionMetrics, Report
from ciclus_rd.shared.enums import UNKNOWN_KEY, UNKNOWN_LABEL
from ciclus_rd.shared.utils import month_days


class PeriodTotals(BaseModel):
    metrics: ProductionMetrics = Field(default_factory=ProductionMetrics)
    count: int = 0


class DailyPoint(BaseModel):
    """Cleared and mowed production of one calendar day"""

    day: date
    capina_m: float = 0
    rocagem_m2: float = 0
    count: int = 0


class RankingEntry(BaseModel):
    key: str
    label: str
    metrics: ProductionMetrics = Field(default_factory=ProductionMetrics)
    count: int = 0


class GoalBalance(BaseModel):
    """Linear goal: per-day target times worked days against what was realized"""

    target_per_day: float
    days: int
    accumulated: float
    realized: float
    balance: float
    met: bool


class GoalProgressPoint(BaseModel):
    day: date
    realized: float
    target: float


def period_totals(reports: Iterable[Report]) -> PeriodTotals:
    totals = PeriodTotals()
    for report in reports:
        totals.metrics = totals.metrics + report.metrics
        totals.count += 1
    return totals


def distinct_days(reports: Iterable[Report]) -> int:
    """Number of unique calendar dates in the collection"""
    return len({report.date.date() for report in reports})


def averages(reports: Iterable[Report]) -> ProductionMetrics:
    """Per-worked-day averages; the divisor is the distinct day count floored to 1"""
    reports = list(reports)
    totals = period_totals(reports).metrics
    divisor = max(1, distinct_days(reports))
    return ProductionMetrics(
        capina_m=totals.capina_m / divisor,
        pintura_vias_m=totals.pintura_vias_m / divisor,
        pintura_postes_und=totals.pintura_postes_und / divisor,
        rocagem_m2=totals.rocagem_m2 / divisor,
    )


def daily_series(reports: Iterable[Report], year: int, month: int) -> List[DailyPoint]:
    """
    One point per day of the month (1..days-in-month), zero where nothing was
    reported. Reports outside the month are ignored.
    """
    points: Dict[date, DailyPoint] = {day: DailyPoint(day=day) for day in month_days(year, month)}
    for report in reports:
        point = points.get(report.date.date())
        if point is None:
            continue
        point.capina_m += report.metrics.capina_m
        point.rocagem_m2 += report.metrics.rocagem_m2
        point.count += 1
    return list(points.values())


def _rank(reports: Iterable[Report], key_attr: str, name_attr: str,
          names: Optional[Dict[str, str]] = None) -> List[RankingEntry]:
    names = names or {}
    groups: Dict[str, RankingEntry] = {}

    for report in reports:
        key = getattr(report, key_attr) or UNKNOWN_KEY
        entry = groups.get(key)
        if entry is None:
            if key == UNKNOWN_KEY:
                label = UNKNOWN_LABEL
            else:
                label = names.get(key) or getattr(report, name_attr) or UNKNOWN_LABEL
            entry = groups[key] = RankingEntry(key=key, label=label)
        entry.metrics = entry.metrics + report.metrics
        entry.count += 1

    # sorted() is stable: equal groups keep first-seen order
    return sorted(
        groups.values(),
        key=lambda entry: (-entry.metrics.capina_m, -entry.metrics.rocagem_m2),
    )


def rank_by_supervisor(reports: Iterable[Report], names: Optional[Dict[str, str]] = None) -> List[RankingEntry]:
    """Supervisor leaderboard; names maps supervisor id to a current display name"""
    return _rank(reports, "supervisor_id", "supervisor_name", names)


def rank_by_foreman(reports: Iterable[Report], names: Optional[Dict[str, str]] = None) -> List[RankingEntry]:
    return _rank(reports, "foreman_id", "foreman_name", names)


def goal_balance(target_per_day: float, days: int, realized: float) -> GoalBalance:
    accumulated = days * target_per_day
    balance = realized - accumulated
    return GoalBalance(
        target_per_day=target_per_day,
        days=days,
        accumulated=accumulated,
        realized=realized,
        balance=balance,
        met=balance >= 0,
    )


def goal_progress(series: List[DailyPoint], metric: str, target_per_day: float) -> List[GoalProgressPoint]:
    """
    Running realized total against the running target, counting only days
    that had production towards the target
    """
    progress = []
    realized = 0.0
    worked_days = 0
    for point in series:
        if point.count:
            worked_days += 1
        realized += getattr(point, metric)
        progress.append(GoalProgressPoint(day=point.day, realized=realized, target=worked_days * target_per_day))
    return progress
