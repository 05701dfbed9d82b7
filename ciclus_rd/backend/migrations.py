"""
Ciclus RD - Report row migration (v1 -> v2)

v1 rows were written by the browser client: camelCase keys inside the JSON
blobs, epoch-millisecond timestamps, location stored as JSON text, and in the
oldest variant the attendance roster nested inside the metrics blob. v2 is the
canonical shape produced by ReportMapper.to_row. Run once via migrate_db.py.
"""

import copy
import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger

from ciclus_rd.backend.models.report import ReportRow, SCHEMA_VERSION

METRIC_KEYS = {
    "capinaM": "capina_m",
    "pinturaViasM": "pintura_vias_m",
    "pinturaPostesUnd": "pintura_postes_und",
    "rocagemM2": "rocagem_m2",
}

ATTENDANCE_KEYS = {"employeeId": "employee_id"}

LOCATION_KEYS = {"addressFromGPS": "address_from_gps"}

SEGMENT_KEYS = {
    "startedAt": "started_at",
    "endedAt": "ended_at",
    "startLocation": "start_location",
    "endLocation": "end_location",
    "calculatedValue": "calculated_value",
    "pathPoints": "path_points",
}


def _rename(data: Dict[str, Any], keys: Dict[str, str]) -> Dict[str, Any]:
    return {keys.get(key, key): value for key, value in data.items()}


def _timestamp(value: Any) -> Any:
    """Epoch milliseconds -> ISO string"""
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000).isoformat()
    return value


def _location(value: Any) -> Optional[Dict[str, Any]]:
    if isinstance(value, str):
        value = json.loads(value) if value else None
    if not value:
        return None
    location = _rename(value, LOCATION_KEYS)
    location["timestamp"] = _timestamp(location.get("timestamp"))
    return location


def _segment(value: Dict[str, Any]) -> Dict[str, Any]:
    segment = _rename(value, SEGMENT_KEYS)
    segment["start_location"] = _location(segment.get("start_location"))
    segment["end_location"] = _location(segment.get("end_location"))
    return segment


def upgrade_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Return the v2 form of a v1 row dictionary (v2 rows are returned unchanged)"""
    if (row.get("schema_version") or 1) >= SCHEMA_VERSION:
        return row

    upgraded = copy.deepcopy(row)
    metrics = dict(upgraded.get("metrics") or {})

    nested_attendance = metrics.pop("teamAttendance", None) or metrics.pop("team_attendance", None)
    attendance: List[Dict[str, Any]] = upgraded.get("team_attendance") or nested_attendance or []

    upgraded["metrics"] = _rename(metrics, METRIC_KEYS)
    upgraded["team_attendance"] = [_rename(record, ATTENDANCE_KEYS) for record in attendance]
    upgraded["location"] = _location(upgraded.get("location"))
    upgraded["segments"] = [_segment(segment) for segment in upgraded.get("segments") or []]
    upgraded["schema_version"] = SCHEMA_VERSION
    return upgraded


def upgrade_report_rows(backend) -> int:
    """Rewrite every pre-v2 report row in place; returns the number of rows upgraded"""
    upgraded_count = 0
    with backend.session() as db:
        rows = db.query(ReportRow).filter(
            (ReportRow.schema_version == None) | (ReportRow.schema_version < SCHEMA_VERSION)  # noqa: E711
        ).all()

        for row in rows:
            row.apply(upgrade_row(row.to_dict()))
            upgraded_count += 1

    logger.info(f"Report rows upgraded to schema v{SCHEMA_VERSION}: {upgraded_count}")
    return upgraded_count
