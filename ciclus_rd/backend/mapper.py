"""
Ciclus RD - Record Mapper
Report <-> persisted row. This is the only place that knows the storage shape;
rows written by an older schema may lack newer fields, which default here.
"""

import json
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ciclus_rd.backend.domain import (
    AttendanceRecord,
    GeoLocation,
    ProductionMetrics,
    Report,
    TrackSegment,
)
from ciclus_rd.backend.models.report import SCHEMA_VERSION
from ciclus_rd.shared.enums import Base, RDStatus, ServiceCategory, Shift

METRIC_FIELDS = tuple(ProductionMetrics.model_fields)


def _enum_value(value) -> Optional[str]:
    return value.value if value is not None else None


def _number(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def _datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _blob(value: Any) -> Any:
    """Structured columns may come back as JSON text depending on the driver"""
    if isinstance(value, (str, bytes)):
        return json.loads(value) if value else None
    return value


class ReportMapper:
    """Bidirectional transform between Report and its row dictionary"""

    @staticmethod
    def to_row(report: Report) -> Dict[str, Any]:
        return {
            "id": report.id,
            "schema_version": SCHEMA_VERSION,
            "date": report.date,

            # Metadata
            "foreman_id": report.foreman_id,
            "foreman_name": report.foreman_name,
            "foreman_registration": report.foreman_registration,
            "supervisor_id": report.supervisor_id,
            "supervisor_name": report.supervisor_name,
            "foreman_team": report.foreman_team,
            "supervisor_team": report.supervisor_team,

            "status": report.status.value,
            "supervisor_note": report.supervisor_note,
            "base": _enum_value(report.base),
            "shift": _enum_value(report.shift),
            "team": report.team,
            "service_category": report.service_category.value,

            # Location
            "street": report.street,
            "neighborhood": report.neighborhood,
            "perimeter": report.perimeter,
            "location": report.location.model_dump(mode="json") if report.location else None,
            "segments": [segment.model_dump(mode="json") for segment in report.segments],

            # Structured blobs
            "metrics": report.metrics.model_dump(mode="json"),
            "team_attendance": [record.model_dump(mode="json") for record in report.team_attendance],

            # Images
            "work_photo_initial": report.work_photo_initial,
            "work_photo_progress": report.work_photo_progress,
            "work_photo_final": report.work_photo_final,
            "signature_image_url": report.signature_image_url,

            "observations": report.observations,
            "created_at": report.created_at,
        }

    @staticmethod
    def from_row(row: Mapping[str, Any]) -> Report:
        metrics = _blob(row.get("metrics")) or {}
        location = _blob(row.get("location"))
        segments = _blob(row.get("segments")) or []
        attendance = _blob(row.get("team_attendance")) or []

        created_at = _datetime(row.get("created_at"))
        # a row with neither timestamp is dated when it is read
        date = _datetime(row.get("date")) or created_at or datetime.now()

        return Report(
            id=row.get("id") or "",
            date=date,
            foreman_id=row.get("foreman_id") or "",
            foreman_name=row.get("foreman_name") or "",
            foreman_registration=row.get("foreman_registration"),
            supervisor_id=row.get("supervisor_id"),
            supervisor_name=row.get("supervisor_name"),
            foreman_team=row.get("foreman_team"),
            supervisor_team=row.get("supervisor_team"),

            status=RDStatus(row.get("status") or RDStatus.PENDING.value),
            supervisor_note=row.get("supervisor_note"),
            base=Base(row["base"]) if row.get("base") else None,
            shift=Shift(row["shift"]) if row.get("shift") else None,
            team=row.get("team"),
            service_category=ServiceCategory(row.get("service_category") or ServiceCategory.MUTIRAO.value),

            street=row.get("street") or "",
            neighborhood=row.get("neighborhood") or "",
            perimeter=row.get("perimeter") or "",
            location=GeoLocation.model_validate(location) if location else None,
            segments=[TrackSegment.model_validate(segment) for segment in segments],

            metrics=ProductionMetrics(**{field: _number(metrics.get(field)) for field in METRIC_FIELDS}),
            team_attendance=[AttendanceRecord.model_validate(record) for record in attendance],

            work_photo_initial=row.get("work_photo_initial"),
            work_photo_progress=row.get("work_photo_progress"),
            work_photo_final=row.get("work_photo_final"),
            signature_image_url=row.get("signature_image_url"),

            observations=row.get("observations") or "",
            created_at=created_at or date,
        )
