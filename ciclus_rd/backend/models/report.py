"""
Ciclus RD - Report (RD) Model
One row per daily production report
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from sqlalchemy.sql import func

from ciclus_rd.backend.database import Base


# Canonical row shape. v1 rows carried the attendance roster inside the metrics blob.
SCHEMA_VERSION = 2


class ReportRow(Base):
    """Persisted report row"""

    __tablename__ = "rds"

    # Primary Key
    id = Column(String(64), primary_key=True)
    schema_version = Column(Integer, nullable=False, default=SCHEMA_VERSION)

    # When
    date = Column(DateTime, nullable=False, index=True)

    # Who
    foreman_id = Column(String(64), nullable=False, index=True)
    foreman_name = Column(String(120), nullable=False)
    foreman_registration = Column(String(50), nullable=True)
    supervisor_id = Column(String(64), nullable=True, index=True)
    supervisor_name = Column(String(120), nullable=True)
    foreman_team = Column(String(20), nullable=True)
    supervisor_team = Column(String(20), nullable=True)

    # Lifecycle
    status = Column(String(20), nullable=False, index=True)
    supervisor_note = Column(Text, nullable=True)

    # Classification
    base = Column(String(50), nullable=True)
    shift = Column(String(20), nullable=True)
    team = Column(String(20), nullable=True)
    service_category = Column(String(60), nullable=False)

    # Location
    street = Column(String(200), nullable=False, default="")
    neighborhood = Column(String(120), nullable=False, default="")
    perimeter = Column(Text, nullable=False, default="")
    location = Column(JSON, nullable=True)
    segments = Column(JSON, nullable=True)

    # Production
    metrics = Column(JSON, nullable=True)
    team_attendance = Column(JSON, nullable=True)

    # Evidence
    work_photo_initial = Column(Text, nullable=True)
    work_photo_progress = Column(Text, nullable=True)
    work_photo_final = Column(Text, nullable=True)
    signature_image_url = Column(Text, nullable=True)

    observations = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    COLUMNS = (
        "id", "schema_version", "date",
        "foreman_id", "foreman_name", "foreman_registration",
        "supervisor_id", "supervisor_name", "foreman_team", "supervisor_team",
        "status", "supervisor_note",
        "base", "shift", "team", "service_category",
        "street", "neighborhood", "perimeter", "location", "segments",
        "metrics", "team_attendance",
        "work_photo_initial", "work_photo_progress", "work_photo_final", "signature_image_url",
        "observations", "created_at",
    )

    def __repr__(self):
        return f"<ReportRow(id='{self.id}', date='{self.date}', foreman='{self.foreman_name}', status='{self.status}')>"

    def to_dict(self):
        """Convert to a plain row dictionary"""
        return {column: getattr(self, column) for column in self.COLUMNS}

    def apply(self, row: dict):
        """Overwrite persisted columns from a row dictionary"""
        for column in self.COLUMNS:
            if column in row and column != "id":
                setattr(self, column, row[column])
