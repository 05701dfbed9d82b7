"""
Ciclus RD - Domain Model
In-memory shapes the rest of the application works with. Storage rows are
translated at the mapper; nothing else sees the persisted layout.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ciclus_rd.shared.enums import (
    Base,
    PhotoKind,
    RDStatus,
    SegmentType,
    ServiceCategory,
    Shift,
    UserRole,
)


class ProductionMetrics(BaseModel):
    """The four production quantities of a report"""

    capina_m: float = 0          # linear meters cleared
    pintura_vias_m: float = 0    # linear meters painted
    pintura_postes_und: float = 0  # poles painted
    rocagem_m2: float = 0        # area mowed

    @property
    def total(self) -> float:
        return self.capina_m + self.pintura_vias_m + self.pintura_postes_und + self.rocagem_m2

    def __add__(self, other: "ProductionMetrics") -> "ProductionMetrics":
        return ProductionMetrics(
            capina_m=self.capina_m + other.capina_m,
            pintura_vias_m=self.pintura_vias_m + other.pintura_vias_m,
            pintura_postes_und=self.pintura_postes_und + other.pintura_postes_und,
            rocagem_m2=self.rocagem_m2 + other.rocagem_m2,
        )


class GeoPoint(BaseModel):
    lat: float
    lng: float


class GeoLocation(BaseModel):
    """GPS fix (or a geocoded coordinate) attached to a report"""

    lat: float
    lng: float
    accuracy: Optional[float] = None
    timestamp: datetime
    address_from_gps: Optional[str] = None


class TrackSegment(BaseModel):
    """Walked path segment measured on site"""

    id: str
    type: SegmentType
    started_at: datetime
    ended_at: datetime
    start_location: GeoLocation
    end_location: GeoLocation
    distance: float
    width: Optional[float] = None
    calculated_value: float
    path_points: List[GeoPoint] = Field(default_factory=list)


class AttendanceRecord(BaseModel):
    """Snapshot of an employee's presence on the report date"""

    employee_id: str
    name: str
    registration: str
    role: str
    present: bool = True


class Report(BaseModel):
    """Daily production report (RD)"""

    model_config = ConfigDict(validate_assignment=True)

    id: str = ""
    date: datetime
    foreman_id: str
    foreman_name: str
    foreman_registration: Optional[str] = None
    supervisor_id: Optional[str] = None
    supervisor_name: Optional[str] = None
    status: RDStatus = RDStatus.PENDING
    base: Optional[Base] = None
    shift: Optional[Shift] = None
    team: Optional[str] = None
    foreman_team: Optional[str] = None
    supervisor_team: Optional[str] = None
    service_category: ServiceCategory = ServiceCategory.MUTIRAO

    street: str = ""
    neighborhood: str = ""
    perimeter: str = ""
    location: Optional[GeoLocation] = None
    segments: List[TrackSegment] = Field(default_factory=list)

    metrics: ProductionMetrics = Field(default_factory=ProductionMetrics)
    team_attendance: List[AttendanceRecord] = Field(default_factory=list)

    work_photo_initial: Optional[str] = None
    work_photo_progress: Optional[str] = None
    work_photo_final: Optional[str] = None
    signature_image_url: Optional[str] = None

    observations: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    supervisor_note: Optional[str] = None

    @property
    def present_count(self) -> int:
        return sum(1 for record in self.team_attendance if record.present)

    def photo(self, kind: PhotoKind) -> Optional[str]:
        return getattr(self, f"work_photo_{kind.value}")


class Employee(BaseModel):
    """Worker profile"""

    id: str = ""
    name: str
    registration: str
    role: str
    supervisor_id: Optional[str] = None
    foreman_id: Optional[str] = None
    team: Optional[str] = None


class User(BaseModel):
    """Authenticated actor profile"""

    id: str = ""
    name: str
    registration: str
    role: UserRole = UserRole.ENCARREGADO
    team: Optional[str] = None
