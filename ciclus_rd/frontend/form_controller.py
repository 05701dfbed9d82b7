"""
Ciclus RD - Report Form Controller
Drives one in-progress RD draft: background location capture, debounced
address lookup, nearby streets and perimeter, photos, attendance roster,
validation and submission. Holds no widgets; views render its state.
"""

import threading
from datetime import date, datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, Field

from ciclus_rd.backend import lifecycle
from ciclus_rd.backend.domain import (
    AttendanceRecord,
    GeoLocation,
    ProductionMetrics,
    Report,
    TrackSegment,
    User,
)
from ciclus_rd.backend.services.geocoding_service import AddressSuggestion
from ciclus_rd.frontend.debounce import Debouncer
from ciclus_rd.shared.config import Settings, settings as default_settings
from ciclus_rd.shared.enums import Base, PhotoKind, RDStatus, ServiceCategory, Shift, UserRole
from ciclus_rd.shared.errors import BackendWriteError, ValidationError
from ciclus_rd.shared.utils import combine_date_time

GPS_FALLBACK_ADDRESS = "Coordenadas capturadas via GPS"


class FormState(str, Enum):
    EMPTY = "empty"
    CAPTURING_LOCATION = "capturing_location"
    EDITING = "editing"
    SEARCHING_ADDRESS = "searching_address"
    REVIEWING_SUGGESTIONS = "reviewing_suggestions"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SAVED = "saved"
    FAILED = "failed"


class AddressField(str, Enum):
    STREET = "street"
    NEIGHBORHOOD = "neighborhood"


class DevicePosition(BaseModel):
    """A fix from the device location provider"""

    lat: float
    lng: float
    accuracy: Optional[float] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class ReportDraft(BaseModel):
    """Editable form fields of a report"""

    day: str = Field(default_factory=lambda: date.today().isoformat())
    time: str = Field(default_factory=lambda: datetime.now().strftime("%H:%M"))
    base: Base = Base.NORTE
    shift: Shift = Shift.DIURNO
    service_category: ServiceCategory = ServiceCategory.MUTIRAO
    supervisor_id: Optional[str] = None

    street: str = ""
    neighborhood: str = ""
    perimeter: str = ""
    perimeter_streets: List[str] = Field(default_factory=list)
    location: Optional[GeoLocation] = None
    segments: List[TrackSegment] = Field(default_factory=list)

    metrics: ProductionMetrics = Field(default_factory=ProductionMetrics)
    observations: str = ""
    attendance: List[AttendanceRecord] = Field(default_factory=list)

    work_photo_initial: Optional[str] = None
    work_photo_progress: Optional[str] = None
    work_photo_final: Optional[str] = None

    @classmethod
    def from_report(cls, report: Report) -> "ReportDraft":
        return cls(
            day=report.date.date().isoformat(),
            time=report.date.strftime("%H:%M"),
            base=report.base or Base.NORTE,
            shift=report.shift or Shift.DIURNO,
            service_category=report.service_category,
            supervisor_id=report.supervisor_id,
            street=report.street,
            neighborhood=report.neighborhood,
            perimeter=report.perimeter,
            location=report.location,
            segments=[segment.model_copy(deep=True) for segment in report.segments],
            metrics=report.metrics.model_copy(),
            observations=report.observations,
            attendance=[record.model_copy() for record in report.team_attendance],
            work_photo_initial=report.work_photo_initial,
            work_photo_progress=report.work_photo_progress,
            work_photo_final=report.work_photo_final,
        )

    def photo(self, kind: PhotoKind) -> Optional[str]:
        return getattr(self, f"work_photo_{kind.value}")

    def set_photo(self, kind: PhotoKind, url: Optional[str]):
        setattr(self, f"work_photo_{kind.value}", url)


def _run_in_thread(func: Callable[[], None]):
    threading.Thread(target=func, daemon=True).start()


class ReportFormController:
    """State machine over a single report draft"""

    def __init__(
        self,
        actor,
        reports,
        geocoder,
        supervisors: List[User],
        existing: Optional[Report] = None,
        roster: Optional[List[AttendanceRecord]] = None,
        photos=None,
        position_provider: Optional[Callable[[float], Optional[DevicePosition]]] = None,
        on_change: Optional[Callable[[], None]] = None,
        run_in_background: Callable[[Callable[[], None]], None] = _run_in_thread,
        debouncer: Optional[Debouncer] = None,
        config: Optional[Settings] = None,
    ):
        self.settings = config or default_settings
        if existing is not None:
            lifecycle.ensure_can_edit(existing, actor)

        self.actor = actor
        self.reports = reports
        self.geocoder = geocoder
        self.photos = photos
        self.supervisors = supervisors
        self.existing = existing
        self.position_provider = position_provider
        self.on_change = on_change
        self.run_in_background = run_in_background
        self.debouncer = debouncer or Debouncer(self.settings.address_debounce_ms)

        self._roster = roster or []
        self.state = FormState.EMPTY
        self.draft = ReportDraft()
        self.locating = False
        self.error: Optional[str] = None
        self.saved: Optional[Report] = None

        self.suggestions: Dict[AddressField, List[AddressSuggestion]] = {field: [] for field in AddressField}
        self.nearby_streets: List[str] = []
        self._latest_query: Dict[AddressField, str] = {field: "" for field in AddressField}

    @property
    def is_new(self) -> bool:
        return self.existing is None

    def _changed(self):
        if self.on_change:
            self.on_change()

    def _new_draft(self) -> ReportDraft:
        draft = ReportDraft(attendance=[record.model_copy() for record in self._roster])
        if self.actor.role == UserRole.SUPERVISOR:
            draft.supervisor_id = self.actor.user_id
        return draft

    # ------------------------------------------------------------------
    # Lifecycle

    def start(self):
        """Load the draft; new reports start capturing the device location in the background"""
        if self.existing is not None:
            self.draft = ReportDraft.from_report(self.existing)
            self.state = FormState.EDITING
            return

        self.draft = self._new_draft()
        self.state = FormState.EDITING
        if self.position_provider is not None:
            self.run_in_background(self.capture_location)

    def dispose(self):
        self.debouncer.cancel()

    # ------------------------------------------------------------------
    # Location

    def capture_location(self):
        """Device position, then reverse geocode. Any failure leaves the location unset."""
        if self.position_provider is None:
            return

        self.locating = True
        self.state = FormState.CAPTURING_LOCATION
        self._changed()
        try:
            try:
                position = self.position_provider(self.settings.gps_timeout)
            except Exception as e:
                logger.warning(f"GPS capture failed: {e}")
                position = None

            if position is None:
                return

            result = self.geocoder.reverse(position.lat, position.lng)
            self.draft.location = GeoLocation(
                lat=position.lat,
                lng=position.lng,
                accuracy=position.accuracy,
                timestamp=position.timestamp,
                address_from_gps=result.display_name if result and result.display_name else GPS_FALLBACK_ADDRESS,
            )

            if result:
                if not self.draft.street:
                    self.draft.street = result.street
                if not self.draft.neighborhood:
                    self.draft.neighborhood = result.neighborhood
                self.refresh_nearby(position.lat, position.lng, result.street)
        finally:
            self.locating = False
            if self.state == FormState.CAPTURING_LOCATION:
                self.state = FormState.EDITING
            self._changed()

    @property
    def gps_accuracy(self) -> Optional[float]:
        return self.draft.location.accuracy if self.draft.location else None

    # ------------------------------------------------------------------
    # Address lookup

    def set_address_text(self, field: AddressField, text: str):
        """Keystroke in the street/neighborhood input: restart the debounce window"""
        setattr(self.draft, field.value, text)
        self._latest_query[field] = text

        if len((text or "").strip()) < self.settings.address_min_query_length:
            self.debouncer.cancel()
            self.suggestions[field] = []
            self.state = FormState.EDITING
            return

        self.debouncer.call(self.search_address, field, text)

    def search_address(self, field: AddressField, query: str):
        """Forward lookup; the response is kept only if query is still the latest text"""
        if query != self._latest_query[field]:
            return
        self.state = FormState.SEARCHING_ADDRESS
        self._changed()

        results = self.geocoder.search(query)
        if query != self._latest_query[field]:
            logger.debug(f"Discarding superseded address results for '{query}'")
            if self.state == FormState.SEARCHING_ADDRESS:
                self.state = FormState.EDITING
            return

        self.suggestions[field] = results
        self.state = FormState.REVIEWING_SUGGESTIONS if results else FormState.EDITING
        self._changed()

    def select_suggestion(self, field: AddressField, suggestion: AddressSuggestion):
        if field == AddressField.NEIGHBORHOOD:
            self.draft.neighborhood = suggestion.neighborhood or suggestion.display_name.split(",")[0]
        else:
            self.draft.street = suggestion.street
            if suggestion.neighborhood:
                self.draft.neighborhood = suggestion.neighborhood
            if suggestion.lat is not None and suggestion.lng is not None:
                self.draft.location = GeoLocation(
                    lat=suggestion.lat,
                    lng=suggestion.lng,
                    timestamp=datetime.now(),
                    address_from_gps=suggestion.display_name,
                )
                self.refresh_nearby(suggestion.lat, suggestion.lng, suggestion.street)

        self._latest_query[field] = getattr(self.draft, field.value)
        self.suggestions[field] = []
        self.state = FormState.EDITING
        self._changed()

    def refresh_nearby(self, lat: float, lng: float, current_street: str = ""):
        self.nearby_streets = self.geocoder.nearby_streets(lat, lng, current_street)
        self._changed()

    def correct_street(self, street: str):
        """Replace a misidentified street with one from the nearby list"""
        self.draft.street = street
        if self.draft.location:
            self.refresh_nearby(self.draft.location.lat, self.draft.location.lng, street)

    def toggle_perimeter_street(self, street: str):
        """One street -> corner, two -> between, a third restarts from the new one"""
        selection = list(self.draft.perimeter_streets)
        if street in selection:
            selection.remove(street)
        else:
            selection.append(street)

        if len(selection) > 2:
            selection = [street]

        if len(selection) == 2:
            self.draft.perimeter = f"Entre {selection[0]} e {selection[1]}"
        elif len(selection) == 1:
            self.draft.perimeter = f"Esquina com {selection[0]}"
        else:
            self.draft.perimeter = ""
        self.draft.perimeter_streets = selection

    # ------------------------------------------------------------------
    # Fields

    def set_metric(self, name: str, raw) -> float:
        if name not in ProductionMetrics.model_fields:
            raise ValueError(f"Unknown metric: {name}")
        text = str(raw if raw is not None else "").strip().replace(",", ".")
        try:
            value = float(text) if text else 0.0
        except ValueError:
            raise ValidationError(f"Valor inválido: {raw}")
        if value < 0:
            raise ValidationError("A produção não pode ser negativa")
        setattr(self.draft.metrics, name, value)
        return value

    def toggle_presence(self, employee_id: str):
        for record in self.draft.attendance:
            if record.employee_id == employee_id:
                record.present = not record.present
                return

    def attach_photo(self, kind: PhotoKind, data: bytes) -> str:
        """Compress and store a photo; upload failures propagate to the caller"""
        owner = self.existing.foreman_id if self.existing else self.actor.user_id
        url = self.photos.upload_report_photo(data, owner, kind)
        self.draft.set_photo(kind, url)
        self._changed()
        return url

    def remove_photo(self, kind: PhotoKind):
        self.draft.set_photo(kind, None)
        self._changed()

    # ------------------------------------------------------------------
    # Validation and submit

    def supervisor_id(self) -> Optional[str]:
        if self.draft.supervisor_id:
            return self.draft.supervisor_id
        if self.actor.role == UserRole.SUPERVISOR:
            return self.actor.user_id
        return None

    def validate(self):
        """First failing rule wins"""
        if not self.supervisor_id():
            raise ValidationError("Erro: Supervisor Responsável não identificado.")

        if self.draft.metrics.total <= 0 and not self.draft.observations.strip():
            raise ValidationError("Insira a quantidade produzida ou uma observação.")

        if not all(self.draft.photo(kind) for kind in PhotoKind):
            raise ValidationError("Por favor, anexe as três fotos obrigatórias (Inicial, Progresso e Final).")

        try:
            combine_date_time(self.draft.day, self.draft.time)
        except ValueError:
            raise ValidationError("Data ou horário inválido")

    def _supervisor(self, supervisor_id: str) -> Optional[User]:
        for user in self.supervisors:
            if user.id == supervisor_id:
                return user
        return None

    def build_report(self) -> Report:
        """Report to persist; status is always Pending and the foreman comes from the session"""
        draft = self.draft
        existing = self.existing
        supervisor_id = self.supervisor_id()
        supervisor = self._supervisor(supervisor_id)

        if supervisor is not None:
            supervisor_name, supervisor_team = supervisor.name, supervisor.team
        elif supervisor_id == self.actor.user_id:
            supervisor_name, supervisor_team = self.actor.name, self.actor.team
        elif existing is not None and existing.supervisor_id == supervisor_id:
            supervisor_name, supervisor_team = existing.supervisor_name, existing.supervisor_team
        else:
            supervisor_name, supervisor_team = None, None

        return Report(
            id=existing.id if existing else "",
            date=combine_date_time(draft.day, draft.time),
            foreman_id=existing.foreman_id if existing else self.actor.user_id,
            foreman_name=existing.foreman_name if existing else self.actor.name,
            foreman_registration=existing.foreman_registration if existing else self.actor.registration,
            foreman_team=existing.foreman_team if existing else self.actor.team,
            supervisor_id=supervisor_id,
            supervisor_name=supervisor_name,
            supervisor_team=supervisor_team,
            status=RDStatus.PENDING,
            supervisor_note=None,
            base=draft.base,
            shift=draft.shift,
            team=existing.team if existing else self.actor.team,
            service_category=draft.service_category,
            street=draft.street.strip(),
            neighborhood=draft.neighborhood.strip(),
            perimeter=draft.perimeter,
            location=draft.location,
            segments=draft.segments,
            metrics=draft.metrics.model_copy(),
            team_attendance=[record.model_copy() for record in draft.attendance],
            work_photo_initial=draft.work_photo_initial,
            work_photo_progress=draft.work_photo_progress,
            work_photo_final=draft.work_photo_final,
            signature_image_url=existing.signature_image_url if existing else None,
            observations=draft.observations,
            created_at=existing.created_at if existing else datetime.now(),
        )

    def submit(self) -> Report:
        """
        Validate then save. Validation failures return to editing; a backend
        failure moves to FAILED with the draft kept for retry().
        """
        self.error = None
        self.state = FormState.VALIDATING
        try:
            self.validate()
        except ValidationError as e:
            self.error = str(e)
            self.state = FormState.EDITING
            raise

        report = self.build_report()
        self.state = FormState.SUBMITTING
        self._changed()

        try:
            saved = self.reports.upsert(report, auth=self.actor)
        except BackendWriteError as e:
            self.error = str(e)
            self.state = FormState.FAILED
            logger.error(f"RD submission failed: {e}")
            self._changed()
            raise

        self.saved = saved
        self.state = FormState.SAVED
        self.existing = None
        self.draft = self._new_draft()
        self._changed()
        return saved

    def retry(self) -> Report:
        if self.state != FormState.FAILED:
            raise ValidationError("Nada para reenviar")
        return self.submit()
