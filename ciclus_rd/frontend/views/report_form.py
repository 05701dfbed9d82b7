"""
Ciclus RD - Report Form View
New RD / correction screen rendered from a ReportFormController
"""

from pathlib import Path
from typing import Optional

import flet as ft
from loguru import logger

from ciclus_rd.backend.domain import Report
from ciclus_rd.frontend.form_controller import AddressField, FormState, ReportFormController
from ciclus_rd.frontend.navigation import ViewName
from ciclus_rd.shared.enums import Base, PhotoKind, ServiceCategory, Shift, UserRole
from ciclus_rd.shared.errors import BackendWriteError, ValidationError

PHOTO_LABELS = {
    PhotoKind.INITIAL: "Inicial",
    PhotoKind.PROGRESS: "Progresso",
    PhotoKind.FINAL: "Final",
}

METRIC_LABELS = [
    ("capina_m", "Capinação (m)"),
    ("rocagem_m2", "Roçagem (m²)"),
    ("pintura_vias_m", "Pintura de Vias (m)"),
    ("pintura_postes_und", "Pintura de Postes (und)"),
]


class ReportFormView:
    """Data entry for one RD"""

    def __init__(self, app, existing: Optional[Report] = None):
        self.app = app
        self.auth = app.auth_context
        self.built = False

        supervisors = app.users.supervisors()
        roster = app.employees.roster_for(self.auth.user_id) if existing is None else None
        self.controller = ReportFormController(
            actor=self.auth,
            reports=app.reports,
            geocoder=app.geocoder,
            supervisors=supervisors,
            existing=existing,
            roster=roster,
            photos=app.photos,
            position_provider=app.position_provider,
            on_change=self.on_controller_change,
            config=app.settings,
        )
        self.controller.start()
        draft = self.controller.draft

        self.supervisor_dropdown = ft.Dropdown(
            label="Supervisor Responsável",
            value=draft.supervisor_id,
            options=[ft.DropdownOption(key=s.id, text=f"{s.name} (Mat: {s.registration})") for s in supervisors],
            visible=self.auth.role != UserRole.SUPERVISOR or existing is not None,
        )
        self.day_field = ft.TextField(label="Data (AAAA-MM-DD)", value=draft.day, width=170)
        self.time_field = ft.TextField(label="Horário", value=draft.time, width=110)
        self.base_dropdown = ft.Dropdown(
            label="Base Operacional", value=draft.base.value, width=220,
            options=[ft.DropdownOption(key=b.value, text=b.value) for b in Base],
        )
        self.shift_dropdown = ft.Dropdown(
            label="Turno", value=draft.shift.value, width=150,
            options=[ft.DropdownOption(key=s.value, text=s.value) for s in Shift],
        )
        self.category_dropdown = ft.Dropdown(
            label="Categoria do Serviço", value=draft.service_category.value, width=280,
            options=[ft.DropdownOption(key=c.value, text=c.value) for c in ServiceCategory],
        )

        self.street_field = ft.TextField(
            label="Rua", value=draft.street, expand=True,
            on_change=lambda e: self.controller.set_address_text(AddressField.STREET, e.control.value),
        )
        self.neighborhood_field = ft.TextField(
            label="Bairro", value=draft.neighborhood, expand=True,
            on_change=lambda e: self.controller.set_address_text(AddressField.NEIGHBORHOOD, e.control.value),
        )
        self.perimeter_field = ft.TextField(
            label="Perímetro", value=draft.perimeter,
            on_change=lambda e: setattr(self.controller.draft, "perimeter", e.control.value),
        )
        self.metric_fields = {
            name: ft.TextField(label=label, value=self._number(getattr(draft.metrics, name)), width=200,
                               keyboard_type=ft.KeyboardType.NUMBER)
            for name, label in METRIC_LABELS
        }
        self.observations_field = ft.TextField(label="Observações", value=draft.observations, multiline=True, min_lines=3)

        self.location_text = ft.Text(size=12, color=ft.Colors.GREY_600)
        self.street_suggestions = ft.Column(spacing=0)
        self.neighborhood_suggestions = ft.Column(spacing=0)
        self.nearby_row = ft.Row(wrap=True, spacing=6)
        self.photo_row = ft.Row(spacing=10, wrap=True)
        self.attendance_column = ft.Column(spacing=0)
        self.error_text = ft.Text(color=ft.Colors.RED_600, visible=False)
        self.save_button = ft.Button(
            "Enviar RD", icon=ft.Icons.SAVE, bgcolor=ft.Colors.GREEN_600, color=ft.Colors.WHITE,
            on_click=lambda _: self.submit(),
        )

    @staticmethod
    def _number(value: float) -> str:
        return "" if not value else (f"{value:g}")

    def build(self) -> ft.View:
        title = "Novo Relatório Diário" if self.controller.is_new else "Edição de Relatório"
        body = ft.Card(content=ft.Container(
            padding=20,
            content=ft.Column(
                spacing=18,
                controls=[
                    ft.Row([
                        ft.Text(title, size=20, weight=ft.FontWeight.BOLD),
                        ft.Text(f"{self.auth.name} (Mat: {self.auth.registration})", size=12, color=ft.Colors.GREY_600),
                    ], alignment=ft.MainAxisAlignment.SPACE_BETWEEN),
                    self.supervisor_dropdown,
                    self.section("1. Dados Operacionais", ft.Icons.SCHEDULE),
                    ft.Row([self.day_field, self.time_field, self.base_dropdown, self.shift_dropdown], wrap=True),
                    self.category_dropdown,
                    self.section("2. Localização", ft.Icons.PLACE),
                    ft.Row([
                        self.location_text,
                        ft.IconButton(icon=ft.Icons.MY_LOCATION, tooltip="Capturar GPS",
                                      disabled=self.app.position_provider is None,
                                      on_click=lambda _: self.app.page.run_thread(self.controller.capture_location)),
                    ], alignment=ft.MainAxisAlignment.SPACE_BETWEEN),
                    ft.Row([self.street_field, self.neighborhood_field]),
                    self.street_suggestions,
                    self.neighborhood_suggestions,
                    ft.Text("Ruas próximas (toque para perímetro, lápis para corrigir a rua)", size=12,
                            color=ft.Colors.GREY_500),
                    self.nearby_row,
                    self.perimeter_field,
                    self.section("3. Produção", ft.Icons.CALCULATE),
                    ft.Row(list(self.metric_fields.values()), wrap=True),
                    self.observations_field,
                    self.section("4. Fotos", ft.Icons.CAMERA_ALT),
                    self.photo_row,
                    self.section("5. Presença da Equipe", ft.Icons.GROUPS),
                    self.attendance_column,
                    self.error_text,
                    ft.Row([
                        ft.TextButton("Cancelar", on_click=lambda _: self.cancel()),
                        self.save_button,
                    ], alignment=ft.MainAxisAlignment.END),
                ],
            ),
        ))
        self.render()
        self.built = True
        return self.app.build_page(ViewName.REPORT_FORM.value, body)

    @staticmethod
    def section(label: str, icon) -> ft.Row:
        return ft.Row([
            ft.Icon(icon, size=16, color=ft.Colors.GREY_500),
            ft.Text(label.upper(), size=12, weight=ft.FontWeight.BOLD, color=ft.Colors.GREY_500),
        ], spacing=6)

    # ------------------------------------------------------------------

    def on_controller_change(self):
        # Background lookups can report before the controls are built
        if self.built:
            self.refresh()

    def refresh(self):
        self.render()
        self.app.page.update()

    def render(self):
        controller = self.controller
        draft = controller.draft

        if controller.locating:
            self.location_text.value = "Buscando sinal de GPS..."
        elif draft.location:
            accuracy = f" • Precisão: {draft.location.accuracy:.0f}m" if draft.location.accuracy else ""
            self.location_text.value = f"{draft.location.lat:.6f}, {draft.location.lng:.6f}{accuracy}"
        else:
            self.location_text.value = "Localização não capturada"

        # Background lookups may have filled these in
        if not self.street_field.value and draft.street:
            self.street_field.value = draft.street
        if not self.neighborhood_field.value and draft.neighborhood:
            self.neighborhood_field.value = draft.neighborhood

        self.street_suggestions.controls = [
            ft.ListTile(title=ft.Text(s.display_name, size=12), dense=True,
                        on_click=lambda _, s=s: self.pick_suggestion(AddressField.STREET, s))
            for s in controller.suggestions[AddressField.STREET]
        ]
        self.neighborhood_suggestions.controls = [
            ft.ListTile(title=ft.Text(s.display_name, size=12), dense=True,
                        on_click=lambda _, s=s: self.pick_suggestion(AddressField.NEIGHBORHOOD, s))
            for s in controller.suggestions[AddressField.NEIGHBORHOOD]
        ]
        self.nearby_row.controls = [self.nearby_street_tile(name, name in draft.perimeter_streets)
                                    for name in controller.nearby_streets]

        self.photo_row.controls = [self.photo_tile(kind) for kind in PhotoKind]
        self.attendance_column.controls = [
            ft.Checkbox(
                label=f"{record.name} - {record.role} (Mat: {record.registration})",
                value=record.present,
                on_change=lambda _, employee_id=record.employee_id: controller.toggle_presence(employee_id),
            )
            for record in draft.attendance
        ] or [ft.Text("Nenhum colaborador cadastrado.", size=12, color=ft.Colors.GREY_500)]

        if controller.error:
            self.error_text.value = controller.error
            self.error_text.visible = True
        else:
            self.error_text.visible = False

        if controller.state == FormState.FAILED:
            self.save_button.content = "Tentar novamente"
        self.save_button.disabled = controller.state == FormState.SUBMITTING

    def nearby_street_tile(self, name: str, selected: bool) -> ft.Row:
        return ft.Row([
            ft.Chip(
                label=ft.Text(name, size=12),
                selected=selected,
                on_select=lambda _, n=name: self.toggle_perimeter(n),
            ),
            ft.IconButton(
                icon=ft.Icons.EDIT_ROAD,
                icon_size=16,
                tooltip=f"Corrigir rua para {name}",
                on_click=lambda _, n=name: self.correct_street(n),
            ),
        ], spacing=0, tight=True)

    def photo_tile(self, kind: PhotoKind) -> ft.Container:
        url = self.controller.draft.photo(kind)
        preview = (
            ft.Image(src=url, width=120, height=90, fit=ft.BoxFit.COVER, border_radius=4)
            if url else ft.Icon(ft.Icons.ADD_A_PHOTO, size=36, color=ft.Colors.GREY_400)
        )
        return ft.Container(
            content=ft.Column([
                ft.Text(PHOTO_LABELS[kind].upper(), size=10, weight=ft.FontWeight.BOLD, color=ft.Colors.GREY_500),
                preview,
            ], horizontal_alignment=ft.CrossAxisAlignment.CENTER, spacing=4),
            padding=8,
            border=ft.Border.all(1, ft.Colors.GREEN_300 if url else ft.Colors.GREY_300),
            border_radius=8,
            on_click=lambda _, k=kind: self.app.page.run_task(self.pick_photo, k),
        )

    # ------------------------------------------------------------------
    # Events

    def pick_suggestion(self, field: AddressField, suggestion):
        self.controller.select_suggestion(field, suggestion)
        self.street_field.value = self.controller.draft.street
        self.neighborhood_field.value = self.controller.draft.neighborhood
        self.refresh()

    def toggle_perimeter(self, name: str):
        self.controller.toggle_perimeter_street(name)
        self.perimeter_field.value = self.controller.draft.perimeter
        self.refresh()

    def correct_street(self, name: str):
        self.controller.correct_street(name)
        self.street_field.value = name
        self.refresh()

    async def pick_photo(self, kind: PhotoKind):
        files = await ft.FilePicker().pick_files(
            dialog_title=f"Foto {PHOTO_LABELS[kind]}",
            file_type=ft.FilePickerFileType.IMAGE,
            allow_multiple=False,
        )
        if not files or not files[0].path:
            return
        try:
            self.controller.attach_photo(kind, Path(files[0].path).read_bytes())
        except (ValidationError, BackendWriteError, OSError) as e:
            logger.warning(f"Photo attach failed: {e}")
            self.app.show_snackbar(f"Falha ao anexar foto: {e}", error=True)

    def collect_fields(self):
        """Copy the plain inputs into the draft"""
        draft = self.controller.draft
        if self.supervisor_dropdown.visible:
            draft.supervisor_id = self.supervisor_dropdown.value or None
        draft.day = (self.day_field.value or "").strip()
        draft.time = (self.time_field.value or "").strip()
        draft.base = Base(self.base_dropdown.value)
        draft.shift = Shift(self.shift_dropdown.value)
        draft.service_category = ServiceCategory(self.category_dropdown.value)
        draft.street = self.street_field.value or ""
        draft.neighborhood = self.neighborhood_field.value or ""
        draft.perimeter = self.perimeter_field.value or ""
        draft.observations = self.observations_field.value or ""
        for name, field in self.metric_fields.items():
            self.controller.set_metric(name, field.value)

    def submit(self):
        try:
            self.collect_fields()
            self.controller.submit()
        except ValidationError as e:
            self.controller.error = str(e)
            self.refresh()
            return
        except BackendWriteError as e:
            self.app.show_snackbar(f"Falha ao salvar RD: {e}", error=True)
            self.refresh()
            return

        self.app.show_snackbar("RD enviado com sucesso")
        self.app.navigate(ViewName.DASHBOARD)

    def cancel(self):
        self.app.navigate(ViewName.DASHBOARD)

    def dispose(self):
        self.controller.dispose()
