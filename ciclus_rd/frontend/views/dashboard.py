"""
Ciclus RD - Dashboard View
Filtered RD list with review actions, period totals and export
"""

from datetime import date
from pathlib import Path

import flet as ft
from loguru import logger

from ciclus_rd.backend import lifecycle
from ciclus_rd.backend.domain import Report
from ciclus_rd.backend.filters import ALL, ReportFilters
from ciclus_rd.backend.metrics import period_totals
from ciclus_rd.frontend.navigation import ViewName, can_create_report
from ciclus_rd.shared.enums import DateMode, Permission, RDStatus
from ciclus_rd.shared.errors import BackendWriteError, ValidationError
from ciclus_rd.shared.utils import format_date_display, format_number, month_key

STATUS_COLORS = {
    RDStatus.PENDING: (ft.Colors.AMBER_100, ft.Colors.AMBER_900),
    RDStatus.APPROVED: (ft.Colors.GREEN_100, ft.Colors.GREEN_900),
    RDStatus.REJECTED: (ft.Colors.RED_100, ft.Colors.RED_900),
}


class DashboardView:
    """Report list for the signed-in user"""

    def __init__(self, app):
        self.app = app
        self.auth = app.auth_context
        self.store = app.store
        self.filters = ReportFilters(date_value=month_key(date.today()))
        self.expanded_id = None

        self.search_field = ft.TextField(
            hint_text="Buscar por Encarregado, Rua, Bairro...",
            prefix_icon=ft.Icons.SEARCH,
            expand=True,
            on_change=lambda e: self.set_filter(search=e.control.value),
        )
        self.date_field = ft.TextField(
            label="Mês (AAAA-MM)",
            value=self.filters.date_value,
            width=170,
            on_submit=lambda e: self.set_filter(date_value=e.control.value.strip()),
            on_blur=lambda e: self.set_filter(date_value=e.control.value.strip()),
        )
        self.totals_row = ft.Row(wrap=True, spacing=10)
        self.status_row = ft.Row(spacing=6, scroll=ft.ScrollMode.AUTO)
        self.mode_row = ft.Row(spacing=0)
        self.list_column = ft.Column(spacing=10)

    def build(self) -> ft.View:
        header_actions = []
        if self.auth.has_permission(Permission.REPORT_EXPORT):
            header_actions.append(ft.OutlinedButton("Exportar", icon=ft.Icons.DOWNLOAD, on_click=lambda _: self.export()))
        if can_create_report(self.auth.role):
            header_actions.append(ft.Button(
                "Novo RD",
                icon=ft.Icons.ADD,
                bgcolor=ft.Colors.GREEN_600,
                color=ft.Colors.WHITE,
                on_click=lambda _: self.app.navigate(ViewName.REPORT_FORM),
            ))

        body = ft.Column(
            controls=[
                ft.Row([
                    ft.Column([
                        ft.Text("Relatórios", size=24, weight=ft.FontWeight.BOLD),
                        ft.Text("Acompanhamento diário de produção.", size=13, color=ft.Colors.GREY_600),
                    ], spacing=2),
                    ft.Row(header_actions, spacing=8),
                ], alignment=ft.MainAxisAlignment.SPACE_BETWEEN),
                ft.Card(content=ft.Container(
                    content=ft.Column([
                        ft.Row([self.search_field, self.mode_row, self.date_field], spacing=10),
                        self.status_row,
                    ], spacing=10),
                    padding=15,
                )),
                self.totals_row,
                self.list_column,
            ],
            spacing=16,
        )
        self.render()
        return self.app.build_page(ViewName.DASHBOARD.value, body)

    # ------------------------------------------------------------------

    def set_filter(self, **changes):
        try:
            self.filters = ReportFilters.model_validate({**self.filters.model_dump(), **changes})
        except ValueError as e:
            logger.warning(f"Ignoring invalid filter {changes}: {e}")
            return
        self.refresh()

    def set_date_mode(self, mode: DateMode):
        today = date.today()
        value = month_key(today) if mode == DateMode.MONTH else today.isoformat()
        self.date_field.label = "Mês (AAAA-MM)" if mode == DateMode.MONTH else "Dia (AAAA-MM-DD)"
        self.date_field.value = value
        self.set_filter(date_mode=mode, date_value=value)

    def refresh(self):
        self.render()
        self.app.page.update()

    def render(self):
        self.mode_row.controls = [
            ft.TextButton(
                label,
                style=ft.ButtonStyle(bgcolor=ft.Colors.GREY_200 if self.filters.date_mode == mode else None),
                on_click=lambda _, m=mode: self.set_date_mode(m),
            )
            for mode, label in ((DateMode.MONTH, "Mês"), (DateMode.DAY, "Dia"))
        ]
        self.status_row.controls = [
            ft.Chip(
                label=ft.Text("Todos" if status == ALL else status.value),
                selected=self.filters.status == status,
                on_select=lambda _, s=status: self.set_filter(status=s),
            )
            for status in [ALL, RDStatus.PENDING, RDStatus.APPROVED, RDStatus.REJECTED]
        ]

        if self.store.loading and not self.store.reports:
            self.list_column.controls = [ft.Container(ft.ProgressRing(), alignment=ft.Alignment(0, 0), padding=40)]
            return

        reports = self.store.visible(self.filters)
        self.render_totals(reports)

        if not reports:
            self.list_column.controls = [ft.Container(
                content=ft.Text("Nenhum RD encontrado.", color=ft.Colors.GREY_500),
                alignment=ft.Alignment(0, 0),
                padding=40,
                border=ft.Border.all(1, ft.Colors.GREY_300),
                border_radius=8,
            )]
            return
        self.list_column.controls = [self.build_card(report) for report in reports]

    def render_totals(self, reports):
        if not self.auth.has_permission(Permission.REPORT_TOTALS):
            self.totals_row.controls = []
            return
        totals = period_totals(reports)
        metrics = totals.metrics
        items = [
            ("RDs", format_number(totals.count)),
            ("Capinação", f"{format_number(metrics.capina_m)} m"),
            ("Roçagem", f"{format_number(metrics.rocagem_m2)} m²"),
            ("Pintura", f"{format_number(metrics.pintura_vias_m)} m"),
            ("Postes", format_number(metrics.pintura_postes_und)),
        ]
        self.totals_row.controls = [
            ft.Container(
                content=ft.Column([
                    ft.Text(label.upper(), size=10, color=ft.Colors.GREY_500, weight=ft.FontWeight.BOLD),
                    ft.Text(value, size=18, weight=ft.FontWeight.BOLD),
                ], spacing=2),
                bgcolor=ft.Colors.WHITE,
                padding=12,
                border_radius=8,
                width=150,
            )
            for label, value in items
        ]

    # ------------------------------------------------------------------
    # Report card

    def build_card(self, report: Report) -> ft.Card:
        bg, fg = STATUS_COLORS[report.status]
        badges = [
            ft.Container(ft.Text(report.status.value.upper(), size=10, weight=ft.FontWeight.BOLD, color=fg),
                         bgcolor=bg, padding=ft.Padding.symmetric(horizontal=6, vertical=2), border_radius=4),
            ft.Text(format_date_display(report.date), size=12, color=ft.Colors.GREY_500),
        ]
        if self.auth.is_supervisor and report.supervisor_id == self.auth.user_id and report.foreman_id != self.auth.user_id:
            badges.append(ft.Text("Atribuído", size=10, color=ft.Colors.BLUE_700))

        metrics = report.metrics
        summary = []
        if metrics.capina_m > 0:
            summary.append(f"Cap: {format_number(metrics.capina_m)}m")
        if metrics.rocagem_m2 > 0:
            summary.append(f"Roç: {format_number(metrics.rocagem_m2)}m²")
        if metrics.pintura_vias_m > 0:
            summary.append(f"Pint: {format_number(metrics.pintura_vias_m)}m")

        controls = [
            ft.ListTile(
                title=ft.Row(badges, spacing=8),
                subtitle=ft.Column([
                    ft.Text(report.street or "-", weight=ft.FontWeight.BOLD),
                    ft.Text(report.neighborhood, size=12, color=ft.Colors.GREY_600),
                    ft.Text("   ".join(summary), size=12),
                ], spacing=2),
                trailing=ft.Text(report.base.value if report.base else "", size=11, color=ft.Colors.BLUE_700),
                on_click=lambda _, r=report: self.toggle(r.id),
            ),
        ]
        if self.expanded_id == report.id:
            controls.append(self.build_details(report))

        return ft.Card(content=ft.Container(content=ft.Column(controls, spacing=0), padding=5))

    def build_details(self, report: Report) -> ft.Container:
        details = [
            ft.Text(f"Encarregado: {report.foreman_name}"),
            ft.Text(f"Supervisor: {report.supervisor_name or 'N/A'}"),
            ft.Text(f"Local: {report.street}, {report.neighborhood}"),
        ]
        if report.shift:
            details.append(ft.Text(f"Turno: {report.shift.value}"))
        if report.perimeter:
            details.append(ft.Text(report.perimeter, italic=True, color=ft.Colors.GREY_600))
        if report.location:
            details.append(ft.Text(f"GPS: {report.location.lat:.6f}, {report.location.lng:.6f}", size=12))

        details.append(ft.Text(
            f"Presença ({report.present_count}/{len(report.team_attendance)})",
            size=12, weight=ft.FontWeight.BOLD, color=ft.Colors.GREY_500,
        ))
        for record in report.team_attendance:
            details.append(ft.Text(f"{record.name} - {record.role}", size=12,
                                   color=ft.Colors.GREY_700 if record.present else ft.Colors.RED_400))

        if report.observations:
            details.append(ft.Text(f"Observações: {report.observations}", italic=True))

        photos = [
            ft.Image(src=url, width=120, height=90, fit=ft.BoxFit.COVER, border_radius=4)
            for url in (report.work_photo_initial, report.work_photo_progress, report.work_photo_final) if url
        ]
        if photos:
            details.append(ft.Row(photos, spacing=8))

        if report.supervisor_note:
            details.append(ft.Container(
                content=ft.Text(f"Nota da Recusa: {report.supervisor_note}", color=ft.Colors.RED_900, size=12),
                bgcolor=ft.Colors.RED_50,
                padding=10,
                border_radius=4,
            ))

        details.append(ft.Row(self.build_actions(report), spacing=8, wrap=True))
        return ft.Container(content=ft.Column(details, spacing=6), padding=15)

    def build_actions(self, report: Report):
        actions = []
        if report.status == RDStatus.REJECTED and lifecycle.can_resubmit(report, self.auth):
            actions.append(ft.Button("Corrigir", bgcolor=ft.Colors.BLUE_600, color=ft.Colors.WHITE,
                                             on_click=lambda _, r=report: self.edit(r)))
        elif lifecycle.can_edit(report, self.auth):
            actions.append(ft.OutlinedButton("Editar", icon=ft.Icons.EDIT, on_click=lambda _, r=report: self.edit(r)))

        if lifecycle.can_review(report, self.auth):
            actions.append(ft.Button("Aprovar", bgcolor=ft.Colors.GREEN_600, color=ft.Colors.WHITE,
                                             on_click=lambda _, r=report: self.approve(r)))
            actions.append(ft.Button("Recusar", bgcolor=ft.Colors.RED_600, color=ft.Colors.WHITE,
                                             on_click=lambda _, r=report: self.reject(r)))

        if self.auth.is_admin:
            actions.append(ft.IconButton(icon=ft.Icons.DELETE_OUTLINE, icon_color=ft.Colors.RED_600, tooltip="Excluir",
                                         on_click=lambda _, r=report: self.delete(r)))
        return actions

    def toggle(self, report_id: str):
        self.expanded_id = None if self.expanded_id == report_id else report_id
        self.refresh()

    # ------------------------------------------------------------------
    # Actions

    def edit(self, report: Report):
        self.app.navigate(ViewName.REPORT_FORM, editing=report)

    def approve(self, report: Report):
        self.app.confirm("Aprovar RD", "Confirmar aprovação?",
                         lambda: self.apply_status(report, RDStatus.APPROVED), confirm_label="Sim, Aprovar")

    def reject(self, report: Report):
        reason = ft.TextField(label="Motivo da Recusa", multiline=True, min_lines=2, autofocus=True)

        def confirm(_):
            try:
                self.store.update_status(report.id, RDStatus.REJECTED, reason.value)
            except ValidationError as e:
                reason.error = str(e)
                self.app.page.update()
                return
            except (BackendWriteError, PermissionError, ValueError) as e:
                self.app.page.pop_dialog()
                self.app.show_snackbar(f"Falha ao recusar RD: {e}", error=True)
                return
            self.app.page.pop_dialog()
            self.app.show_snackbar("RD recusado")

        self.app.page.show_dialog(ft.AlertDialog(
            modal=True,
            title=ft.Text("Recusar RD"),
            content=reason,
            actions=[
                ft.TextButton("Cancelar", on_click=lambda _: self.app.page.pop_dialog()),
                ft.Button("Confirmar", bgcolor=ft.Colors.RED_600, color=ft.Colors.WHITE, on_click=confirm),
            ],
        ))

    def apply_status(self, report: Report, status: RDStatus):
        try:
            self.store.update_status(report.id, status)
            self.app.show_snackbar(f"RD {status.value.lower()}")
        except (BackendWriteError, PermissionError, ValueError) as e:
            self.app.show_snackbar(f"Falha ao atualizar RD: {e}", error=True)

    def delete(self, report: Report):
        def do_delete():
            try:
                self.store.delete(report.id)
                self.app.show_snackbar("RD excluído")
            except (BackendWriteError, PermissionError) as e:
                self.app.show_snackbar(f"Falha ao excluir RD: {e}", error=True)

        self.app.confirm("Excluir RD", "Excluir permanentemente?", do_delete, confirm_label="Excluir")

    def export(self):
        reports = self.store.visible(self.filters)
        output = Path("exports") / f"Ciclus_RD_Export_{self.filters.date_value or 'todos'}.xlsx"
        try:
            path = self.app.exporter.export_reports_xlsx(self.auth, reports, output)
        except ValidationError as e:
            self.app.show_snackbar(str(e), error=True)
            return
        except (OSError, PermissionError) as e:
            self.app.show_snackbar(f"Falha ao exportar: {e}", error=True)
            return
        self.app.show_snackbar(f"Exportado: {path}")
