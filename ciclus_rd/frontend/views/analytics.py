"""
Ciclus RD - Analytics View
CCO indicators: totals, per-day averages, monthly series, goal balance and rankings
"""

from datetime import date

import flet as ft
from loguru import logger

from ciclus_rd.backend.filters import ReportFilters, foreman_options, supervisor_options
from ciclus_rd.backend.metrics import (
    averages,
    daily_series,
    distinct_days,
    goal_balance,
    period_totals,
    rank_by_foreman,
    rank_by_supervisor,
)
from ciclus_rd.frontend.navigation import ViewName
from ciclus_rd.shared.enums import DateMode, Shift
from ciclus_rd.shared.utils import format_number, month_key, parse_month

ALL_OPTION = "ALL"
BAR_MAX_HEIGHT = 120


class AnalyticsView:
    """Production indicators over every report"""

    def __init__(self, app):
        self.app = app
        self.auth = app.auth_context
        self.store = app.store
        self.filters = ReportFilters(date_value=month_key(date.today()))
        self.ranking_tab = "sups"

        try:
            self.users = app.users.list()
        except Exception as e:
            logger.error(f"Error loading users for analytics: {e}")
            self.users = []

        self.date_field = ft.TextField(
            label="Mês (AAAA-MM)",
            value=self.filters.date_value,
            width=170,
            on_submit=lambda e: self.set_filter(date_value=e.control.value.strip()),
            on_blur=lambda e: self.set_filter(date_value=e.control.value.strip()),
        )
        self.supervisor_dropdown = ft.Dropdown(label="Supervisor", width=220, value=ALL_OPTION,
                                               on_select=lambda e: self.select("supervisor_id", e.control.value))
        self.foreman_dropdown = ft.Dropdown(label="Encarregado", width=220, value=ALL_OPTION,
                                            on_select=lambda e: self.select("foreman_id", e.control.value))
        self.shift_dropdown = ft.Dropdown(
            label="Turno",
            width=150,
            value=ALL_OPTION,
            options=[ft.DropdownOption(key=ALL_OPTION, text="Todos")]
            + [ft.DropdownOption(key=shift.value, text=shift.value) for shift in Shift],
            on_select=lambda e: self.select("shift", e.control.value),
        )
        self.mode_row = ft.Row(spacing=0)
        self.cards_row = ft.Row(wrap=True, spacing=10)
        self.goals_row = ft.Row(wrap=True, spacing=10)
        self.chart = ft.Row(spacing=2, vertical_alignment=ft.CrossAxisAlignment.END, scroll=ft.ScrollMode.AUTO)
        self.ranking_tabs = ft.Row(spacing=6)
        self.ranking_column = ft.Column(spacing=6)

    def build(self) -> ft.View:
        body = ft.Column(
            controls=[
                ft.Column([
                    ft.Text("Indicadores", size=24, weight=ft.FontWeight.BOLD),
                    ft.Text("Produção consolidada, metas e rankings.", size=13, color=ft.Colors.GREY_600),
                ], spacing=2),
                ft.Card(content=ft.Container(
                    content=ft.Row(
                        [self.mode_row, self.date_field, self.supervisor_dropdown, self.foreman_dropdown, self.shift_dropdown],
                        spacing=10,
                        wrap=True,
                    ),
                    padding=15,
                )),
                self.cards_row,
                self.goals_row,
                ft.Card(content=ft.Container(
                    content=ft.Column([
                        ft.Text("Produção diária (Capinação)", weight=ft.FontWeight.BOLD),
                        self.chart,
                    ], spacing=10),
                    padding=15,
                )),
                ft.Card(content=ft.Container(
                    content=ft.Column([self.ranking_tabs, self.ranking_column], spacing=10),
                    padding=15,
                )),
            ],
            spacing=16,
        )
        self.render()
        return self.app.build_page(ViewName.ANALYTICS.value, body)

    # ------------------------------------------------------------------

    def select(self, field: str, value):
        self.set_filter(**{field: None if value in (None, ALL_OPTION) else value})

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

    def set_ranking_tab(self, tab: str):
        self.ranking_tab = tab
        self.refresh()

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

        all_reports = self.store.reports
        self.supervisor_dropdown.options = [ft.DropdownOption(key=ALL_OPTION, text="Todos")] + [
            ft.DropdownOption(key=sup_id, text=name) for sup_id, name in supervisor_options(all_reports, self.users)
        ]
        self.foreman_dropdown.options = [ft.DropdownOption(key=ALL_OPTION, text="Todos")] + [
            ft.DropdownOption(key=foreman_id, text=name) for foreman_id, name in foreman_options(all_reports)
        ]

        reports = self.store.visible(self.filters)
        self.render_cards(reports)
        self.render_goals(reports)
        self.render_chart(reports)
        self.render_rankings(reports)

    def render_cards(self, reports):
        totals = period_totals(reports)
        avg = averages(reports)
        days = distinct_days(reports)
        items = [
            ("Capinação", totals.metrics.capina_m, avg.capina_m, "m"),
            ("Roçagem", totals.metrics.rocagem_m2, avg.rocagem_m2, "m²"),
            ("Pintura de vias", totals.metrics.pintura_vias_m, avg.pintura_vias_m, "m"),
            ("Pintura de postes", totals.metrics.pintura_postes_und, avg.pintura_postes_und, "und"),
        ]
        cards = [
            ft.Container(
                content=ft.Column([
                    ft.Text(label.upper(), size=10, color=ft.Colors.GREY_500, weight=ft.FontWeight.BOLD),
                    ft.Text(f"{format_number(total)} {unit}", size=20, weight=ft.FontWeight.BOLD),
                    ft.Text(f"Média/dia: {format_number(average)} {unit}", size=12, color=ft.Colors.GREY_600),
                ], spacing=2),
                bgcolor=ft.Colors.WHITE,
                padding=12,
                border_radius=8,
                width=190,
            )
            for label, total, average, unit in items
        ]
        cards.append(ft.Container(
            content=ft.Column([
                ft.Text("RDS / DIAS", size=10, color=ft.Colors.GREY_500, weight=ft.FontWeight.BOLD),
                ft.Text(f"{totals.count} / {days}", size=20, weight=ft.FontWeight.BOLD),
            ], spacing=2),
            bgcolor=ft.Colors.WHITE,
            padding=12,
            border_radius=8,
            width=150,
        ))
        self.cards_row.controls = cards

    def render_goals(self, reports):
        settings = self.app.settings
        totals = period_totals(reports).metrics
        days = distinct_days(reports)
        balances = [
            ("Meta Capinação", goal_balance(settings.goal_capina_m_per_day, days, totals.capina_m), "m"),
            ("Meta Roçagem", goal_balance(settings.goal_rocagem_m2_per_day, days, totals.rocagem_m2), "m²"),
        ]
        controls = []
        for label, balance, unit in balances:
            color = ft.Colors.GREEN_700 if balance.met else ft.Colors.RED_700
            sign = "+" if balance.balance >= 0 else "-"
            controls.append(ft.Container(
                content=ft.Column([
                    ft.Text(label.upper(), size=10, color=ft.Colors.GREY_500, weight=ft.FontWeight.BOLD),
                    ft.Text(f"Realizado: {format_number(balance.realized)} {unit}", size=13),
                    ft.Text(f"Meta acumulada: {format_number(balance.accumulated)} {unit}", size=13),
                    ft.Text(f"Saldo: {sign}{format_number(abs(balance.balance))} {unit}",
                            size=16, weight=ft.FontWeight.BOLD, color=color),
                ], spacing=2),
                bgcolor=ft.Colors.WHITE,
                padding=12,
                border_radius=8,
                width=260,
            ))
        self.goals_row.controls = controls

    def render_chart(self, reports):
        try:
            year, month = parse_month(self.filters.context_month)
        except ValueError:
            self.chart.controls = [ft.Text("Informe um mês válido.", color=ft.Colors.GREY_500)]
            return

        series = daily_series(reports, year, month)
        peak = max((point.capina_m for point in series), default=0) or 1
        target = self.app.settings.goal_capina_m_per_day
        self.chart.controls = [
            ft.Column([
                ft.Container(
                    height=max(2, BAR_MAX_HEIGHT * point.capina_m / peak),
                    width=14,
                    bgcolor=ft.Colors.GREEN_600 if point.capina_m >= target else ft.Colors.AMBER_600,
                    border_radius=2,
                    tooltip=f"{point.day.strftime('%d/%m')}: {format_number(point.capina_m)} m ({point.count} RDs)",
                ),
                ft.Text(point.day.strftime("%d"), size=9, color=ft.Colors.GREY_600),
            ], spacing=2, horizontal_alignment=ft.CrossAxisAlignment.CENTER)
            for point in series
        ]

    def render_rankings(self, reports):
        self.ranking_tabs.controls = [
            ft.Chip(
                label=ft.Text(label),
                selected=self.ranking_tab == tab,
                on_select=lambda _, t=tab: self.set_ranking_tab(t),
            )
            for tab, label in (("sups", "Supervisores"), ("foremen", "Encarregados"))
        ]

        if self.ranking_tab == "sups":
            entries = rank_by_supervisor(reports, {user.id: user.name for user in self.users})
        else:
            entries = rank_by_foreman(reports)

        if not entries:
            self.ranking_column.controls = [ft.Text("Sem dados no período.", color=ft.Colors.GREY_500)]
            return

        self.ranking_column.controls = [
            ft.ListTile(
                leading=ft.CircleAvatar(content=ft.Text(str(position)), radius=14),
                title=ft.Text(entry.label, weight=ft.FontWeight.BOLD),
                subtitle=ft.Text(
                    f"Cap: {format_number(entry.metrics.capina_m)}m   "
                    f"Roç: {format_number(entry.metrics.rocagem_m2)}m²   "
                    f"Pint: {format_number(entry.metrics.pintura_vias_m)}m   "
                    f"Postes: {format_number(entry.metrics.pintura_postes_und)}",
                    size=12,
                ),
                trailing=ft.Text(f"{entry.count} RDs", size=12, color=ft.Colors.GREY_600),
            )
            for position, entry in enumerate(entries, start=1)
        ]
