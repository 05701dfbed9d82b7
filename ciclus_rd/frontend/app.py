"""
Ciclus RD - Flet Application
View shell: session, role-gated navigation and the shared header
"""

from typing import Optional

import flet as ft
from loguru import logger

from ciclus_rd.backend.services import (
    ConnectionMonitor,
    EmployeeService,
    ExportService,
    GeocodingClient,
    PhotoStorage,
    ReportSync,
    UserService,
)
from ciclus_rd.frontend.navigation import ViewName, allowed_views, resolve_view
from ciclus_rd.frontend.store import ReportStore
from ciclus_rd.shared.auth import AuthContext

NAV_ITEMS = {
    ViewName.DASHBOARD: (ft.Icons.DASHBOARD, "Visão Geral"),
    ViewName.ANALYTICS: (ft.Icons.BAR_CHART, "Indicadores"),
    ViewName.ADMIN: (ft.Icons.STORAGE, "Gestão"),
}


class CiclusApp:
    """Main Flet application controller"""

    def __init__(self, page: ft.Page, backend, geocoder: Optional[GeocodingClient] = None,
                 photos: Optional[PhotoStorage] = None, position_provider=None):
        self.page = page
        self.backend = backend
        self.settings = backend.settings

        # Services share the one backend instance
        self.reports = ReportSync(backend)
        self.employees = EmployeeService(backend)
        self.users = UserService(backend)
        self.exporter = ExportService()
        self.geocoder = geocoder or GeocodingClient(self.settings)
        self.photos = photos or PhotoStorage(self.settings)
        self.position_provider = position_provider

        self.auth_context: Optional[AuthContext] = None
        self.session_token: Optional[str] = None
        self.store: Optional[ReportStore] = None
        self.current_view = ViewName.LOGIN
        self.active_screen = None
        self.connection_icon = ft.Icon(ft.Icons.WIFI, size=18, color=ft.Colors.GREEN_400, tooltip="Conectado")

        # Configure page
        self.page.title = self.settings.app_name
        self.page.padding = 0
        self.page.spacing = 0
        self.page.theme_mode = ft.ThemeMode.LIGHT
        self.page.theme = ft.Theme(
            color_scheme_seed=ft.Colors.GREEN,
            use_material3=True,
        )
        self.page.on_close = lambda _: self.shutdown()

    def initialize(self):
        logger.info("Initializing Ciclus RD application...")
        self.navigate(ViewName.LOGIN)

    # ------------------------------------------------------------------
    # Session

    def login(self, user):
        self.auth_context = AuthContext.from_user(user)
        self.session_token = self.auth_context.to_token(self.settings)
        monitor = ConnectionMonitor(self.backend, on_status=self.set_connection_status)
        self.store = ReportStore(self.reports, self.auth_context, monitor=monitor, on_change=self.on_store_change)
        self.store.attach()
        self.navigate(ViewName.DASHBOARD)

    def logout(self):
        logger.info(f"User logged out: {self.auth_context.registration if self.auth_context else 'Unknown'}")
        self.release_session()
        self.navigate(ViewName.LOGIN)

    def release_session(self):
        if self.active_screen is not None and hasattr(self.active_screen, "dispose"):
            self.active_screen.dispose()
        self.active_screen = None
        if self.store:
            self.store.detach()
        self.store = None
        self.auth_context = None
        self.session_token = None

    def session_valid(self) -> bool:
        """The session token is unexpired, correctly signed and names the current user"""
        if self.auth_context is None or not self.session_token:
            return False
        restored = AuthContext.from_token(self.session_token, config=self.settings)
        return restored is not None and restored.user_id == self.auth_context.user_id

    def shutdown(self):
        self.release_session()

    # ------------------------------------------------------------------
    # Navigation

    def navigate(self, requested, editing=None):
        """Show the view the current role is allowed to open"""
        if self.auth_context is not None and not self.session_valid():
            logger.warning(f"Session expired for {self.auth_context.registration}")
            self.release_session()
            self.show_snackbar("Sessão expirada. Entre novamente.", error=True)
            requested, editing = ViewName.LOGIN, None

        role = self.auth_context.role if self.auth_context else None
        decision = resolve_view(role, requested, editing=editing is not None)
        if decision.redirected:
            logger.debug(f"Navigation to {requested} redirected to {decision.view.value}: {decision.reason}")

        if self.active_screen is not None and hasattr(self.active_screen, "dispose"):
            self.active_screen.dispose()

        self.current_view = decision.view
        self.active_screen = self._screen_for(decision.view, editing)
        self.page.views.clear()
        self.page.views.append(self.active_screen.build())
        self.page.update()

    def _screen_for(self, view: ViewName, editing):
        from ciclus_rd.frontend.views.admin import AdminView
        from ciclus_rd.frontend.views.analytics import AnalyticsView
        from ciclus_rd.frontend.views.dashboard import DashboardView
        from ciclus_rd.frontend.views.login import LoginView
        from ciclus_rd.frontend.views.report_form import ReportFormView

        if view == ViewName.LOGIN:
            return LoginView(self)
        if view == ViewName.REPORT_FORM:
            return ReportFormView(self, existing=editing)
        if view == ViewName.ANALYTICS:
            return AnalyticsView(self)
        if view == ViewName.ADMIN:
            return AdminView(self)
        return DashboardView(self)

    def on_store_change(self):
        if self.active_screen is not None and hasattr(self.active_screen, "refresh"):
            self.active_screen.refresh()

    # ------------------------------------------------------------------
    # Shared chrome

    def set_connection_status(self, online: bool):
        self.connection_icon.icon = ft.Icons.WIFI if online else ft.Icons.WIFI_OFF
        self.connection_icon.color = ft.Colors.GREEN_400 if online else ft.Colors.GREY_400
        self.connection_icon.tooltip = "Conectado" if online else "Sem conexão"
        self.page.update()

    def build_header(self) -> ft.Container:
        auth = self.auth_context
        return ft.Container(
            content=ft.Row(
                controls=[
                    ft.Row([
                        ft.Container(
                            content=ft.Text("C", size=18, weight=ft.FontWeight.BOLD, color=ft.Colors.WHITE),
                            bgcolor=ft.Colors.GREEN_600,
                            width=34,
                            height=34,
                            border_radius=8,
                            alignment=ft.Alignment(0, 0),
                            on_click=lambda _: self.navigate(ViewName.DASHBOARD),
                        ),
                        ft.Column([
                            ft.Text("Ciclus", size=18, weight=ft.FontWeight.BOLD),
                            ft.Text("DIGITAL RD", size=10, color=ft.Colors.GREY_500),
                        ], spacing=0),
                    ], spacing=10),
                    ft.Row([
                        self.connection_icon,
                        ft.Column([
                            ft.Text(auth.name, size=13, weight=ft.FontWeight.W_500),
                            ft.Text(auth.role.value.upper(), size=11, color=ft.Colors.GREY_500),
                        ], spacing=0, horizontal_alignment=ft.CrossAxisAlignment.END),
                        ft.IconButton(icon=ft.Icons.LOGOUT, tooltip="Sair", on_click=lambda _: self.logout()),
                    ], spacing=12),
                ],
                alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
            ),
            padding=ft.Padding.symmetric(horizontal=20, vertical=10),
            bgcolor=ft.Colors.WHITE,
            border=ft.Border.only(bottom=ft.BorderSide(1, ft.Colors.GREY_300)),
        )

    def build_nav(self) -> ft.Row:
        buttons = []
        for view in allowed_views(self.auth_context.role):
            icon, label = NAV_ITEMS[view]
            active = view == self.current_view
            buttons.append(ft.Button(
                content=ft.Row([ft.Icon(icon, size=16), ft.Text(label, weight=ft.FontWeight.BOLD)], spacing=6),
                bgcolor=ft.Colors.GREY_800 if active else ft.Colors.WHITE,
                color=ft.Colors.WHITE if active else ft.Colors.GREY_700,
                on_click=lambda _, v=view: self.navigate(v),
            ))
        return ft.Row(buttons, spacing=8, scroll=ft.ScrollMode.AUTO)

    def build_page(self, route: str, body: ft.Control) -> ft.View:
        """Header + nav tabs around a screen body"""
        return ft.View(
            route=route,
            bgcolor=ft.Colors.GREY_50,
            padding=0,
            controls=[
                self.build_header(),
                ft.Container(
                    content=ft.Column([self.build_nav(), body], spacing=16, expand=True, scroll=ft.ScrollMode.AUTO),
                    padding=20,
                    expand=True,
                ),
            ],
        )

    # ------------------------------------------------------------------
    # Feedback

    def show_snackbar(self, message: str, error: bool = False):
        """Show snackbar notification"""
        self.page.show_dialog(ft.SnackBar(
            content=ft.Text(message),
            bgcolor=ft.Colors.RED_900 if error else ft.Colors.GREEN_900,
        ))

    def confirm(self, title: str, message: str, on_confirm, confirm_label: str = "Confirmar"):
        def close(_):
            self.page.pop_dialog()

        def accept(_):
            self.page.pop_dialog()
            on_confirm()

        self.page.show_dialog(ft.AlertDialog(
            modal=True,
            title=ft.Text(title),
            content=ft.Text(message),
            actions=[
                ft.TextButton("Cancelar", on_click=close),
                ft.Button(confirm_label, on_click=accept),
            ],
        ))
