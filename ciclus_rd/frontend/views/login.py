"""
Ciclus RD - Login View
Registration + password sign in
"""

import flet as ft
from loguru import logger


class LoginView:
    """Login screen"""

    def __init__(self, app):
        self.app = app
        self.registration_field = ft.TextField(
            label="Matrícula",
            prefix_icon=ft.Icons.BADGE,
            autofocus=True,
            on_submit=lambda _: self.do_login(),
        )
        self.password_field = ft.TextField(
            label="Senha",
            prefix_icon=ft.Icons.LOCK,
            password=True,
            can_reveal_password=True,
            on_submit=lambda _: self.do_login(),
        )
        self.login_button = ft.Button(
            "Entrar",
            icon=ft.Icons.LOGIN,
            on_click=lambda _: self.do_login(),
        )
        self.error_text = ft.Text(
            value="",
            color=ft.Colors.RED_400,
            size=14,
            visible=False,
        )

    def build(self) -> ft.View:
        return ft.View(
            route="/login",
            bgcolor=ft.Colors.GREY_100,
            controls=[
                ft.Container(
                    content=ft.Column(
                        controls=[
                            ft.Container(
                                content=ft.Text("C", size=40, weight=ft.FontWeight.BOLD, color=ft.Colors.WHITE),
                                bgcolor=ft.Colors.GREEN_600,
                                width=80,
                                height=80,
                                border_radius=16,
                                alignment=ft.Alignment(0, 0),
                            ),
                            ft.Text("Ciclus", size=32, weight=ft.FontWeight.BOLD),
                            ft.Text("Relatório Diário de Produção", size=14, color=ft.Colors.GREY_600),
                            ft.Divider(height=30, color=ft.Colors.TRANSPARENT),
                            ft.Card(
                                content=ft.Container(
                                    content=ft.Column(
                                        controls=[
                                            ft.Text("Acesso", size=24, weight=ft.FontWeight.W_500),
                                            ft.Divider(height=20, color=ft.Colors.TRANSPARENT),
                                            self.registration_field,
                                            self.password_field,
                                            self.error_text,
                                            ft.Divider(height=10, color=ft.Colors.TRANSPARENT),
                                            self.login_button,
                                        ],
                                        horizontal_alignment=ft.CrossAxisAlignment.STRETCH,
                                        spacing=15,
                                    ),
                                    padding=40,
                                    width=420,
                                ),
                            ),
                            ft.Divider(height=30, color=ft.Colors.TRANSPARENT),
                            ft.Text(f"{self.app.settings.app_name} v{self.app.settings.app_version}",
                                    size=12, color=ft.Colors.GREY_500),
                        ],
                        horizontal_alignment=ft.CrossAxisAlignment.CENTER,
                        spacing=10,
                    ),
                    alignment=ft.Alignment(0, 0),  # center
                    expand=True,
                ),
            ],
        )

    def do_login(self):
        registration = (self.registration_field.value or "").strip()
        password = self.password_field.value or ""

        if not registration or not password:
            self.show_error("Informe matrícula e senha")
            return

        self.login_button.disabled = True
        self.app.page.update()

        user = self.app.users.authenticate(registration, password)
        if not user:
            self.show_error("Matrícula ou senha inválida")
            self.login_button.disabled = False
            self.app.page.update()
            return

        logger.info(f"Session started for {user.registration} (role={user.role.value})")
        self.app.login(user)

    def show_error(self, message: str):
        self.error_text.value = message
        self.error_text.visible = True
        self.app.page.update()
