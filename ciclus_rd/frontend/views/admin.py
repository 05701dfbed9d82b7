"""
Ciclus RD - Admin View
Employee roster and login account management
"""

from typing import Optional

import flet as ft
from loguru import logger

from ciclus_rd.backend.domain import Employee, User
from ciclus_rd.frontend.navigation import ADMIN_TAB_ROLES, AdminTab, ViewName, resolve_admin_tab
from ciclus_rd.shared.enums import RESERVED_ADMIN_REGISTRATION, TEAM_NAMES, Permission, UserRole
from ciclus_rd.shared.errors import BackendWriteError, PrivilegedOperationError, ValidationError

NO_VALUE = "-"


def _dropdown_value(value: Optional[str]) -> Optional[str]:
    return None if value in (None, "", NO_VALUE) else value


class AdminView:
    """Employees (CCO, Supervisor) and users (CCO) management"""

    def __init__(self, app):
        self.app = app
        self.auth = app.auth_context
        self.selected_tab = AdminTab.EMPLOYEES
        self.employees = []
        self.users = []
        self.tab_row = ft.Row(spacing=10, wrap=True)
        self.content = ft.Column(spacing=10)
        self._subscriptions = [
            app.employees.subscribe(self.on_data_change),
            app.backend.feed.subscribe(app.users.TOPIC, self.on_data_change),
        ]

    def build(self) -> ft.View:
        body = ft.Column(
            controls=[
                ft.Column([
                    ft.Text("Gestão", size=24, weight=ft.FontWeight.BOLD),
                    ft.Text("Colaboradores e acessos ao sistema.", size=13, color=ft.Colors.GREY_600),
                ], spacing=2),
                self.tab_row,
                ft.Divider(),
                self.content,
            ],
            spacing=12,
        )
        self.load()
        self.render()
        return self.app.build_page(ViewName.ADMIN.value, body)

    def dispose(self):
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

    # ------------------------------------------------------------------

    def load(self):
        self.employees = self.app.employees.list()
        self.users = self.app.users.list()

    def on_data_change(self):
        self.load()
        self.refresh()

    def refresh(self):
        self.render()
        self.app.page.update()

    def switch_tab(self, tab: AdminTab):
        self.selected_tab = resolve_admin_tab(self.auth.role, tab)
        self.refresh()

    def render(self):
        labels = {AdminTab.EMPLOYEES: "Colaboradores", AdminTab.USERS: "Usuários"}
        self.tab_row.controls = [
            ft.Button(
                content=ft.Text(labels[tab], weight=ft.FontWeight.BOLD),
                bgcolor=ft.Colors.GREY_800 if tab == self.selected_tab else ft.Colors.WHITE,
                color=ft.Colors.WHITE if tab == self.selected_tab else ft.Colors.GREY_700,
                on_click=lambda _, t=tab: self.switch_tab(t),
            )
            for tab in AdminTab
            if self.auth.role in ADMIN_TAB_ROLES[tab]
        ]
        if self.selected_tab == AdminTab.USERS:
            self.content.controls = self.build_users_tab()
        else:
            self.content.controls = self.build_employees_tab()

    # ------------------------------------------------------------------
    # Employees

    def user_name(self, user_id: Optional[str]) -> str:
        for user in self.users:
            if user.id == user_id:
                return user.name
        return ""

    def build_employees_tab(self):
        toolbar = ft.Row([
            ft.Button(
                content=ft.Row([ft.Icon(ft.Icons.ADD_CIRCLE), ft.Text("Novo Colaborador")], spacing=6),
                on_click=lambda _: self.edit_employee(None),
                disabled=not self.auth.has_permission(Permission.EMPLOYEE_CREATE),
            ),
            ft.Text(f"Total: {len(self.employees)}", size=12, color=ft.Colors.GREY),
        ], alignment=ft.MainAxisAlignment.SPACE_BETWEEN)

        if not self.employees:
            return [toolbar, ft.Column([
                ft.Icon(ft.Icons.PEOPLE_OUTLINE, size=80, color=ft.Colors.GREY_400),
                ft.Text("Nenhum colaborador cadastrado", size=16, color=ft.Colors.GREY_500),
            ], horizontal_alignment=ft.CrossAxisAlignment.CENTER, spacing=20)]

        cards = []
        for employee in self.employees:
            details = [employee.role, f"Mat: {employee.registration}"]
            if employee.team:
                details.append(employee.team)
            foreman = self.user_name(employee.foreman_id)
            if foreman:
                details.append(f"Enc: {foreman}")
            cards.append(ft.Card(content=ft.Container(
                content=ft.ListTile(
                    leading=ft.Icon(ft.Icons.PERSON, color=ft.Colors.GREEN_700),
                    title=ft.Text(employee.name, weight=ft.FontWeight.BOLD),
                    subtitle=ft.Text(" • ".join(details)),
                    trailing=ft.Row([
                        ft.IconButton(icon=ft.Icons.EDIT, tooltip="Editar",
                                      on_click=lambda _, e=employee: self.edit_employee(e)),
                        ft.IconButton(icon=ft.Icons.DELETE_OUTLINE, tooltip="Excluir",
                                      on_click=lambda _, e=employee: self.delete_employee(e)),
                    ], spacing=0, tight=True),
                ),
                padding=5,
            )))
        return [toolbar, ft.Column(cards, spacing=6)]

    def edit_employee(self, employee: Optional[Employee]):
        foremen = [user for user in self.users if user.role == UserRole.ENCARREGADO]
        name_field = ft.TextField(label="Nome", value=employee.name if employee else "")
        registration_field = ft.TextField(label="Matrícula", value=employee.registration if employee else "")
        role_dropdown = ft.Dropdown(
            label="Função",
            value=employee.role if employee else None,
            options=[ft.DropdownOption(key=role, text=role) for role in self.app.employees.existing_roles()],
            editable=True,
        )
        foreman_dropdown = ft.Dropdown(
            label="Encarregado",
            value=(employee.foreman_id if employee and employee.foreman_id else NO_VALUE),
            options=[ft.DropdownOption(key=NO_VALUE, text="Nenhum")]
            + [ft.DropdownOption(key=user.id, text=user.name) for user in foremen],
        )
        team_dropdown = ft.Dropdown(
            label="Equipe",
            value=(employee.team if employee and employee.team else NO_VALUE),
            options=[ft.DropdownOption(key=NO_VALUE, text="Nenhuma")]
            + [ft.DropdownOption(key=team, text=team) for team in TEAM_NAMES],
        )

        def save(_):
            draft = Employee(
                id=employee.id if employee else "",
                name=name_field.value or "",
                registration=registration_field.value or "",
                role=role_dropdown.value or "",
                supervisor_id=employee.supervisor_id if employee else None,
                foreman_id=_dropdown_value(foreman_dropdown.value),
                team=_dropdown_value(team_dropdown.value),
            )
            try:
                self.app.employees.save(self.auth, draft)
            except (ValidationError, PermissionError, BackendWriteError) as e:
                self.app.show_snackbar(str(e), error=True)
                return
            self.app.page.pop_dialog()
            self.app.show_snackbar("Colaborador salvo com sucesso!")

        self.app.page.show_dialog(ft.AlertDialog(
            modal=True,
            title=ft.Text("Editar Colaborador" if employee else "Novo Colaborador"),
            content=ft.Column(
                [name_field, registration_field, role_dropdown, foreman_dropdown, team_dropdown],
                tight=True,
                spacing=10,
                width=400,
            ),
            actions=[
                ft.TextButton("Cancelar", on_click=lambda _: self.app.page.pop_dialog()),
                ft.Button("Salvar", on_click=save),
            ],
        ))

    def delete_employee(self, employee: Employee):
        def do_delete():
            try:
                self.app.employees.delete(self.auth, employee.id)
            except (PermissionError, BackendWriteError) as e:
                self.app.show_snackbar(str(e), error=True)
                return
            self.app.show_snackbar("Colaborador excluído")

        self.app.confirm(
            "Excluir colaborador",
            f"Deseja excluir {employee.name}?",
            do_delete,
            confirm_label="Excluir",
        )

    # ------------------------------------------------------------------
    # Users

    def build_users_tab(self):
        toolbar = ft.Row([
            ft.Button(
                content=ft.Row([ft.Icon(ft.Icons.PERSON_ADD), ft.Text("Novo Usuário")], spacing=6),
                on_click=lambda _: self.edit_user(None),
            ),
            ft.Text(f"Total: {len(self.users)}", size=12, color=ft.Colors.GREY),
        ], alignment=ft.MainAxisAlignment.SPACE_BETWEEN)

        cards = []
        for user in self.users:
            protected = user.id == self.auth.user_id or user.registration == RESERVED_ADMIN_REGISTRATION
            subtitle = f"{user.role.value} • Mat: {user.registration}"
            if user.team:
                subtitle += f" • {user.team}"
            cards.append(ft.Card(content=ft.Container(
                content=ft.ListTile(
                    leading=ft.Icon(ft.Icons.ADMIN_PANEL_SETTINGS if user.role == UserRole.CCO else ft.Icons.BADGE,
                                    color=ft.Colors.BLUE_700),
                    title=ft.Text(user.name, weight=ft.FontWeight.BOLD),
                    subtitle=ft.Text(subtitle),
                    trailing=ft.Row([
                        ft.IconButton(icon=ft.Icons.EDIT, tooltip="Editar",
                                      on_click=lambda _, u=user: self.edit_user(u)),
                        ft.IconButton(icon=ft.Icons.DELETE_OUTLINE, tooltip="Excluir", disabled=protected,
                                      on_click=lambda _, u=user: self.delete_user(u)),
                    ], spacing=0, tight=True),
                ),
                padding=5,
            )))
        return [toolbar, ft.Column(cards, spacing=6)]

    def edit_user(self, user: Optional[User]):
        name_field = ft.TextField(label="Nome", value=user.name if user else "")
        registration_field = ft.TextField(label="Matrícula (login)", value=user.registration if user else "",
                                          disabled=user is not None)
        password_field = ft.TextField(
            label="Senha" if user is None else "Nova senha (opcional)",
            password=True,
            can_reveal_password=True,
        )
        role_dropdown = ft.Dropdown(
            label="Perfil",
            value=(user.role.value if user else UserRole.ENCARREGADO.value),
            options=[ft.DropdownOption(key=role.value, text=role.value) for role in UserRole],
        )
        team_dropdown = ft.Dropdown(
            label="Equipe",
            value=(user.team if user and user.team else NO_VALUE),
            options=[ft.DropdownOption(key=NO_VALUE, text="Nenhuma")]
            + [ft.DropdownOption(key=team, text=team) for team in TEAM_NAMES],
        )

        def save(_):
            try:
                draft = User(
                    id=user.id if user else "",
                    name=name_field.value or "",
                    registration=registration_field.value or "",
                    role=UserRole(role_dropdown.value),
                    team=_dropdown_value(team_dropdown.value),
                )
                self.app.users.save(self.auth, draft, password=password_field.value or None)
            except (ValidationError, PermissionError, BackendWriteError, ValueError) as e:
                self.app.show_snackbar(str(e), error=True)
                return
            self.app.page.pop_dialog()
            self.app.show_snackbar("Usuário salvo com sucesso!")

        self.app.page.show_dialog(ft.AlertDialog(
            modal=True,
            title=ft.Text("Editar Usuário" if user else "Novo Usuário"),
            content=ft.Column(
                [name_field, registration_field, password_field, role_dropdown, team_dropdown],
                tight=True,
                spacing=10,
                width=400,
            ),
            actions=[
                ft.TextButton("Cancelar", on_click=lambda _: self.app.page.pop_dialog()),
                ft.Button("Salvar", on_click=save),
            ],
        ))

    def delete_user(self, user: User):
        def do_delete():
            try:
                self.app.users.delete_user(self.auth, user.id)
            except PrivilegedOperationError as e:
                logger.error(f"Privileged delete of {user.registration} refused: {e}")
                self.app.show_snackbar(f"Operação administrativa indisponível: {e}", error=True)
                return
            except (ValidationError, PermissionError, ValueError) as e:
                self.app.show_snackbar(str(e), error=True)
                return
            self.app.show_snackbar("Usuário excluído")

        self.app.confirm(
            "Excluir usuário",
            f"Deseja excluir o acesso de {user.name}? Esta ação não pode ser desfeita.",
            do_delete,
            confirm_label="Excluir",
        )
