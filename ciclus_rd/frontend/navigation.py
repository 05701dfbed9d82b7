"""
Ciclus RD - Role-gated navigation
Maps (role, requested view) to the view actually shown, independent of rendering
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from ciclus_rd.shared.enums import UserRole


class ViewName(str, Enum):
    LOGIN = "/login"
    DASHBOARD = "/dashboard"
    REPORT_FORM = "/rd"
    ANALYTICS = "/analytics"
    ADMIN = "/admin"


class AdminTab(str, Enum):
    EMPLOYEES = "employees"
    USERS = "users"


class ViewDecision(BaseModel):
    view: ViewName
    redirected: bool = False
    reason: str = ""


VIEW_ROLES = {
    ViewName.DASHBOARD: (UserRole.CCO, UserRole.SUPERVISOR, UserRole.ENCARREGADO),
    ViewName.ANALYTICS: (UserRole.CCO,),
    ViewName.ADMIN: (UserRole.CCO, UserRole.SUPERVISOR),
}

# CCO reviews and edits but never creates reports
CREATE_ROLES = (UserRole.SUPERVISOR, UserRole.ENCARREGADO)

ADMIN_TAB_ROLES = {
    AdminTab.EMPLOYEES: (UserRole.CCO, UserRole.SUPERVISOR),
    AdminTab.USERS: (UserRole.CCO,),
}


def resolve_view(role: Optional[UserRole], requested, editing: bool = False) -> ViewDecision:
    """
    Decide which view to show. Anonymous users always land on login; a view
    the role may not open redirects to the dashboard.
    """
    try:
        requested = ViewName(requested)
    except ValueError:
        requested = ViewName.DASHBOARD

    if role is None:
        return ViewDecision(view=ViewName.LOGIN, redirected=requested != ViewName.LOGIN, reason="Sessão necessária")

    if requested == ViewName.LOGIN:
        return ViewDecision(view=ViewName.DASHBOARD, redirected=True, reason="Sessão já iniciada")

    if requested == ViewName.REPORT_FORM:
        if editing or role in CREATE_ROLES:
            return ViewDecision(view=requested)
        return ViewDecision(view=ViewName.DASHBOARD, redirected=True, reason="Perfil não cria RDs")

    if role in VIEW_ROLES[requested]:
        return ViewDecision(view=requested)
    return ViewDecision(view=ViewName.DASHBOARD, redirected=True, reason="Acesso restrito")


def allowed_views(role: UserRole) -> List[ViewName]:
    """Navigation tabs shown to a role"""
    return [view for view, roles in VIEW_ROLES.items() if role in roles]


def can_create_report(role: UserRole) -> bool:
    return role in CREATE_ROLES


def resolve_admin_tab(role: UserRole, requested) -> AdminTab:
    try:
        requested = AdminTab(requested)
    except ValueError:
        requested = AdminTab.EMPLOYEES
    return requested if role in ADMIN_TAB_ROLES[requested] else AdminTab.EMPLOYEES
