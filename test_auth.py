from ciclus_rd.shared.auth import AuthContext, AuthToken, PasswordHasher
from ciclus_rd.shared.config import Settings
from ciclus_rd.shared.enums import Permission, UserRole


def test_password_hashing():
    hashed = PasswordHasher.hash_password("segredo1")
    assert hashed != "segredo1"
    assert PasswordHasher.verify_password("segredo1", hashed)
    assert not PasswordHasher.verify_password("errada", hashed)


def test_token_round_trip(supervisor):
    token = supervisor.to_token()
    restored = AuthContext.from_token(token)
    assert restored.user_id == supervisor.user_id
    assert restored.role == UserRole.SUPERVISOR
    assert restored.team == "S10"


def test_token_signed_with_other_secret_is_rejected(supervisor):
    token = supervisor.to_token(Settings(secret_key="outra-chave"))
    assert AuthToken.decode_token(token) is None
    assert AuthContext.from_token("lixo") is None


def test_role_permissions(admin, supervisor, foreman):
    assert admin.has_permission(Permission.USER_DELETE)
    assert not admin.has_permission(Permission.REPORT_CREATE)
    assert supervisor.has_all_permissions([Permission.REPORT_REVIEW, Permission.EMPLOYEE_CREATE])
    assert not supervisor.has_permission(Permission.ANALYTICS_VIEW)
    assert foreman.has_any_permission([Permission.REPORT_EXPORT, Permission.REPORT_CREATE])
    assert not foreman.has_permission(Permission.REPORT_EXPORT)
    assert admin.can_manage_user(UserRole.SUPERVISOR)
    assert not supervisor.can_manage_user(UserRole.CCO)


def test_expired_token_is_rejected(supervisor):
    expired = Settings(jwt_expiration_hours=-1)
    token = supervisor.to_token(expired)
    assert AuthToken.decode_token(token, config=expired) is None
    assert AuthContext.from_token(token, config=expired) is None


def test_role_flags(admin, supervisor, foreman):
    assert admin.is_admin and not supervisor.is_admin
    assert supervisor.is_supervisor
    assert foreman.is_foreman and not supervisor.is_foreman
