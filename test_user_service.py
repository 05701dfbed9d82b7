from unittest import mock

import pytest
from sqlalchemy.exc import OperationalError

from create_admin import create_admin
from ciclus_rd.backend.domain import User
from ciclus_rd.backend.models.user import Profile
from ciclus_rd.backend.services import UserService
from ciclus_rd.shared.enums import RESERVED_ADMIN_REGISTRATION, UserRole
from ciclus_rd.shared.errors import PrivilegedOperationError, ValidationError


@pytest.fixture
def users(backend):
    return UserService(backend)


def test_create_and_authenticate_by_registration(users, admin):
    created = users.create(admin, "Carlos", "1001", "segredo1", UserRole.SUPERVISOR, "S10")
    assert created.role == UserRole.SUPERVISOR
    assert created.team == "S10"

    user = users.authenticate("1001", "segredo1")
    assert user is not None and user.id == created.id
    assert users.authenticate("1001@ciclus.com", "segredo1").id == created.id
    assert users.authenticate("1001", "errada") is None
    assert users.authenticate("9999", "segredo1") is None


def test_create_validates_input(users, admin, supervisor):
    with pytest.raises(ValidationError):
        users.create(admin, " ", "1001", "segredo1", UserRole.ENCARREGADO)
    with pytest.raises(ValidationError):
        users.create(admin, "Ana", "1002", "123", UserRole.ENCARREGADO)
    with pytest.raises(PermissionError):
        users.create(supervisor, "Ana", "1002", "segredo1", UserRole.ENCARREGADO)


def test_create_existing_registration_updates_profile_but_keeps_password(users, admin):
    first = users.create(admin, "Ana", "1002", "segredo1", UserRole.ENCARREGADO)
    second = users.create(admin, "Ana Maria", "1002", "segredo2", UserRole.SUPERVISOR)
    assert second.id == first.id
    assert second.role == UserRole.SUPERVISOR
    assert [u.name for u in users.list()] == ["Ana Maria"]
    assert users.authenticate("1002", "segredo1") is not None
    assert users.authenticate("1002", "segredo2") is None


def test_reserved_admin_role_cannot_change(users, admin):
    master = users.create(admin, "Administrador", RESERVED_ADMIN_REGISTRATION, "segredo1", UserRole.CCO)
    with pytest.raises(ValidationError):
        users.create(admin, "Outro", RESERVED_ADMIN_REGISTRATION, "segredo2", UserRole.ENCARREGADO)
    with pytest.raises(ValidationError):
        users.save(admin, master.model_copy(update={"role": UserRole.SUPERVISOR}))

    renamed = users.create(admin, "Administrador Mestre", RESERVED_ADMIN_REGISTRATION, "segredo2", UserRole.CCO)
    assert renamed.role == UserRole.CCO
    assert users.get(master.id).role == UserRole.CCO
    assert users.authenticate(RESERVED_ADMIN_REGISTRATION, "segredo1").id == master.id


def test_reset_password(users, admin, foreman):
    created = users.create(admin, "Ana", "1002", "segredo1", UserRole.ENCARREGADO)
    with pytest.raises(ValidationError):
        users.reset_password(admin, created.id, "123")
    with pytest.raises(PermissionError):
        users.reset_password(foreman, created.id, "segredo2")

    users.reset_password(admin, created.id, "segredo2")
    assert users.authenticate("1002", "segredo1") is None
    assert users.authenticate("1002", "segredo2").id == created.id


def test_create_admin_script_resets_existing_password(backend, users):
    first = create_admin(backend, "segredo1")
    assert first.registration == RESERVED_ADMIN_REGISTRATION
    assert first.role == UserRole.CCO

    again = create_admin(backend, "segredo2", name="Ignorado")
    assert again.id == first.id
    assert again.name == first.name
    assert len(users.list()) == 1
    assert users.authenticate(RESERVED_ADMIN_REGISTRATION, "segredo2").id == first.id
    assert users.authenticate(RESERVED_ADMIN_REGISTRATION, "segredo1") is None


def test_update_and_clear_team(users, admin):
    created = users.create(admin, "Ana", "1002", "segredo1", UserRole.ENCARREGADO, "S01")
    updated = users.save(admin, created.model_copy(update={"name": "Ana Souza", "team": None}))
    assert updated.name == "Ana Souza"
    assert updated.team is None
    assert users.get(created.id).team is None


def test_save_without_id_creates(users, admin):
    saved = users.save(admin, User(name="Novo", registration="3003", role=UserRole.ENCARREGADO), password="segredo1")
    assert saved.id
    assert users.supervisors() == []


def test_delete_user(users, admin):
    created = users.create(admin, "Ana", "1002", "segredo1", UserRole.ENCARREGADO)
    users.delete_user(admin, created.id)
    assert users.get(created.id) is None


def test_delete_user_requires_privileged_function(backend, users, admin):
    created = users.create(admin, "Ana", "1002", "segredo1", UserRole.ENCARREGADO)
    backend.settings.admin_functions_enabled = False
    with pytest.raises(PrivilegedOperationError):
        users.delete_user(admin, created.id)
    assert users.get(created.id) is not None


def test_delete_user_protects_self_and_reserved_admin(users, admin):
    reserved = users.create(admin, "Administrador Mestre", "admin", "segredo1", UserRole.CCO)
    with pytest.raises(ValidationError):
        users.delete_user(admin, reserved.id)
    with pytest.raises(ValidationError):
        users.delete_user(admin, admin.user_id)


def test_delete_user_backend_failure_is_privileged_error(backend, users, admin):
    created = users.create(admin, "Ana", "1002", "segredo1", UserRole.ENCARREGADO)
    with mock.patch.object(backend, "SessionLocal", side_effect=OperationalError("DELETE", {}, Exception("down"))):
        with pytest.raises(PrivilegedOperationError):
            users.delete_user(admin, created.id)


def test_only_admin_may_delete_users(users, admin, supervisor):
    created = users.create(admin, "Ana", "1002", "segredo1", UserRole.ENCARREGADO)
    with pytest.raises(PermissionError):
        users.delete_user(supervisor, created.id)


def test_passwords_are_hashed(backend, users, admin):
    users.create(admin, "Ana", "1002", "segredo1", UserRole.ENCARREGADO)
    with backend.session() as db:
        profile = db.query(Profile).one()
        assert profile.password_hash != "segredo1"
        assert profile.email == "1002@ciclus.com"
