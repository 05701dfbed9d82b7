"""
Ciclus RD - User Service
Login, profile management with RBAC, and the privileged delete-user operation
"""

from datetime import datetime
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from ciclus_rd.backend.domain import User
from ciclus_rd.backend.models.audit import AuditLog
from ciclus_rd.backend.models.user import Profile
from ciclus_rd.shared.auth import AuthContext, PasswordHasher, require_permission
from ciclus_rd.shared.enums import Permission, RESERVED_ADMIN_REGISTRATION, UserRole
from ciclus_rd.shared.errors import BackendWriteError, PrivilegedOperationError, ValidationError
from ciclus_rd.shared.utils import registration_to_email

MIN_PASSWORD_LENGTH = 6


def _to_user(profile: Profile) -> User:
    return User(
        id=profile.id,
        name=profile.name,
        registration=profile.registration,
        role=profile.role,
        team=profile.team,
    )


def _check_reserved_role(profile: Profile, role: UserRole):
    if profile.registration == RESERVED_ADMIN_REGISTRATION and role != profile.role:
        raise ValidationError("O perfil do usuário administrador principal não pode ser alterado")


class UserService:
    """User management service"""

    TOPIC = Profile.__tablename__

    def __init__(self, backend):
        self.backend = backend
        self.settings = backend.settings

    def authenticate(self, login: str, password: str) -> Optional[User]:
        """Login by registration (or e-mail) and password (no permission check)"""
        email = registration_to_email(login, self.settings.login_email_domain)
        try:
            with self.backend.session() as db:
                profile = db.query(Profile).filter(Profile.email == email).first()
                if not profile:
                    logger.warning(f"Login attempt with unknown registration: {login}")
                    return None

                if not PasswordHasher.verify_password(password, profile.password_hash):
                    logger.warning(f"Failed login attempt for user: {profile.registration}")
                    return None

                profile.last_login = datetime.now()
                user = _to_user(profile)
        except SQLAlchemyError as e:
            logger.error(f"Login failed for {login}: {e}")
            return None

        logger.info(f"User logged in: {user.registration} ({user.role.value})")
        return user

    def list(self) -> List[User]:
        """All profiles by name; empty on read failure"""
        try:
            with self.backend.session() as db:
                return [_to_user(p) for p in db.query(Profile).order_by(Profile.name).all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to load users: {e}")
            return []

    def supervisors(self) -> List[User]:
        return [user for user in self.list() if user.role == UserRole.SUPERVISOR]

    def by_registration(self, registration: str) -> Optional[User]:
        try:
            with self.backend.session() as db:
                profile = db.query(Profile).filter(Profile.registration == registration).first()
                return _to_user(profile) if profile else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load user {registration}: {e}")
            return None

    def get(self, user_id: str) -> Optional[User]:
        try:
            with self.backend.session() as db:
                profile = db.get(Profile, user_id)
                return _to_user(profile) if profile else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load user {user_id}: {e}")
            return None

    @require_permission(Permission.USER_CREATE)
    def create(
        self,
        auth: AuthContext,
        name: str,
        registration: str,
        password: str,
        role: UserRole,
        team: Optional[str] = None,
    ) -> User:
        """
        Create a login account. An already registered login is not an error:
        its name, role and team are brought up to date instead. The password of
        an existing account is never changed here (see reset_password).
        """
        name = name.strip()
        registration = registration.strip()
        if not name or not registration:
            raise ValidationError("Nome e matrícula são obrigatórios")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres")
        if not auth.can_manage_user(role):
            raise PermissionError(f"Você não pode criar usuários com o perfil: {role.value}")

        email = registration_to_email(registration, self.settings.login_email_domain)

        try:
            with self.backend.session() as db:
                profile = db.query(Profile).filter(
                    (Profile.email == email) | (Profile.registration == registration)
                ).first()

                if profile:
                    _check_reserved_role(profile, role)
                    logger.warning(f"User already exists, updating profile (password kept): {registration}")
                    old_values = profile.to_dict()
                    action = "update_user"
                else:
                    profile = Profile(email=email, registration=registration)
                    profile.password_hash = PasswordHasher.hash_password(password)
                    db.add(profile)
                    old_values = None
                    action = "create_user"

                profile.name = name
                profile.role = role
                profile.team = team or None
                db.flush()

                db.add(AuditLog.record(
                    auth, action, "user", profile.id,
                    f"Usuário salvo: {registration} ({role.value})",
                    old_values=old_values, new_values=profile.to_dict(),
                ))
                user = _to_user(profile)
        except SQLAlchemyError as e:
            raise BackendWriteError(f"Falha ao criar usuário: {e}") from e

        logger.info(f"User {auth.name} created user: {registration} (role={role.value})")
        return user

    @require_permission(Permission.USER_EDIT)
    def update(self, auth: AuthContext, user: User, password: Optional[str] = None) -> User:
        """Update profile fields (name, role, team); an empty team clears it"""
        if not user.name.strip():
            raise ValidationError("Nome é obrigatório")
        if password and len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres")

        try:
            with self.backend.session() as db:
                profile = db.get(Profile, user.id)
                if not profile:
                    raise ValueError(f"Usuário não encontrado: {user.id}")

                _check_reserved_role(profile, user.role)
                old_values = profile.to_dict()
                profile.name = user.name.strip()
                profile.role = user.role
                profile.team = user.team or None
                if password:
                    profile.password_hash = PasswordHasher.hash_password(password)

                db.add(AuditLog.record(
                    auth, "update_user", "user", profile.id,
                    f"Usuário atualizado: {profile.registration}",
                    old_values=old_values, new_values=profile.to_dict(),
                ))
                updated = _to_user(profile)
        except SQLAlchemyError as e:
            raise BackendWriteError(f"Falha ao atualizar usuário: {e}") from e

        logger.info(f"User {auth.name} updated user: {updated.registration}")
        return updated

    @require_permission(Permission.USER_EDIT)
    def reset_password(self, auth: AuthContext, user_id: str, password: str) -> None:
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres")

        try:
            with self.backend.session() as db:
                profile = db.get(Profile, user_id)
                if not profile:
                    raise ValueError(f"Usuário não encontrado: {user_id}")
                profile.password_hash = PasswordHasher.hash_password(password)
                db.add(AuditLog.record(
                    auth, "reset_password", "user", profile.id,
                    f"Senha redefinida: {profile.registration}",
                ))
                registration = profile.registration
        except SQLAlchemyError as e:
            raise BackendWriteError(f"Falha ao redefinir senha: {e}") from e

        logger.warning(f"User {auth.name} reset the password of: {registration}")

    def save(self, auth: AuthContext, user: User, password: Optional[str] = None) -> User:
        """Create when the user has no id yet, otherwise update the profile"""
        if user.id:
            return self.update(auth, user, password=password)
        return self.create(auth, user.name, user.registration, password or "", user.role, user.team)

    @require_permission(Permission.USER_DELETE)
    def delete_user(self, auth: AuthContext, user_id: str) -> None:
        """
        Remove a login account. Needs the elevated backend function to be
        enabled; the reserved admin account and the caller's own account are
        protected.
        """
        if not self.settings.admin_functions_enabled:
            raise PrivilegedOperationError(
                "Exclusão de usuários não está habilitada neste servidor (função administrativa não configurada)"
            )
        if user_id == auth.user_id:
            raise ValidationError("Você não pode excluir a si mesmo")

        try:
            with self.backend.session() as db:
                profile = db.get(Profile, user_id)
                if not profile:
                    raise ValueError(f"Usuário não encontrado: {user_id}")
                if profile.registration == RESERVED_ADMIN_REGISTRATION:
                    raise ValidationError("O usuário administrador principal não pode ser excluído")

                db.add(AuditLog.record(
                    auth, "delete_user", "user", profile.id,
                    f"Usuário excluído: {profile.registration}", old_values=profile.to_dict(),
                ))
                db.delete(profile)
                registration = profile.registration
        except SQLAlchemyError as e:
            raise PrivilegedOperationError(f"Falha na operação administrativa de exclusão: {e}") from e

        logger.warning(f"User {auth.name} deleted user: {registration}")
