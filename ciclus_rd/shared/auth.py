"""
Ciclus RD - Authentication & Authorization
JWT-based session tokens with role-based access control
"""

import jwt
import bcrypt
from datetime import datetime, timedelta, timezone
from typing import Optional, List
from functools import wraps

from ciclus_rd.shared.config import settings, Settings
from ciclus_rd.shared.enums import UserRole, Permission, ROLE_PERMISSIONS


class AuthToken:
    """JWT token management"""

    @staticmethod
    def create_token(
        user_id: str,
        name: str,
        registration: str,
        role: UserRole,
        team: Optional[str] = None,
        config: Settings = settings,
    ) -> str:
        """Create JWT token for user"""
        now = datetime.now(timezone.utc)
        payload = {
            "user_id": user_id,
            "name": name,
            "registration": registration,
            "role": role.value,
            "team": team,
            "exp": now + timedelta(hours=config.jwt_expiration_hours),
            "iat": now,
        }
        return jwt.encode(payload, config.secret_key, algorithm=config.jwt_algorithm)

    @staticmethod
    def decode_token(token: str, config: Settings = settings) -> Optional[dict]:
        """Decode and validate JWT token"""
        try:
            return jwt.decode(token, config.secret_key, algorithms=[config.jwt_algorithm])
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None


class PasswordHasher:
    """Password hashing with bcrypt"""

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash password using bcrypt"""
        salt = bcrypt.gensalt()
        return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

    @staticmethod
    def verify_password(password: str, hashed: str) -> bool:
        """Verify password against hash"""
        return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))


class AuthContext:
    """Current user authentication context"""

    def __init__(self, user_id: str, name: str, registration: str, role: UserRole, team: Optional[str] = None):
        self.user_id = user_id
        self.name = name
        self.registration = registration
        self.role = role
        self.team = team
        self._permissions = ROLE_PERMISSIONS.get(role, [])

    def __repr__(self):
        return f"<AuthContext(user_id='{self.user_id}', name='{self.name}', role='{self.role.value}')>"

    @property
    def is_admin(self) -> bool:
        """Check if user is CCO"""
        return self.role == UserRole.CCO

    @property
    def is_supervisor(self) -> bool:
        return self.role == UserRole.SUPERVISOR

    @property
    def is_foreman(self) -> bool:
        return self.role == UserRole.ENCARREGADO

    def has_permission(self, permission: Permission) -> bool:
        """Check if user has specific permission"""
        return permission in self._permissions

    def has_any_permission(self, permissions: List[Permission]) -> bool:
        """Check if user has any of the given permissions"""
        return any(p in self._permissions for p in permissions)

    def has_all_permissions(self, permissions: List[Permission]) -> bool:
        """Check if user has all given permissions"""
        return all(p in self._permissions for p in permissions)

    def can_manage_user(self, target_role: UserRole) -> bool:
        """Check if user can manage another user with target role"""
        return self.role.can_access_role(target_role)

    def to_token(self, config: Settings = settings) -> str:
        return AuthToken.create_token(
            self.user_id, self.name, self.registration, self.role, self.team, config=config
        )

    @classmethod
    def from_user(cls, user) -> "AuthContext":
        """Create auth context from a domain User"""
        return cls(
            user_id=user.id,
            name=user.name,
            registration=user.registration,
            role=user.role,
            team=user.team,
        )

    @classmethod
    def from_token(cls, token: str, config: Settings = settings) -> Optional["AuthContext"]:
        """Create auth context from JWT token"""
        payload = AuthToken.decode_token(token, config=config)
        if not payload:
            return None

        return cls(
            user_id=payload["user_id"],
            name=payload["name"],
            registration=payload["registration"],
            role=UserRole(payload["role"]),
            team=payload.get("team"),
        )


def require_permission(*permissions: Permission):
    """Decorator to require specific permissions (auth is the first argument after self)"""
    def decorator(func):
        @wraps(func)
        def wrapper(self, auth: AuthContext, *args, **kwargs):
            if not auth.has_all_permissions(list(permissions)):
                raise PermissionError(
                    f"Você não tem permissão para esta operação. Necessário: {[p.value for p in permissions]}"
                )
            return func(self, auth, *args, **kwargs)
        return wrapper
    return decorator

