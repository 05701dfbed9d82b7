"""
Ciclus RD - User Profile Model
SQLAlchemy model for authentication and authorization
"""

import uuid

from sqlalchemy import Column, String, DateTime, Enum as SQLEnum
from sqlalchemy.sql import func

from ciclus_rd.backend.database import Base
from ciclus_rd.shared.enums import UserRole


class Profile(Base):
    """User profile keyed by the auth identity id"""

    __tablename__ = "profiles"

    # Primary Key
    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Authentication
    email = Column(String(120), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    # Profile
    name = Column(String(120), nullable=False)
    registration = Column(String(50), unique=True, nullable=False, index=True)

    # Authorization
    role = Column(SQLEnum(UserRole, values_callable=lambda roles: [r.value for r in roles]),
                  nullable=False, default=UserRole.ENCARREGADO)
    team = Column(String(20), nullable=True)

    # Status
    last_login = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Profile(id='{self.id}', registration='{self.registration}', role='{self.role}')>"

    def to_dict(self):
        """Convert to dictionary (without sensitive data)"""
        return {
            "id": self.id,
            "name": self.name,
            "registration": self.registration,
            "role": self.role.value,
            "team": self.team,
        }
