"""
Ciclus RD - Employee Model
"""

import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from ciclus_rd.backend.database import Base


class EmployeeRow(Base):
    """Worker profile"""

    __tablename__ = "employees"

    # Primary Key
    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String(120), nullable=False, index=True)
    registration = Column(String(50), nullable=False, index=True)
    role = Column(String(60), nullable=False)

    # Soft references to profiles
    supervisor_id = Column(String(64), nullable=True, index=True)
    foreman_id = Column(String(64), nullable=True, index=True)
    team = Column(String(20), nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<EmployeeRow(id='{self.id}', name='{self.name}', registration='{self.registration}')>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "name": self.name,
            "registration": self.registration,
            "role": self.role,
            "supervisor_id": self.supervisor_id,
            "foreman_id": self.foreman_id,
            "team": self.team,
        }
