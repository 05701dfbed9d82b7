"""
Ciclus RD - Audit Log Model
Trail of reviews, deletions and account changes
"""

from sqlalchemy import Column, Integer, String, Text, JSON, DateTime
from sqlalchemy.sql import func

from ciclus_rd.backend.database import Base


class AuditLog(Base):
    """Audit log for write operations"""

    __tablename__ = "audit_logs"

    # Primary Key
    id = Column(Integer, primary_key=True, autoincrement=True)

    # Who
    user_id = Column(String(64), nullable=False, index=True)
    user_name = Column(String(120), nullable=False)
    user_role = Column(String(20), nullable=False)

    # What
    action = Column(String(100), nullable=False, index=True)  # approve_rd, delete_user, etc.
    entity_type = Column(String(50), nullable=False, index=True)  # rd, employee, user
    entity_id = Column(String(64), nullable=True, index=True)

    # Details
    description = Column(Text, nullable=False)
    old_values = Column(JSON, nullable=True)  # Before change
    new_values = Column(JSON, nullable=True)  # After change

    # When
    timestamp = Column(DateTime, server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, user='{self.user_name}', action='{self.action}', entity='{self.entity_type}')>"

    @classmethod
    def record(cls, auth, action: str, entity_type: str, entity_id, description: str,
               old_values=None, new_values=None) -> "AuditLog":
        """Build an entry for the acting user"""
        return cls(
            user_id=auth.user_id,
            user_name=auth.name,
            user_role=auth.role.value,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            old_values=old_values,
            new_values=new_values,
        )

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "user_role": self.user_role,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
