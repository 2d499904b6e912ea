"""Profile (user/agent) and Role models."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from chatpulse.persistence.database import Base


class Role(Base):
    """Role with a free-text name (e.g. "Agente", "Admin", "Super Admin")."""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name})>"


class Profile(Base):
    """User profile; agents are the profiles that handle customer chats."""

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=True)
    user_role = Column(String(100), nullable=True)  # legacy free-text role
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True)
    is_online = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)  # soft delete
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    organization = relationship("Organization", back_populates="profiles")
    role = relationship("Role")

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, organization_id={self.organization_id}, email={self.email})>"
