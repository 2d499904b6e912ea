"""Organization and Team models."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from chatpulse.persistence.database import Base


class Organization(Base):
    """Organization model; the tenant boundary for every other entity."""

    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    timezone = Column(String(64), nullable=True)  # IANA name, UTC when unset
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    profiles = relationship("Profile", back_populates="organization")
    teams = relationship("Team", back_populates="organization", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name={self.name})>"


class Team(Base):
    """Team (department) inside an organization.

    Members are the profiles whose ``department`` equals the team name.
    """

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    organization = relationship("Organization", back_populates="teams")

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, organization_id={self.organization_id}, name={self.name})>"
