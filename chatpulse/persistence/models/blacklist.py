"""Blacklist model."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from chatpulse.persistence.database import Base


class BlacklistEntry(Base):
    """Phone number excluded from an organization's reports."""

    __tablename__ = "blacklist"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    phone_number = Column(String(50), nullable=False)  # digits only
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<BlacklistEntry(id={self.id}, organization_id={self.organization_id}, phone_number={self.phone_number})>"
