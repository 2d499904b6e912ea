"""Chat, ChatAnalytics and Message models.

These tables are written by the messaging subsystem; analytics only reads them.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from chatpulse.persistence.database import Base


class Chat(Base):
    """A WhatsApp conversation thread with one customer."""

    __tablename__ = "chats"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=True)
    whatsapp_jid = Column(String(255), nullable=True)  # e.g. 5511999998888@s.whatsapp.net
    platform = Column(String(50), nullable=True)
    status = Column(String(50), nullable=True)  # active, pending, finished, closed
    priority = Column(String(50), nullable=True)
    department = Column(String(255), nullable=True)
    assigned_agent_id = Column(Integer, ForeignKey("profiles.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_message_at = Column(DateTime, nullable=True)

    # Relationships
    messages = relationship("Message", back_populates="chat")
    analytics = relationship("ChatAnalytics", back_populates="chat")

    def __repr__(self) -> str:
        return f"<Chat(id={self.id}, organization_id={self.organization_id}, status={self.status})>"


class ChatAnalytics(Base):
    """Post-conversation outcome record (resolution and 1-5 satisfaction rating)."""

    __tablename__ = "chat_analytics"

    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(Integer, ForeignKey("chats.id"), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    resolution_status = Column(String(50), nullable=True)  # resolved, unresolved
    customer_satisfaction = Column(Integer, nullable=True)  # 1-5
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    chat = relationship("Chat", back_populates="analytics")


class Message(Base):
    """Individual WhatsApp message; ``is_from_me`` marks agent-authored messages."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(Integer, ForeignKey("chats.id"), nullable=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=True)  # sending profile
    content = Column(Text, nullable=True)
    sender_name = Column(String(255), nullable=True)
    is_from_me = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    chat = relationship("Chat", back_populates="messages")

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, chat_id={self.chat_id}, is_from_me={self.is_from_me})>"
