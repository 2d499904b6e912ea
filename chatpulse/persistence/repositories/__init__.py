"""Repository layer for data access."""

from chatpulse.persistence.repositories.base import BaseRepository
from chatpulse.persistence.repositories.chat_repository import ChatRepository
from chatpulse.persistence.repositories.message_repository import MessageRepository
from chatpulse.persistence.repositories.organization_repository import (
    BlacklistRepository,
    OrganizationRepository,
    TeamRepository,
)
from chatpulse.persistence.repositories.profile_repository import ProfileRepository

__all__ = [
    "BaseRepository",
    "BlacklistRepository",
    "ChatRepository",
    "MessageRepository",
    "OrganizationRepository",
    "ProfileRepository",
    "TeamRepository",
]
