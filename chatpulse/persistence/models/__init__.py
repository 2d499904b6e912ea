"""Database models."""

from chatpulse.persistence.models.blacklist import BlacklistEntry
from chatpulse.persistence.models.chat import Chat, ChatAnalytics, Message
from chatpulse.persistence.models.organization import Organization, Team
from chatpulse.persistence.models.profile import Profile, Role

__all__ = [
    "BlacklistEntry",
    "Chat",
    "ChatAnalytics",
    "Message",
    "Organization",
    "Profile",
    "Role",
    "Team",
]
