"""Role classification and per-caller data visibility."""

import logging
from dataclasses import dataclass
from enum import Enum

from chatpulse.persistence.database import STORE_ERRORS, Database
from chatpulse.persistence.repositories.profile_repository import ProfileRepository
from chatpulse.settings import settings

logger = logging.getLogger(__name__)


class Role(str, Enum):
    AGENT = "agent"
    MANAGER = "manager"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"
    UNKNOWN = "unknown"

    @property
    def is_own_records_only(self) -> bool:
        """Agents and unresolvable callers only ever see their own chats."""
        return self in (Role.AGENT, Role.UNKNOWN)


def classify_role_name(name: str | None) -> Role:
    """Map a free-text role name to a Role.

    Matching is case-insensitive substring matching, agent keywords first so
    a name like "Agente Admin" still stays scoped to its own records.
    """
    if name is None or not name.strip():
        return Role.UNKNOWN
    lowered = name.strip().lower()
    if any(keyword in lowered for keyword in settings.agent_role_keywords):
        return Role.AGENT
    if "admin" in lowered:
        return Role.SUPER_ADMIN if "super" in lowered else Role.ADMIN
    return Role.MANAGER


class RoleResolver:
    """Resolve a caller's role from their profile."""

    def __init__(self, database: Database):
        self.database = database

    async def resolve(self, organization_id: int, user_id: int | None) -> Role:
        """Resolve the role for ``user_id`` inside ``organization_id``.

        Tries the linked role record first, then the profile's legacy
        ``user_role`` text. Lookup failures resolve to ``Role.UNKNOWN``.
        """
        if user_id is None:
            return Role.UNKNOWN
        try:
            async with self.database.session() as session:
                profile = await ProfileRepository(session).get_with_role(organization_id, user_id)
        except STORE_ERRORS as e:
            logger.warning(
                f"Role lookup failed: {e}",
                extra={"organization_id": organization_id, "user_id": user_id},
            )
            return Role.UNKNOWN

        if profile is None:
            return Role.UNKNOWN
        if profile.role is not None and profile.role.name:
            return classify_role_name(profile.role.name)
        return classify_role_name(profile.user_role)


@dataclass(frozen=True)
class VisibilityScope:
    """What one caller may see.

    ``allowed_chat_ids`` is None for organization-wide visibility, otherwise
    the exact set of chats whose data may be returned.
    """

    organization_id: int
    role: Role
    user_id: int | None
    allowed_chat_ids: frozenset[int] | None = None
    agent_id: int | None = None  # agent the listing is narrowed to, if any
    lookup_failed: bool = False  # chat ownership could not be read; nothing is visible

    @property
    def is_agent(self) -> bool:
        return self.role.is_own_records_only

    @property
    def is_restricted(self) -> bool:
        return self.allowed_chat_ids is not None

    @property
    def narrows_to_nothing(self) -> bool:
        """True when the scope is restricted to an empty chat set."""
        return self.allowed_chat_ids is not None and not self.allowed_chat_ids

    def permits(self, chat_id: int | None) -> bool:
        if self.allowed_chat_ids is None:
            return True
        return chat_id is not None and chat_id in self.allowed_chat_ids

    def to_dict(self) -> dict:
        return {"role": self.role.value, "is_agent": self.is_agent}
