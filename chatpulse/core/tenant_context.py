"""Request context variables for organization isolation and log correlation."""

from contextvars import ContextVar
from typing import Optional

# Context variable for organization_id
organization_id_var: ContextVar[Optional[int]] = ContextVar("organization_id", default=None)

# Context variable for the current request id
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def set_organization_context(organization_id: int | None) -> None:
    """Set the current organization context.

    Args:
        organization_id: Organization ID to set in context
    """
    organization_id_var.set(organization_id)


def get_organization_context() -> int | None:
    """Get the current organization context.

    Returns:
        Current organization ID or None
    """
    return organization_id_var.get()


def clear_organization_context() -> None:
    """Clear the current organization context."""
    organization_id_var.set(None)


def set_request_id(request_id: str | None) -> None:
    """Set the id of the request being served."""
    request_id_var.set(request_id)


def get_current_request_id() -> str | None:
    """Get the id of the request being served."""
    return request_id_var.get()
