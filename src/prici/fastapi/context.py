"""Request-scoped access to the quota tag.

The middleware publishes the :class:`QuotaValues` of an allowed request in
a ContextVar for the duration of the wrapped application call, so route
handlers can see which account and field the request will be charged to.
The variable is task-local: concurrent requests never see each other's tag.

Usage::

    from prici.fastapi import get_current_quota_values

    @router.post("/reports")
    async def create_report() -> dict[str, str]:
        values = get_current_quota_values()
        ...
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextvars import Token

    from prici.fastapi.models import QuotaValues

# None when no allowed request is active in the current context
quota_values_ctx: ContextVar[QuotaValues | None] = ContextVar("prici_quota_values", default=None)


def get_current_quota_values() -> QuotaValues | None:
    """Get the quota tag of the current request.

    Returns:
        The tag, or None outside a request the gate allowed.
    """
    return quota_values_ctx.get()


def set_quota_values(values: QuotaValues) -> Token[QuotaValues | None]:
    """Publish the tag for the current request.

    Args:
        values: Tag created by the gate.

    Returns:
        Token for :func:`clear_quota_values`.
    """
    return quota_values_ctx.set(values)


def clear_quota_values(token: Token[QuotaValues | None]) -> None:
    """Reset the tag using the token from :func:`set_quota_values`."""
    quota_values_ctx.reset(token)
