"""Identity resolution for quota enforcement.

Derives the (account_id, field_id) pair selecting which entitlement counter
applies to a request. Authentication middleware upstream is expected to put
the caller's account on ``request.state``; the default account lookup checks
a fixed, ordered list of accessors and takes the first non-empty value.

Requests for which either identifier cannot be determined are not subject to
enforcement: the resolver returns ``None`` and the middleware lets the
request through untouched.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from prici.fastapi.models import Identity
from prici.fastapi.sdk import maybe_await

if TYPE_CHECKING:
    from starlette.requests import Request

    from prici.fastapi.options import IdentifierResolver


def _state_value(request: Request, name: str) -> Any:
    """Read an optional attribute from ``request.state``."""
    return getattr(request.state, name, None)


def _member(obj: Any, name: str) -> Any:
    """Read ``name`` from a mapping or an object, or ``None`` if absent."""
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def account_id_from_state(request: Request) -> Any:
    """``request.state.account_id``"""
    return _state_value(request, "account_id")


def account_id_from_account(request: Request) -> Any:
    """``request.state.account.id``"""
    return _member(_state_value(request, "account"), "id")


def account_id_from_user_account(request: Request) -> Any:
    """``request.state.user.account``"""
    return _member(_state_value(request, "user"), "account")


def account_id_from_user_tenant(request: Request) -> Any:
    """``request.state.user.tenant``"""
    return _member(_state_value(request, "user"), "tenant")


# Evaluated in order; the first non-empty value wins.
ACCOUNT_ID_ACCESSORS: tuple[Callable[[Request], Any], ...] = (
    account_id_from_state,
    account_id_from_account,
    account_id_from_user_account,
    account_id_from_user_tenant,
)


def _normalize(value: Any) -> str | None:
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    return text or None


def default_account_id(request: Request) -> str | None:
    """Default account resolution over :data:`ACCOUNT_ID_ACCESSORS`."""
    for accessor in ACCOUNT_ID_ACCESSORS:
        account_id = _normalize(accessor(request))
        if account_id is not None:
            return account_id
    return None


def default_field_id(request: Request) -> str | None:
    """Default field resolution from ``request.state.field_id``."""
    return _normalize(_state_value(request, "field_id"))


class IdentityResolver:
    """Resolves the identity pair of a request.

    Args:
        get_account_id: Account resolver (override or default), sync or async.
        get_field_id: Field resolver (override or default), sync or async.
    """

    def __init__(
        self,
        get_account_id: IdentifierResolver,
        get_field_id: IdentifierResolver,
    ) -> None:
        self._get_account_id = get_account_id
        self._get_field_id = get_field_id

    async def resolve(self, request: Request) -> Identity | None:
        """Resolve both identifiers concurrently.

        Each resolver is called exactly once.

        Args:
            request: The incoming request.

        Returns:
            The identity pair, or ``None`` when either identifier is
            missing or empty.
        """
        account_id, field_id = await asyncio.gather(
            maybe_await(self._get_account_id(request)),
            maybe_await(self._get_field_id(request)),
        )
        account_id = _normalize(account_id)
        field_id = _normalize(field_id)
        if account_id is None or field_id is None:
            return None
        return Identity(account_id=account_id, field_id=field_id)
