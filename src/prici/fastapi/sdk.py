"""Port for the external quota service client.

The middleware never stores or computes entitlement state itself. It talks
to a client object satisfying :class:`QuotaService`, which is shared by all
in-flight requests and must be safe to call concurrently.
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from inspect import isawaitable
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from prici.fastapi.models import FieldStateResult

T = TypeVar("T")


@runtime_checkable
class QuotaService(Protocol):
    """Protocol for the quota service client.

    Both operations may be coroutine functions or plain functions; the
    middleware awaits whatever they return when it is awaitable.

    Attributes:
        default_error_message: Deny message used when neither a static
            message nor a resolver is configured.
    """

    default_error_message: str

    def get_field_state(
        self,
        account_id: str,
        field_id: str,
    ) -> Awaitable[FieldStateResult | Mapping[str, Any]] | FieldStateResult | Mapping[str, Any]:
        """Return the entitlement state of a field for an account.

        Args:
            account_id: Account identifier.
            field_id: Metered field identifier.

        Returns:
            The field state result, as a model, a wire-format mapping or an
            object with the same attributes.
        """
        ...

    def increment_field(
        self,
        account_id: str,
        field_id: str,
        amount: int | float | None = None,
    ) -> Awaitable[Any] | Any:
        """Record consumption against a field.

        Args:
            account_id: Account identifier.
            field_id: Metered field identifier.
            amount: Amount to add. ``None`` lets the service apply its default.
        """
        ...


async def maybe_await(value: Awaitable[T] | T) -> T:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if isawaitable(value):
        return await value
    return value  # type: ignore[return-value]
