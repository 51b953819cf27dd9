"""Plugin options and their layering over built-in defaults.

:class:`PriciOptions` is what callers pass at registration. It is turned
once, field by field, into a :class:`ResolvedOptions` whose resolver slots
always hold a callable: the caller's override when given, otherwise the
default built from the static options.

Example::

    from prici.fastapi import PriciOptions, register_prici

    register_prici(
        app,
        PriciOptions(
            sdk=quota_client,
            field_id="api-calls",
            get_account_id=lambda request: request.headers.get("x-account-id"),
        ),
    )
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from prici.fastapi.exceptions import InvalidOptionsError
from prici.fastapi.identity import default_account_id, default_field_id
from prici.fastapi.sdk import QuotaService

if TYPE_CHECKING:
    from starlette.requests import Request

    from prici.fastapi.models import FieldStateResult
    from prici.fastapi.settings import PriciSettings

IdentifierResolver = Callable[["Request"], "str | None | Awaitable[str | None]"]
ErrorMessageResolver = Callable[
    ["Request", "FieldStateResult | None"],
    "str | Awaitable[str]",
]
IncrementAmountResolver = Callable[["Request"], "int | float | None"]


@dataclass(frozen=True, slots=True)
class PriciOptions:
    """Caller-supplied middleware configuration.

    Attributes:
        sdk: Quota service client. Required.
        field_id: Static metered field identifier.
        error_message: Static message returned in the 402 body.
        increment_amount: Static increment amount. ``None`` lets the
            service apply its default.
        get_account_id: Override for account resolution, may be async.
        get_field_id: Override for field resolution, may be async.
        get_error: Override for the deny message, given the request and
            the entitlement result; may be async.
        get_increment_amount: Synchronous override for the increment amount.
        excluded_prefixes: URL path prefixes that bypass enforcement and
            accounting entirely.
    """

    sdk: QuotaService
    field_id: str | None = None
    error_message: str | None = None
    increment_amount: int | float | None = None
    get_account_id: IdentifierResolver | None = None
    get_field_id: IdentifierResolver | None = None
    get_error: ErrorMessageResolver | None = None
    get_increment_amount: IncrementAmountResolver | None = None
    excluded_prefixes: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        if self.sdk is None:
            raise InvalidOptionsError("sdk", "a quota service client is required")
        if not isinstance(self.sdk, QuotaService):
            raise InvalidOptionsError(
                "sdk",
                "must provide get_field_state, increment_field and default_error_message",
                sdk_type=type(self.sdk).__name__,
            )

        for name in ("get_account_id", "get_field_id", "get_error", "get_increment_amount"):
            value = getattr(self, name)
            if value is not None and not callable(value):
                raise InvalidOptionsError(name, "must be callable", value_type=type(value).__name__)

        amount = self.increment_amount
        if amount is not None:
            if isinstance(amount, bool) or not isinstance(amount, (int, float)):
                raise InvalidOptionsError("increment_amount", "must be a number", value=amount)
            if amount < 0:
                raise InvalidOptionsError("increment_amount", "must not be negative", value=amount)

    @classmethod
    def from_settings(
        cls,
        sdk: QuotaService,
        settings: PriciSettings | None = None,
        **overrides: Any,
    ) -> PriciOptions:
        """Build options from environment settings plus explicit overrides.

        Args:
            sdk: Quota service client.
            settings: Settings instance. If ``None``, loaded from environment.
            **overrides: Any ``PriciOptions`` field; wins over settings values.

        Returns:
            Validated options.
        """
        if settings is None:
            from prici.fastapi.settings import get_prici_settings

            settings = get_prici_settings()

        values: dict[str, Any] = {
            "field_id": settings.field_id,
            "error_message": settings.error_message,
            "increment_amount": settings.increment_amount,
            "excluded_prefixes": settings.excluded_prefixes,
        }
        values.update(overrides)
        return cls(sdk=sdk, **values)


@dataclass(frozen=True, slots=True)
class ResolvedOptions:
    """Options with every resolver slot filled.

    Built once per middleware instance by :func:`resolve_options` and never
    mutated afterwards.
    """

    sdk: QuotaService
    get_account_id: IdentifierResolver
    get_field_id: IdentifierResolver
    get_error: ErrorMessageResolver
    get_increment_amount: IncrementAmountResolver
    excluded_prefixes: tuple[str, ...] = ()


def resolve_options(options: PriciOptions) -> ResolvedOptions:
    """Layer caller overrides over the built-in defaults.

    Defaults:
        - account id: first non-empty of ``request.state.account_id``,
          ``request.state.account.id``, ``request.state.user.account``,
          ``request.state.user.tenant``
        - field id: static ``field_id``, else ``request.state.field_id``
        - error message: static ``error_message``, else the service's
          ``default_error_message``
        - increment amount: static ``increment_amount`` (may be ``None``)

    Args:
        options: Caller-supplied options.

    Returns:
        The layered configuration.
    """
    sdk = options.sdk
    static_field_id = options.field_id
    static_message = options.error_message
    static_amount = options.increment_amount

    def _default_field_id(request: Request) -> str | None:
        return static_field_id or default_field_id(request)

    def _default_error(request: Request, result: FieldStateResult | None = None) -> str:
        return static_message or sdk.default_error_message

    def _default_increment_amount(request: Request) -> int | float | None:
        return static_amount

    return ResolvedOptions(
        sdk=sdk,
        get_account_id=options.get_account_id or default_account_id,
        get_field_id=options.get_field_id or _default_field_id,
        get_error=options.get_error or _default_error,
        get_increment_amount=options.get_increment_amount or _default_increment_amount,
        excluded_prefixes=tuple(options.excluded_prefixes),
    )


def describe_options(options: PriciOptions) -> Mapping[str, Any]:
    """Summarize options for startup logging without exposing callables."""
    return {
        "field_id": options.field_id,
        "increment_amount": options.increment_amount,
        "overrides": sorted(
            name
            for name in ("get_account_id", "get_field_id", "get_error", "get_increment_amount")
            if getattr(options, name) is not None
        ),
        "excluded_prefixes": list(options.excluded_prefixes),
    }
