"""Exception hierarchy for the prici FastAPI integration.

Two kinds of problems are raised by this package: options rejected at
registration, and entitlement answers from the quota service that do not
match the expected shape. Transport failures of the quota service itself
are not wrapped; they propagate unchanged so the host application's error
handling decides the client-visible outcome.

Example:
    >>> from prici.fastapi.exceptions import InvalidOptionsError
    >>> raise InvalidOptionsError("sdk", "a quota service client is required")
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "InvalidFieldStateError",
    "InvalidOptionsError",
    "PriciError",
]


class PriciError(Exception):
    """Base class for all errors raised by prici.fastapi.

    Attributes:
        error_code: Machine-readable error code.
        message: Human-readable error description.
        context: Structured fields identifying what failed, suitable for
            passing straight to a structlog call.
    """

    error_code: str = "PRICI_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def log_fields(self) -> dict[str, Any]:
        """Fields for a structured log event describing this error."""
        return {"error_code": self.error_code, **self.context}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({details})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class InvalidOptionsError(PriciError):
    """Raised when plugin options are rejected at registration time.

    Attributes:
        option: Name of the offending option.
        reason: Why the value was rejected.

    Example:
        >>> raise InvalidOptionsError("increment_amount", "must not be negative", value=-1)
        InvalidOptionsError: Invalid option 'increment_amount': must not be negative (...)
    """

    error_code: str = "INVALID_OPTIONS"

    def __init__(self, option: str, reason: str, **extra_context: Any) -> None:
        self.option = option
        self.reason = reason
        super().__init__(f"Invalid option '{option}': {reason}", option=option, **extra_context)


class InvalidFieldStateError(PriciError):
    """Raised when the quota service returns an unusable entitlement answer.

    The request is neither allowed nor denied; the error propagates to the
    host application like any other failure of the entitlement query.

    Attributes:
        account_id: Account the query was made for.
        field_id: Field the query was made for.
        errors: Validation error details.
    """

    error_code: str = "INVALID_FIELD_STATE"

    def __init__(self, account_id: str, field_id: str, errors: list[dict[str, Any]]) -> None:
        self.account_id = account_id
        self.field_id = field_id
        self.errors = errors
        locations = sorted({".".join(str(p) for p in err.get("loc", ())) for err in errors})
        super().__init__(
            "Quota service returned an invalid field state",
            account_id=account_id,
            field_id=field_id,
            invalid_fields=",".join(locations),
        )
