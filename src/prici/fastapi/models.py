"""Entitlement state models and the per-request quota tag.

``FieldStateResult`` mirrors the payload returned by the quota service's
field-state query. The service speaks camelCase on the wire; the models
accept both the wire aliases and the snake_case field names.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FieldKind(StrEnum):
    """Kind of metered field.

    Only the numeric counter is interpreted by this package; any other
    kind reported by the service is carried through as an opaque string.
    """

    NUMBER = "number"
    BOOLEAN = "boolean"


class FieldState(BaseModel):
    """Current state of one metered field for one account."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    target_limit: int | float = Field(
        ...,
        alias="targetLimit",
        description="Limit configured for the field",
    )
    kind: FieldKind | str = Field(
        default=FieldKind.NUMBER,
        union_mode="left_to_right",
        description="Field kind; unknown kinds are kept verbatim",
    )
    current_value: int | float = Field(
        ...,
        alias="currentValue",
        description="Consumption recorded so far",
    )


class FieldStateResult(BaseModel):
    """Answer of the quota service to an entitlement query."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_allowed: bool = Field(..., alias="isAllowed")
    state: FieldState

    @classmethod
    def coerce(cls, value: Any) -> FieldStateResult:
        """Return ``value`` as a ``FieldStateResult``.

        Args:
            value: A model instance, a mapping in wire or snake_case form,
                or an object (e.g. a dataclass) exposing the same attributes.

        Returns:
            The validated result.

        Raises:
            pydantic.ValidationError: If the value does not match the schema.
        """
        if isinstance(value, cls):
            return value
        return cls.model_validate(value, from_attributes=True)


@dataclass(frozen=True, slots=True)
class Identity:
    """Resolved (account, field) pair selecting an entitlement counter."""

    account_id: str
    field_id: str


@dataclass(frozen=True, slots=True)
class QuotaValues:
    """Tag linking an allowed gate decision to the later usage recording.

    Attributes:
        account_id: Account the usage is charged to.
        field_id: Metered field to increment.
        increment_amount: Amount to add; ``None`` lets the service decide.
    """

    account_id: str
    field_id: str
    increment_amount: int | float | None = None
