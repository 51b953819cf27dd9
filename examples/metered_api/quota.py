"""In-memory quota service for the Metered API example.

Stands in for the remote quota service client. Limits are per
(account, field) pair; a field without a configured limit denies everything.
"""

from __future__ import annotations

from prici.fastapi import FieldKind, FieldState, FieldStateResult


class InMemoryQuotaService:
    """Numeric counters held in process memory.

    Example:
        >>> service = InMemoryQuotaService({("acme", "reports"): 2})
        >>> service.usage("acme", "reports")
        0
    """

    default_error_message = "Quota exceeded for this account"
    default_increment = 1

    def __init__(self, limits: dict[tuple[str, str], int] | None = None) -> None:
        self._limits: dict[tuple[str, str], int] = dict(limits or {})
        self._usage: dict[tuple[str, str], int | float] = {}

    def set_limit(self, account_id: str, field_id: str, limit: int) -> None:
        self._limits[(account_id, field_id)] = limit

    def usage(self, account_id: str, field_id: str) -> int | float:
        return self._usage.get((account_id, field_id), 0)

    async def get_field_state(self, account_id: str, field_id: str) -> FieldStateResult:
        key = (account_id, field_id)
        limit = self._limits.get(key, 0)
        current = self._usage.get(key, 0)
        return FieldStateResult(
            is_allowed=current < limit,
            state=FieldState(target_limit=limit, kind=FieldKind.NUMBER, current_value=current),
        )

    async def increment_field(
        self,
        account_id: str,
        field_id: str,
        amount: int | float | None = None,
    ) -> None:
        key = (account_id, field_id)
        step = self.default_increment if amount is None else amount
        self._usage[key] = self._usage.get(key, 0) + step
