"""Post-execution usage recording.

Runs after the response for a request has been produced. Usage is recorded
only for 2xx responses of requests the gate allowed, and at most once. By
the time this runs the response is already on its way to the client, so a
failing increment is logged and dropped; it is never retried.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from prici.fastapi.sdk import maybe_await

if TYPE_CHECKING:
    from prici.fastapi.models import QuotaValues
    from prici.fastapi.sdk import QuotaService


def is_success(status_code: int | None) -> bool:
    """True for statuses in the 2xx class (200 through 299)."""
    return status_code is not None and 200 <= status_code <= 299


class UsageRecorder:
    """Increments the tagged field once a request succeeded.

    Args:
        sdk: Quota service client.
        logger: structlog logger receiving the failure diagnostic.
    """

    def __init__(self, sdk: QuotaService, logger: Any) -> None:
        self._sdk = sdk
        self._logger = logger

    async def record(self, status_code: int | None, values: QuotaValues | None) -> bool:
        """Record usage for a finished request.

        Args:
            status_code: Status of the response sent, or ``None`` if no
                response was started.
            values: Tag created by the gate, or ``None`` if the gate did not
                allow the request.

        Returns:
            True if the increment was recorded, False otherwise.
        """
        if not is_success(status_code) or values is None:
            return False

        try:
            await maybe_await(
                self._sdk.increment_field(
                    values.account_id,
                    values.field_id,
                    values.increment_amount,
                )
            )
        except Exception as exc:
            self._logger.error(
                "increment_field_failed",
                account_id=values.account_id,
                field_id=values.field_id,
                increment_amount=values.increment_amount,
                exc_info=exc,
            )
            return False

        self._logger.debug(
            "usage_recorded",
            account_id=values.account_id,
            field_id=values.field_id,
            increment_amount=values.increment_amount,
        )
        return True
