"""Pre-execution quota gate.

Queries the quota service for the entitlement state of a resolved identity
and turns the answer into an allow/deny decision. A deny carries the 402
response to send; an allow carries the :class:`QuotaValues` tag consumed by
the usage recorder once the response has been produced.

Failures from the entitlement query are not caught here. They propagate to
the host application, which decides what the client sees. An answer that
does not validate as a field state is raised as
:class:`~prici.fastapi.exceptions.InvalidFieldStateError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from starlette.responses import JSONResponse
from starlette.status import HTTP_402_PAYMENT_REQUIRED

from prici.fastapi.exceptions import InvalidFieldStateError
from prici.fastapi.models import FieldStateResult, QuotaValues
from prici.fastapi.sdk import maybe_await

if TYPE_CHECKING:
    from starlette.requests import Request

    from prici.fastapi.models import Identity
    from prici.fastapi.options import ResolvedOptions

DENY_STATUS_CODE = HTTP_402_PAYMENT_REQUIRED


def build_deny_response(message: str) -> JSONResponse:
    """Build the terminal response for a denied request.

    Args:
        message: Resolved deny message.

    Returns:
        JSONResponse with status 402 and body ``{"message": message}``.
    """
    return JSONResponse(status_code=DENY_STATUS_CODE, content={"message": message})


@dataclass(frozen=True, slots=True)
class GateDecision:
    """Outcome of a gate evaluation.

    Exactly one of ``values`` (allowed) and ``response`` (denied) is set.

    Attributes:
        result: Entitlement state returned by the quota service.
        values: Tag for usage recording when the request is allowed.
        response: 402 response to send when the request is denied.
    """

    result: FieldStateResult
    values: QuotaValues | None = None
    response: JSONResponse | None = None

    @property
    def allowed(self) -> bool:
        return self.values is not None


class QuotaGate:
    """Allow/deny decision against the quota service.

    Args:
        options: Layered middleware configuration.
        logger: structlog logger for decision events.
    """

    def __init__(self, options: ResolvedOptions, logger: Any) -> None:
        self._options = options
        self._logger = logger

    async def evaluate(self, request: Request, identity: Identity) -> GateDecision:
        """Query entitlement state and decide.

        Args:
            request: The incoming request, passed to override resolvers.
            identity: Resolved, non-empty identity pair.

        Returns:
            The gate decision.
        """
        opts = self._options
        raw = await maybe_await(opts.sdk.get_field_state(identity.account_id, identity.field_id))
        try:
            result = FieldStateResult.coerce(raw)
        except ValidationError as exc:
            error = InvalidFieldStateError(
                identity.account_id,
                identity.field_id,
                [dict(err) for err in exc.errors(include_url=False)],
            )
            self._logger.error("invalid_field_state", **error.log_fields())
            raise error from exc

        if not result.is_allowed:
            message = await maybe_await(opts.get_error(request, result))
            self._logger.warning(
                "quota_denied",
                account_id=identity.account_id,
                field_id=identity.field_id,
                target_limit=result.state.target_limit,
                current_value=result.state.current_value,
            )
            return GateDecision(result=result, response=build_deny_response(message))

        values = QuotaValues(
            account_id=identity.account_id,
            field_id=identity.field_id,
            increment_amount=opts.get_increment_amount(request),
        )
        self._logger.debug(
            "quota_allowed",
            account_id=identity.account_id,
            field_id=identity.field_id,
            target_limit=result.state.target_limit,
            current_value=result.state.current_value,
        )
        return GateDecision(result=result, values=values)
