"""Quota enforcement middleware.

Pure ASGI middleware wiring the two phases of quota enforcement around the
wrapped application:

1. Before the route handler: resolve the (account, field) identity, query
   the quota service and either answer 402 or tag the request.
2. Once the last response body chunk has been sent: if the request was
   tagged and the response status is 2xx, increment usage once.

Design decisions:
- Fail-open on unresolved identity: requests without an identifiable
  account and field are not subject to enforcement.
- The tag lives in the call frame of one request and is handed directly to
  the recorder; handlers can read it through
  :func:`prici.fastapi.context.get_current_quota_values`.
- An exception escaping the wrapped app before the response completed
  skips accounting and propagates. One raised after completion, such as
  from a background task, still propagates but the usage is recorded.

Example:
    >>> from fastapi import FastAPI
    >>> from prici.fastapi import PriciOptions, register_prici
    >>>
    >>> app = FastAPI()
    >>> register_prici(app, PriciOptions(sdk=quota_client, field_id="api-calls"))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from starlette.requests import Request

from prici.fastapi.context import clear_quota_values, set_quota_values
from prici.fastapi.gate import QuotaGate
from prici.fastapi.identity import IdentityResolver
from prici.fastapi.logging import LOGGER_NAME, get_logger
from prici.fastapi.options import describe_options, resolve_options
from prici.fastapi.recorder import UsageRecorder

if TYPE_CHECKING:
    from collections.abc import Callable

    from starlette.applications import Starlette

    from prici.fastapi.options import PriciOptions


class PriciMiddleware:
    """Enforces quota entitlements and records usage.

    Request flow:
    1. Pass through non-HTTP scopes and excluded path prefixes
    2. Resolve account and field ids; pass through if either is missing
    3. Query entitlement state; if denied, send 402 and stop
    4. Run the wrapped app, observing the response status and completion
    5. If the response completed with a 2xx status, increment usage

    Resolver overrides receive a ``Request`` built on the raw ASGI scope.
    They must not consume the request body, which belongs to the handler.

    Args:
        app: The ASGI application.
        options: Plugin options, resolved once here.
        logger: Optional structlog logger. Defaults to the ``prici.fastapi``
            logger.
    """

    def __init__(
        self,
        app: Any,
        options: PriciOptions,
        logger: Any | None = None,
    ) -> None:
        self.app = app
        self._logger = logger if logger is not None else get_logger(LOGGER_NAME)
        self._options = resolve_options(options)
        self._resolver = IdentityResolver(
            self._options.get_account_id,
            self._options.get_field_id,
        )
        self._gate = QuotaGate(self._options, self._logger)
        self._recorder = UsageRecorder(self._options.sdk, self._logger)
        self._logger.info("prici_middleware_configured", **describe_options(options))

    def _is_excluded(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self._options.excluded_prefixes)

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] != "http" or self._is_excluded(scope.get("path", "")):
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)

        identity = await self._resolver.resolve(request)
        if identity is None:
            self._logger.debug("quota_check_skipped", path=scope.get("path", ""))
            await self.app(scope, receive, send)
            return

        decision = await self._gate.evaluate(request, identity)
        values = decision.values
        if values is None:
            assert decision.response is not None, "Denied decisions always carry a response"
            await decision.response(scope, receive, send)
            return

        status_code: int | None = None
        response_complete = False

        async def send_with_status(message: dict[str, Any]) -> None:
            nonlocal status_code, response_complete
            if message["type"] == "http.response.start":
                status_code = message["status"]
            elif message["type"] == "http.response.body" and not message.get("more_body", False):
                response_complete = True
            await send(message)

        token = set_quota_values(values)
        try:
            await self.app(scope, receive, send_with_status)
        finally:
            clear_quota_values(token)
            # Background tasks run after the last body chunk and may still raise
            if response_complete:
                await self._recorder.record(status_code, values)


def register_prici(
    app: Starlette,
    options: PriciOptions,
    *,
    logger: Any | None = None,
) -> None:
    """Register quota enforcement on a FastAPI or Starlette application.

    Must be called before the application starts serving requests.

    Args:
        app: Application instance.
        options: Plugin options.
        logger: Optional structlog logger for middleware events.
    """
    app.add_middleware(PriciMiddleware, options=options, logger=logger)
