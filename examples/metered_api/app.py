"""Metered API application factory.

Demonstrates the consumer pattern: an authentication layer puts the caller
on ``request.state``, and prici picks the account up from there through its
default lookup chain. Only the metered field is configured explicitly.

Usage::

    from examples.metered_api.app import create_metered_app

    app = create_metered_app()
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI

from prici.fastapi import PriciOptions, configure_logging, register_prici

from .quota import InMemoryQuotaService
from .router import router as reports_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

REPORTS_FIELD_ID = "reports"


class CallerStateMiddleware:
    """Stand-in for authentication: copies X-Account-ID onto request state.

    The value lands on ``request.state.user`` as ``{"tenant": ...}``, the
    last entry of prici's default account lookup chain.
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] == "http":
            for key, value in scope.get("headers", []):
                if key.lower() == b"x-account-id":
                    state = scope.setdefault("state", {})
                    state["user"] = {"tenant": value.decode("latin-1")}
                    break
        await self.app(scope, receive, send)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    yield


def create_metered_app(
    *,
    quota_service: InMemoryQuotaService | None = None,
    error_message: str | None = None,
) -> FastAPI:
    """Create the Metered API app.

    Args:
        quota_service: Quota service to enforce against. Defaults to an
            empty in-memory service (every identified request is denied).
        error_message: Static deny message.
    """
    app = FastAPI(title="Metered API", version="0.1.0", lifespan=_lifespan)
    app.state.quota_service = quota_service or InMemoryQuotaService()

    register_prici(
        app,
        PriciOptions(
            sdk=app.state.quota_service,
            field_id=REPORTS_FIELD_ID,
            error_message=error_message,
        ),
    )
    # Added last so it wraps prici and runs first (Starlette is LIFO)
    app.add_middleware(CallerStateMiddleware)

    app.include_router(reports_router)
    return app
