"""Shared fixtures for prici.fastapi tests."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog
from fastapi.testclient import TestClient
from starlette.requests import Request

from prici.fastapi import FieldKind, FieldState, FieldStateResult

DEFAULT_ERROR_MESSAGE = "Quota exceeded"


def field_state_result(
    *,
    is_allowed: bool,
    target_limit: int = 1,
    current_value: int = 0,
) -> FieldStateResult:
    """Build an entitlement result for a numeric field."""
    return FieldStateResult(
        is_allowed=is_allowed,
        state=FieldState(
            target_limit=target_limit,
            kind=FieldKind.NUMBER,
            current_value=current_value,
        ),
    )


def make_request(state: dict[str, Any] | None = None, path: str = "/") -> Request:
    """Create a bare HTTP request with the given ``request.state`` contents."""
    scope: dict[str, Any] = {
        "type": "http",
        "method": "GET",
        "path": path,
        "headers": [],
        "query_string": b"",
        "state": dict(state or {}),
    }
    return Request(scope)


@pytest.fixture()
def quota_service() -> MagicMock:
    """Quota service double that allows everything by default."""
    sdk = MagicMock(spec=["get_field_state", "increment_field", "default_error_message"])
    sdk.default_error_message = DEFAULT_ERROR_MESSAGE
    sdk.get_field_state = AsyncMock(return_value=field_state_result(is_allowed=True))
    sdk.increment_field = AsyncMock(return_value=None)
    return sdk


@pytest.fixture()
def denying_quota_service(quota_service: MagicMock) -> MagicMock:
    """Quota service double whose field state is exhausted."""
    quota_service.get_field_state.return_value = field_state_result(
        is_allowed=False,
        current_value=1,
    )
    return quota_service


@pytest.fixture()
def mock_logger() -> MagicMock:
    """structlog-shaped logger double."""
    return MagicMock()


@pytest.fixture()
def metered_service() -> Any:
    """In-memory quota service with two reports allowed for ``acme``."""
    from examples.metered_api import InMemoryQuotaService

    return InMemoryQuotaService({("acme", "reports"): 2})


@pytest.fixture()
def metered_client(metered_service: Any) -> Iterator[TestClient]:
    """TestClient over the Metered API example app."""
    from examples.metered_api import create_metered_app
    from examples.metered_api.router import _reports

    _reports.clear()
    app = create_metered_app(quota_service=metered_service)
    with TestClient(app) as client:
        yield client
    _reports.clear()
    structlog.reset_defaults()


@pytest.fixture()
def account_headers() -> dict[str, str]:
    return {"X-Account-ID": "acme"}
