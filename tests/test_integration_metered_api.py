"""Integration tests: quota enforcement through the Metered API example."""

from __future__ import annotations

from typing import Any

import pytest
from examples.metered_api import create_metered_app
from examples.metered_api.router import _reports
from fastapi.testclient import TestClient


@pytest.mark.integration
class TestMeteredApiEnforcement:
    def test_requests_within_quota_succeed_and_are_charged(
        self,
        metered_client: TestClient,
        metered_service: Any,
        account_headers: dict[str, str],
    ) -> None:
        resp = metered_client.post("/reports/", json={"title": "Q1"}, headers=account_headers)
        assert resp.status_code == 201
        assert resp.json()["title"] == "Q1"
        assert metered_service.usage("acme", "reports") == 1

    def test_quota_exhaustion_returns_402(
        self,
        metered_client: TestClient,
        metered_service: Any,
        account_headers: dict[str, str],
    ) -> None:
        for title in ("Q1", "Q2"):
            resp = metered_client.post("/reports/", json={"title": title}, headers=account_headers)
            assert resp.status_code == 201

        resp = metered_client.post("/reports/", json={"title": "Q3"}, headers=account_headers)
        assert resp.status_code == 402
        assert resp.json() == {"message": "Quota exceeded for this account"}
        assert metered_service.usage("acme", "reports") == 2
        assert len(_reports) == 2

    def test_unknown_account_is_denied(self, metered_client: TestClient) -> None:
        resp = metered_client.post(
            "/reports/",
            json={"title": "Q1"},
            headers={"X-Account-ID": "globex"},
        )
        assert resp.status_code == 402
        assert len(_reports) == 0

    def test_anonymous_requests_bypass_enforcement(
        self,
        metered_client: TestClient,
        metered_service: Any,
    ) -> None:
        for _ in range(3):
            resp = metered_client.post("/reports/", json={"title": "anon"})
            assert resp.status_code == 201
        assert metered_service.usage("acme", "reports") == 0

    def test_failed_requests_are_not_charged(
        self,
        metered_client: TestClient,
        metered_service: Any,
        account_headers: dict[str, str],
    ) -> None:
        resp = metered_client.get(
            "/reports/00000000-0000-0000-0000-000000000000",
            headers=account_headers,
        )
        assert resp.status_code == 404

        resp = metered_client.post("/reports/", json={}, headers=account_headers)
        assert resp.status_code == 422

        assert metered_service.usage("acme", "reports") == 0

    def test_create_then_read_charges_both(
        self,
        metered_client: TestClient,
        metered_service: Any,
        account_headers: dict[str, str],
    ) -> None:
        resp = metered_client.post("/reports/", json={"title": "Q1"}, headers=account_headers)
        report_id = resp.json()["id"]

        resp = metered_client.get(f"/reports/{report_id}", headers=account_headers)
        assert resp.status_code == 200
        assert resp.json() == {"id": report_id, "title": "Q1"}
        assert metered_service.usage("acme", "reports") == 2

    def test_handler_sees_quota_tag(
        self,
        metered_client: TestClient,
        account_headers: dict[str, str],
    ) -> None:
        resp = metered_client.get("/reports/quota", headers=account_headers)
        assert resp.status_code == 200
        assert resp.json() == {"account_id": "acme", "field_id": "reports"}

    def test_handler_sees_no_tag_for_anonymous(self, metered_client: TestClient) -> None:
        resp = metered_client.get("/reports/quota")
        assert resp.json() == {"account_id": None, "field_id": None}


@pytest.mark.integration
class TestMeteredApiConfiguration:
    def test_custom_error_message(self, metered_service: Any) -> None:
        metered_service.set_limit("acme", "reports", 0)
        app = create_metered_app(quota_service=metered_service, error_message="Upgrade your plan")
        with TestClient(app) as client:
            resp = client.post(
                "/reports/",
                json={"title": "Q1"},
                headers={"X-Account-ID": "acme"},
            )
        assert resp.status_code == 402
        assert resp.json() == {"message": "Upgrade your plan"}

    def test_default_service_denies_identified_callers(self) -> None:
        app = create_metered_app()
        with TestClient(app) as client:
            resp = client.get("/reports/quota", headers={"X-Account-ID": "acme"})
        assert resp.status_code == 402
