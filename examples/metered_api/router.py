"""Metered API REST router.

Every request carrying an account is checked against the ``reports`` field;
only successful (2xx) responses are charged. The router itself knows
nothing about quotas beyond reading the tag for display.
"""

from __future__ import annotations

from uuid import UUID, uuid4

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from prici.fastapi import get_current_quota_values

router = APIRouter(prefix="/reports", tags=["reports"])

# In-memory store, replaced by a real repository in production.
_reports: dict[UUID, str] = {}


class CreateReportRequest(BaseModel):
    title: str


class ReportResponse(BaseModel):
    id: str
    title: str


class QuotaTagResponse(BaseModel):
    account_id: str | None
    field_id: str | None


@router.post("/", status_code=201)
def create_report(body: CreateReportRequest) -> ReportResponse:
    """Create a report; charged to the caller's quota on success."""
    report_id = uuid4()
    _reports[report_id] = body.title
    return ReportResponse(id=str(report_id), title=body.title)


@router.get("/quota")
def current_quota_tag() -> QuotaTagResponse:
    """Echo the quota tag the middleware attached to this request."""
    values = get_current_quota_values()
    if values is None:
        return QuotaTagResponse(account_id=None, field_id=None)
    return QuotaTagResponse(account_id=values.account_id, field_id=values.field_id)


@router.get("/{report_id}")
def get_report(report_id: UUID) -> ReportResponse:
    """Retrieve a report by ID."""
    title = _reports.get(report_id)
    if title is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return ReportResponse(id=str(report_id), title=title)
