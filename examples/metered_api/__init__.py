"""Metered API: minimal example app demonstrating prici quota enforcement.

Serves a small reports API where every successful report creation is
charged against the caller's ``reports`` quota.

Modules:
    quota:  In-memory quota service implementing the QuotaService protocol
    router: FastAPI endpoints (POST /reports/, GET /reports/{id}, GET /reports/quota)
    app:    Application factory (create_metered_app)
"""

from .app import create_metered_app
from .quota import InMemoryQuotaService

__all__ = ["InMemoryQuotaService", "create_metered_app"]
