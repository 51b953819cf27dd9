"""Prici FastAPI: quota enforcement and usage metering middleware."""

from prici.fastapi.context import get_current_quota_values
from prici.fastapi.exceptions import InvalidFieldStateError, InvalidOptionsError, PriciError
from prici.fastapi.gate import GateDecision, QuotaGate, build_deny_response
from prici.fastapi.identity import (
    ACCOUNT_ID_ACCESSORS,
    IdentityResolver,
    default_account_id,
    default_field_id,
)
from prici.fastapi.logging import (
    LoggingSettings,
    QuotaContextProcessor,
    configure_logging,
    get_logger,
)
from prici.fastapi.middleware import PriciMiddleware, register_prici
from prici.fastapi.models import (
    FieldKind,
    FieldState,
    FieldStateResult,
    Identity,
    QuotaValues,
)
from prici.fastapi.options import PriciOptions, ResolvedOptions, resolve_options
from prici.fastapi.recorder import UsageRecorder, is_success
from prici.fastapi.sdk import QuotaService
from prici.fastapi.settings import PriciSettings, get_prici_settings

__all__ = [
    "ACCOUNT_ID_ACCESSORS",
    "FieldKind",
    "FieldState",
    "FieldStateResult",
    "GateDecision",
    "Identity",
    "IdentityResolver",
    "InvalidFieldStateError",
    "InvalidOptionsError",
    "LoggingSettings",
    "PriciError",
    "PriciMiddleware",
    "PriciOptions",
    "PriciSettings",
    "QuotaContextProcessor",
    "QuotaGate",
    "QuotaService",
    "QuotaValues",
    "ResolvedOptions",
    "UsageRecorder",
    "build_deny_response",
    "configure_logging",
    "default_account_id",
    "default_field_id",
    "get_current_quota_values",
    "get_logger",
    "get_prici_settings",
    "is_success",
    "register_prici",
    "resolve_options",
]
