"""Fixed-income engines: amortization schedules and cashflow projection."""

from .models import (
    AmortizationCheckpoint,
    AmortizationMode,
    CashflowKind,
    CashflowStatus,
    ProjectedCashflow,
    Security,
)
from .projector import ProjectionResult, project, project_security
from .returns import expected_yield, position_cashflows, xirr
from .schedule import coupon_schedule, resolve, resolve_for_security

__all__ = [
    "AmortizationCheckpoint",
    "AmortizationMode",
    "CashflowKind",
    "CashflowStatus",
    "ProjectedCashflow",
    "ProjectionResult",
    "Security",
    "coupon_schedule",
    "expected_yield",
    "position_cashflows",
    "project",
    "project_security",
    "resolve",
    "resolve_for_security",
    "xirr",
]
