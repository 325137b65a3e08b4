"""Recompute derived data for securities after a position change.

For one security the lot ledger runs first and the projector consumes its
open quantity. Every engine error and warning comes back as data on the
``Recomputation`` so the caller decides whether to block the mutation,
flag the position, or show a banner. Separate securities share nothing,
so a portfolio is recomputed in parallel, one task per security.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from loguru import logger

from .core.config_schema import LotbookConfig
from .core.exceptions import (
    DataProcessingError,
    LotbookError,
    LotbookWarning,
    ScheduleInvariantViolation,
)
from .core.money import ZERO
from .fixed_income.models import Security
from .fixed_income.projector import ProjectionResult, project_security
from .ledger.fifo import FifoResult, compute_fifo
from .ledger.models import Trade


@dataclass(frozen=True)
class Recomputation:
    """Everything derived for one security from its trades and terms.

    ``fifo`` is None when the ledger could not run at all (bad ordering,
    mixed currencies); ``projection`` is None when the ledger failed or the
    schedule is invalid.
    """

    security_id: str
    fifo: FifoResult | None = None
    projection: ProjectionResult | None = None
    errors: tuple[LotbookError, ...] = field(default=(), compare=False)
    warnings: tuple[LotbookWarning, ...] = field(default=(), compare=False)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def open_quantity(self) -> Decimal:
        return self.fifo.open_quantity if self.fifo else ZERO


def recompute_security(
    security: Security,
    trades: Sequence[Trade],
    horizon_start: date,
    *,
    settings: LotbookConfig | None = None,
) -> Recomputation:
    """Run the lot ledger and then the cashflow projector for one security.

    Args:
        security: Contract terms.
        trades: The security's trades, ordered by date.
        horizon_start: Boundary between paid and projected cashflows.
        settings: Rounding and tolerance settings; defaults apply when None.
    """
    settings = settings or LotbookConfig()
    places = settings.ledger.money_places
    sid = security.security_id

    try:
        fifo = compute_fifo(trades, money_places=places)
    except DataProcessingError as e:
        logger.warning(f"Ledger failed for {sid}: {e}")
        return Recomputation(security_id=sid, errors=(e,))

    if fifo.error is not None:
        logger.warning(f"Ledger for {sid} stopped: {fifo.error}")
        return Recomputation(security_id=sid, fifo=fifo, errors=(fifo.error,))

    try:
        projection = project_security(
            security,
            fifo.open_quantity,
            horizon_start,
            money_places=places,
            tolerance=Decimal(str(settings.schedule.tolerance)),
        )
    except ScheduleInvariantViolation as e:
        logger.warning(f"Projection failed for {sid}: {e}")
        return Recomputation(security_id=sid, fifo=fifo, errors=(e,))

    return Recomputation(
        security_id=sid,
        fifo=fifo,
        projection=projection,
        warnings=projection.warnings,
    )


def recompute_portfolio(
    securities: Iterable[Security],
    trades: Mapping[str, Sequence[Trade]],
    horizon_start: date,
    *,
    settings: LotbookConfig | None = None,
    max_workers: int | None = None,
) -> dict[str, Recomputation]:
    """Recompute every security in parallel.

    Args:
        securities: Securities to recompute.
        trades: Ordered trades keyed by security id; missing keys mean no trades.
        horizon_start: Boundary between paid and projected cashflows.
        settings: Shared rounding and tolerance settings.
        max_workers: Thread pool size; defaults to ``projection.max_workers``.

    Returns:
        Results keyed by security id, in input order.
    """
    settings = settings or LotbookConfig()
    workers = max_workers or settings.projection.max_workers
    securities = list(securities)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(
                recompute_security,
                security,
                trades.get(security.security_id, ()),
                horizon_start,
                settings=settings,
            )
            for security in securities
        ]
        results = [future.result() for future in futures]

    failed = sum(1 for r in results if not r.ok)
    logger.debug(f"Recomputed {len(results)} securities, {failed} with errors")
    return {r.security_id: r for r in results}
