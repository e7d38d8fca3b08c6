"""Cached rate computation for the API and CLI.

The pipeline itself is synchronous file processing; :class:`RateService` runs it
in an executor and keeps the latest complete results in two independent
:class:`~app.infra.cache.SnapshotCache` slots (reimbursement and combined).
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Mapping, Sequence

from app.common.exceptions import RateComputationError
from app.infra.cache import SnapshotCache
from app.infra.executors import run_in_executor
from config.settings import RateSettings
from observability.metrics import get_metrics_client
from observability.timing import timed

from .groups import DEFAULT_CODE_GROUPS, TARGET_PAYMENT_CODES, CodeGroup
from .payments import PaymentSeries, load_payment_series
from .reconcile import CombinedRates, reconcile
from .series import ReimbursementSeries, calculate_all_reimbursements

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CombinedSnapshot:
    """Everything one combined recomputation produced, kept together."""

    reimbursement: ReimbursementSeries
    payments: PaymentSeries
    combined: CombinedRates


class RateService:
    def __init__(
        self,
        settings: RateSettings,
        *,
        groups: Sequence[CodeGroup] = DEFAULT_CODE_GROUPS,
        target_codes: frozenset[str] = TARGET_PAYMENT_CODES,
        year_map: Mapping[str, Sequence[str]] | None = None,
        executor: Executor | None = None,
        reimbursement_cache: SnapshotCache[ReimbursementSeries] | None = None,
        combined_cache: SnapshotCache[CombinedSnapshot] | None = None,
    ) -> None:
        self.settings = settings
        self.groups = tuple(groups)
        self.target_codes = target_codes
        self.year_map = year_map
        self._executor = executor
        self.reimbursement_cache = reimbursement_cache or SnapshotCache(
            "reimbursement", ttl_s=settings.cache_ttl_s
        )
        self.combined_cache = combined_cache or SnapshotCache(
            "combined", ttl_s=settings.cache_ttl_s
        )

    # Synchronous pipeline -------------------------------------------------

    def compute_reimbursement(self) -> ReimbursementSeries:
        with timed("rates.compute_ms", {"stage": "reimbursement"}) as watch:
            try:
                series = calculate_all_reimbursements(
                    self.groups,
                    self.settings.years,
                    self.settings.data_dir,
                    self.settings.facility_type,
                )
            except OSError as exc:
                raise RateComputationError(
                    f"Failed to build reimbursement series from {self.settings.data_dir}: {exc}",
                    stage="reimbursement",
                ) from exc
        logger.info("Built reimbursement series for %d groups in %.1f ms", len(series.groups), watch.elapsed_ms)
        return series

    def compute_payments(self) -> PaymentSeries:
        with timed("rates.compute_ms", {"stage": "payments"}):
            try:
                return load_payment_series(self.settings.payment_dir, self.target_codes)
            except OSError as exc:
                raise RateComputationError(
                    f"Failed to load payment files from {self.settings.payment_dir}: {exc}",
                    stage="payments",
                ) from exc

    def compute_combined(self, reimbursement: ReimbursementSeries) -> CombinedSnapshot:
        payments = self.compute_payments()
        with timed("rates.compute_ms", {"stage": "reconcile"}):
            combined = reconcile(reimbursement.rates_by_group(), payments, self.year_map)
        logger.info(
            "Reconciled %d rate records against %d payment years",
            len(combined.records),
            len(payments),
        )
        return CombinedSnapshot(reimbursement=reimbursement, payments=payments, combined=combined)

    # Cached async access --------------------------------------------------

    async def reimbursement(self, *, force_refresh: bool = False) -> ReimbursementSeries:
        async def compute() -> ReimbursementSeries:
            get_metrics_client().incr("rates.recompute", {"cache": "reimbursement"})
            return await run_in_executor(self._executor, self.compute_reimbursement)

        return await self.reimbursement_cache.get_or_compute(compute, force_refresh=force_refresh)

    async def combined(self, *, force_refresh: bool = False) -> CombinedSnapshot:
        async def compute() -> CombinedSnapshot:
            get_metrics_client().incr("rates.recompute", {"cache": "combined"})
            reimbursement = await self.reimbursement(force_refresh=force_refresh)
            return await run_in_executor(self._executor, self.compute_combined, reimbursement)

        return await self.combined_cache.get_or_compute(compute, force_refresh=force_refresh)

    def invalidate(self) -> None:
        self.reimbursement_cache.invalidate()
        self.combined_cache.invalidate()


__all__ = ["CombinedSnapshot", "RateService"]
