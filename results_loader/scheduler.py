"""Bounded-concurrency ingestion of runs into the result store."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from results_loader.accumulator import BatchAccumulator
from results_loader.encoder import encode_report
from results_loader.fetcher import ReportFetcher, Skip
from results_loader.models.run import RunDescriptor
from results_loader.stores.base import ResultStore

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class RunOutcome:
    """Outcome of ingesting a single run."""

    run: RunDescriptor
    status: Literal["loaded", "skipped"]
    written_cells: int = 0
    failed_cells: int = 0


@dataclass(frozen=True, kw_only=True)
class IngestionSummary:
    """Counts of run outcomes for one pass."""

    total: int
    loaded: int
    skipped: int
    failed: int


@dataclass(frozen=True, kw_only=True)
class IngestionScheduler:
    """Runs one ingestion task per run, at most ``concurrency`` at a time.

    Every cell written during a pass carries the same ``timestamp``.
    """

    fetcher: ReportFetcher
    store: ResultStore
    family: str
    timestamp: datetime
    max_batch_size: int = 100_000
    concurrency: int = 100

    async def run(self, runs: Sequence[RunDescriptor]) -> IngestionSummary:
        """Ingest all runs and wait for every task to finish.

        Args:
            runs: Runs to ingest, in dispatch order

        Returns:
            Counts of loaded, skipped and failed runs

        """
        if not runs:
            log.info("No runs to process")
            return IngestionSummary(total=0, loaded=0, skipped=0, failed=0)

        log.info(
            "Dispatching %d run(s) with concurrency %d", len(runs), self.concurrency
        )
        permits = asyncio.Semaphore(self.concurrency)
        tasks = [self._ingest_run(run, permits) for run in runs]

        results = await asyncio.gather(*tasks, return_exceptions=True)

        summary = self._process_results(runs, results)
        log.info(
            "Finished processing %d runs (loaded=%d, skipped=%d, failed=%d)",
            summary.total,
            summary.loaded,
            summary.skipped,
            summary.failed,
        )
        return summary

    def _process_results(
        self,
        runs: Sequence[RunDescriptor],
        results: Sequence[RunOutcome | BaseException],
    ) -> IngestionSummary:
        """Tally task outcomes, logging tasks that raised."""
        loaded = skipped = failed = 0

        for run, result in zip(runs, results, strict=True):
            if isinstance(result, RunOutcome):
                if result.status == "loaded":
                    loaded += 1
                else:
                    skipped += 1
            else:
                failed += 1
                log.error(
                    "Ingestion of run %s failed: %s",
                    run.run_id,
                    result,
                    exc_info=result,
                )

        return IngestionSummary(
            total=len(results), loaded=loaded, skipped=skipped, failed=failed
        )

    async def _ingest_run(
        self, run: RunDescriptor, permits: asyncio.Semaphore
    ) -> RunOutcome:
        """Fetch, encode and write one run while holding a permit."""
        async with permits:
            report = await self.fetcher.fetch(run)
            if isinstance(report, Skip):
                return RunOutcome(run=run, status="skipped")

            log.info(
                "Gathering %d test results for %s", len(report.results), run.run_id
            )
            batch = BatchAccumulator(
                store=self.store, max_batch_size=self.max_batch_size
            )
            for cell in encode_report(
                report, run, family=self.family, timestamp=self.timestamp
            ):
                await batch.add(cell)
            await batch.flush()

            log.info(
                "Run %s done: %d cells written, %d failed in %d batch(es)",
                run.run_id,
                batch.written_cells,
                batch.failed_cells,
                batch.flushed_batches,
            )
            return RunOutcome(
                run=run,
                status="loaded",
                written_cells=batch.written_cells,
                failed_cells=batch.failed_cells,
            )
