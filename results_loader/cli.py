"""CLI entry point for the results loader."""

import argparse
import asyncio
import json
import logging
import os
import sys
from collections.abc import Callable
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from results_loader.config import LoaderConfig
from results_loader.errors import (
    MemoryThresholdExceeded,
    RunSourceError,
    StoreConnectionError,
)
from results_loader.fetcher import ReportFetcher
from results_loader.memory_guard import MemoryGuard
from results_loader.scheduler import IngestionScheduler, IngestionSummary
from results_loader.sources.datastore import DatastoreConfig, DatastoreRunSource
from results_loader.stores.bigtable import BigtableConfig, BigtableStore

log = logging.getLogger(__name__)


def abort(breach: MemoryThresholdExceeded) -> None:
    """End the process at once after a memory breach.

    Runs on the guard thread; in-flight tasks and pending batches are dropped.
    """
    log.critical("Aborting load: %s", breach)
    for handler in logging.getLogger().handlers:
        handler.flush()
    os._exit(1)


async def load(config: LoaderConfig, timestamp: datetime) -> IngestionSummary:
    """Enumerate all runs and ingest them into the result store."""
    async with (
        DatastoreRunSource.from_config(config.datastore) as source,
        BigtableStore.from_config(config.bigtable) as store,
        ReportFetcher.from_config(config) as fetcher,
    ):
        runs = await source.fetch_all()
        scheduler = IngestionScheduler(
            fetcher=fetcher,
            store=store,
            family=config.bigtable.family,
            timestamp=timestamp,
            max_batch_size=config.max_mutations_per_batch,
            concurrency=config.concurrency,
        )
        return await scheduler.run(runs)


async def run(
    config: LoaderConfig,
    timestamp: datetime | None = None,
    on_breach: Callable[[MemoryThresholdExceeded], None] = abort,
) -> int:
    """Run one loader pass under the memory guard and return exit code."""
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)
    log.info("Starting load with write timestamp %s", timestamp.isoformat())

    guard = MemoryGuard(
        threshold_bytes=config.max_memory_bytes,
        interval=config.monitor_interval,
    )
    try:
        with guard.guarding(on_breach):
            summary = await load(config, timestamp)
    except (RunSourceError, StoreConnectionError) as e:
        log.critical("Aborting load: %s", e)
        return 1

    print(json.dumps(asdict(summary)))
    return 0


def build_config(args: argparse.Namespace) -> LoaderConfig:
    """Build the loader configuration from parsed arguments."""
    return LoaderConfig(
        project_id=args.project_id,
        input_gcs_bucket=args.input_gcs_bucket,
        credentials_file=args.gcp_credentials_file,
        bigtable=BigtableConfig(
            project_id=args.project_id,
            instance_id=args.output_bt_instance_id,
            table_id=args.output_bt_table_id,
            family=args.output_bt_family,
            credentials_file=args.gcp_credentials_file,
        ),
        datastore=DatastoreConfig(
            project_id=args.project_id,
            credentials_file=args.gcp_credentials_file,
        ),
        concurrency=args.concurrency,
        max_mutations_per_batch=args.max_mutations_per_batch,
        max_memory_bytes=args.max_memory_bytes,
        monitor_interval=args.monitor_interval,
        fetch_timeout=args.fetch_timeout,
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Load raw test run results into a Bigtable table"
    )
    parser.add_argument(
        "--project-id",
        default="wptdashboard",
        help="Google Cloud Platform project id",
    )
    parser.add_argument(
        "--input-gcs-bucket",
        default="wptd-results",
        help="Google Cloud Storage bucket where sharded test results are stored",
    )
    parser.add_argument(
        "--gcp-credentials-file",
        type=Path,
        default=Path("client-secret.json"),
        help="Path to credentials file for Google Cloud Platform services",
    )
    parser.add_argument(
        "--output-bt-instance-id",
        default="wpt-results-matrix",
        help="Output Bigtable instance id",
    )
    parser.add_argument(
        "--output-bt-table-id",
        default="wpt-results-per-test-wide",
        help="Output Bigtable table id",
    )
    parser.add_argument(
        "--output-bt-family",
        default="runs",
        help="Output Bigtable column family for test results",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=100,
        help="Maximum number of runs processed at once",
    )
    parser.add_argument(
        "--max-mutations-per-batch",
        type=int,
        default=100_000,
        help="Maximum number of mutations in one bulk write",
    )
    parser.add_argument(
        "--max-memory-bytes",
        type=int,
        default=45_000_000_000,
        help="Abort when process memory exceeds this many bytes",
    )
    parser.add_argument(
        "--monitor-interval",
        type=float,
        default=2.0,
        help="Seconds between memory samples",
    )
    parser.add_argument(
        "--fetch-timeout",
        type=float,
        default=300.0,
        help="Seconds allowed for fetching one results report",
    )
    return parser


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        config = build_config(args)
    except ValidationError as e:
        parser.error(str(e))

    exit_code = asyncio.run(run(config))
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
