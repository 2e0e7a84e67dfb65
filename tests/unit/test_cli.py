"""Tests for CLI module."""

import asyncio
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest

from results_loader.cli import abort, build_config, build_parser, load, main, run
from results_loader.config import LoaderConfig
from results_loader.errors import (
    MemoryThresholdExceeded,
    RunSourceError,
    StoreConnectionError,
)
from results_loader.scheduler import IngestionSummary

TIMESTAMP = datetime(2020, 1, 2, tzinfo=timezone.utc)


def context_manager(value: object) -> AsyncMock:
    """Create mock async context manager that yields value."""
    cm = AsyncMock()
    cm.__aenter__.return_value = value
    cm.__aexit__.return_value = None
    return cm


class TestBuildConfig:
    """Tests for building configuration from flags."""

    def test_defaults(self) -> None:
        """Uses defaults matching the deployed loader."""
        config = build_config(build_parser().parse_args([]))

        assert config == LoaderConfig()

    def test_shares_project_and_credentials(self) -> None:
        """Passes project and credentials to both collaborators."""
        args = build_parser().parse_args(
            [
                "--project-id",
                "other-project",
                "--gcp-credentials-file",
                "/secrets/key.json",
                "--output-bt-family",
                "results",
                "--concurrency",
                "8",
            ]
        )

        config = build_config(args)

        assert config.bigtable.project_id == "other-project"
        assert config.datastore.project_id == "other-project"
        assert config.bigtable.credentials_file == Path("/secrets/key.json")
        assert config.datastore.credentials_file == Path("/secrets/key.json")
        assert config.bigtable.family == "results"
        assert config.concurrency == 8


class TestRun:
    """Tests for run function."""

    async def test_returns_zero_and_prints_summary(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Returns 0 and prints the summary after a completed load."""
        summary = IngestionSummary(total=3, loaded=1, skipped=2, failed=0)

        with patch("results_loader.cli.load", new_callable=AsyncMock) as mock_load:
            mock_load.return_value = summary
            exit_code = await run(LoaderConfig(), TIMESTAMP)

        assert exit_code == 0
        mock_load.assert_awaited_once_with(LoaderConfig(), TIMESTAMP)
        assert json.loads(capsys.readouterr().out) == {
            "total": 3,
            "loaded": 1,
            "skipped": 2,
            "failed": 0,
        }

    @pytest.mark.parametrize(
        "error",
        [RunSourceError("query failed"), StoreConnectionError("no credentials")],
    )
    async def test_returns_one_on_fatal_error(
        self, error: Exception, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Returns 1 when enumeration or client construction fails."""
        with (
            patch("results_loader.cli.load", new_callable=AsyncMock, side_effect=error),
            caplog.at_level(logging.CRITICAL),
        ):
            exit_code = await run(LoaderConfig(), TIMESTAMP)

        assert exit_code == 1
        assert f"Aborting load: {error}" in caplog.text

    async def test_reports_breach_while_load_is_blocked(self) -> None:
        """Reports a memory breach long before the blocked load finishes."""
        breaches: list[tuple[float, MemoryThresholdExceeded]] = []

        async def blocked_load(
            config: LoaderConfig, timestamp: datetime
        ) -> IngestionSummary:
            await asyncio.to_thread(time.sleep, 1)
            return IngestionSummary(total=0, loaded=0, skipped=0, failed=0)

        started = time.monotonic()
        with patch("results_loader.cli.load", side_effect=blocked_load):
            await run(
                LoaderConfig(max_memory_bytes=1, monitor_interval=60),
                TIMESTAMP,
                on_breach=lambda breach: breaches.append((time.monotonic(), breach)),
            )

        [(tripped_at, breach)] = breaches
        assert tripped_at - started < 0.5
        assert breach.threshold_bytes == 1

    async def test_exits_process_on_memory_breach(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Ends the process with status 1 when memory exceeds the threshold."""

        async def blocked_load(
            config: LoaderConfig, timestamp: datetime
        ) -> IngestionSummary:
            await asyncio.to_thread(time.sleep, 0.5)
            return IngestionSummary(total=0, loaded=0, skipped=0, failed=0)

        with (
            patch("results_loader.cli.load", side_effect=blocked_load),
            patch("results_loader.cli.os._exit") as exit_mock,
            caplog.at_level(logging.CRITICAL),
        ):
            await run(LoaderConfig(max_memory_bytes=1), TIMESTAMP)

        exit_mock.assert_called_once_with(1)
        assert "Aborting load: Out of memory" in caplog.text


def test_abort_logs_flushes_and_exits(caplog: pytest.LogCaptureFixture) -> None:
    """Logs the breach, flushes handlers and exits without unwinding."""
    handler = Mock(spec=logging.Handler, level=logging.NOTSET)
    root = logging.getLogger()
    root.addHandler(handler)
    try:
        with (
            patch("results_loader.cli.os._exit") as exit_mock,
            caplog.at_level(logging.CRITICAL),
        ):
            abort(MemoryThresholdExceeded(200, 100))
    finally:
        root.removeHandler(handler)

    exit_mock.assert_called_once_with(1)
    handler.flush.assert_called_once_with()
    assert "Out of memory: 200 bytes in use" in caplog.text


class TestLoad:
    """Tests for wiring collaborators together."""

    async def test_ingests_runs_from_source(self) -> None:
        """Enumerates runs and hands them to the scheduler."""
        source = Mock()
        source.fetch_all = AsyncMock(return_value=[])

        with (
            patch("results_loader.cli.DatastoreRunSource") as source_cls,
            patch("results_loader.cli.BigtableStore") as store_cls,
            patch("results_loader.cli.ReportFetcher") as fetcher_cls,
        ):
            source_cls.from_config.return_value = context_manager(source)
            store_cls.from_config.return_value = context_manager(Mock())
            fetcher_cls.from_config.return_value = context_manager(Mock())
            config = LoaderConfig()

            summary = await load(config, TIMESTAMP)

        assert summary == IngestionSummary(total=0, loaded=0, skipped=0, failed=0)
        source_cls.from_config.assert_called_once_with(config.datastore)
        store_cls.from_config.assert_called_once_with(config.bigtable)
        fetcher_cls.from_config.assert_called_once_with(config)
        source.fetch_all.assert_awaited_once_with()


def test_main_rejects_invalid_configuration() -> None:
    """Exits with a usage error for invalid limits."""
    with (
        patch("sys.argv", ["results-loader", "--concurrency", "0"]),
        pytest.raises(SystemExit) as exc_info,
    ):
        main()

    assert exc_info.value.code == 2


def test_main_exits_with_run_result() -> None:
    """Exits with the code returned by run."""
    with (
        patch("sys.argv", ["results-loader"]),
        patch("results_loader.cli.run", new_callable=AsyncMock, return_value=0),
        pytest.raises(SystemExit) as exc_info,
    ):
        main()

    assert exc_info.value.code == 0
