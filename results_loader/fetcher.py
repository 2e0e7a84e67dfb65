"""Fetching and decoding of raw results reports."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Literal, TypeAlias

import aiohttp
from pydantic import ValidationError

from results_loader.config import LoaderConfig
from results_loader.models.report import ResultReport
from results_loader.models.run import RunDescriptor

log = logging.getLogger(__name__)

SkipReason: TypeAlias = Literal[
    "fetch failed",
    "non-OK status",
    "body read failed",
    "unmarshal failed",
    "empty report",
]


@dataclass(frozen=True, kw_only=True)
class Skip:
    """A run whose report could not be loaded."""

    run: RunDescriptor
    reason: SkipReason
    detail: str = ""


@dataclass(frozen=True, kw_only=True)
class ReportFetcher:
    """Retrieves raw results reports over HTTP."""

    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: LoaderConfig
    ) -> AsyncGenerator["ReportFetcher", None]:
        """Create fetcher with managed session lifecycle."""
        timeout = aiohttp.ClientTimeout(total=config.fetch_timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            yield cls(session=session)

    async def fetch(self, run: RunDescriptor) -> ResultReport | Skip:
        """Fetch and decode the report of a run.

        Network, status, body and decoding failures are returned as a
        ``Skip`` rather than raised, so one bad run never affects others.
        """
        url = run.raw_results_url
        try:
            async with self.session.get(url) as response:
                if response.status != 200:
                    return self._skip(run, "non-OK status", f"HTTP {response.status}")
                try:
                    body = await response.read()
                except (aiohttp.ClientError, TimeoutError) as e:
                    return self._skip(run, "body read failed", repr(e))
        except (aiohttp.ClientError, TimeoutError) as e:
            return self._skip(run, "fetch failed", repr(e))

        try:
            report = ResultReport.model_validate_json(body)
        except ValidationError as e:
            return self._skip(run, "unmarshal failed", f"{e.error_count()} error(s)")

        if not report.results:
            return self._skip(run, "empty report")

        return report

    def _skip(self, run: RunDescriptor, reason: SkipReason, detail: str = "") -> Skip:
        log.warning(
            "Skipping run %s: %s from \"%s\" %s",
            run.run_id,
            reason,
            run.raw_results_url,
            detail,
        )
        return Skip(run=run, reason=reason, detail=detail)
