"""Datastore run source implementation."""

import asyncio
import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import datastore
from pydantic import ValidationError

from results_loader.credentials import load_credentials
from results_loader.errors import RunSourceError
from results_loader.models.run import RunDescriptor
from results_loader.sources.base import RunSource
from results_loader.sources.datastore.config import DatastoreConfig
from results_loader.sources.datastore.models import TestRunEntity

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class DatastoreRunSource(RunSource):
    """Enumerates runs from a Datastore kind."""

    config: DatastoreConfig
    client: datastore.Client = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: DatastoreConfig
    ) -> AsyncGenerator["DatastoreRunSource", None]:
        """Create source with managed client lifecycle."""
        try:
            client = datastore.Client(
                project=config.project_id,
                credentials=load_credentials(config.credentials_file),
            )
        except (GoogleAuthError, OSError, ValueError) as e:
            raise RunSourceError(
                f"Failed to create Datastore client for {config.project_id}: {e}"
            ) from e

        try:
            yield cls(config=config, client=client)
        finally:
            client.close()

    async def fetch_all(self) -> Sequence[RunDescriptor]:
        """Query every run ordered by creation time."""
        log.info(
            "Querying %s runs ordered by %s", self.config.kind, self.config.order_by
        )
        return await asyncio.to_thread(self._fetch_all_sync)

    def _fetch_all_sync(self) -> Sequence[RunDescriptor]:
        query = self.client.query(kind=self.config.kind, order=[self.config.order_by])
        runs: list[RunDescriptor] = []
        try:
            for entity in query.fetch():
                runs.append(TestRunEntity.from_entity(entity).to_descriptor())
        except GoogleAPIError as e:
            raise RunSourceError(
                f"Query for {self.config.kind} failed after {len(runs)} runs: {e}"
            ) from e
        except ValidationError as e:
            raise RunSourceError(
                f"Malformed {self.config.kind} entity after {len(runs)} runs: {e}"
            ) from e

        log.info("Loaded %d runs", len(runs))
        return runs
