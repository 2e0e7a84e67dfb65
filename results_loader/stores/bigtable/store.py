"""Bigtable result store implementation."""

import asyncio
import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import bigtable
from google.cloud.bigtable.table import Table

from results_loader.credentials import load_credentials
from results_loader.errors import StoreConnectionError, StoreWriteError
from results_loader.models.cell import EncodedCell
from results_loader.stores.base import ResultStore, RowWriteError
from results_loader.stores.bigtable.config import BigtableConfig

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class BigtableStore(ResultStore):
    """Writes cells to a single Bigtable table."""

    config: BigtableConfig
    table: Table = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: BigtableConfig
    ) -> AsyncGenerator["BigtableStore", None]:
        """Create store with managed client lifecycle."""
        log.info(
            "Opening Bigtable table: project=%s, instance=%s, table=%s",
            config.project_id,
            config.instance_id,
            config.table_id,
        )
        try:
            client = bigtable.Client(
                project=config.project_id,
                credentials=load_credentials(config.credentials_file),
                admin=False,
            )
            table = client.instance(config.instance_id).table(config.table_id)
        except (GoogleAuthError, OSError, ValueError) as e:
            raise StoreConnectionError(
                f"Failed to create Bigtable client for {config.instance_id}: {e}"
            ) from e

        try:
            yield cls(config=config, table=table)
        finally:
            client.close()

    async def apply_bulk(self, cells: Sequence[EncodedCell]) -> Sequence[RowWriteError]:
        """Apply cells as one ``mutate_rows`` call on a worker thread."""
        rows = []
        for cell in cells:
            row = self.table.direct_row(cell.row_key)
            row.set_cell(cell.family, cell.column, cell.value, timestamp=cell.timestamp)
            rows.append(row)

        try:
            statuses = await asyncio.to_thread(
                self.table.mutate_rows, rows, retry=None
            )
        except GoogleAPIError as e:
            raise StoreWriteError(f"Bigtable bulk write failed: {e}") from e

        return [
            RowWriteError(row_key=cell.row_key, message=status.message)
            for cell, status in zip(cells, statuses, strict=True)
            if status.code != 0
        ]
