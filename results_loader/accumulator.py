"""Size-bounded batching of cells into bulk-apply calls."""

import logging
from dataclasses import dataclass, field

from results_loader.errors import StoreWriteError
from results_loader.models.cell import EncodedCell
from results_loader.stores.base import ResultStore

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class BatchAccumulator:
    """Buffers cells for one ingestion task and flushes them in batches.

    A batch never holds more than ``max_batch_size`` cells: adding to a full
    batch flushes it first, so the new cell starts the next batch. Write
    failures are logged and dropped; they never propagate to the caller.
    """

    store: ResultStore
    max_batch_size: int
    pending: list[EncodedCell] = field(default_factory=list)
    flushed_batches: int = 0
    written_cells: int = 0
    failed_cells: int = 0

    def __post_init__(self) -> None:
        if self.max_batch_size < 1:
            raise ValueError(f"max_batch_size must be positive: {self.max_batch_size}")

    async def add(self, cell: EncodedCell) -> None:
        """Queue a cell, flushing first when the batch is already full."""
        if len(self.pending) == self.max_batch_size:
            await self.flush()
        self.pending.append(cell)

    async def flush(self) -> int:
        """Apply pending cells as one bulk call and start a new batch.

        Returns:
            Number of cells handed to the store (0 when nothing was pending)

        """
        if not self.pending:
            return 0

        batch = self.pending
        self.pending = []
        self.flushed_batches += 1

        try:
            errors = await self.store.apply_bulk(batch)
        except StoreWriteError as e:
            self.failed_cells += len(batch)
            log.error(
                "Bulk write of %d mutations starting at row %s failed: %s",
                len(batch),
                batch[0].row_key,
                e,
            )
            return len(batch)

        if errors:
            self.failed_cells += len(errors)
            self.written_cells += len(batch) - len(errors)
            log.error(
                "%d of %d writes from bulk write failed, first at row %s: %s",
                len(errors),
                len(batch),
                errors[0].row_key,
                errors[0].message,
            )
        else:
            self.written_cells += len(batch)
            log.info(
                "Bulk write success (%d mutations to row %s)",
                len(batch),
                batch[0].row_key,
            )
        return len(batch)
