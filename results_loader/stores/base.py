"""Abstract base class for wide-column result stores."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from results_loader.models.cell import EncodedCell


@dataclass(frozen=True, kw_only=True)
class RowWriteError:
    """A single row mutation rejected by the store."""

    row_key: str
    message: str


@dataclass(frozen=True, kw_only=True)
class ResultStore(ABC):
    """Abstract bulk-apply target for encoded cells.

    Implementations must tolerate concurrent ``apply_bulk`` calls from many
    ingestion tasks without external locking.
    """

    @abstractmethod
    async def apply_bulk(self, cells: Sequence[EncodedCell]) -> Sequence[RowWriteError]:
        """Apply a batch of cells in a single store call.

        Args:
            cells: Cells to write, in the order they were accumulated

        Returns:
            Rows that failed to apply; empty when every row succeeded

        Raises:
            StoreWriteError: If the call as a whole failed

        """
