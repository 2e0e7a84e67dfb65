"""Abstract base class for run sources."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from results_loader.models.run import RunDescriptor


@dataclass(frozen=True, kw_only=True)
class RunSource(ABC):
    """Abstract source of the runs to load."""

    @abstractmethod
    async def fetch_all(self) -> Sequence[RunDescriptor]:
        """Return every run, ordered by creation time ascending.

        The full result set is materialized before returning.

        Raises:
            RunSourceError: If the runs cannot be enumerated completely

        """
