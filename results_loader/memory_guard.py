"""Watchdog that aborts ingestion when process memory grows too large."""

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

import psutil

from results_loader.errors import MemoryThresholdExceeded

log = logging.getLogger(__name__)


def process_memory_bytes() -> int:
    """Return the resident set size of the current process."""
    return psutil.Process().memory_info().rss


@dataclass(frozen=True, kw_only=True)
class MemoryGuard:
    """Samples process memory on a fixed interval from its own thread.

    Sampling does not depend on the event loop, so a breach is caught even
    while the loop is busy decoding or encoding a large report.
    """

    threshold_bytes: int
    interval: float = 2.0
    sampler: Callable[[], int] = field(default=process_memory_bytes, repr=False)

    def check(self) -> int:
        """Take one sample, raising if it exceeds the threshold."""
        used = self.sampler()
        if used > self.threshold_bytes:
            raise MemoryThresholdExceeded(used, self.threshold_bytes)
        log.info("Monitor: %d bytes in use OK", used)
        return used

    def watch(self, stop: threading.Event) -> MemoryThresholdExceeded | None:
        """Sample until ``stop`` is set.

        Returns:
            The breach that ended sampling, or None if stopped first

        """
        while True:
            try:
                self.check()
            except MemoryThresholdExceeded as e:
                return e
            if stop.wait(self.interval):
                return None

    @contextmanager
    def guarding(
        self, on_breach: Callable[[MemoryThresholdExceeded], None]
    ) -> Iterator[None]:
        """Watch memory on a daemon thread for the duration of the block.

        ``on_breach`` runs on the watcher thread as soon as a sample exceeds
        the threshold.
        """
        stop = threading.Event()

        def _watch() -> None:
            if (breach := self.watch(stop)) is not None:
                on_breach(breach)

        thread = threading.Thread(target=_watch, name="memory-guard", daemon=True)
        thread.start()
        try:
            yield
        finally:
            stop.set()
