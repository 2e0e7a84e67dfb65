"""Exceptions raised by the results loader."""


class LoaderError(Exception):
    """Base class for loader errors."""


class RunSourceError(LoaderError):
    """Raised when the run list cannot be enumerated completely."""


class StoreConnectionError(LoaderError):
    """Raised when the result store client cannot be constructed."""


class StoreWriteError(LoaderError):
    """Raised when a whole bulk-apply call fails."""


class MemoryThresholdExceeded(LoaderError):
    """Raised by the memory guard when process memory crosses its threshold."""

    def __init__(self, used_bytes: int, threshold_bytes: int) -> None:
        super().__init__(
            f"Out of memory: {used_bytes} bytes in use exceeds "
            f"threshold of {threshold_bytes} bytes"
        )
        self.used_bytes = used_bytes
        self.threshold_bytes = threshold_bytes
