"""Models describing test runs enumerated from the metadata store."""

from dataclasses import dataclass
from datetime import datetime, timezone

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_rfc3339(value: datetime) -> str:
    """Render a datetime as RFC 3339 in UTC with second precision.

    Naive datetimes are taken to already be in UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(RFC3339_FORMAT)


@dataclass(frozen=True, kw_only=True)
class RunDescriptor:
    """A single recorded test run and where its raw results live."""

    browser_name: str
    browser_version: str
    os_name: str
    os_version: str
    full_revision_hash: str
    created_at: datetime
    raw_results_url: str

    @property
    def run_id(self) -> str:
        """Identity string, used as the column key for this run's cells."""
        return (
            f"{self.browser_name}-{self.browser_version}"
            f"-{self.os_name}-{self.os_version}"
            f"@{self.full_revision_hash}#{format_rfc3339(self.created_at)}"
        )
