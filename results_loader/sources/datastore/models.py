"""Mapping of Datastore ``TestRun`` entities to run descriptors."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from results_loader.models.run import RunDescriptor


class TestRunEntity(BaseModel):
    """A ``TestRun`` entity as stored in Datastore.

    Missing or null string properties load as empty strings, the way the
    Datastore client leaves an unset field at its zero value. A run with an
    empty results URL is then skipped when its report is fetched.
    """

    __test__ = False

    browser_name: str = Field(default="", alias="BrowserName")
    browser_version: str = Field(default="", alias="BrowserVersion")
    os_name: str = Field(default="", alias="OSName")
    os_version: str = Field(default="", alias="OSVersion")
    full_revision_hash: str = Field(default="", alias="FullRevisionHash")
    created_at: datetime = Field(alias="CreatedAt")
    raw_results_url: str = Field(default="", alias="RawResultsURL")

    @field_validator(
        "browser_name",
        "browser_version",
        "os_name",
        "os_version",
        "full_revision_hash",
        "raw_results_url",
        mode="before",
    )
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        """Load null string properties as empty strings."""
        return "" if value is None else value

    @classmethod
    def from_entity(cls, entity: Mapping[str, Any]) -> "TestRunEntity":
        """Validate a Datastore entity, ignoring properties not needed here."""
        return cls.model_validate(dict(entity))

    def to_descriptor(self) -> RunDescriptor:
        """Convert to an immutable run descriptor."""
        return RunDescriptor(
            browser_name=self.browser_name,
            browser_version=self.browser_version,
            os_name=self.os_name,
            os_version=self.os_version,
            full_revision_hash=self.full_revision_hash,
            created_at=self.created_at,
            raw_results_url=self.raw_results_url,
        )
