"""Configuration for the Bigtable result store."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class BigtableConfig(BaseModel):
    """Configuration for the Bigtable result store."""

    model_config = ConfigDict(frozen=True)

    project_id: str = "wptdashboard"
    instance_id: str = "wpt-results-matrix"
    table_id: str = "wpt-results-per-test-wide"
    family: str = "runs"
    credentials_file: Path | None = Path("client-secret.json")
