"""Configuration for a loader pass."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from results_loader.sources.datastore.config import DatastoreConfig
from results_loader.stores.bigtable.config import BigtableConfig


class LoaderConfig(BaseModel):
    """Immutable configuration built once at startup."""

    model_config = ConfigDict(frozen=True)

    project_id: str = "wptdashboard"
    # Not read by the loader itself; kept so deployments share one flag set.
    input_gcs_bucket: str = "wptd-results"
    credentials_file: Path | None = Path("client-secret.json")
    bigtable: BigtableConfig = Field(default_factory=BigtableConfig)
    datastore: DatastoreConfig = Field(default_factory=DatastoreConfig)
    concurrency: int = Field(default=100, gt=0)
    max_mutations_per_batch: int = Field(default=100_000, gt=0, le=100_000)
    max_memory_bytes: int = Field(default=45_000_000_000, gt=0)
    monitor_interval: float = Field(default=2.0, gt=0)
    fetch_timeout: float = Field(default=300.0, gt=0)
