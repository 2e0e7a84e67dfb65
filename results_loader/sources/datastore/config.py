"""Configuration for the Datastore run source."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class DatastoreConfig(BaseModel):
    """Configuration for the Datastore run source."""

    model_config = ConfigDict(frozen=True)

    project_id: str = "wptdashboard"
    kind: str = "TestRun"
    order_by: str = "CreatedAt"
    credentials_file: Path | None = Path("client-secret.json")
