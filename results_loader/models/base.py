"""Base model configuration for decoded payloads."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model that tolerates fields it does not declare."""

    model_config = ConfigDict(frozen=True, extra="ignore")
