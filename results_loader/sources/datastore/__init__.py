"""Datastore run source module."""

from results_loader.sources.datastore.config import DatastoreConfig
from results_loader.sources.datastore.source import DatastoreRunSource

__all__ = ["DatastoreConfig", "DatastoreRunSource"]
