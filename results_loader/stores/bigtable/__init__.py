"""Bigtable result store module."""

from results_loader.stores.bigtable.config import BigtableConfig
from results_loader.stores.bigtable.store import BigtableStore

__all__ = ["BigtableConfig", "BigtableStore"]
