"""Encoded wide-column cells."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, kw_only=True)
class EncodedCell:
    """A single value destined for one (row, family, column, timestamp)."""

    row_key: str
    family: str
    column: str
    timestamp: datetime
    value: bytes
