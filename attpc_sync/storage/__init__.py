"""Storage components for merger and synchronized data."""

from .merger_reader import (
    MergerReader,
    MergerSchema,
    LegacySchema,
    CurrentSchema,
    detect_schema,
)
from .sync_writer import SyncWriter
from .scalers import copy_scalers

__all__ = [
    "MergerReader",
    "MergerSchema",
    "LegacySchema",
    "CurrentSchema",
    "detect_schema",
    "SyncWriter",
    "copy_scalers",
]
