"""Core components for the AT-TPC synchronizer."""

from .event import Channel, GetEvent, FribEvent, MergerEvent, ScalerEvent, ScalerSet
from .config import Config, construct_run_path, parse_run_filename
from .errors import (
    SynchronizerError,
    ConfigError,
    RunNotFoundError,
    UnrecognizedFormatError,
    MissingFieldError,
    EventNotFoundError,
)

__all__ = [
    "Channel",
    "GetEvent",
    "FribEvent",
    "MergerEvent",
    "ScalerEvent",
    "ScalerSet",
    "Config",
    "construct_run_path",
    "parse_run_filename",
    "SynchronizerError",
    "ConfigError",
    "RunNotFoundError",
    "UnrecognizedFormatError",
    "MissingFieldError",
    "EventNotFoundError",
]
