"""
Event records read from merger containers.

Every event pulled out of a merger run is wrapped in one of these
records, independent of which merger schema produced the file.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
import numpy as np


class Channel(Enum):
    """DAQ streams recorded in a merger run."""
    GET = "get"
    FRIB = "frib"


@dataclass
class GetEvent:
    """
    A GET front-end event.

    Attributes:
        traces: Digitized pad traces (int16, 2-D)
        id: GET event id
        timestamp: Primary GET timestamp
        timestamp_other: Secondary timestamp, shared clock with FRIB
    """
    traces: np.ndarray
    id: int
    timestamp: int
    timestamp_other: int


@dataclass
class FribEvent:
    """
    An FRIBDAQ physics event.

    Attributes:
        traces: SIS3300 module traces (uint16, 2-D, dataset "1903")
        coincidence: V977 coincidence register (uint16, 1-D, dataset "977")
        event: FRIBDAQ event number
        timestamp: FRIBDAQ timestamp
    """
    traces: np.ndarray
    coincidence: np.ndarray
    event: int
    timestamp: int


@dataclass
class MergerEvent:
    """Both channels' data for one merger event number."""
    run_number: int
    event: int
    get: Optional[GetEvent] = None
    frib: Optional[FribEvent] = None

    @property
    def has_get(self) -> bool:
        return self.get is not None

    @property
    def has_frib(self) -> bool:
        return self.frib is not None


@dataclass
class ScalerEvent:
    """A periodic FRIBDAQ scaler snapshot."""
    index: int
    data: np.ndarray
    start_offset: int
    stop_offset: int
    timestamp: int
    incremental: int

    def __repr__(self) -> str:
        return (
            f"ScalerEvent(index={self.index}, "
            f"channels={len(self.data)}, "
            f"ts={self.timestamp})"
        )


@dataclass
class ScalerSet:
    """All scaler snapshots of a run with the source's event bounds."""
    events: List[ScalerEvent] = field(default_factory=list)
    min_event: int = 0
    max_event: int = 0

    def __len__(self) -> int:
        return len(self.events)
