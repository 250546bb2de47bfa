"""AT-TPC Synchronizer - Time stamp synchronization of GET and FRIB data."""

__version__ = "0.1.0"

from .core import (
    Channel,
    Config,
    GetEvent,
    FribEvent,
    MergerEvent,
    SynchronizerError,
)

from .sync import (
    TimestampSource,
    ArrayTimestampSource,
    AlignmentResult,
    AlignmentStatus,
    SyncPlan,
    compute_deltas,
    synchronize,
    synchronize_series,
)

from .storage import (
    MergerReader,
    SyncWriter,
)

from .orchestrator import RunOrchestrator, RunReport, process_run

__all__ = [
    "Channel",
    "Config",
    "GetEvent",
    "FribEvent",
    "MergerEvent",
    "SynchronizerError",
    "TimestampSource",
    "ArrayTimestampSource",
    "AlignmentResult",
    "AlignmentStatus",
    "SyncPlan",
    "compute_deltas",
    "synchronize",
    "synchronize_series",
    "MergerReader",
    "SyncWriter",
    "RunOrchestrator",
    "RunReport",
    "process_run",
]
