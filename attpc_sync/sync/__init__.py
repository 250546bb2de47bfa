"""Time stamp synchronization components."""

from .timestamp import (
    TimestampSource,
    ArrayTimestampSource,
    collect_series,
    compute_deltas,
)
from .alignment import (
    AlignmentLocator,
    AlignmentResult,
    AlignmentStatus,
    locate_alignment,
)
from .synchronizer import (
    SynchronizedIndexBuilder,
    SyncPlan,
    JitterAnomaly,
    synchronize,
    synchronize_series,
)

__all__ = [
    "TimestampSource",
    "ArrayTimestampSource",
    "collect_series",
    "compute_deltas",
    "AlignmentLocator",
    "AlignmentResult",
    "AlignmentStatus",
    "locate_alignment",
    "SynchronizedIndexBuilder",
    "SyncPlan",
    "JitterAnomaly",
    "synchronize",
    "synchronize_series",
]
