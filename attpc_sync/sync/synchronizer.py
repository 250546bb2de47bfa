"""
Synchronized event index building.

Walks both channels' inter-event intervals forward from the aligned
starting pair and produces the list of matching (GET, FRIB) ordinals.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple
import logging
import numpy as np

from ..core.event import Channel
from .alignment import AlignmentLocator, AlignmentResult
from .timestamp import TimestampSource, collect_series, compute_deltas

logger = logging.getLogger(__name__)

# Jitter above this means FRIB produced an event GET has no partner for
SKIP_THRESHOLD = 1000
# Jitter above this (and not a skip) is reported as abnormal
ANOMALY_THRESHOLD = 5


@dataclass(frozen=True)
class JitterAnomaly:
    """An emitted pair whose interval mismatch exceeded the anomaly threshold."""
    get_index: int
    frib_index: int
    jitter: int


@dataclass
class SyncPlan:
    """
    Ordered (GET, FRIB) ordinal pairs describing matching events.

    The GET ordinal increases by exactly one per pair. The FRIB ordinal
    increases by at least one, by more after a skip.
    """
    alignment: AlignmentResult = field(default_factory=AlignmentResult)
    pairs: List[Tuple[int, int]] = field(default_factory=list)
    skip_count: int = 0
    anomalies: List[JitterAnomaly] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.pairs)

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        return iter(self.pairs)

    @property
    def is_empty(self) -> bool:
        return not self.pairs

    @property
    def get_indices(self) -> List[int]:
        return [g for g, _ in self.pairs]

    @property
    def frib_indices(self) -> List[int]:
        return [f for _, f in self.pairs]

    def summary(self) -> dict:
        return {
            "alignment_status": self.alignment.status.value,
            "get_first": self.alignment.get_first,
            "frib_first": self.alignment.frib_first,
            "pairs": len(self.pairs),
            "skip_count": self.skip_count,
            "anomaly_count": len(self.anomalies),
        }


class SynchronizedIndexBuilder:
    """
    Greedy forward walk over two delta sequences.

    Only the FRIB side is ever advanced faster than GET: a jitter above
    skip_threshold consumes one extra FRIB interval and the shift is kept
    for the rest of the walk. Decisions are never revisited.
    """

    def __init__(
        self,
        skip_threshold: int = SKIP_THRESHOLD,
        anomaly_threshold: int = ANOMALY_THRESHOLD,
    ):
        self._skip_threshold = skip_threshold
        self._anomaly_threshold = anomaly_threshold

    def build(
        self,
        tsd_get: np.ndarray,
        tsd_frib: np.ndarray,
        alignment: Optional[AlignmentResult] = None,
    ) -> SyncPlan:
        """
        Build the plan from an aligned starting pair.

        Args:
            tsd_get: GET delta sequence
            tsd_frib: FRIB delta sequence
            alignment: Starting pair (default (0, 0))

        Returns:
            SyncPlan, empty if the start lies outside either sequence
        """
        alignment = alignment or AlignmentResult()
        plan = SyncPlan(alignment=alignment)

        get_first = alignment.get_first
        frib_first = alignment.frib_first
        n_get = len(tsd_get)
        n_frib = len(tsd_frib)

        if get_first >= n_get or frib_first >= n_frib:
            return plan

        plan.pairs.append((get_first, frib_first))

        offset = 0
        for i in range(1, n_get - get_first):
            get_idx = i + get_first
            frib_idx = i + frib_first + offset
            if frib_idx >= n_frib:
                break

            jitter = int(tsd_get[get_idx]) - int(tsd_frib[frib_idx])
            if jitter > self._skip_threshold:
                offset += 1
                frib_idx += 1
                logger.debug(
                    f"Time stamp mismatch at GET event {get_idx} (jitter {jitter}), "
                    "skipping FRIB event"
                )
                if frib_idx >= n_frib:
                    break
            elif jitter > self._anomaly_threshold:
                logger.warning(f"Found abnormal TS jitter of {jitter} in event {get_idx}")
                plan.anomalies.append(JitterAnomaly(get_idx, frib_idx, jitter))

            plan.pairs.append((get_idx, frib_idx))

        plan.skip_count = offset

        logger.info(f"First GET event synchronized is {plan.pairs[0][0]}")
        logger.info(f"Last GET event synchronized is {plan.pairs[-1][0]}")
        logger.info(f"A total of {offset} time stamp mismatches were found")
        return plan


def synchronize_series(
    get_series: Sequence[int],
    frib_series: Sequence[int],
    locator: Optional[AlignmentLocator] = None,
    builder: Optional[SynchronizedIndexBuilder] = None,
) -> SyncPlan:
    """
    Synchronize two timestamp series.

    Example:
        plan = synchronize_series(get_ts, frib_ts)
        for get_idx, frib_idx in plan:
            ...
    """
    locator = locator or AlignmentLocator()
    builder = builder or SynchronizedIndexBuilder()

    tsd_get = compute_deltas(get_series)
    tsd_frib = compute_deltas(frib_series)

    if len(tsd_get) == 0 or len(tsd_frib) == 0:
        logger.info("A channel has no events, nothing to synchronize")
        return SyncPlan()

    alignment = locator.locate(tsd_get, tsd_frib)
    return builder.build(tsd_get, tsd_frib, alignment)


def synchronize(
    source: TimestampSource,
    locator: Optional[AlignmentLocator] = None,
    builder: Optional[SynchronizedIndexBuilder] = None,
) -> SyncPlan:
    """Read both channels of a TimestampSource and synchronize them."""
    get_series = collect_series(source, Channel.GET)
    frib_series = collect_series(source, Channel.FRIB)
    logger.debug(f"Collected {len(get_series)} GET and {len(frib_series)} FRIB time stamps")
    return synchronize_series(get_series, frib_series, locator, builder)
