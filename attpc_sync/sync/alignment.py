"""
Initial alignment of the GET and FRIB streams.

Finds the first pair of event ordinals at which the two channels'
inter-event intervals agree, so the walk in the synchronizer starts
from co-temporal events.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging
import numpy as np

logger = logging.getLogger(__name__)

# Ticks between the first intervals for the streams to count as aligned
ALIGNMENT_THRESHOLD = 100
# Interval window compared per candidate (j runs over 1..depth-1)
PATTERN_DEPTH = 5
# Summed absolute interval difference accepted as a pattern match
MATCH_THRESHOLD = 5


class AlignmentStatus(Enum):
    """How an AlignmentResult was obtained."""
    ALIGNED = "aligned"
    PATTERN_MATCH = "pattern_match"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class AlignmentResult:
    """
    Starting ordinals at which both channels' intervals correspond.

    A NOT_FOUND result still starts at (0, 0) but is kept distinct from
    a run whose first events were already aligned.
    """
    get_first: int = 0
    frib_first: int = 0
    status: AlignmentStatus = AlignmentStatus.ALIGNED

    @property
    def found(self) -> bool:
        return self.status is not AlignmentStatus.NOT_FOUND

    @property
    def shift(self) -> int:
        """FRIB start minus GET start."""
        return self.frib_first - self.get_first


def _window_mismatch(
    leading: np.ndarray,
    lagging: np.ndarray,
    start: int,
    bound: int,
    depth: int,
) -> np.ndarray:
    """
    Pattern mismatch for every offset in [0, bound).

    Entry o is the sum over j in [1, depth) of
    |leading[start + j + o] - lagging[start + j]|. Windows reaching past
    the end of either sequence are +inf.
    """
    offsets = np.arange(bound)
    totals = np.zeros(bound, dtype=np.float64)

    for j in range(1, depth):
        ref = start + j
        if ref >= len(lagging):
            return np.full(bound, np.inf)

        idx = ref + offsets
        in_range = idx < len(leading)
        diff = np.full(bound, np.inf)
        diff[in_range] = np.abs(leading[idx[in_range]] - lagging[ref])
        totals += diff

    return totals


class AlignmentLocator:
    """
    Locates the first co-temporal event pair of two delta sequences.

    If the first real intervals already agree within alignment_threshold
    the streams are taken as aligned at (0, 0). Otherwise every
    (start, offset) with both below half the shorter sequence length is
    tried in order, testing "GET ahead" before "FRIB ahead" for each
    candidate, and the first window whose summed mismatch is below
    match_threshold wins.

    Example:
        locator = AlignmentLocator()
        result = locator.locate(tsd_get, tsd_frib)
        if not result.found:
            print("falling back to (0, 0)")
    """

    def __init__(
        self,
        alignment_threshold: int = ALIGNMENT_THRESHOLD,
        depth: int = PATTERN_DEPTH,
        match_threshold: int = MATCH_THRESHOLD,
    ):
        self._alignment_threshold = alignment_threshold
        self._depth = depth
        self._match_threshold = match_threshold

    def locate(self, tsd_get: np.ndarray, tsd_frib: np.ndarray) -> AlignmentResult:
        """
        Determine the starting pair for the synchronization walk.

        Args:
            tsd_get: GET delta sequence
            tsd_frib: FRIB delta sequence

        Returns:
            AlignmentResult; status NOT_FOUND when the search is exhausted
        """
        tsd_get = np.asarray(tsd_get, dtype=np.int64)
        tsd_frib = np.asarray(tsd_frib, dtype=np.int64)

        # Fewer than two events on a side leaves no interval to compare
        if len(tsd_get) < 2 or len(tsd_frib) < 2:
            return AlignmentResult()

        if abs(int(tsd_get[1]) - int(tsd_frib[1])) <= self._alignment_threshold:
            return AlignmentResult()

        logger.info("First events are not aligned!")
        result = self._search(tsd_get, tsd_frib)
        if result is None:
            logger.warning(
                "No matching time stamp pattern found, assuming GET 0 and FRIB 0 are aligned"
            )
            return AlignmentResult(status=AlignmentStatus.NOT_FOUND)

        logger.info(f"First aligned event is GET {result.get_first}, FRIB {result.frib_first}")
        return result

    def _search(
        self, tsd_get: np.ndarray, tsd_frib: np.ndarray
    ) -> Optional[AlignmentResult]:
        bound = min(len(tsd_get), len(tsd_frib)) // 2
        if bound == 0:
            return None

        for start in range(bound):
            get_ahead = _window_mismatch(tsd_get, tsd_frib, start, bound, self._depth)
            frib_ahead = _window_mismatch(tsd_frib, tsd_get, start, bound, self._depth)

            hits = np.flatnonzero(
                (get_ahead < self._match_threshold) | (frib_ahead < self._match_threshold)
            )
            if len(hits) == 0:
                continue

            offset = int(hits[0])
            if get_ahead[offset] < self._match_threshold:
                return AlignmentResult(
                    get_first=start + offset,
                    frib_first=start,
                    status=AlignmentStatus.PATTERN_MATCH,
                )
            return AlignmentResult(
                get_first=start,
                frib_first=start + offset,
                status=AlignmentStatus.PATTERN_MATCH,
            )

        return None


def locate_alignment(tsd_get: np.ndarray, tsd_frib: np.ndarray) -> AlignmentResult:
    """Locate the starting pair with the default thresholds."""
    return AlignmentLocator().locate(tsd_get, tsd_frib)
