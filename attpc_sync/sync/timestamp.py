"""Timestamp access and inter-event intervals for the two DAQ channels."""

from abc import ABC, abstractmethod
from typing import Dict, Sequence
import numpy as np

from ..core.event import Channel
from ..core.errors import EventNotFoundError


class TimestampSource(ABC):
    """
    Read-only, per-channel access to event timestamps.

    Channels are independent: GET and FRIB may hold a different number
    of events, and each is addressed by its own 0-based event ordinal.
    """

    @abstractmethod
    def length(self, channel: Channel) -> int:
        """Number of events available on a channel."""
        pass

    @abstractmethod
    def timestamp(self, channel: Channel, ordinal: int) -> int:
        """
        Timestamp of an event.

        Raises:
            EventNotFoundError: If the channel has no event at this ordinal
        """
        pass


class ArrayTimestampSource(TimestampSource):
    """
    TimestampSource over timestamps already held in memory.

    Example:
        source = ArrayTimestampSource(get=[100, 200, 300], frib=[50, 150])
        source.length(Channel.FRIB)  # 2
    """

    def __init__(self, get: Sequence[int], frib: Sequence[int]):
        self._series: Dict[Channel, np.ndarray] = {
            Channel.GET: np.asarray(get, dtype=np.uint64),
            Channel.FRIB: np.asarray(frib, dtype=np.uint64),
        }

    def length(self, channel: Channel) -> int:
        return len(self._series[channel])

    def timestamp(self, channel: Channel, ordinal: int) -> int:
        series = self._series[channel]
        if ordinal < 0 or ordinal >= len(series):
            raise EventNotFoundError(
                f"No {channel.value.upper()} event at ordinal {ordinal}"
            )
        return int(series[ordinal])


def collect_series(source: TimestampSource, channel: Channel) -> np.ndarray:
    """Read every timestamp of one channel into a uint64 array."""
    count = source.length(channel)
    series = np.empty(count, dtype=np.uint64)
    for ordinal in range(count):
        series[ordinal] = source.timestamp(channel, ordinal)
    return series


def compute_deltas(series: Sequence[int]) -> np.ndarray:
    """
    First differences of a timestamp series.

    Element 0 is a 0 sentinel and element i is series[i] - series[i-1],
    computed in signed 64-bit arithmetic. An empty series gives an empty
    result.

    Example:
        >>> compute_deltas([1000, 1100, 1250]).tolist()
        [0, 100, 150]
    """
    values = np.asarray(series, dtype=np.uint64).astype(np.int64)
    deltas = np.zeros(len(values), dtype=np.int64)
    if len(values) > 1:
        deltas[1:] = np.diff(values)
    return deltas
