"""Tests for time stamp sources and delta sequences."""

import pytest
import numpy as np

from attpc_sync.core.event import Channel
from attpc_sync.core.errors import EventNotFoundError
from attpc_sync.sync.timestamp import (
    ArrayTimestampSource,
    collect_series,
    compute_deltas,
)


class TestComputeDeltas:
    """Tests for the inter-event interval transform."""

    def test_empty_series(self):
        """Empty input gives empty output, not a lone sentinel."""
        deltas = compute_deltas([])
        assert len(deltas) == 0
        assert deltas.dtype == np.int64

    def test_single_element(self):
        assert compute_deltas([12345]).tolist() == [0]

    def test_differences(self):
        assert compute_deltas([1000, 1100, 1250, 1250]).tolist() == [0, 100, 150, 0]

    def test_decreasing_timestamps_are_signed(self):
        """Unsigned input must not wrap when a time stamp goes backwards."""
        deltas = compute_deltas(np.array([500, 300], dtype=np.uint64))
        assert deltas.tolist() == [0, -200]

    def test_large_values(self):
        base = 2**40
        assert compute_deltas([base, base + 7]).tolist() == [0, 7]


class TestArrayTimestampSource:
    def test_lengths_are_independent(self):
        source = ArrayTimestampSource(get=[1, 2, 3], frib=[4, 5])
        assert source.length(Channel.GET) == 3
        assert source.length(Channel.FRIB) == 2

    def test_timestamp(self):
        source = ArrayTimestampSource(get=[10, 20], frib=[30])
        assert source.timestamp(Channel.GET, 1) == 20
        assert source.timestamp(Channel.FRIB, 0) == 30

    def test_missing_ordinal_raises(self):
        source = ArrayTimestampSource(get=[10], frib=[])
        with pytest.raises(EventNotFoundError):
            source.timestamp(Channel.FRIB, 0)
        with pytest.raises(EventNotFoundError):
            source.timestamp(Channel.GET, -1)


class TestCollectSeries:
    def test_collects_each_channel(self):
        source = ArrayTimestampSource(get=[5, 6, 7], frib=[8])
        get = collect_series(source, Channel.GET)
        frib = collect_series(source, Channel.FRIB)

        assert get.dtype == np.uint64
        assert get.tolist() == [5, 6, 7]
        assert frib.tolist() == [8]

    def test_empty_channel(self):
        source = ArrayTimestampSource(get=[], frib=[1])
        assert len(collect_series(source, Channel.GET)) == 0
