"""Tests for run-by-run synchronization."""

from unittest.mock import Mock

import pytest
import numpy as np
import h5py

from attpc_sync.core.config import Config
from attpc_sync.core.errors import EventNotFoundError, UnrecognizedFormatError
from attpc_sync.core.event import FribEvent, GetEvent
from attpc_sync.orchestrator import (
    RunOrchestrator,
    RunStatus,
    process_run,
    write_plan,
)
from attpc_sync.storage import SyncWriter
from attpc_sync.sync import SyncPlan


def regular_timestamps(count, start=1_000_000, interval=10_000):
    return [start + i * interval for i in range(count)]


@pytest.fixture
def dirs(tmp_path):
    merger = tmp_path / "merger"
    sync = tmp_path / "sync"
    merger.mkdir()
    sync.mkdir()
    return merger, sync


class TestProcessRun:
    def test_missing_run_is_skipped(self, dirs):
        merger, sync = dirs
        report = process_run(Config(merger_path=merger, sync_path=sync), 4)

        assert report.status is RunStatus.MISSING
        assert not report.processed
        assert not (sync / "run_0004.h5").exists()

    def test_synchronizes_run(self, dirs, make_current_run, frib_extra_event):
        merger, sync = dirs
        get_ts, frib_ts = frib_extra_event
        make_current_run(merger / "run_0001.h5", get_ts, frib_ts, scalers=2)

        report = process_run(Config(merger_path=merger, sync_path=sync, min_run=1, max_run=1), 1)

        assert report.processed
        assert report.pairs == 11
        assert report.written == 11
        assert report.skip_count == 1
        assert report.missing_pairs == 0
        assert report.scalers == 2
        assert report.output_path == sync / "run_0001.h5"

        with h5py.File(report.output_path, "r") as f:
            events = f["events"]
            assert events.attrs["max_event"] == 11
            assert events.attrs["skip_count"] == 1
            assert events.attrs["alignment_status"] == "aligned"

            event = events["event_5"]
            assert event.attrs["get_event"] == 5
            assert event.attrs["frib_event"] == 6
            assert event["get_traces"].attrs["timestamp_other"] == get_ts[5]
            assert event["frib_physics"].attrs["timestamp"] == frib_ts[6]
            assert len(f["scalers"]) == 2

    def test_frib_longer_than_get(self, dirs, make_current_run, frib_extra_event):
        """An extra FRIB event leaves the last merger event without GET data."""
        merger, sync = dirs
        get_ts, frib_ts = frib_extra_event
        frib_ts = frib_ts + [get_ts[11]]
        make_current_run(merger / "run_0001.h5", get_ts, frib_ts)

        report = process_run(Config(merger_path=merger, sync_path=sync, min_run=1, max_run=1), 1)

        assert report.processed
        assert report.skip_count == 1
        assert report.pairs == 12
        assert report.written == 12
        assert report.missing_pairs == 0
        with h5py.File(report.output_path, "r") as f:
            event = f["events"]["event_11"]
            assert event.attrs["frib_event"] == 12
            assert event["frib_physics"].attrs["timestamp"] == get_ts[11]

    def test_legacy_run(self, dirs, make_legacy_run):
        merger, sync = dirs
        ts = regular_timestamps(6)
        make_legacy_run(merger / "run_0002.h5", ts, ts, min_event=10)

        report = process_run(Config(merger_path=merger, sync_path=sync), 2)

        assert report.written == 6
        with h5py.File(sync / "run_0002.h5", "r") as f:
            assert f["events"]["event_0"].attrs["get_event"] == 10
            assert f["events"]["event_0"].attrs["orig_run"] == 2
            assert len(f["scalers"]) == 0

    def test_unrecognized_format_propagates(self, dirs):
        merger, sync = dirs
        with h5py.File(merger / "run_0003.h5", "w") as f:
            f.create_group("junk")

        with pytest.raises(UnrecognizedFormatError):
            process_run(Config(merger_path=merger, sync_path=sync), 3)


class TestWritePlan:
    def _reader(self, missing_frib=()):
        reader = Mock()
        reader.event_range = (100, 110)
        reader.read_get.side_effect = lambda i: GetEvent(
            traces=np.zeros((1, 2), dtype=np.int16), id=i, timestamp=i, timestamp_other=i
        )
        reader.read_frib.side_effect = lambda i: None if i in missing_frib else FribEvent(
            traces=np.zeros((1, 2), dtype=np.uint16),
            coincidence=np.zeros(1, dtype=np.uint16),
            event=i,
            timestamp=i,
        )
        return reader

    def test_missing_event_skipped(self, tmp_path):
        plan = SyncPlan(pairs=[(0, 0), (1, 1), (2, 2)])
        with SyncWriter(tmp_path / "out.h5") as writer:
            missing = write_plan(self._reader(missing_frib={1}), writer, plan)
            assert writer.event_count == 2

        assert missing == 1
        with h5py.File(tmp_path / "out.h5", "r") as f:
            assert f["events"]["event_1"].attrs["get_event"] == 102

    def test_missing_event_error(self, tmp_path):
        plan = SyncPlan(pairs=[(0, 0), (1, 1)])
        with SyncWriter(tmp_path / "out.h5") as writer:
            with pytest.raises(EventNotFoundError, match="FRIB event 101"):
                write_plan(self._reader(missing_frib={1}), writer, plan, on_missing_event="error")


class TestRunOrchestrator:
    def test_run_range(self, dirs, make_current_run, make_legacy_run):
        merger, sync = dirs
        ts = regular_timestamps(5)
        make_current_run(merger / "run_0001.h5", ts, ts)
        make_legacy_run(merger / "run_0003.h5", ts, ts)
        seen = []

        config = Config(merger_path=merger, sync_path=sync, min_run=1, max_run=3)
        reports = RunOrchestrator(config, on_report=seen.append).run()

        assert [r.run_number for r in reports] == [1, 2, 3]
        assert [r.status for r in reports] == [
            RunStatus.SYNCHRONIZED,
            RunStatus.MISSING,
            RunStatus.SYNCHRONIZED,
        ]
        assert seen == reports
        assert (sync / "run_0001.h5").exists()
        assert (sync / "run_0003.h5").exists()

    def test_parallel_workers(self, dirs, make_current_run):
        merger, sync = dirs
        ts = regular_timestamps(5)
        for run in (1, 2):
            make_current_run(merger / f"run_{run:04d}.h5", ts, ts)

        config = Config(merger_path=merger, sync_path=sync, min_run=1, max_run=2, workers=2)
        reports = RunOrchestrator(config).run()

        assert [r.run_number for r in reports] == [1, 2]
        assert all(r.written == 5 for r in reports)
