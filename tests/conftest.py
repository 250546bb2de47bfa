"""Shared fixtures: synthetic merger runs in both file formats."""

import pytest
import numpy as np
import h5py


def regular_timestamps(count, start=1_000_000, interval=10_000):
    """Evenly spaced time stamps."""
    return [start + i * interval for i in range(count)]


def _write_scalers_current(f, count):
    group = f.create_group("scalers")
    group.attrs["min_event"] = 0
    group.attrs["max_event"] = max(count - 1, 0)
    for i in range(count):
        ds = group.create_dataset(f"event{i}_data", data=np.arange(4, dtype=np.uint32) + i)
        ds.attrs["start_offset"] = 10 * i
        ds.attrs["stop_offset"] = 10 * i + 5
        ds.attrs["timestamp"] = 1000 * i
        ds.attrs["incremental"] = 1


def _write_scalers_legacy(f, count):
    group = f["frib"].create_group("scaler")
    for i in range(count):
        group.create_dataset(f"scaler{i}_data", data=np.arange(4, dtype=np.uint32) + i)
        group.create_dataset(
            f"scaler{i}_header",
            data=np.array([10 * i, 10 * i + 5, 1000 * i, 0, 1], dtype=np.uint32),
        )


@pytest.fixture
def make_current_run():
    """Factory writing a merger 0.2.0 file."""
    def _make(path, get_ts, frib_ts, min_event=0, scalers=0):
        count = max(len(get_ts), len(frib_ts))
        with h5py.File(path, "w") as f:
            events = f.create_group("events")
            events.attrs["min_event"] = min_event
            events.attrs["max_event"] = min_event + count
            for k in range(count):
                group = events.create_group(f"event_{min_event + k}")
                if k < len(get_ts):
                    traces = group.create_dataset(
                        "get_traces", data=np.full((2, 8), k, dtype=np.int16)
                    )
                    traces.attrs["id"] = k
                    traces.attrs["timestamp"] = 7 * k
                    traces.attrs["timestamp_other"] = get_ts[k]
                if k < len(frib_ts):
                    frib = group.create_group("frib_physics")
                    frib.attrs["event"] = k
                    frib.attrs["timestamp"] = frib_ts[k]
                    frib.create_dataset("1903", data=np.full((3, 4), k, dtype=np.uint16))
                    frib.create_dataset("977", data=np.array([k, 1], dtype=np.uint16))
            if scalers:
                _write_scalers_current(f, scalers)
        return path
    return _make


@pytest.fixture
def make_legacy_run():
    """Factory writing a merger 0.1.0 file."""
    def _make(path, get_ts, frib_ts, min_event=0, scalers=0):
        count = max(len(get_ts), len(frib_ts))
        with h5py.File(path, "w") as f:
            meta = f.create_group("meta")
            meta.create_dataset(
                "meta", data=np.array([min_event, 0, min_event + count], dtype=np.uint64)
            )
            get = f.create_group("get")
            evt = f.create_group("frib").create_group("evt")
            for k in range(count):
                event = min_event + k
                if k < len(get_ts):
                    get.create_dataset(f"evt{event}_data", data=np.full((2, 8), k, dtype=np.int16))
                    get.create_dataset(
                        f"evt{event}_header",
                        data=np.array([k, 7 * k, get_ts[k]], dtype=np.float64),
                    )
                if k < len(frib_ts):
                    evt.create_dataset(f"evt{event}_1903", data=np.full((3, 4), k, dtype=np.uint16))
                    evt.create_dataset(f"evt{event}_977", data=np.array([k, 1], dtype=np.uint16))
                    evt.create_dataset(
                        f"evt{event}_header", data=np.array([k, frib_ts[k]], dtype=np.uint32)
                    )
            if scalers:
                _write_scalers_legacy(f, scalers)
        return path
    return _make


@pytest.fixture
def frib_extra_event():
    """
    GET and FRIB time stamps where FRIB recorded one event GET missed.

    Both lists hold 12 events: FRIB has an extra event between GET
    events 4 and 5 and lost the final one.
    """
    get_ts = regular_timestamps(12)
    frib_ts = get_ts[:5] + [get_ts[4] + 2_000] + get_ts[5:11]
    return get_ts, frib_ts
