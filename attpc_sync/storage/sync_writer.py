"""HDF5 writer for synchronized runs."""

from pathlib import Path
from typing import Optional, Union
import logging
import h5py

from .. import __version__
from ..core.config import construct_run_path
from ..core.event import FribEvent, GetEvent, ScalerSet
from ..sync.synchronizer import SyncPlan

logger = logging.getLogger(__name__)

WRITER_VERSION = f"attpc_sync:{__version__}"


class SyncWriter:
    """
    Write synchronized events in the attpc_merger 0.2.0 layout.

    File structure:
        /events             - min_event, max_event, version, sync summary
            event_N/        - orig_run, get_event, frib_event
                get_traces      - id, timestamp, timestamp_other
                frib_physics/   - event, timestamp
                    1903
                    977
        /scalers            - min_event, max_event
            event_N         - start_offset, stop_offset, timestamp, incremental

    Example:
        with SyncWriter.for_run(Path("/data/sync"), 55) as writer:
            writer.write_combined(get_event, frib_event)
            writer.set_summary(plan)
    """

    def __init__(self, filepath: Union[str, Path], run_number: int = -1):
        self._filepath = Path(filepath)
        self._run_number = run_number
        self._file: Optional[h5py.File] = None
        self._event_count = 0
        self._plan: Optional[SyncPlan] = None

    @classmethod
    def for_run(cls, sync_path: Path, run_number: int) -> "SyncWriter":
        return cls(construct_run_path(sync_path, run_number), run_number)

    @property
    def filepath(self) -> Path:
        return self._filepath

    @property
    def event_count(self) -> int:
        return self._event_count

    def open(self) -> None:
        """Create the output file and its events group."""
        self._file = h5py.File(self._filepath, "w")
        self._event_count = 0

        events = self._file.create_group("events")
        events.attrs["min_event"] = 0
        events.attrs["max_event"] = 0
        events.attrs["version"] = WRITER_VERSION

    def close(self) -> None:
        """Write the closing metadata and close the file."""
        if self._file is None:
            return

        try:
            self._finish_file()
        finally:
            self._file.close()
            self._file = None

    def _finish_file(self) -> None:
        events = self._file["events"]
        events.attrs["max_event"] = self._event_count

        if self._plan is not None:
            events.attrs["alignment_status"] = self._plan.alignment.status.value
            events.attrs["get_first"] = self._plan.alignment.get_first
            events.attrs["frib_first"] = self._plan.alignment.frib_first
            events.attrs["skip_count"] = self._plan.skip_count
            events.attrs["anomaly_count"] = len(self._plan.anomalies)

        logger.debug(f"Finalized {self._filepath} with {self._event_count} events")

    def set_summary(self, plan: SyncPlan) -> None:
        """Record the plan whose summary is written when the file is closed."""
        self._plan = plan

    def write_combined(
        self,
        get: Optional[GetEvent],
        frib: Optional[FribEvent],
        get_event: int = -1,
        frib_event: int = -1,
    ) -> None:
        """
        Write one synchronized event.

        Args:
            get: GET part of the event
            frib: FRIB part of the event
            get_event: Merger event number the GET part came from
            frib_event: Merger event number the FRIB part came from
        """
        if self._file is None:
            raise RuntimeError("File not open")

        group = self._file["events"].create_group(f"event_{self._event_count}")
        group.attrs["orig_run"] = self._run_number
        group.attrs["get_event"] = get_event
        group.attrs["frib_event"] = frib_event

        if get is not None:
            traces = group.create_dataset("get_traces", data=get.traces)
            traces.attrs["id"] = get.id
            traces.attrs["timestamp"] = get.timestamp
            traces.attrs["timestamp_other"] = get.timestamp_other

        if frib is not None:
            frib_group = group.create_group("frib_physics")
            frib_group.attrs["event"] = frib.event
            frib_group.attrs["timestamp"] = frib.timestamp
            frib_group.create_dataset("1903", data=frib.traces)
            frib_group.create_dataset("977", data=frib.coincidence)

        self._event_count += 1

    def write_scalers(self, scalers: ScalerSet) -> None:
        """Copy scaler snapshots into the scalers group."""
        if self._file is None:
            raise RuntimeError("File not open")

        group = self._file.create_group("scalers")
        for scaler in scalers.events:
            ds = group.create_dataset(f"event_{scaler.index}", data=scaler.data)
            ds.attrs["start_offset"] = scaler.start_offset
            ds.attrs["stop_offset"] = scaler.stop_offset
            ds.attrs["timestamp"] = scaler.timestamp
            ds.attrs["incremental"] = scaler.incremental

        group.attrs["min_event"] = scalers.min_event
        group.attrs["max_event"] = scalers.max_event

    def __enter__(self) -> "SyncWriter":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
