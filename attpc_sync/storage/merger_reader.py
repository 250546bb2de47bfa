"""HDF5 reader for attpc_merger run containers."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Tuple, Union
import logging
import numpy as np
import h5py

from ..core.config import construct_run_path
from ..core.errors import (
    EventNotFoundError,
    MissingFieldError,
    RunNotFoundError,
    UnrecognizedFormatError,
)
from ..core.event import Channel, FribEvent, GetEvent, MergerEvent, ScalerEvent, ScalerSet
from ..sync.timestamp import TimestampSource

logger = logging.getLogger(__name__)

H5Node = Union[h5py.File, h5py.Group, h5py.Dataset]


def _require(group: Union[h5py.File, h5py.Group], name: str):
    """Get a member of a group, raising MissingFieldError if absent."""
    if name not in group:
        raise MissingFieldError(f"{group.name.rstrip('/')}/{name} is missing")
    return group[name]


def _attr(node: H5Node, name: str) -> int:
    """Read a scalar integer attribute, raising MissingFieldError if absent."""
    if name not in node.attrs:
        raise MissingFieldError(f"Attribute {name!r} missing on {node.name}")
    return int(node.attrs[name])


class MergerSchema(ABC):
    """
    Layout of one merger format revision.

    Subclasses declare the top-level group whose presence identifies
    them (marker) and know where events and scalers live.
    """

    name: str = ""
    marker: str = ""

    def __init__(self, file: h5py.File):
        self._file = file

    @classmethod
    def matches(cls, file: h5py.File) -> bool:
        return cls.marker in file

    @abstractmethod
    def event_range(self) -> Tuple[int, int]:
        """(min_event, max_event) with max_event exclusive."""
        pass

    @abstractmethod
    def get_timestamp(self, event: int) -> Optional[int]:
        """GET timestamp used for synchronization, None if no GET data."""
        pass

    @abstractmethod
    def frib_timestamp(self, event: int) -> Optional[int]:
        """FRIB timestamp used for synchronization, None if no FRIB data."""
        pass

    @abstractmethod
    def read_get(self, event: int) -> Optional[GetEvent]:
        pass

    @abstractmethod
    def read_frib(self, event: int) -> Optional[FribEvent]:
        pass

    @abstractmethod
    def read_scalers(self) -> ScalerSet:
        pass


class LegacySchema(MergerSchema):
    """
    attpc_merger 0.1.0 layout.

    File structure:
        /meta/meta              - [min_event, _, max_event]
        /get/evtN_data          - GET traces
        /get/evtN_header        - [id, timestamp, timestamp_other] (float64)
        /frib/evt/evtN_1903     - FRIB traces
        /frib/evt/evtN_977      - Coincidence register
        /frib/evt/evtN_header   - [event, timestamp]
        /frib/scaler/scalerN_data
        /frib/scaler/scalerN_header - [start, stop, timestamp, _, incremental]
    """

    name = "0.1.0"
    marker = "meta"

    def event_range(self) -> Tuple[int, int]:
        meta = _require(_require(self._file, "meta"), "meta")[:]
        if len(meta) < 3:
            raise MissingFieldError(f"/meta/meta holds {len(meta)} values, expected 3")
        return int(meta[0]), int(meta[2])

    def _get_header(self, event: int) -> Optional[np.ndarray]:
        get_group = _require(self._file, "get")
        if f"evt{event}_data" not in get_group:
            return None
        return _require(get_group, f"evt{event}_header")[:]

    def _frib_header(self, event: int) -> Optional[np.ndarray]:
        evt_group = _require(_require(self._file, "frib"), "evt")
        if f"evt{event}_1903" not in evt_group:
            return None
        return _require(evt_group, f"evt{event}_header")[:]

    def get_timestamp(self, event: int) -> Optional[int]:
        header = self._get_header(event)
        return None if header is None else int(header[2])

    def frib_timestamp(self, event: int) -> Optional[int]:
        header = self._frib_header(event)
        return None if header is None else int(header[1])

    def read_get(self, event: int) -> Optional[GetEvent]:
        header = self._get_header(event)
        if header is None:
            return None
        return GetEvent(
            traces=self._file["get"][f"evt{event}_data"][:],
            id=int(header[0]),
            timestamp=int(header[1]),
            timestamp_other=int(header[2]),
        )

    def read_frib(self, event: int) -> Optional[FribEvent]:
        header = self._frib_header(event)
        if header is None:
            return None
        evt_group = self._file["frib"]["evt"]
        return FribEvent(
            traces=evt_group[f"evt{event}_1903"][:],
            coincidence=_require(evt_group, f"evt{event}_977")[:],
            event=int(header[0]),
            timestamp=int(header[1]),
        )

    def read_scalers(self) -> ScalerSet:
        if "frib" not in self._file or "scaler" not in self._file["frib"]:
            return ScalerSet()

        scaler_group = self._file["frib"]["scaler"]
        events = []
        index = 0
        while f"scaler{index}_data" in scaler_group:
            header = _require(scaler_group, f"scaler{index}_header")[:]
            events.append(ScalerEvent(
                index=index,
                data=scaler_group[f"scaler{index}_data"][:],
                start_offset=int(header[0]),
                stop_offset=int(header[1]),
                timestamp=int(header[2]),
                incremental=int(header[4]),
            ))
            index += 1

        return ScalerSet(events=events, min_event=0, max_event=index)


class CurrentSchema(MergerSchema):
    """
    attpc_merger 0.2.0 layout.

    File structure:
        /events                         - min_event, max_event
            event_N/
                get_traces              - id, timestamp, timestamp_other
                frib_physics/           - event, timestamp
                    977
                    1903
        /scalers                        - min_event, max_event
            eventN_data                 - start_offset, stop_offset, timestamp, incremental
    """

    name = "0.2.0"
    marker = "events"

    def event_range(self) -> Tuple[int, int]:
        events = self._file["events"]
        return _attr(events, "min_event"), _attr(events, "max_event")

    def _event_group(self, event: int) -> h5py.Group:
        return _require(self._file["events"], f"event_{event}")

    def get_timestamp(self, event: int) -> Optional[int]:
        group = self._event_group(event)
        if "get_traces" not in group:
            return None
        return _attr(group["get_traces"], "timestamp_other")

    def frib_timestamp(self, event: int) -> Optional[int]:
        group = self._event_group(event)
        if "frib_physics" not in group:
            return None
        return _attr(group["frib_physics"], "timestamp")

    def read_get(self, event: int) -> Optional[GetEvent]:
        group = self._event_group(event)
        if "get_traces" not in group:
            return None
        traces = group["get_traces"]
        return GetEvent(
            traces=traces[:],
            id=_attr(traces, "id"),
            timestamp=_attr(traces, "timestamp"),
            timestamp_other=_attr(traces, "timestamp_other"),
        )

    def read_frib(self, event: int) -> Optional[FribEvent]:
        group = self._event_group(event)
        if "frib_physics" not in group:
            return None
        frib = group["frib_physics"]
        return FribEvent(
            traces=_require(frib, "1903")[:],
            coincidence=_require(frib, "977")[:],
            event=_attr(frib, "event"),
            timestamp=_attr(frib, "timestamp"),
        )

    def read_scalers(self) -> ScalerSet:
        if "scalers" not in self._file:
            return ScalerSet()

        scaler_group = self._file["scalers"]
        min_event = _attr(scaler_group, "min_event")
        max_event = _attr(scaler_group, "max_event")

        events = []
        for index in range(min_event, max_event + 1):
            name = f"event{index}_data"
            if name not in scaler_group:
                continue
            data = scaler_group[name]
            events.append(ScalerEvent(
                index=index,
                data=data[:],
                start_offset=_attr(data, "start_offset"),
                stop_offset=_attr(data, "stop_offset"),
                timestamp=_attr(data, "timestamp"),
                incremental=_attr(data, "incremental"),
            ))

        return ScalerSet(events=events, min_event=min_event, max_event=max_event)


SCHEMAS = (LegacySchema, CurrentSchema)


def detect_schema(file: h5py.File) -> MergerSchema:
    """
    Pick the schema matching an open container.

    Raises:
        UnrecognizedFormatError: If no known marker group is present
    """
    for schema_cls in SCHEMAS:
        if schema_cls.matches(file):
            return schema_cls(file)
    raise UnrecognizedFormatError(
        f"{file.filename} is not a recognized merger file "
        f"(expected one of the groups {[s.marker for s in SCHEMAS]})"
    )


class MergerReader(TimestampSource):
    """
    Read events from an attpc_merger run container.

    Event ordinals are 0-based and map to merger event numbers
    min_event + ordinal.

    Example:
        with MergerReader.for_run(Path("/data/merger"), 55) as reader:
            print(reader.schema.name, reader.event_count)
            event = reader.read_event(0)
    """

    def __init__(self, filepath: Union[str, Path], run_number: int = -1):
        self._filepath = Path(filepath)
        self._run_number = run_number
        self._file: Optional[h5py.File] = None
        self._schema: Optional[MergerSchema] = None
        self._min_event = 0
        self._max_event = 0
        self._lengths: Dict[Channel, int] = {}

    @classmethod
    def for_run(cls, merger_path: Path, run_number: int) -> "MergerReader":
        return cls(construct_run_path(merger_path, run_number), run_number)

    @property
    def filepath(self) -> Path:
        return self._filepath

    @property
    def run_number(self) -> int:
        return self._run_number

    @property
    def schema(self) -> MergerSchema:
        if self._schema is None:
            raise RuntimeError("File not open")
        return self._schema

    @property
    def event_range(self) -> Tuple[int, int]:
        return self._min_event, self._max_event

    @property
    def event_count(self) -> int:
        return max(self._max_event - self._min_event, 0)

    def open(self) -> None:
        """Open the container and detect its schema."""
        if not self._filepath.exists():
            raise RunNotFoundError(f"Run not found: {self._filepath}")

        self._file = h5py.File(self._filepath, "r")
        try:
            self._schema = detect_schema(self._file)
            self._min_event, self._max_event = self._schema.event_range()
        except Exception:
            self.close()
            raise

        logger.debug(
            f"Opened {self._filepath} (merger {self._schema.name}, "
            f"events {self._min_event}-{self._max_event})"
        )

    def close(self) -> None:
        """Close the container."""
        if self._file:
            self._file.close()
            self._file = None
        self._schema = None
        self._lengths = {}

    def _event_number(self, ordinal: int) -> int:
        if ordinal < 0 or ordinal >= self.event_count:
            raise EventNotFoundError(
                f"Event ordinal {ordinal} outside 0-{self.event_count - 1} in {self._filepath}"
            )
        return self._min_event + ordinal

    def _channel_timestamp(self, channel: Channel, event: int) -> Optional[int]:
        if channel is Channel.GET:
            return self.schema.get_timestamp(event)
        return self.schema.frib_timestamp(event)

    def length(self, channel: Channel) -> int:
        """
        Number of leading events carrying this channel's data.

        The first event without the channel ends its series, so one DAQ
        stopping early shortens only its own channel.

        Raises:
            EventNotFoundError: If the channel has data again after a gap
        """
        if channel in self._lengths:
            return self._lengths[channel]

        count = None
        for ordinal in range(self.event_count):
            event = self._min_event + ordinal
            present = self._channel_timestamp(channel, event) is not None
            if count is None and not present:
                count = ordinal
            elif count is not None and present:
                raise EventNotFoundError(
                    f"Event {self._min_event + count} of {self._filepath} has no "
                    f"{channel.value.upper()} data but event {event} does"
                )

        length = self.event_count if count is None else count
        self._lengths[channel] = length
        return length

    def timestamp(self, channel: Channel, ordinal: int) -> int:
        event = self._event_number(ordinal)
        value = self._channel_timestamp(channel, event)

        if value is None:
            raise EventNotFoundError(
                f"Event {event} of {self._filepath} has no {channel.value.upper()} data"
            )
        return value

    def read_get(self, ordinal: int) -> Optional[GetEvent]:
        return self.schema.read_get(self._event_number(ordinal))

    def read_frib(self, ordinal: int) -> Optional[FribEvent]:
        return self.schema.read_frib(self._event_number(ordinal))

    def read_event(self, ordinal: int) -> MergerEvent:
        """Read both channels of one event."""
        event = self._event_number(ordinal)
        return MergerEvent(
            run_number=self._run_number,
            event=event,
            get=self.schema.read_get(event),
            frib=self.schema.read_frib(event),
        )

    def read_scalers(self) -> ScalerSet:
        return self.schema.read_scalers()

    def __enter__(self) -> "MergerReader":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
