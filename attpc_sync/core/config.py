"""Configuration definitions and run naming utilities."""

from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional, List
import re

import yaml

from .errors import ConfigError

MISSING_EVENT_POLICIES = ("skip", "error")

_RUN_FILENAME = re.compile(r"^run_(\d+)\.h5$")


def construct_run_path(path: Path, run_number: int) -> Path:
    """
    Build the container path for a run.

    Example:
        >>> construct_run_path(Path("/data/merger"), 55)
        PosixPath('/data/merger/run_0055.h5')
    """
    return Path(path) / f"run_{run_number:04d}.h5"


def parse_run_filename(filename: str) -> Optional[int]:
    """
    Recover the run number from a container filename.

    Returns:
        The run number, or None if the name doesn't follow run_NNNN.h5
    """
    match = _RUN_FILENAME.match(Path(filename).name)
    if match is None:
        return None
    return int(match.group(1))


@dataclass
class Config:
    """
    Synchronizer configuration, persisted as YAML.

    Attributes:
        merger_path: Directory holding the merger run_NNNN.h5 files
        sync_path: Directory synchronized runs are written to
        min_run: First run number to process
        max_run: Last run number to process (inclusive)
        on_missing_event: "skip" drops a plan pair whose event is absent,
            "error" aborts the run
        workers: Number of runs processed in parallel
    """
    merger_path: Path = Path("/path/to/some/merger/data/")
    sync_path: Path = Path("/path/to/some/synchronized/data/")
    min_run: int = 0
    max_run: int = 0
    on_missing_event: str = "skip"
    workers: int = 1

    def __post_init__(self):
        self.merger_path = Path(self.merger_path)
        self.sync_path = Path(self.sync_path)
        self.min_run = int(self.min_run)
        self.max_run = int(self.max_run)
        self.workers = int(self.workers)

        if self.min_run > self.max_run:
            raise ConfigError(
                f"min_run ({self.min_run}) is greater than max_run ({self.max_run})"
            )
        if self.on_missing_event not in MISSING_EVENT_POLICIES:
            raise ConfigError(
                f"on_missing_event must be one of {MISSING_EVENT_POLICIES}, "
                f"got {self.on_missing_event!r}"
            )
        if self.workers < 1:
            raise ConfigError(f"workers must be at least 1, got {self.workers}")

    @property
    def runs(self) -> range:
        """Run numbers covered by this configuration."""
        return range(self.min_run, self.max_run + 1)

    def validate_paths(self) -> List[str]:
        """Return a description of every configured path that is missing."""
        problems = []
        if not self.merger_path.exists():
            problems.append(f"Merger path {self.merger_path} does not exist!")
        if not self.sync_path.exists():
            problems.append(
                f"Synchronized path {self.sync_path} does not exist! "
                "Please create it before running the synchronizer."
            )
        return problems

    def to_dict(self) -> dict:
        data = asdict(self)
        data["merger_path"] = str(self.merger_path)
        data["sync_path"] = str(self.sync_path)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(
                f"Attempted to load configuration from non-existant path: {path}"
            )

        with open(path, "r") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Could not parse {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration {path} is not a mapping")

        return cls.from_dict(data)

    def save(self, path: Path) -> None:
        """Save this configuration to a YAML file."""
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)
