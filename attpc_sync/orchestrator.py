"""
Run-by-run synchronization of merger data.

Each run in the configured range is read, synchronized and written to
its own output file. Runs share nothing, so they may be processed in
separate worker processes.
"""

from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional
import logging

from .core.config import Config, construct_run_path
from .core.errors import EventNotFoundError
from .storage.merger_reader import MergerReader
from .storage.scalers import copy_scalers
from .storage.sync_writer import SyncWriter
from .sync.alignment import AlignmentResult
from .sync.synchronizer import SyncPlan, synchronize

logger = logging.getLogger(__name__)


class RunStatus(Enum):
    SYNCHRONIZED = "synchronized"
    MISSING = "missing"


@dataclass
class RunReport:
    """Outcome of processing one run."""
    run_number: int
    status: RunStatus
    alignment: Optional[AlignmentResult] = None
    pairs: int = 0
    written: int = 0
    skip_count: int = 0
    anomaly_count: int = 0
    missing_pairs: int = 0
    scalers: int = 0
    output_path: Optional[Path] = None

    @property
    def processed(self) -> bool:
        return self.status is RunStatus.SYNCHRONIZED


def write_plan(
    reader: MergerReader,
    writer: SyncWriter,
    plan: SyncPlan,
    on_missing_event: str = "skip",
) -> int:
    """
    Write every pair of a plan as one combined event.

    Args:
        reader: Open reader the plan was built from
        writer: Open writer for the synchronized run
        plan: Matching (GET, FRIB) ordinals
        on_missing_event: "skip" drops pairs with an absent half,
            "error" raises EventNotFoundError

    Returns:
        Number of pairs dropped because an event was missing
    """
    min_event = reader.event_range[0]
    missing = 0

    for get_idx, frib_idx in plan:
        get = reader.read_get(get_idx)
        frib = reader.read_frib(frib_idx)

        if get is None or frib is None:
            absent = "GET" if get is None else "FRIB"
            ordinal = get_idx if get is None else frib_idx
            message = (
                f"{absent} event {min_event + ordinal} not found "
                f"for pair (GET {get_idx}, FRIB {frib_idx})"
            )
            if on_missing_event == "error":
                raise EventNotFoundError(message)
            logger.warning(f"{message}, dropping pair")
            missing += 1
            continue

        writer.write_combined(
            get,
            frib,
            get_event=min_event + get_idx,
            frib_event=min_event + frib_idx,
        )

    return missing


def process_run(config: Config, run_number: int) -> RunReport:
    """
    Synchronize a single run.

    A missing merger file is reported and skipped. Format and I/O
    errors propagate; the output file is still finalized and closed.
    """
    input_path = construct_run_path(config.merger_path, run_number)
    if not input_path.exists():
        logger.info(f"Run {run_number} doesn't exist, skipping...")
        return RunReport(run_number=run_number, status=RunStatus.MISSING)

    logger.info(f"Processing run {run_number}...")
    output_path = construct_run_path(config.sync_path, run_number)

    with MergerReader(input_path, run_number) as reader:
        logger.info("Synchronizing time stamps...")
        plan = synchronize(reader)

        logger.info("Writing synchronized file...")
        with SyncWriter(output_path, run_number) as writer:
            writer.set_summary(plan)
            missing = write_plan(reader, writer, plan, config.on_missing_event)
            scalers = copy_scalers(reader, writer)
            written = writer.event_count

    return RunReport(
        run_number=run_number,
        status=RunStatus.SYNCHRONIZED,
        alignment=plan.alignment,
        pairs=len(plan),
        written=written,
        skip_count=plan.skip_count,
        anomaly_count=len(plan.anomalies),
        missing_pairs=missing,
        scalers=scalers,
        output_path=output_path,
    )


class RunOrchestrator:
    """
    Drives synchronization over the configured run range.

    Example:
        orchestrator = RunOrchestrator(Config.load(Path("config.yml")))
        for report in orchestrator.run():
            print(report.run_number, report.status)
    """

    def __init__(
        self,
        config: Config,
        on_report: Optional[Callable[[RunReport], None]] = None,
    ):
        self._config = config
        self._on_report = on_report

    @property
    def config(self) -> Config:
        return self._config

    def _report(self, report: RunReport) -> RunReport:
        if self._on_report is not None:
            self._on_report(report)
        return report

    def run(self) -> List[RunReport]:
        """Process every run; reports come back in run order."""
        runs = list(self._config.runs)

        if self._config.workers <= 1 or len(runs) <= 1:
            return [self._report(process_run(self._config, run)) for run in runs]

        reports = []
        with ProcessPoolExecutor(max_workers=self._config.workers) as pool:
            futures = [pool.submit(process_run, self._config, run) for run in runs]
            for future in futures:
                reports.append(self._report(future.result()))
        return reports
