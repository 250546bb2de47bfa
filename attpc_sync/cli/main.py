#!/usr/bin/env python3
"""AT-TPC Synchronizer CLI - Time stamp synchronization of merger runs."""

import argparse
import logging
import sys
from pathlib import Path

from .. import __version__

BANNER = "--------------------- AT-TPC Synchronizer ---------------------"
RULE = "-------------------------------------------------------------"


def cmd_new(args):
    """Write a template configuration file."""
    from ..core.config import Config

    print(f"Making a template configuration file at {args.config}...")
    Config().save(Path(args.config))
    print("Done.")
    return 0


def cmd_run(args):
    """Synchronize every run in the configured range."""
    from ..core.config import Config
    from ..orchestrator import RunOrchestrator, RunReport

    config = Config.load(Path(args.config))
    if args.workers is not None:
        config.workers = max(args.workers, 1)
    print(f"Successfully loaded configuration from {args.config}")

    problems = config.validate_paths()
    if problems:
        for problem in problems:
            print(problem)
        print("Quitting.")
        return 1

    def on_report(report: RunReport):
        if not report.processed:
            print(f"  Run {report.run_number}: not found, skipped")
            return
        line = (
            f"  Run {report.run_number}: {report.written}/{report.pairs} events, "
            f"{report.skip_count} skips, {report.anomaly_count} anomalies"
        )
        if report.missing_pairs:
            line += f", {report.missing_pairs} pairs dropped"
        if report.alignment is not None and not report.alignment.found:
            line += " (alignment not found, assumed aligned)"
        print(line)

    print(f"Synchronizing runs {config.min_run}-{config.max_run}...")
    reports = RunOrchestrator(config, on_report=on_report).run()

    processed = [r for r in reports if r.processed]
    print("\n=== Complete ===")
    print(f"Runs synchronized: {len(processed)}")
    print(f"Runs skipped: {len(reports) - len(processed)}")
    print(f"Events written: {sum(r.written for r in processed)}")
    return 0


def cmd_inspect(args):
    """Show the synchronization plan of one merger file without writing."""
    from ..storage import MergerReader
    from ..sync import synchronize

    with MergerReader(args.file) as reader:
        min_event, max_event = reader.event_range
        print(f"=== {Path(args.file).name} ===")
        print(f"Merger format: {reader.schema.name}")
        print(f"Events: {min_event}-{max_event} ({reader.event_count})")

        plan = synchronize(reader)
        alignment = plan.alignment
        print(f"Alignment: {alignment.status.value} "
              f"(GET {alignment.get_first}, FRIB {alignment.frib_first})")
        print(f"Synchronized pairs: {len(plan)}")
        print(f"Skips: {plan.skip_count}")
        print(f"Anomalies: {len(plan.anomalies)}")

        for anomaly in plan.anomalies[:args.anomalies]:
            print(f"  GET {anomaly.get_index:6d} | FRIB {anomaly.frib_index:6d} | jitter={anomaly.jitter}")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="attpc-sync",
        description="Synchronize GET and FRIB time stamps in attpc_merger runs",
    )
    parser.add_argument("--version", action="version", version=f"attpc-sync {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # New command
    new = subparsers.add_parser("new", help="Create a new template config file")
    new.add_argument("-c", "--config", type=str, required=True, help="Config file (YAML)")
    new.set_defaults(func=cmd_new)

    # Run command
    run = subparsers.add_parser("run", help="Synchronize the configured runs")
    run.add_argument("-c", "--config", type=str, required=True, help="Config file (YAML)")
    run.add_argument("-j", "--workers", type=int, help="Runs processed in parallel")
    run.set_defaults(func=cmd_run)

    # Inspect command
    insp = subparsers.add_parser("inspect", help="Show the plan for one merger file")
    insp.add_argument("file", type=str, help="Merger HDF5 file")
    insp.add_argument("-n", "--anomalies", type=int, default=20, help="Anomalies to list")
    insp.set_defaults(func=cmd_inspect)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    print(BANNER)
    try:
        status = args.func(args)
    except Exception as e:
        print(f"Error: {e}")
        status = 1
    print(RULE)
    return status


if __name__ == "__main__":
    sys.exit(main())
