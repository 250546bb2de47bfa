#!/usr/bin/env python3
"""Synchronize one merger run without a configuration file."""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from attpc_sync.core.config import Config
from attpc_sync.orchestrator import process_run


def main():
    parser = argparse.ArgumentParser(description="Synchronize a single merger run")
    parser.add_argument("run", type=int, help="Run number")
    parser.add_argument("--merger", "-m", type=str, required=True,
                        help="Directory with merger run files")
    parser.add_argument("--output", "-o", type=str, default="./synchronized",
                        help="Output directory")
    parser.add_argument("--strict", action="store_true",
                        help="Abort if a paired event is missing")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    output = Path(args.output)
    output.mkdir(parents=True, exist_ok=True)

    config = Config(
        merger_path=Path(args.merger),
        sync_path=output,
        min_run=args.run,
        max_run=args.run,
        on_missing_event="error" if args.strict else "skip",
    )

    report = process_run(config, args.run)
    if not report.processed:
        print(f"Run {args.run} not found in {args.merger}")
        return 1

    print(f"\n=== Run {args.run} ===")
    print(f"Alignment: {report.alignment.status.value} "
          f"(GET {report.alignment.get_first}, FRIB {report.alignment.frib_first})")
    print(f"Events written: {report.written}")
    print(f"Skips: {report.skip_count}")
    print(f"Anomalies: {report.anomaly_count}")
    print(f"Saved: {report.output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
