#!/usr/bin/env python3
"""Playback a synchronized run and show how well its time stamps agree."""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from attpc_sync.storage import MergerReader


def main():
    parser = argparse.ArgumentParser(description="Playback synchronized HDF5 run")
    parser.add_argument("file", type=str, help="Synchronized run file")
    parser.add_argument("--events", "-n", type=int, default=10,
                        help="Number of events to show")
    args = parser.parse_args()

    # Synchronized files use the 0.2.0 merger layout, so the merger reader opens them
    with MergerReader(args.file) as reader:
        print("=== Synchronized Run ===")
        print(f"File: {reader.filepath}")
        print(f"Events: {reader.event_count}")

        print(f"\n=== Playback (first {args.events} events) ===")
        previous = None
        for i in range(min(args.events, reader.event_count)):
            event = reader.read_event(i)
            if not (event.has_get and event.has_frib):
                print(f"  Event {event.event:5d} | incomplete")
                continue

            offset = event.frib.timestamp - event.get.timestamp_other
            drift = "" if previous is None else f" | drift={offset - previous:+d}"
            previous = offset

            print(f"  Event {event.event:5d} | GET id={event.get.id} | "
                  f"FRIB evt={event.frib.event} | offset={offset}{drift}")


if __name__ == "__main__":
    main()
