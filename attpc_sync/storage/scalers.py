"""Copying of FRIBDAQ scaler snapshots into synchronized runs."""

import logging

from .merger_reader import MergerReader
from .sync_writer import SyncWriter

logger = logging.getLogger(__name__)


def copy_scalers(reader: MergerReader, writer: SyncWriter) -> int:
    """
    Copy every scaler snapshot of a merger run to the synchronized file.

    Scalers are not synchronized; they are copied as-is alongside the
    events. A run without scalers gets an empty scalers group.

    Returns:
        Number of scaler snapshots copied
    """
    scalers = reader.read_scalers()
    writer.write_scalers(scalers)

    if len(scalers) == 0:
        logger.info(f"No scalers found in {reader.filepath}")
    else:
        logger.debug(
            f"Copied {len(scalers)} scalers (events {scalers.min_event}-{scalers.max_event}) "
            f"from merger {reader.schema.name} file"
        )
    return len(scalers)
