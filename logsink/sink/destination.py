"""Destination resolution: which file a write lands in, plus max-files retention."""

import glob
import os
from datetime import datetime

from ..core.logging import get_logger
from .schemas import Destination, RetentionOutcome, SinkConfig

logger = get_logger("sink.destination")


def list_live_files(config: SinkConfig) -> list[str]:
    """Log files directly under the base directory, in name order."""
    return sorted(glob.glob(glob.escape(config.path) + "*.log"))


def enforce_max_files(config: SinkConfig) -> RetentionOutcome:
    """Delete the oldest log file when the live count exceeds ``max_files``.

    At most one file is removed per call. Failures are logged and reported,
    never raised.
    """
    files = list_live_files(config)
    if not config.max_files or len(files) <= config.max_files:
        return RetentionOutcome(live_files=files)

    oldest = files[0]
    try:
        os.remove(oldest)
    except OSError as e:
        logger.warning(f"Retention could not remove {oldest}: {e}")
        return RetentionOutcome(error=e, live_files=files)

    logger.debug(f"Retention removed {oldest}")
    return RetentionOutcome(removed=oldest, live_files=files[1:])


def master_path(config: SinkConfig, now: datetime) -> str:
    """Path of the shared master file for ``now``."""
    stem = config.single_stem
    if stem is not None:
        return config.path + stem + ".log"
    if config.max_files:
        return config.path + now.strftime("%Y%m%d") + ".log"
    return config.path + now.strftime("%Y%m") + os.sep + now.strftime("%d") + ".log"


def master_destination(config: SinkConfig, now: datetime) -> Destination:
    """Apply retention, then resolve the master file."""
    if config.max_files:
        enforce_max_files(config)
    return Destination(master_path(config, now))


def isolated_destination(
    config: SinkConfig, directory: str, category: str, now: datetime
) -> Destination:
    """Resolve the per-category file inside ``directory``.

    The name prefix follows the master file granularity so both roll over
    on the same cadence.
    """
    stem = config.single_stem
    if stem is not None:
        prefix = stem
    elif config.max_files:
        prefix = now.strftime("%Y%m%d")
    else:
        prefix = now.strftime("%d")
    return Destination(
        os.path.join(directory, f"{prefix}_{category}.log"), isolated=True
    )
