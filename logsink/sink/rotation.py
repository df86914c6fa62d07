"""Size-based rotation and the append primitive used for every log write."""

import os
import time

from ..core.logging import get_logger
from .schemas import RotationOutcome

logger = get_logger("sink.rotation")


def backup_path(path: str, timestamp: float) -> str:
    """Name of the backup a rotated file is renamed to."""
    directory, basename = os.path.split(path)
    return os.path.join(directory, f"{int(timestamp)}-{basename}")


def check_and_rotate(
    path: str, threshold: int, timestamp: float | None = None
) -> RotationOutcome:
    """Rename ``path`` to a timestamped backup when its size reaches ``threshold``.

    A failed rename is reported and logged; the caller keeps appending to
    the oversized file.
    """
    try:
        if not os.path.isfile(path) or os.path.getsize(path) < threshold:
            return RotationOutcome()
    except OSError:
        # Removed by a concurrent writer between the checks
        return RotationOutcome()

    target = backup_path(path, time.time() if timestamp is None else timestamp)
    try:
        os.rename(path, target)
    except OSError as e:
        logger.warning(f"Rotation of {path} failed: {e}")
        return RotationOutcome(error=e)

    logger.info(f"Rotated {path} -> {target}")
    return RotationOutcome(rotated_to=target)


def append_to_file(path: str, text: str) -> bool:
    """Append ``text`` with O_APPEND semantics. Returns False on I/O failure."""
    data = text.encode("utf-8")
    try:
        fd = os.open(path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
    except OSError as e:
        logger.warning(f"Cannot open {path} for append: {e}")
        return False

    try:
        view = memoryview(data)
        while view:
            written = os.write(fd, view)
            view = view[written:]
    except OSError as e:
        logger.warning(f"Write to {path} failed: {e}")
        return False
    finally:
        os.close(fd)
    return True
