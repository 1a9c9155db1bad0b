"""Writers that persist captured snapshots and failures to disk."""

from .logger import Logger
from .snapshot_logger import SnapshotLogger
from .failure_logger import FailureLogger

__all__ = [
    "Logger",
    "SnapshotLogger",
    "FailureLogger",
]
