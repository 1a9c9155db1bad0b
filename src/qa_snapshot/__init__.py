"""Structural page snapshots with stable element ids for QA comparison."""

from qa_snapshot.adapter import CaptureTarget, SnapshotAdapter, resolve_target
from qa_snapshot.config import SnapshotConfig, get_config, load_config
from qa_snapshot.converter import PeerConverter, assemble
from qa_snapshot.defaults import DefaultValueFinder
from qa_snapshot.exceptions import (
    ConfigurationError,
    FrameUnavailableError,
    ResourceError,
    SnapshotError,
    StructuralIntegrityError,
    UnsupportedTargetError,
)
from qa_snapshot.ids import RetestIdProvider
from qa_snapshot.models import Element, RootElement, Screenshot, Snapshot
from qa_snapshot.paths import PathIndex

__all__ = [
    "CaptureTarget",
    "ConfigurationError",
    "DefaultValueFinder",
    "Element",
    "FrameUnavailableError",
    "PathIndex",
    "PeerConverter",
    "ResourceError",
    "RetestIdProvider",
    "RootElement",
    "Screenshot",
    "Snapshot",
    "SnapshotAdapter",
    "SnapshotConfig",
    "SnapshotError",
    "StructuralIntegrityError",
    "UnsupportedTargetError",
    "assemble",
    "get_config",
    "load_config",
    "resolve_target",
]
